"""Extraction task registry.

Each task owns the keywords used to locate its section, the canonical
schema its output is normalized against, and the prompt builder.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Tuple

from judgment_ai.prompts.extraction_prompts import (
    build_basic_info_prompt,
    build_evidence_prompt,
    build_facts_prompt,
    build_reasoning_prompt,
)
from judgment_ai.schemas.canonical import FieldSpec
from judgment_ai.schemas.legal_schemas import (
    BASIC_INFO_SCHEMA,
    EVIDENCE_SCHEMA,
    FACTS_SCHEMA,
    REASONING_SCHEMA,
)


class ExtractionTask(str, Enum):
    BASIC_INFO = "basicInfo"
    FACTS = "facts"
    EVIDENCE = "evidence"
    REASONING = "reasoning"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TaskDefinition:
    """Static configuration of one extraction task.

    Attributes:
        task: Task identifier
        keywords: Section headings in priority order; empty means the task
            always reads the whole document
        schema: Canonical output schema
        prompt_builder: Callable (section_text, max_chars) -> prompt
        uses_full_document: Whether the prompt budget is the basic-info budget
    """
    task: ExtractionTask
    keywords: Tuple[str, ...]
    schema: FieldSpec
    prompt_builder: Callable[[str, int], str]
    uses_full_document: bool = False


TASK_DEFINITIONS: Dict[ExtractionTask, TaskDefinition] = {
    ExtractionTask.BASIC_INFO: TaskDefinition(
        task=ExtractionTask.BASIC_INFO,
        keywords=(),
        schema=BASIC_INFO_SCHEMA,
        prompt_builder=build_basic_info_prompt,
        uses_full_document=True,
    ),
    ExtractionTask.FACTS: TaskDefinition(
        task=ExtractionTask.FACTS,
        keywords=("经审理查明", "本院查明", "经查明", "审理查明", "查明"),
        schema=FACTS_SCHEMA,
        prompt_builder=build_facts_prompt,
    ),
    ExtractionTask.EVIDENCE: TaskDefinition(
        task=ExtractionTask.EVIDENCE,
        keywords=("经审理查明", "本院查明", "经查明", "证据及事实", "查明"),
        schema=EVIDENCE_SCHEMA,
        prompt_builder=build_evidence_prompt,
    ),
    ExtractionTask.REASONING: TaskDefinition(
        task=ExtractionTask.REASONING,
        keywords=("本院认为", "经本院审理认为", "本院审理后认为", "合议庭认为"),
        schema=REASONING_SCHEMA,
        prompt_builder=build_reasoning_prompt,
    ),
}

# Order in which sequential execution runs tasks and errors are reported
TASK_ORDER: Tuple[ExtractionTask, ...] = (
    ExtractionTask.BASIC_INFO,
    ExtractionTask.FACTS,
    ExtractionTask.EVIDENCE,
    ExtractionTask.REASONING,
)


def get_task_definition(task) -> TaskDefinition:
    """Look up a task by enum member or name."""
    return TASK_DEFINITIONS[ExtractionTask(task)]
