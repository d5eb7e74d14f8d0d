"""Extraction orchestrator.

Runs the four extraction tasks for one document and assembles their
normalized outputs into a StructuredLegalRecord.
"""

import asyncio
import time
from typing import Dict, List, Optional, Tuple, Union

from judgment_ai.config.extraction import ExecutionStrategy, ExtractionSettings, ModelErrorPolicy
from judgment_ai.config.llm import LLMSettings
from judgment_ai.core.chat_client import ModelInvoker
from judgment_ai.core.exceptions import ModelError
from judgment_ai.core.unified_llm import (
    call_budget_from_settings,
    create_model_client_from_settings,
    model_name_from_settings,
    model_options_from_settings,
)
from judgment_ai.schemas.legal_record import (
    BasicInfo,
    Evidence,
    Facts,
    Reasoning,
    RecordMetadata,
    StructuredLegalRecord,
)
from judgment_ai.services.document.text_processor import Document, prepare_document
from judgment_ai.services.extraction.confidence import ConfidenceScorer
from judgment_ai.services.extraction.field_extractor import FieldExtractor
from judgment_ai.services.extraction.tasks import TASK_ORDER, ExtractionTask, get_task_definition
from judgment_ai.services.normalization.response_normalizer import ValidationOutcome
from judgment_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)

TaskResult = Union[ValidationOutcome, ModelError]


class ExtractionOrchestrator:
    """Coordinates the extraction tasks for one judgment.

    Execution strategies:
        concurrent: all tasks run at once; after every task has finished the
            first ModelError in task order is raised (policy "raise")
        sequential: tasks run in task order; the first ModelError stops the
            run (policy "raise")

    With policy "default" a failed task contributes its default value and is
    listed in metadata.failedTasks.
    """

    def __init__(
        self,
        extractor: FieldExtractor,
        execution_strategy: ExecutionStrategy = ExecutionStrategy.CONCURRENT,
        model_error_policy: ModelErrorPolicy = ModelErrorPolicy.RAISE,
        scorer: Optional[ConfidenceScorer] = None,
        model_name: str = "",
    ):
        """Initialize the orchestrator.

        Args:
            extractor: Field extractor shared by all tasks
            execution_strategy: Concurrent or sequential scheduling
            model_error_policy: Raise or default on a task's ModelError
            scorer: Confidence scorer (default weights if omitted)
            model_name: Reported in metadata.aiModel
        """
        self.extractor = extractor
        self.execution_strategy = ExecutionStrategy(execution_strategy)
        self.model_error_policy = ModelErrorPolicy(model_error_policy)
        self.scorer = scorer or ConfidenceScorer()
        self.model_name = model_name

    @classmethod
    def from_settings(
        cls,
        invoker: Optional[ModelInvoker] = None,
        llm_settings: Optional[LLMSettings] = None,
        extraction_settings: Optional[ExtractionSettings] = None,
    ) -> "ExtractionOrchestrator":
        """Build an orchestrator from settings.

        Args:
            invoker: Model invoker; created from llm_settings when omitted
            llm_settings: LLM settings (loaded from the environment if omitted)
            extraction_settings: Extraction settings (loaded if omitted)

        Raises:
            ConfigurationError: If no invoker is given and the provider is
                not configured
        """
        llm_settings = llm_settings or LLMSettings()
        extraction_settings = extraction_settings or ExtractionSettings()
        invoker = invoker or create_model_client_from_settings(llm_settings)

        extractor = FieldExtractor(
            invoker=invoker,
            options=model_options_from_settings(llm_settings),
            call_timeout=call_budget_from_settings(llm_settings),
            section_max_chars=extraction_settings.section_max_chars,
            basic_info_max_chars=extraction_settings.basic_info_max_chars,
        )
        return cls(
            extractor=extractor,
            execution_strategy=extraction_settings.execution_strategy,
            model_error_policy=extraction_settings.model_error_policy,
            scorer=ConfidenceScorer(extraction_settings.confidence_weights),
            model_name=model_name_from_settings(llm_settings),
        )

    async def extract_record(self, document: Union[Document, str]) -> StructuredLegalRecord:
        """Extract a complete record from a judgment.

        Args:
            document: Document or raw judgment text

        Returns:
            StructuredLegalRecord with every field populated

        Raises:
            EmptyDocumentError: Before any model call, for blank input
            ModelError: If a task's model call fails under policy "raise"
        """
        document = prepare_document(document)
        start_time = time.time()

        LOGGER.info(
            "Starting record extraction",
            extra={
                "strategy": self.execution_strategy.value,
                "policy": self.model_error_policy.value,
                "text_length": len(document),
            }
        )

        outcomes, failed_tasks = await self.run_tasks(document)
        processing_time = int((time.time() - start_time) * 1000)
        confidence = self.scorer.score(outcomes)

        record = StructuredLegalRecord(
            basic_info=BasicInfo.model_validate(outcomes[ExtractionTask.BASIC_INFO].value),
            facts=Facts.model_validate(outcomes[ExtractionTask.FACTS].value),
            evidence=Evidence.model_validate(outcomes[ExtractionTask.EVIDENCE].value),
            reasoning=Reasoning.model_validate(outcomes[ExtractionTask.REASONING].value),
            metadata=RecordMetadata(
                processing_time=processing_time,
                confidence=confidence,
                ai_model=self.model_name,
                failed_tasks=failed_tasks,
            ),
        )

        LOGGER.info(
            "Record extraction completed",
            extra={
                "processing_time_ms": processing_time,
                "confidence": confidence,
                "failed_tasks": failed_tasks,
                "defaulted_tasks": [task.value for task, outcome in outcomes.items() if outcome.is_default],
            }
        )
        return record

    async def run_tasks(
        self,
        document: Document,
    ) -> Tuple[Dict[ExtractionTask, ValidationOutcome], List[str]]:
        """Run every task and apply the model-error policy.

        Returns:
            Tuple of (outcome per task, names of tasks that failed)

        Raises:
            ModelError: Under policy "raise"
        """
        if self.execution_strategy == ExecutionStrategy.SEQUENTIAL:
            results = await self._run_sequential(document)
        else:
            results = await self._run_concurrent(document)

        outcomes: Dict[ExtractionTask, ValidationOutcome] = {}
        failed_tasks: List[str] = []
        for task in TASK_ORDER:
            result = results[task]
            if isinstance(result, ModelError):
                if self.model_error_policy == ModelErrorPolicy.RAISE:
                    raise result
                LOGGER.warning(
                    f"Task {task.value} failed, using defaults: {result}",
                    extra={"task": task.value, "kind": result.kind.value}
                )
                failed_tasks.append(task.value)
                result = ValidationOutcome.from_default(get_task_definition(task).schema, str(result))
            outcomes[task] = result
        return outcomes, failed_tasks

    async def _run_concurrent(self, document: Document) -> Dict[ExtractionTask, TaskResult]:
        results = await asyncio.gather(
            *(self.extractor.extract(task, document) for task in TASK_ORDER),
            return_exceptions=True,
        )
        collected: Dict[ExtractionTask, TaskResult] = {}
        for task, result in zip(TASK_ORDER, results):
            if isinstance(result, BaseException) and not isinstance(result, ModelError):
                raise result
            collected[task] = result
        return collected

    async def _run_sequential(self, document: Document) -> Dict[ExtractionTask, TaskResult]:
        collected: Dict[ExtractionTask, TaskResult] = {}
        for task in TASK_ORDER:
            try:
                collected[task] = await self.extractor.extract(task, document)
            except ModelError as e:
                if self.model_error_policy == ModelErrorPolicy.RAISE:
                    raise
                collected[task] = e
        return collected
