"""Single-task extraction: locate, prompt, invoke, parse, normalize."""

import asyncio
import time
from typing import Optional, Union

from judgment_ai.core.chat_client import ModelInvoker, ModelOptions, ModelResponse
from judgment_ai.core.exceptions import MalformedResponseError, ModelError, ModelErrorKind
from judgment_ai.prompts.extraction_prompts import SYSTEM_PROMPT
from judgment_ai.services.document.text_processor import Document, Section
from judgment_ai.services.extraction.section_locator import SectionLocator
from judgment_ai.services.extraction.tasks import ExtractionTask, TaskDefinition, get_task_definition
from judgment_ai.services.normalization.response_normalizer import ResponseNormalizer, ValidationOutcome
from judgment_ai.utils.json_parser import extract_json_payload
from judgment_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)


class FieldExtractor:
    """Runs one extraction task against a document.

    A ModelError from the invoker propagates (attributed to the task); a
    response without parseable JSON is replaced by the task's default value.
    """

    def __init__(
        self,
        invoker: ModelInvoker,
        locator: Optional[SectionLocator] = None,
        normalizer: Optional[ResponseNormalizer] = None,
        options: Optional[ModelOptions] = None,
        call_timeout: Optional[float] = None,
        section_max_chars: int = 12000,
        basic_info_max_chars: int = 2000,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        """Initialize the extractor.

        Args:
            invoker: Model-invocation collaborator
            locator: Section locator (default boundaries if omitted)
            normalizer: Response normalizer
            options: Generation options passed to every call
            call_timeout: Seconds allowed per model call, None for no limit
            section_max_chars: Prompt budget for located sections
            basic_info_max_chars: Prompt budget for the basic-info task
            system_prompt: System prompt sent with every call
        """
        self.invoker = invoker
        self.locator = locator or SectionLocator()
        self.normalizer = normalizer or ResponseNormalizer()
        self.options = options or ModelOptions()
        self.call_timeout = call_timeout
        self.section_max_chars = section_max_chars
        self.basic_info_max_chars = basic_info_max_chars
        self.system_prompt = system_prompt

    async def extract(
        self,
        task: Union[ExtractionTask, str],
        document: Document,
    ) -> ValidationOutcome:
        """Extract one field group.

        Args:
            task: Extraction task
            document: Preprocessed judgment

        Returns:
            ValidationOutcome with source "model", or "default" when the
            response held no parseable JSON

        Raises:
            ModelError: If the model call fails, with `task` set
        """
        definition = get_task_definition(task)
        section = self.locate_section(definition, document)
        prompt = self.build_prompt(definition, section)

        start_time = time.time()
        response = await self._invoke(definition.task, prompt)
        elapsed_ms = int((time.time() - start_time) * 1000)

        outcome = self.parse_response(definition, response.content)

        LOGGER.info(
            f"Extracted {definition.task.value}",
            extra={
                "task": definition.task.value,
                "source": outcome.source,
                "repair_count": len(outcome.repairs),
                "latency_ms": elapsed_ms,
            }
        )
        return outcome

    def locate_section(self, definition: TaskDefinition, document: Document) -> Section:
        section = self.locator.locate(document, definition.keywords, name=definition.task.value)
        if definition.keywords and not section.found:
            LOGGER.info(
                f"No section heading found for {definition.task.value}, using full document",
                extra={"task": definition.task.value}
            )
        return section

    def build_prompt(self, definition: TaskDefinition, section: Section) -> str:
        budget = self.basic_info_max_chars if definition.uses_full_document else self.section_max_chars
        return definition.prompt_builder(section.text, budget)

    def parse_response(self, definition: TaskDefinition, raw_text: str) -> ValidationOutcome:
        """Turn raw model text into a normalized outcome; never raises."""
        try:
            payload = extract_json_payload(raw_text)
        except MalformedResponseError as e:
            LOGGER.warning(
                f"Malformed response for {definition.task.value}, using defaults: {e}",
                extra={"task": definition.task.value, "response_length": len(raw_text or "")}
            )
            return ValidationOutcome.from_default(definition.schema, str(e))

        return self.normalizer.normalize(payload, definition.schema)

    async def _invoke(self, task: ExtractionTask, prompt: str) -> ModelResponse:
        call = self.invoker.invoke_model(self.system_prompt, prompt, self.options)
        try:
            if self.call_timeout:
                return await asyncio.wait_for(call, timeout=self.call_timeout)
            return await call
        except ModelError as e:
            LOGGER.error(f"Model call failed for {task.value}: {e}", extra={"task": task.value, "kind": e.kind.value})
            raise e.for_task(task.value)
        except asyncio.TimeoutError as e:
            LOGGER.error(
                f"Model call for {task.value} exceeded {self.call_timeout}s",
                extra={"task": task.value}
            )
            raise ModelError(
                f"Model call exceeded {self.call_timeout}s",
                kind=ModelErrorKind.TIMEOUT,
                task=task.value,
                original_error=e,
            ) from e
        except Exception as e:
            LOGGER.error(f"Unexpected model client failure for {task.value}: {e}", exc_info=True)
            raise ModelError(
                f"Model client failed: {e}",
                kind=ModelErrorKind.TRANSPORT,
                task=task.value,
                original_error=e,
            ) from e
