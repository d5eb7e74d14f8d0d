"""Dispute-focus analysis.

Asks the model for the dispute focuses of a judgment using one or more
prompting strategies, normalizes every response and merges them into one
MergedRecordSet.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Union

from judgment_ai.config.extraction import ExtractionSettings
from judgment_ai.config.llm import LLMSettings
from judgment_ai.core.chat_client import ModelInvoker, ModelOptions
from judgment_ai.core.exceptions import ConfigurationError, MalformedResponseError, ModelError, ModelErrorKind
from judgment_ai.core.unified_llm import (
    call_budget_from_settings,
    create_model_client_from_settings,
    model_name_from_settings,
    model_options_from_settings,
)
from judgment_ai.prompts.extraction_prompts import DISPUTE_SYSTEM_PROMPT, build_dispute_prompt
from judgment_ai.schemas.legal_schemas import DISPUTE_RESPONSE_SCHEMA
from judgment_ai.services.document.text_processor import Document, prepare_document
from judgment_ai.services.extraction.response_merger import MergedRecordSet, ResponseMerger
from judgment_ai.services.normalization.response_normalizer import ResponseNormalizer
from judgment_ai.utils.json_parser import extract_json_payload
from judgment_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)

FULL_TEXT = "full_text"
FOCUSED = "focused"
SUPPORTED_STRATEGIES = (FULL_TEXT, FOCUSED)

# Sections quoted by the focused strategy, in document order
FOCUSED_SECTIONS = ("claims", "arguments", "reasoning")


class DisputeAnalyzer:
    """Identifies dispute focuses with several prompting strategies.

    A ModelError or an unparseable response in one strategy turns that
    strategy into a failed source; the merged set is failed only when every
    strategy failed.
    """

    def __init__(
        self,
        invoker: ModelInvoker,
        strategies: Iterable[str] = SUPPORTED_STRATEGIES,
        merger: Optional[ResponseMerger] = None,
        normalizer: Optional[ResponseNormalizer] = None,
        options: Optional[ModelOptions] = None,
        call_timeout: Optional[float] = None,
        max_chars: int = 12000,
        model_name: str = "",
    ):
        """Initialize the analyzer.

        Args:
            invoker: Model-invocation collaborator
            strategies: Prompting strategies, merged in this order
            merger: Response merger for the dispute collections
            normalizer: Response normalizer
            options: Generation options
            call_timeout: Seconds allowed per model call, None for no limit
            max_chars: Character budget for the embedded judgment text
            model_name: Fallback for metadata.modelVersion

        Raises:
            ConfigurationError: If a strategy is unknown or none is given
        """
        self.strategies = tuple(strategies)
        unknown = [s for s in self.strategies if s not in SUPPORTED_STRATEGIES]
        if unknown or not self.strategies:
            raise ConfigurationError(
                f"Unsupported dispute strategies {unknown or list(self.strategies)}; "
                f"choose from {list(SUPPORTED_STRATEGIES)}"
            )

        self.invoker = invoker
        self.merger = merger or ResponseMerger()
        self.normalizer = normalizer or ResponseNormalizer()
        self.options = options or ModelOptions()
        self.call_timeout = call_timeout
        self.max_chars = max_chars
        self.model_name = model_name

    @classmethod
    def from_settings(
        cls,
        invoker: Optional[ModelInvoker] = None,
        llm_settings: Optional[LLMSettings] = None,
        extraction_settings: Optional[ExtractionSettings] = None,
    ) -> "DisputeAnalyzer":
        llm_settings = llm_settings or LLMSettings()
        extraction_settings = extraction_settings or ExtractionSettings()
        return cls(
            invoker=invoker or create_model_client_from_settings(llm_settings),
            strategies=extraction_settings.dispute_strategies,
            options=model_options_from_settings(llm_settings),
            call_timeout=call_budget_from_settings(llm_settings),
            max_chars=extraction_settings.section_max_chars,
            model_name=model_name_from_settings(llm_settings),
        )

    async def analyze(self, document: Union[Document, str]) -> MergedRecordSet:
        """Analyze dispute focuses.

        Args:
            document: Document or raw judgment text

        Returns:
            Merged dispute response

        Raises:
            EmptyDocumentError: Before any model call, for blank input
        """
        document = prepare_document(document)

        LOGGER.info(
            "Starting dispute analysis",
            extra={"strategies": list(self.strategies), "text_length": len(document)}
        )

        sources = await asyncio.gather(
            *(self._run_strategy(strategy, document) for strategy in self.strategies)
        )
        merged = self.merger.merge(sources)

        LOGGER.info(
            "Dispute analysis completed",
            extra={
                "success": merged.success,
                "dispute_count": len(merged.entities("disputes")),
                "confidence": merged.confidence,
            }
        )
        return merged

    def strategy_text(self, strategy: str, document: Document) -> str:
        """Text a strategy sends to the model."""
        if strategy == FOCUSED:
            sections = [document.get_section(name) for name in FOCUSED_SECTIONS]
            parts = [section.text for section in sections if section is not None]
            if parts:
                return "\n\n".join(parts)
        return document.normalized_text

    async def _run_strategy(self, strategy: str, document: Document) -> Dict[str, Any]:
        text = self.strategy_text(strategy, document)
        warnings = []
        if strategy == FOCUSED and text is document.normalized_text:
            warnings.append(f"{strategy}: no claim, argument or reasoning section detected; used full text")

        prompt = build_dispute_prompt(text, strategy, self.max_chars)
        start_time = time.time()

        try:
            response = await self._invoke(prompt)
            payload = extract_json_payload(response.content)
        except (ModelError, MalformedResponseError) as e:
            elapsed_ms = int((time.time() - start_time) * 1000)
            LOGGER.warning(
                f"Dispute strategy '{strategy}' failed: {e}",
                extra={"strategy": strategy, "error_type": type(e).__name__}
            )
            return self._failed_source(warnings + [f"{strategy}: {e}"], elapsed_ms)

        elapsed_ms = int((time.time() - start_time) * 1000)
        raw = dict(payload) if isinstance(payload, dict) else {}
        metadata = raw.get("metadata")
        metadata = dict(metadata) if isinstance(metadata, dict) else {}
        metadata.update({
            "analysisTime": elapsed_ms,
            "modelVersion": response.model or self.model_name or "unknown",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })
        raw["metadata"] = metadata
        raw["success"] = True
        model_warnings = raw.get("warnings")
        raw["warnings"] = warnings + (list(model_warnings) if isinstance(model_warnings, list) else [])

        outcome = self.normalizer.normalize(raw, DISPUTE_RESPONSE_SCHEMA)
        value = outcome.value
        value["metadata"]["disputeCount"] = len(value["disputes"])

        LOGGER.debug(
            f"Dispute strategy '{strategy}' returned {len(value['disputes'])} disputes",
            extra={"strategy": strategy, "repair_count": len(outcome.repairs), "latency_ms": elapsed_ms}
        )
        return value

    async def _invoke(self, prompt: str):
        call = self.invoker.invoke_model(DISPUTE_SYSTEM_PROMPT, prompt, self.options)
        try:
            if self.call_timeout:
                return await asyncio.wait_for(call, timeout=self.call_timeout)
            return await call
        except ModelError as e:
            raise e.for_task("disputes")
        except asyncio.TimeoutError as e:
            raise ModelError(
                f"Model call exceeded {self.call_timeout}s",
                kind=ModelErrorKind.TIMEOUT,
                task="disputes",
                original_error=e,
            ) from e
        except Exception as e:
            raise ModelError(
                f"Model client failed: {e}",
                kind=ModelErrorKind.TRANSPORT,
                task="disputes",
                original_error=e,
            ) from e

    def _failed_source(self, warnings, elapsed_ms: int) -> Dict[str, Any]:
        value = DISPUTE_RESPONSE_SCHEMA.make_default()
        value["success"] = False
        value["warnings"] = list(warnings)
        value["metadata"]["analysisTime"] = elapsed_ms
        value["metadata"]["modelVersion"] = self.model_name or "unknown"
        value["metadata"]["confidence"] = 0
        return value
