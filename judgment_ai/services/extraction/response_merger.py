"""Merging of repeated extraction responses.

When the same entity space was extracted more than once (several prompting
strategies, retries), ResponseMerger deduplicates entities by a stable key
and keeps the higher-scoring value for each key.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from judgment_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)

EntityKey = Tuple[str, ...]


@dataclass(frozen=True)
class EntityCollection:
    """How one list of entities inside a response is merged.

    Attributes:
        name: Key of the entity list in each response
        key_fields: Fields forming the stable identity
        score_field: Numeric field compared when two entities share a key
    """
    name: str
    key_fields: Tuple[str, ...]
    score_field: str

    def key_of(self, entity: Mapping[str, Any]) -> Optional[EntityKey]:
        values = []
        for key_field in self.key_fields:
            value = entity.get(key_field)
            if value is None or value == "":
                return None
            values.append(str(value))
        return tuple(values)

    def score_of(self, entity: Mapping[str, Any]) -> float:
        return _as_number(entity.get(self.score_field))


DISPUTE_COLLECTIONS: Tuple[EntityCollection, ...] = (
    EntityCollection(name="disputes", key_fields=("id",), score_field="confidence"),
    EntityCollection(name="claimBasisMappings", key_fields=("disputeId", "claimBasisId"), score_field="relevance"),
)


@dataclass(frozen=True)
class MergedEntity:
    """Surviving value for one key and the source that contributed it."""
    key: EntityKey
    value: Mapping[str, Any]
    score: float
    source_index: int


@dataclass(frozen=True)
class MergedRecordSet:
    """Result of merging several responses.

    Attributes:
        success: False when no input source was successful
        collections: Surviving entities per collection, in first-seen order
        confidence: Mean confidence of the successful sources (0 if none)
        source_count: Number of input responses
        successful_sources: Indexes of the sources that counted as successful
        analysis_time: Summed analysis time of the successful sources
        cache_hit: Whether any successful source was served from cache
        warnings: Warnings of every source, in source order
        model_version: "merged", or "unknown" for a failed set
        timestamp: ISO timestamp of the merge
    """
    success: bool
    collections: Mapping[str, Tuple[MergedEntity, ...]] = field(default_factory=lambda: MappingProxyType({}))
    confidence: float = 0.0
    source_count: int = 0
    successful_sources: Tuple[int, ...] = ()
    analysis_time: float = 0
    cache_hit: bool = False
    warnings: Tuple[str, ...] = ()
    model_version: str = "merged"
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def entities(self, name: str) -> List[Mapping[str, Any]]:
        return [merged.value for merged in self.collections.get(name, ())]

    def provenance(self, name: str) -> Dict[EntityKey, int]:
        """Source index that contributed each surviving entity."""
        return {merged.key: merged.source_index for merged in self.collections.get(name, ())}

    def get(self, name: str, *key: str) -> Optional[MergedEntity]:
        for merged in self.collections.get(name, ()):
            if merged.key == tuple(key):
                return merged
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Render in the dispute-response shape."""
        result: Dict[str, Any] = {"success": self.success}
        for name, merged in self.collections.items():
            result[name] = [dict(entity.value) for entity in merged]
        first = next(iter(self.collections.values()), ())
        result["metadata"] = {
            "analysisTime": self.analysis_time,
            "modelVersion": self.model_version,
            "confidence": self.confidence,
            "timestamp": self.timestamp,
            "disputeCount": len(first),
            "cacheHit": self.cache_hit,
        }
        result["warnings"] = list(self.warnings)
        return result


class ResponseMerger:
    """Deduplicates entities across responses, keeping the higher score.

    For a key seen more than once the entity with the strictly higher score
    replaces the earlier one; ties keep the earlier entity. A source counts
    as successful when its `success` flag is true and it contributes at least
    one keyed entity.
    """

    def __init__(self, collections: Sequence[EntityCollection] = DISPUTE_COLLECTIONS):
        self.collections = tuple(collections)

    def merge(self, responses: Sequence[Mapping[str, Any]]) -> MergedRecordSet:
        """Merge responses in order.

        Args:
            responses: Normalized responses; earlier entries win ties

        Returns:
            MergedRecordSet; a failed set (success False, confidence 0) when
            no source was successful
        """
        merged: Dict[str, Dict[EntityKey, MergedEntity]] = {c.name: {} for c in self.collections}
        successful: List[int] = []
        warnings: List[str] = []

        for index, response in enumerate(responses):
            if not isinstance(response, Mapping):
                LOGGER.warning(f"Skipping non-mapping response at index {index}")
                continue
            warnings.extend(str(w) for w in response.get("warnings") or () if w)

            if response.get("success") is not True:
                continue

            contributed = 0
            for collection in self.collections:
                contributed += self._fold(collection, response.get(collection.name), index, merged[collection.name])
            if contributed:
                successful.append(index)

        if not successful:
            LOGGER.warning(
                "No successful source to merge",
                extra={"source_count": len(responses)}
            )
            return MergedRecordSet(
                success=False,
                collections=MappingProxyType({c.name: () for c in self.collections}),
                source_count=len(responses),
                warnings=tuple(warnings),
                model_version="unknown",
            )

        sources = [responses[index] for index in successful]
        confidence = sum(_source_metadata(s, "confidence") for s in sources) / len(sources)
        analysis_time = sum(_source_metadata(s, "analysisTime") for s in sources)
        cache_hit = any(bool((s.get("metadata") or {}).get("cacheHit")) for s in sources)

        result = MergedRecordSet(
            success=True,
            collections=MappingProxyType({name: tuple(entries.values()) for name, entries in merged.items()}),
            confidence=confidence,
            source_count=len(responses),
            successful_sources=tuple(successful),
            analysis_time=analysis_time,
            cache_hit=cache_hit,
            warnings=tuple(warnings),
        )

        LOGGER.info(
            "Merged responses",
            extra={
                "source_count": len(responses),
                "successful_sources": list(successful),
                "entity_counts": {name: len(entries) for name, entries in merged.items()},
            }
        )
        return result

    def _fold(
        self,
        collection: EntityCollection,
        entities: Any,
        source_index: int,
        target: Dict[EntityKey, MergedEntity],
    ) -> int:
        """Fold one source's entities into `target`; returns how many were keyed."""
        if not isinstance(entities, list):
            return 0

        count = 0
        for entity in entities:
            if not isinstance(entity, Mapping):
                continue
            key = collection.key_of(entity)
            if key is None:
                LOGGER.debug(f"Dropping {collection.name} entity without key", extra={"source": source_index})
                continue
            count += 1
            score = collection.score_of(entity)
            existing = target.get(key)
            if existing is None or score > existing.score:
                target[key] = MergedEntity(key=key, value=entity, score=score, source_index=source_index)
        return count


def _as_number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def _source_metadata(response: Mapping[str, Any], name: str) -> float:
    return _as_number((response.get("metadata") or {}).get(name))
