"""Schema-driven normalization of model output.

ResponseNormalizer is the only component that consumes raw model JSON. It
walks a canonical schema and produces a fully-populated, type-correct value
for any input, recording every repair it had to make along the way.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from judgment_ai.schemas.canonical import FieldKind, FieldSpec, validate_schema
from judgment_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)

SOURCE_MODEL = "model"
SOURCE_DEFAULT = "default"

_TRUE_STRINGS = frozenset({"true", "yes", "y", "1", "是", "采信", "已采信"})
_FALSE_STRINGS = frozenset({"false", "no", "n", "0", "否", "不采信", "未采信"})
_INTEGER_TEXT = re.compile(r"^[+-]?\d+$")

# Marks a value that cannot be coerced to the target kind
_INVALID = object()


class RepairKind(str, Enum):
    """What the normalizer changed at a given path."""
    FIELD_DEFAULTED = "field_defaulted"
    LEGACY_FIELD_RENAMED = "legacy_field_renamed"
    TYPE_COERCED = "type_coerced"
    INVALID_VALUE_REPLACED = "invalid_value_replaced"
    ENUM_COERCED = "enum_coerced"
    VALUE_CLAMPED = "value_clamped"
    ITEM_DROPPED = "item_dropped"
    UNKNOWN_FIELD_DROPPED = "unknown_field_dropped"


_DEFAULTING_REPAIRS = frozenset({RepairKind.FIELD_DEFAULTED, RepairKind.INVALID_VALUE_REPLACED})


@dataclass(frozen=True)
class RepairAction:
    path: str
    kind: RepairKind
    detail: str = ""


@dataclass(frozen=True)
class ValidationOutcome:
    """A normalized value plus the repairs made to produce it.

    Attributes:
        value: Normalized value conforming to the schema
        repairs: Repair actions in the order they were applied
        source: "model" when the value came from a parsed response,
            "default" when the whole value is the documented default
    """
    value: Any
    repairs: Tuple[RepairAction, ...] = ()
    source: str = SOURCE_MODEL

    @classmethod
    def from_default(cls, schema: FieldSpec, reason: str) -> "ValidationOutcome":
        """Outcome holding the fully-defaulted value of `schema`."""
        return cls(
            value=schema.make_default(),
            repairs=(RepairAction("$", RepairKind.FIELD_DEFAULTED, reason),),
            source=SOURCE_DEFAULT,
        )

    @property
    def is_clean(self) -> bool:
        return not self.repairs

    @property
    def is_default(self) -> bool:
        return self.source == SOURCE_DEFAULT

    def repairs_of_kind(self, kind: RepairKind) -> List[RepairAction]:
        return [repair for repair in self.repairs if repair.kind == kind]

    def was_defaulted(self, path: str) -> bool:
        """Whether the value at `path` was filled from a default.

        A defaulting repair at `path` or at any enclosing path (including the
        root "$") counts.
        """
        if self.is_default:
            return True
        return any(
            repair.kind in _DEFAULTING_REPAIRS and _encloses(repair.path, path)
            for repair in self.repairs
        )


class ResponseNormalizer:
    """Converts arbitrary JSON values into canonical schema instances.

    Rules applied per field, in order:
        1. Name resolution: canonical name first, then legacy aliases
        2. Type coercion: numeric strings to numbers, numbers to strings,
           "true"/"false" to booleans, delimited strings to arrays where a
           split rule exists; other non-arrays for array fields are dropped
        3. Whitelist check for enum fields (case-insensitive match, otherwise
           the documented default)
        4. Clamping of numbers into their range; non-numeric input takes the
           default (or range midpoint)
        5. Structural defaults for anything missing, recursively

    normalize() never raises for bad input.
    """

    def __init__(self, check_schemas: bool = False):
        """Initialize the normalizer.

        Args:
            check_schemas: Run validate_schema on every schema passed to
                normalize (schemas shipped with the package are validated at
                import time)
        """
        self.check_schemas = check_schemas

    def normalize(self, raw: Any, schema: FieldSpec) -> ValidationOutcome:
        """Normalize `raw` against `schema`.

        Args:
            raw: Parsed JSON value of any shape
            schema: Canonical object schema

        Returns:
            ValidationOutcome with source "model"

        Raises:
            SchemaDefinitionError: Only when check_schemas is set and the
                schema is inconsistent
        """
        if self.check_schemas:
            validate_schema(schema)

        repairs: List[RepairAction] = []
        value = self._normalize_field(raw, schema, "$", repairs, None)

        if repairs:
            LOGGER.debug(
                f"Normalized '{schema.name}' with {len(repairs)} repairs",
                extra={"schema": schema.name, "repair_count": len(repairs)}
            )
        return ValidationOutcome(value=value, repairs=tuple(repairs), source=SOURCE_MODEL)

    def _normalize_field(
        self,
        raw: Any,
        spec: FieldSpec,
        path: str,
        repairs: List[RepairAction],
        index: Optional[int],
    ) -> Any:
        if raw is None:
            repairs.append(RepairAction(path, RepairKind.FIELD_DEFAULTED, "null value"))
            return spec.make_default(index)

        if spec.kind == FieldKind.OBJECT:
            if not isinstance(raw, dict):
                repairs.append(RepairAction(
                    path, RepairKind.INVALID_VALUE_REPLACED, f"expected object, got {type(raw).__name__}"
                ))
                return spec.make_default(index)
            return self._normalize_object(raw, spec, path, repairs, index)

        if spec.kind == FieldKind.ARRAY:
            return self._normalize_array(raw, spec, path, repairs)

        value, repair_kind = _coerce_scalar(raw, spec)
        if value is _INVALID:
            repairs.append(RepairAction(
                path, RepairKind.INVALID_VALUE_REPLACED, f"unusable {spec.kind.value} value {raw!r}"
            ))
            return spec.make_default(index)
        if repair_kind is not None:
            repairs.append(RepairAction(path, repair_kind, f"{raw!r} -> {value!r}"))
        if spec.kind == FieldKind.NUMBER:
            value = _clamp(value, spec, path, repairs)
        return value

    def _normalize_object(
        self,
        raw: Dict[str, Any],
        spec: FieldSpec,
        path: str,
        repairs: List[RepairAction],
        index: Optional[int],
    ) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        consumed = set()

        for member in spec.fields:
            child_path = member.name if path == "$" else f"{path}.{member.name}"
            key = _resolve_name(raw, member)
            if key is None:
                repairs.append(RepairAction(child_path, RepairKind.FIELD_DEFAULTED, "missing"))
                result[member.name] = member.make_default(index)
                continue

            consumed.add(key)
            if key != member.name:
                repairs.append(RepairAction(
                    child_path, RepairKind.LEGACY_FIELD_RENAMED, f"{key} -> {member.name}"
                ))
            result[member.name] = self._normalize_field(raw[key], member, child_path, repairs, index)

        for key in raw:
            if key not in consumed:
                where = key if path == "$" else f"{path}.{key}"
                repairs.append(RepairAction(where, RepairKind.UNKNOWN_FIELD_DROPPED, "not in schema"))

        return result

    def _normalize_array(
        self,
        raw: Any,
        spec: FieldSpec,
        path: str,
        repairs: List[RepairAction],
    ) -> List[Any]:
        if isinstance(raw, str) and spec.split_pattern:
            parts = [part.strip() for part in re.split(spec.split_pattern, raw)]
            parts = [part for part in parts if part]
            repairs.append(RepairAction(path, RepairKind.TYPE_COERCED, f"split string into {len(parts)} items"))
            return parts

        if not isinstance(raw, list):
            repairs.append(RepairAction(
                path, RepairKind.INVALID_VALUE_REPLACED, f"expected array, got {type(raw).__name__}"
            ))
            return []

        item_spec = spec.item
        items = []
        for position, element in enumerate(raw):
            item_path = f"{path}[{position}]"
            kept = self._normalize_item(element, item_spec, item_path, repairs, len(items) + 1)
            if kept is _INVALID:
                repairs.append(RepairAction(
                    item_path, RepairKind.ITEM_DROPPED, f"unusable {item_spec.kind.value} item {element!r}"
                ))
                continue
            items.append(kept)
        return items

    def _normalize_item(
        self,
        raw: Any,
        spec: FieldSpec,
        path: str,
        repairs: List[RepairAction],
        index: int,
    ) -> Any:
        """Normalize one array element; returns _INVALID when it must be dropped."""
        if raw is None:
            return _INVALID
        if spec.kind == FieldKind.OBJECT:
            if not isinstance(raw, dict):
                return _INVALID
            return self._normalize_object(raw, spec, path, repairs, index)
        if spec.kind == FieldKind.ARRAY:
            if not isinstance(raw, list) and not (isinstance(raw, str) and spec.split_pattern):
                return _INVALID
            return self._normalize_array(raw, spec, path, repairs)

        value, repair_kind = _coerce_scalar(raw, spec)
        if value is _INVALID:
            return _INVALID
        if repair_kind is not None:
            repairs.append(RepairAction(path, repair_kind, f"{raw!r} -> {value!r}"))
        if spec.kind == FieldKind.NUMBER:
            value = _clamp(value, spec, path, repairs)
        return value


def _encloses(outer: str, path: str) -> bool:
    """Whether `outer` is `path` itself or one of its enclosing paths."""
    if outer == "$" or outer == path:
        return True
    return path.startswith(outer + ".") or path.startswith(outer + "[")


def _resolve_name(raw: Dict[str, Any], spec: FieldSpec) -> Optional[str]:
    """Key under which `spec` is present in `raw`, canonical name first."""
    if spec.name in raw:
        return spec.name
    for alias in spec.aliases:
        if alias in raw:
            return alias
    return None


def _coerce_scalar(raw: Any, spec: FieldSpec) -> Tuple[Any, Optional[RepairKind]]:
    if spec.kind == FieldKind.STRING:
        return _coerce_string(raw)
    if spec.kind == FieldKind.NUMBER:
        return _coerce_number(raw)
    if spec.kind == FieldKind.BOOLEAN:
        return _coerce_boolean(raw)
    if spec.kind == FieldKind.ENUM:
        return _coerce_enum(raw, spec)
    return _INVALID, None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _coerce_string(raw: Any) -> Tuple[Any, Optional[RepairKind]]:
    if isinstance(raw, str):
        return raw, None
    if _is_number(raw) and math.isfinite(raw):
        return str(raw), RepairKind.TYPE_COERCED
    return _INVALID, None


def _coerce_number(raw: Any) -> Tuple[Any, Optional[RepairKind]]:
    if _is_number(raw):
        if math.isfinite(raw):
            return raw, None
        return _INVALID, None
    if isinstance(raw, str):
        text = raw.strip().rstrip("%").strip()
        if not text:
            return _INVALID, None
        try:
            value = int(text) if _INTEGER_TEXT.match(text) else float(text)
        except ValueError:
            return _INVALID, None
        if not math.isfinite(value):
            return _INVALID, None
        return value, RepairKind.TYPE_COERCED
    return _INVALID, None


def _coerce_boolean(raw: Any) -> Tuple[Any, Optional[RepairKind]]:
    if isinstance(raw, bool):
        return raw, None
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text in _TRUE_STRINGS:
            return True, RepairKind.TYPE_COERCED
        if text in _FALSE_STRINGS:
            return False, RepairKind.TYPE_COERCED
        return _INVALID, None
    if _is_number(raw) and raw in (0, 1):
        return bool(raw), RepairKind.TYPE_COERCED
    return _INVALID, None


def _coerce_enum(raw: Any, spec: FieldSpec) -> Tuple[Any, Optional[RepairKind]]:
    if not isinstance(raw, str):
        return _INVALID, None
    choices = spec.choices
    if raw in choices or raw == spec.default:
        return raw, None
    folded = raw.strip().casefold()
    for choice in choices:
        if choice.casefold() == folded:
            return choice, RepairKind.ENUM_COERCED
    return _INVALID, None


def _clamp(value: Any, spec: FieldSpec, path: str, repairs: List[RepairAction]) -> Any:
    if spec.minimum is not None and value < spec.minimum:
        repairs.append(RepairAction(path, RepairKind.VALUE_CLAMPED, f"{value} -> {spec.minimum}"))
        return spec.minimum
    if spec.maximum is not None and value > spec.maximum:
        repairs.append(RepairAction(path, RepairKind.VALUE_CLAMPED, f"{value} -> {spec.maximum}"))
        return spec.maximum
    return value
