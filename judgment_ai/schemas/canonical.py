"""Canonical field specifications for model output.

A canonical schema is a tree of FieldSpec objects rooted at an object spec.
It is the single authoritative description of field names, legacy aliases,
types, whitelists, numeric ranges and defaults that ResponseNormalizer
enforces. Schemas are plain data; `validate_schema` checks that a tree is
internally consistent and raises SchemaDefinitionError otherwise.
"""

import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from judgment_ai.core.exceptions import SchemaDefinitionError

# Called with the 1-based position of the enclosing array element, or None
DefaultFactory = Callable[[Optional[int]], Any]

# Comma, semicolon and enumeration-comma in ASCII and full-width forms
LIST_SEPARATORS = r"[,，;；、]"


class FieldKind(str, Enum):
    """Value types a canonical field can hold."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True)
class FieldSpec:
    """Specification of one canonical field.

    Attributes:
        name: Canonical field name
        kind: Value type
        default: Static default value (scalars only)
        default_factory: Callable producing the default, takes the element index
        aliases: Legacy field names resolved to this field
        choices: Whitelist for enum fields
        minimum: Lower clamp bound for number fields
        maximum: Upper clamp bound for number fields
        item: Element spec for array fields
        fields: Member specs for object fields
        split_pattern: Regex splitting a string into an array of strings
        description: Human-readable meaning, used in prompt skeletons
    """
    name: str
    kind: FieldKind
    default: Any = None
    default_factory: Optional[DefaultFactory] = None
    aliases: Tuple[str, ...] = ()
    choices: Tuple[str, ...] = ()
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    item: Optional["FieldSpec"] = None
    fields: Tuple["FieldSpec", ...] = ()
    split_pattern: Optional[str] = None
    description: str = ""

    @property
    def midpoint(self) -> Optional[float]:
        """Middle of the numeric range, used when no default is declared."""
        if self.minimum is None or self.maximum is None:
            return None
        middle = (self.minimum + self.maximum) / 2
        return int(middle) if float(middle).is_integer() else middle

    def member(self, name: str) -> "FieldSpec":
        """Return the member spec called `name` of an object spec."""
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)

    def make_default(self, index: Optional[int] = None) -> Any:
        """Build a fresh default value for this field.

        Args:
            index: 1-based position of the enclosing array element, if any

        Returns:
            Default value; containers are always new instances
        """
        if self.default_factory is not None:
            return self.default_factory(index)
        if self.kind == FieldKind.ARRAY:
            return []
        if self.kind == FieldKind.OBJECT:
            return {spec.name: spec.make_default(index) for spec in self.fields}
        if self.kind == FieldKind.NUMBER and self.default is None:
            return self.midpoint
        return self.default


def today_iso(index: Optional[int] = None) -> str:
    """Default factory returning today's date as YYYY-MM-DD."""
    return date.today().isoformat()


def sequential_id(prefix: str) -> DefaultFactory:
    """Default factory producing `<prefix>-<n>` from the element position."""

    def factory(index: Optional[int] = None) -> str:
        return f"{prefix}-{index or 1}"

    return factory


def string_field(
    name: str,
    default: str = "",
    aliases: Iterable[str] = (),
    default_factory: Optional[DefaultFactory] = None,
    description: str = "",
) -> FieldSpec:
    return FieldSpec(
        name=name,
        kind=FieldKind.STRING,
        default=default,
        default_factory=default_factory,
        aliases=tuple(aliases),
        description=description,
    )


def number_field(
    name: str,
    minimum: float,
    maximum: float,
    default: Optional[float] = None,
    aliases: Iterable[str] = (),
    description: str = "",
) -> FieldSpec:
    """Number clamped into [minimum, maximum]; default falls back to the midpoint."""
    return FieldSpec(
        name=name,
        kind=FieldKind.NUMBER,
        default=default,
        minimum=minimum,
        maximum=maximum,
        aliases=tuple(aliases),
        description=description,
    )


def boolean_field(
    name: str,
    default: bool = False,
    aliases: Iterable[str] = (),
    description: str = "",
) -> FieldSpec:
    return FieldSpec(
        name=name,
        kind=FieldKind.BOOLEAN,
        default=default,
        aliases=tuple(aliases),
        description=description,
    )


def enum_field(
    name: str,
    choices: Iterable[str],
    default: str,
    aliases: Iterable[str] = (),
    description: str = "",
) -> FieldSpec:
    """Whitelisted string. An empty-string default means "unspecified"."""
    return FieldSpec(
        name=name,
        kind=FieldKind.ENUM,
        default=default,
        choices=tuple(choices),
        aliases=tuple(aliases),
        description=description,
    )


def array_field(
    name: str,
    item: FieldSpec,
    aliases: Iterable[str] = (),
    split: bool = False,
    description: str = "",
) -> FieldSpec:
    """Array of `item`; with split=True a delimited string becomes the array."""
    return FieldSpec(
        name=name,
        kind=FieldKind.ARRAY,
        item=item,
        aliases=tuple(aliases),
        split_pattern=LIST_SEPARATORS if split else None,
        description=description,
    )


def object_field(
    name: str,
    fields: Iterable[FieldSpec],
    aliases: Iterable[str] = (),
    description: str = "",
) -> FieldSpec:
    return FieldSpec(
        name=name,
        kind=FieldKind.OBJECT,
        fields=tuple(fields),
        aliases=tuple(aliases),
        description=description,
    )


def build_default(spec: FieldSpec) -> Any:
    """Build a fully-defaulted instance of a schema."""
    return spec.make_default()


_SCALAR_DEFAULT_TYPES: Dict[FieldKind, Tuple[type, ...]] = {
    FieldKind.STRING: (str,),
    FieldKind.ENUM: (str,),
    FieldKind.BOOLEAN: (bool,),
}


def validate_schema(spec: FieldSpec, path: str = "$") -> None:
    """Check a canonical schema for internal consistency.

    Args:
        spec: Root spec (must be an object spec)
        path: Location used in error messages

    Raises:
        SchemaDefinitionError: If the schema is malformed
    """
    if path == "$" and spec.kind != FieldKind.OBJECT:
        raise SchemaDefinitionError(f"{path}: schema root must be an object, got {spec.kind.value}")
    _validate_spec(spec, path)


def _validate_spec(spec: FieldSpec, path: str) -> None:
    if not isinstance(spec, FieldSpec):
        raise SchemaDefinitionError(f"{path}: expected FieldSpec, got {type(spec).__name__}")
    if not spec.name:
        raise SchemaDefinitionError(f"{path}: field name must be non-empty")

    if spec.kind == FieldKind.OBJECT:
        _validate_object(spec, path)
    elif spec.kind == FieldKind.ARRAY:
        if spec.item is None:
            raise SchemaDefinitionError(f"{path}: array field '{spec.name}' has no item spec")
        if spec.split_pattern and spec.item.kind != FieldKind.STRING:
            raise SchemaDefinitionError(
                f"{path}: split rule on '{spec.name}' requires string items, "
                f"got {spec.item.kind.value}"
            )
        _validate_spec(spec.item, f"{path}[]")
    elif spec.kind == FieldKind.NUMBER:
        _validate_number(spec, path)
    elif spec.kind == FieldKind.ENUM:
        if not spec.choices:
            raise SchemaDefinitionError(f"{path}: enum field '{spec.name}' has no choices")
        if len(set(spec.choices)) != len(spec.choices):
            raise SchemaDefinitionError(f"{path}: enum field '{spec.name}' repeats a choice")
        if spec.default_factory is None and spec.default != "" and spec.default not in spec.choices:
            raise SchemaDefinitionError(
                f"{path}: default {spec.default!r} of '{spec.name}' is not one of {list(spec.choices)}"
            )

    if spec.kind in _SCALAR_DEFAULT_TYPES and spec.default_factory is None:
        if not isinstance(spec.default, _SCALAR_DEFAULT_TYPES[spec.kind]):
            raise SchemaDefinitionError(
                f"{path}: default of {spec.kind.value} field '{spec.name}' "
                f"has type {type(spec.default).__name__}"
            )

    if spec.kind in (FieldKind.ARRAY, FieldKind.OBJECT) and spec.default is not None:
        raise SchemaDefinitionError(
            f"{path}: container field '{spec.name}' must not declare a static default"
        )


def _validate_object(spec: FieldSpec, path: str) -> None:
    if not spec.fields:
        raise SchemaDefinitionError(f"{path}: object field '{spec.name}' has no members")

    names = [member.name for member in spec.fields]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise SchemaDefinitionError(f"{path}: duplicate member names {duplicates}")

    seen_aliases: Dict[str, str] = {}
    for member in spec.fields:
        for alias in member.aliases:
            if alias in names:
                raise SchemaDefinitionError(
                    f"{path}: alias '{alias}' of '{member.name}' collides with a member name"
                )
            if alias in seen_aliases:
                raise SchemaDefinitionError(
                    f"{path}: alias '{alias}' used by both '{seen_aliases[alias]}' and '{member.name}'"
                )
            seen_aliases[alias] = member.name

    for member in spec.fields:
        child_path = member.name if path == "$" else f"{path}.{member.name}"
        _validate_spec(member, child_path)


def _validate_number(spec: FieldSpec, path: str) -> None:
    if spec.minimum is None or spec.maximum is None:
        raise SchemaDefinitionError(f"{path}: number field '{spec.name}' needs a minimum and maximum")
    if spec.minimum > spec.maximum:
        raise SchemaDefinitionError(
            f"{path}: range of '{spec.name}' is inverted ({spec.minimum} > {spec.maximum})"
        )
    if spec.default is not None:
        if isinstance(spec.default, bool) or not isinstance(spec.default, (int, float)):
            raise SchemaDefinitionError(f"{path}: default of '{spec.name}' is not a number")
        if math.isnan(spec.default) or not spec.minimum <= spec.default <= spec.maximum:
            raise SchemaDefinitionError(
                f"{path}: default {spec.default} of '{spec.name}' lies outside "
                f"[{spec.minimum}, {spec.maximum}]"
            )
