"""
Value domains of interaction affordances.

A domain is the set of values an affordance can take (a property value,
an action input, an event payload). Risk ranges are validated against it
and runtime values are checked against it before any risk is resolved.

Domains are derived from the affordance's data schema by
`domain_from_schema`. Only the schema keywords that shape a value domain
are read; the rest of the Thing Description is not our concern.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping, Optional

from .model import AffordanceKind, Interval, ValueSet, is_number


class Domain(ABC):
    """Base class for affordance value domains."""

    ordered: ClassVar[bool] = False
    enumerable: ClassVar[bool] = False

    @abstractmethod
    def contains(self, value: Any) -> bool:
        """Whether `value` belongs to the domain."""


@dataclass(frozen=True)
class NumericDomain(Domain):
    """
    An ordered numeric domain (`integer` or `number` schema).

    Properties:
        bounds: Declared interval, unbounded by default
        integer: Only integral values belong to the domain
    """

    ordered: ClassVar[bool] = True

    bounds: Interval = field(default_factory=Interval)
    integer: bool = False

    def contains(self, value: Any) -> bool:
        if not is_number(value) or not self.bounds.contains(value):
            return False
        if self.integer and not float(value).is_integer():
            return False
        return True

    def __str__(self) -> str:
        kind = "integer" if self.integer else "number"
        return f"{kind} {self.bounds}"


@dataclass(frozen=True)
class EnumDomain(Domain):
    """A finite set of allowed values (`enum` or `const` schema)."""

    enumerable: ClassVar[bool] = True

    values: ValueSet

    def contains(self, value: Any) -> bool:
        return self.values.contains(value)

    def __str__(self) -> str:
        return f"enum {self.values}"


@dataclass(frozen=True)
class BooleanDomain(EnumDomain):
    """The two-valued `boolean` domain."""

    values: ValueSet = field(default_factory=lambda: ValueSet((False, True)))

    def __str__(self) -> str:
        return "boolean"


@dataclass(frozen=True)
class OpaqueDomain(Domain):
    """
    A domain with no usable structure (strings, objects, arrays).

    Any value is accepted. Range tables and ordering conditions are not
    available on it.
    """

    schema_type: Optional[str] = None

    def contains(self, value: Any) -> bool:
        return True

    def __str__(self) -> str:
        return f"opaque {self.schema_type or 'value'}"


@dataclass(frozen=True)
class Affordance:
    """
    The view of one interaction affordance that hazard validation needs.

    Properties:
        name: Affordance name, unique within its kind in the Thing
        kind: Property, action or event
        domain: Value domain of the property value, action input or
            event data; None when the affordance carries no value
            (e.g. an action without input)
    """

    name: str
    kind: AffordanceKind
    domain: Optional[Domain] = None


def _numeric_bounds(schema: Mapping[str, Any]) -> Interval:
    lower, lower_closed = schema.get("minimum"), True
    exclusive_min = schema.get("exclusiveMinimum")
    if is_number(exclusive_min) and (lower is None or exclusive_min >= lower):
        lower, lower_closed = exclusive_min, False

    upper, upper_closed = schema.get("maximum"), True
    exclusive_max = schema.get("exclusiveMaximum")
    if is_number(exclusive_max) and (upper is None or exclusive_max <= upper):
        upper, upper_closed = exclusive_max, False

    return Interval(lower, upper, lower_closed, upper_closed)


def domain_from_schema(schema: Optional[Mapping[str, Any]]) -> Optional[Domain]:
    """
    Derive a value domain from a Thing Description data schema.

    Args:
        schema: Data schema mapping, or None for affordances without value

    Returns:
        Domain object, or None if there is no schema

    Raises:
        TypeError: If the schema is not a mapping
    """
    if schema is None:
        return None
    if not isinstance(schema, Mapping):
        raise TypeError(f"Data schema must be a mapping, got {type(schema).__name__}")

    if "const" in schema:
        return EnumDomain(ValueSet((schema["const"],)))
    if "enum" in schema:
        return EnumDomain(ValueSet(tuple(schema["enum"])))

    schema_type = schema.get("type")
    if schema_type == "boolean":
        return BooleanDomain()
    if schema_type in ("integer", "number"):
        return NumericDomain(bounds=_numeric_bounds(schema), integer=schema_type == "integer")
    return OpaqueDomain(schema_type=schema_type)
