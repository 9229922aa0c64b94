"""
Core Hazard Model Objects

Defines the leaf value types shared by the catalog, the risk mappings and
the bindings:
    - AffordanceKind (property / action / event)
    - RiskLevel (severity tier)
    - Interval (numeric sub-range with explicit end semantics)
    - ValueSet (explicit set of enum or boolean values)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about Thing Description syntax
        - Are immutable
        - Are fully serializable
        - Represent structure, not validation policy
"""

import json
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, FrozenSet, Hashable, Optional, Tuple, Union


Number = Union[int, float]


class AffordanceKind(Enum):
    """
    The three kinds of interaction affordance a Thing can expose.

    The value is the singular name, `section` is the key of the
    Thing Description map that holds affordances of that kind.
    """

    PROPERTY = "property"
    ACTION = "action"
    EVENT = "event"

    @property
    def section(self) -> str:
        return {
            AffordanceKind.PROPERTY: "properties",
            AffordanceKind.ACTION: "actions",
            AffordanceKind.EVENT: "events",
        }[self]


@dataclass(frozen=True)
class RiskLevel:
    """
    A named severity tier for a hazard on a specific affordance.

    Properties:
        label: Human-readable tier name (e.g. "low", "high")
        weight: Optional ordinal weight; higher means more severe

    Two levels are equal only if both label and weight match.
    """

    label: str
    weight: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.label, str) or not self.label.strip():
            raise ValueError(f"Risk level label must be a non-empty string, got {self.label!r}")
        if self.weight is not None:
            if isinstance(self.weight, bool) or not isinstance(self.weight, int) or self.weight < 0:
                raise ValueError(f"Risk level weight must be a non-negative integer, got {self.weight!r}")

    @property
    def rank(self) -> int:
        """Weight used for ordering; unweighted levels rank lowest."""
        return -1 if self.weight is None else self.weight

    def __str__(self) -> str:
        if self.weight is None:
            return self.label
        return f"{self.label}({self.weight})"


LOW = RiskLevel("low", 1)
MEDIUM = RiskLevel("medium", 2)
HIGH = RiskLevel("high", 3)

STANDARD_LEVELS = (LOW, MEDIUM, HIGH)


def is_number(value: Any) -> bool:
    """True for ints and finite-or-infinite floats, never for bools."""
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        return not math.isnan(value)
    return isinstance(value, int)


def value_key(value: Any) -> Hashable:
    """
    Hashable identity of a JSON value.

    Booleans are kept apart from the integers 0 and 1, which Python
    otherwise treats as equal. Objects and arrays are keyed by their
    canonical JSON text.
    """
    if isinstance(value, bool):
        return ("bool", value)
    if isinstance(value, (dict, list)):
        return ("json", json.dumps(value, sort_keys=True))
    return ("value", value)


_INTERVAL_RE = re.compile(r"^\s*([\[(])\s*([^,]+?)\s*,\s*([^,]+?)\s*([\])])\s*$")


def _parse_bound(text: str) -> Optional[Number]:
    lowered = text.lower()
    if lowered in ("-inf", "inf", "+inf", "-infinity", "infinity", "+infinity"):
        return None
    if re.fullmatch(r"[+-]?\d+", text):
        return int(text)
    return float(text)


def _format_bound(bound: Optional[Number], default: str) -> str:
    if bound is None:
        return default
    return str(bound)


@dataclass(frozen=True)
class Interval:
    """
    A numeric sub-range with explicit open/closed ends.

    Examples:
        Interval(0, 50)                      -> [0, 50)
        Interval(50, 100, upper_closed=True) -> [50, 100]
        Interval(None, 10, upper_closed=True) -> (-inf, 10]

    Properties:
        lower: Lower bound, None when unbounded
        upper: Upper bound, None when unbounded
        lower_closed: Whether `lower` itself belongs to the interval
        upper_closed: Whether `upper` itself belongs to the interval

    Unbounded ends are always open; infinite bounds are stored as None.
    """

    lower: Optional[Number] = None
    upper: Optional[Number] = None
    lower_closed: bool = True
    upper_closed: bool = False

    def __post_init__(self):
        for name in ("lower", "upper"):
            bound = getattr(self, name)
            if bound is None:
                continue
            if not is_number(bound):
                raise TypeError(f"Interval {name} bound must be a number, got {bound!r}")
            if math.isinf(bound):
                object.__setattr__(self, name, None)
        if self.lower is None and self.lower_closed:
            object.__setattr__(self, "lower_closed", False)
        if self.upper is None and self.upper_closed:
            object.__setattr__(self, "upper_closed", False)

    @classmethod
    def parse(cls, text: str) -> "Interval":
        """Build an interval from notation such as "[0, 50)" or "(-inf, 10]"."""
        match = _INTERVAL_RE.match(text)
        if not match:
            raise ValueError(f"Invalid interval notation: {text!r}")
        opening, lower, upper, closing = match.groups()
        return cls(
            lower=_parse_bound(lower),
            upper=_parse_bound(upper),
            lower_closed=opening == "[",
            upper_closed=closing == "]",
        )

    @property
    def low(self) -> float:
        return -math.inf if self.lower is None else self.lower

    @property
    def high(self) -> float:
        return math.inf if self.upper is None else self.upper

    def is_empty(self) -> bool:
        if self.low > self.high:
            return True
        return self.low == self.high and not (self.lower_closed and self.upper_closed)

    def contains(self, value: Any) -> bool:
        if not is_number(value):
            return False
        if value < self.low or (value == self.low and not self.lower_closed):
            return False
        if value > self.high or (value == self.high and not self.upper_closed):
            return False
        return True

    def intersection(self, other: "Interval") -> "Interval":
        if self.low > other.low:
            lower, lower_closed = self.lower, self.lower_closed
        elif self.low < other.low:
            lower, lower_closed = other.lower, other.lower_closed
        else:
            lower, lower_closed = self.lower, self.lower_closed and other.lower_closed

        if self.high < other.high:
            upper, upper_closed = self.upper, self.upper_closed
        elif self.high > other.high:
            upper, upper_closed = other.upper, other.upper_closed
        else:
            upper, upper_closed = self.upper, self.upper_closed and other.upper_closed

        return Interval(lower, upper, lower_closed, upper_closed)

    def overlaps(self, other: "Interval") -> bool:
        return not self.intersection(other).is_empty()

    def within(self, outer: "Interval") -> bool:
        """True if every point of this interval belongs to `outer`."""
        if self.low < outer.low or (self.low == outer.low and self.lower_closed and not outer.lower_closed):
            return False
        if self.high > outer.high or (self.high == outer.high and self.upper_closed and not outer.upper_closed):
            return False
        return True

    def integer_span(self) -> Tuple[Optional[int], Optional[int]]:
        """
        First and last integer points of the interval (None when unbounded).

        On an integer domain "[0, 50)" and "[0, 49]" describe the same
        points, so coverage and overlap are checked on this span.
        """
        if self.lower is None:
            first = None
        elif self.lower_closed:
            first = math.ceil(self.lower)
        else:
            first = math.floor(self.lower) + 1

        if self.upper is None:
            last = None
        elif self.upper_closed:
            last = math.floor(self.upper)
        else:
            last = math.ceil(self.upper) - 1
        return first, last

    def sort_key(self) -> Tuple[float, int, float, int]:
        return (self.low, 0 if self.lower_closed else 1, self.high, 1 if self.upper_closed else 0)

    def __str__(self) -> str:
        opening = "[" if self.lower_closed else "("
        closing = "]" if self.upper_closed else ")"
        lower = _format_bound(self.lower, "-inf")
        upper = _format_bound(self.upper, "inf")
        return f"{opening}{lower}, {upper}{closing}"


@dataclass(frozen=True)
class ValueSet:
    """
    An explicit set of enumerable values (enum members or booleans).

    Properties:
        values: The member values, stored in a canonical order so that
            two sets with the same members compare equal.
    """

    values: Tuple[Any, ...]

    def __post_init__(self):
        values = self.values
        if isinstance(values, (str, bytes)) or not hasattr(values, "__iter__"):
            values = (values,)
        unique = {}
        for value in values:
            unique.setdefault(value_key(value), value)
        ordered = tuple(sorted(unique.values(), key=lambda v: (type(v).__name__, repr(v))))
        object.__setattr__(self, "values", ordered)

    def keys(self) -> FrozenSet[Hashable]:
        return frozenset(value_key(v) for v in self.values)

    def contains(self, value: Any) -> bool:
        try:
            return value_key(value) in self.keys()
        except TypeError:
            return False

    def is_empty(self) -> bool:
        return not self.values

    def sort_key(self) -> Tuple[str, ...]:
        return tuple(repr(v) for v in self.values)

    def __str__(self) -> str:
        return "{" + ", ".join(repr(v) for v in self.values) + "}"


Range = Union[Interval, ValueSet]
