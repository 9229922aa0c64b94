"""
Value conditions for state-independent hazards.

A fixed risk level may be gated on the affordance's current value:
a camera's privacy hazard holds only while `on == true`, a heater's
hazard only while `mode != "off"`.

Conditions are structure plus a tiny evaluator. They do not validate
themselves against a domain; that belongs to the risk mapping layer.

A gate can also combine conditions, as an OR of AND groups, on other
affordances of the same Thing addressed by JSON pointer:

    when("/properties/on").eq(True).and_().ge(3).or_("/properties/boost").eq(True)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from .model import AffordanceKind, is_number, value_key


class Operator(Enum):
    """
    Comparison operators.

    EQ and NE work on any value. The ordering operators need both sides
    to be numbers and are only accepted on ordered domains.
    """

    EQ = "eq"
    NE = "ne"
    LT = "lt"
    LE = "le"
    GT = "gt"
    GE = "ge"

    @property
    def ordering(self) -> bool:
        return self not in (Operator.EQ, Operator.NE)


@dataclass(frozen=True)
class Condition:
    """
    A comparison of the affordance's value against a constant.

    Example:
        Condition(Operator.EQ, True)   # on == true
        Condition(Operator.GE, 80)     # level >= 80

    Properties:
        operator: Comparison operator
        value: Constant the runtime value is compared with
    """

    operator: Operator
    value: Any

    def evaluate(self, actual: Any) -> bool:
        if self.operator is Operator.EQ:
            return value_key(actual) == value_key(self.value)
        if self.operator is Operator.NE:
            return value_key(actual) != value_key(self.value)
        if not (is_number(actual) and is_number(self.value)):
            return False
        if self.operator is Operator.LT:
            return actual < self.value
        if self.operator is Operator.LE:
            return actual <= self.value
        if self.operator is Operator.GT:
            return actual > self.value
        return actual >= self.value

    def describe(self, subject: str = "value") -> str:
        symbols = {
            Operator.EQ: "==",
            Operator.NE: "!=",
            Operator.LT: "<",
            Operator.LE: "<=",
            Operator.GT: ">",
            Operator.GE: ">=",
        }
        return f"{subject} {symbols[self.operator]} {self.value!r}"

    def __str__(self) -> str:
        return self.describe()


def equals(value: Any) -> Condition:
    return Condition(Operator.EQ, value)


def as_condition(when: Any) -> Condition:
    """Use a Condition as is; any other value means equality with it."""
    if isinstance(when, Condition):
        return when
    return equals(when)


_POINTER_SECTIONS = {kind.section: kind for kind in AffordanceKind}


def parse_pointer(pointer: str) -> Tuple[AffordanceKind, str]:
    """
    Split a JSON pointer to an affordance, e.g. "/properties/on".

    Only pointers naming a whole property, action or event are accepted.
    The "~1" and "~0" escapes of RFC 6901 are decoded in the name.

    Raises:
        ValueError: If the pointer does not name an affordance
    """
    if not isinstance(pointer, str) or not pointer.startswith("/"):
        raise ValueError(f"Condition pointer must be a JSON pointer string, got {pointer!r}")
    parts = pointer[1:].split("/")
    if len(parts) != 2 or parts[0] not in _POINTER_SECTIONS or not parts[1]:
        raise ValueError(f"Condition pointer {pointer!r} does not name a property, action or event")
    name = parts[1].replace("~1", "/").replace("~0", "~")
    return _POINTER_SECTIONS[parts[0]], name


@dataclass(frozen=True)
class Clause:
    """
    A condition on one value of the Thing.

    Properties:
        condition: The comparison
        pointer: JSON pointer to the affordance whose value is compared
            (e.g. "/properties/on"); None means the annotated affordance
    """

    condition: Condition
    pointer: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "condition", as_condition(self.condition))
        if self.pointer is not None:
            parse_pointer(self.pointer)

    def __str__(self) -> str:
        return self.condition.describe(self.pointer or "value")


Groups = Tuple[Tuple[Clause, ...], ...]


def as_clause(item: Any) -> Clause:
    """Accept a Clause, a Condition on the own value or a (pointer, condition) pair."""
    if isinstance(item, Clause):
        return item
    if isinstance(item, tuple) and len(item) == 2 and isinstance(item[0], str):
        return Clause(as_condition(item[1]), pointer=item[0])
    return Clause(as_condition(item))


def as_groups(any_of: Any) -> Groups:
    """
    Normalize an OR of AND groups.

    Raises:
        ValueError: If a group is empty
    """
    if isinstance(any_of, ConditionChain):
        return any_of.any_of
    groups = []
    for group in any_of:
        clauses = tuple(as_clause(item) for item in group)
        if not clauses:
            raise ValueError("A condition group needs at least one condition")
        groups.append(clauses)
    return tuple(groups)


def holds(groups: Groups, values: Mapping[Optional[str], Any]) -> bool:
    """Evaluate OR-of-AND groups; `values` maps each pointer (None: own value) to its value."""
    return any(all(c.condition.evaluate(values[c.pointer]) for c in group) for group in groups)


class ConditionChain:
    """
    Condition groups built left to right:

        when("/properties/on").eq(True).and_("/properties/level").ge(3).or_().eq(False)

    reads as (on == true and level >= 3) or value == false. Chains are
    immutable; every step returns a new one.
    """

    def __init__(self, groups: Groups = ()):
        self._groups = groups

    @property
    def any_of(self) -> Groups:
        return self._groups

    def and_(self, pointer: Optional[str] = None) -> "PendingCondition":
        """Add a condition to the current group."""
        return PendingCondition(self._groups, pointer, new_group=False)

    def or_(self, pointer: Optional[str] = None) -> "PendingCondition":
        """Start a new group."""
        return PendingCondition(self._groups, pointer, new_group=True)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ConditionChain):
            return NotImplemented
        return self._groups == other._groups

    def __repr__(self) -> str:
        return " or ".join("(" + " and ".join(str(c) for c in group) + ")" for group in self._groups)


class PendingCondition:
    """A chain step whose pointer is known but whose comparison is not yet."""

    def __init__(self, groups: Groups, pointer: Optional[str], new_group: bool):
        self._groups = groups
        self._pointer = pointer
        self._new_group = new_group

    def _complete(self, operator: Operator, value: Any) -> ConditionChain:
        clause = Clause(Condition(operator, value), self._pointer)
        if self._new_group or not self._groups:
            return ConditionChain(self._groups + ((clause,),))
        return ConditionChain(self._groups[:-1] + (self._groups[-1] + (clause,),))

    def eq(self, value: Any) -> ConditionChain:
        return self._complete(Operator.EQ, value)

    def ne(self, value: Any) -> ConditionChain:
        return self._complete(Operator.NE, value)

    def lt(self, value: Any) -> ConditionChain:
        return self._complete(Operator.LT, value)

    def le(self, value: Any) -> ConditionChain:
        return self._complete(Operator.LE, value)

    def gt(self, value: Any) -> ConditionChain:
        return self._complete(Operator.GT, value)

    def ge(self, value: Any) -> ConditionChain:
        return self._complete(Operator.GE, value)


def when(pointer: Optional[str] = None) -> PendingCondition:
    """Start a condition chain on `pointer`, or on the annotated affordance's own value."""
    return PendingCondition((), pointer, new_group=True)
