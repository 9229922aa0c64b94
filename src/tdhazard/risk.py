"""
Risk Level Mapping

Associates a hazard, on one affordance, with the risk level(s) it carries:

    FixedRisk   one level, optionally gated by conditions on the value or
                on other affordances (state-independent hazards, e.g. a
                camera while on)
    RangeTable  sub-ranges of the value domain mapped to levels
                (state-dependent hazards, e.g. a lamp by brightness)

Both go through the same validation path against the affordance's domain
and both resolve a concrete value to a RiskLevel or to None, meaning
"no mapped risk". A value outside the domain is always an error.

Boundary semantics are explicit on every Interval. A RiskRange whose level
is None states "no hazard in this range"; whether uncovered parts of the
domain are allowed is decided by GapPolicy.
"""

import math
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Mapping, Optional, Tuple, Union

from .conditions import Clause, Condition, Groups, as_condition, as_groups, holds, parse_pointer
from .config import GapPolicy, ValidationPolicy
from .domains import Affordance, Domain, NumericDomain
from .errors import InapplicableHazard, RangeGap, RangeOutOfDomain, RangeOverlap, UnknownAffordance
from .model import Interval, Range, RiskLevel, ValueSet, is_number, value_key


def _coerce_range(value: Any) -> Range:
    if isinstance(value, (Interval, ValueSet)):
        return value
    if isinstance(value, str):
        return Interval.parse(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return ValueSet(tuple(value))
    return ValueSet((value,))


def check_value(value: Any, domain: Optional[Domain]) -> None:
    """
    Reject a runtime value that does not belong to the domain.

    Affordances without a domain accept anything.
    """
    if domain is None:
        return
    if value is None:
        raise RangeOutOfDomain(f"a value from domain {domain} is required", offending=value)
    if not domain.contains(value):
        raise RangeOutOfDomain(f"value {value!r} is outside domain {domain}", offending=value)


@dataclass(frozen=True)
class RiskRange:
    """
    One row of a range table: a sub-range of the domain and its level.

    Properties:
        range: Interval (numeric domains) or ValueSet (enum/boolean).
            Interval notation strings and plain value lists are accepted.
        level: Risk level in this range; None states explicitly that the
            hazard is absent there
    """

    range: Range
    level: Optional[RiskLevel]

    def __post_init__(self):
        object.__setattr__(self, "range", _coerce_range(self.range))
        if self.level is not None and not isinstance(self.level, RiskLevel):
            raise TypeError(f"Risk range level must be a RiskLevel or None, got {self.level!r}")

    def sort_key(self) -> Tuple:
        if isinstance(self.range, Interval):
            return (0, self.range.sort_key())
        return (1, self.range.sort_key())


@dataclass(frozen=True)
class FixedRisk:
    """
    A single risk level, independent of the affordance's state except for
    an optional gate.

    Example:
        FixedRisk(HIGH, when=True)  # only while the boolean value is true
        FixedRisk(HIGH, any_of=[[Condition(Operator.GE, 3), Condition(Operator.LT, 7)]])
        FixedRisk(HIGH, any_of=when("/properties/on").eq(True).or_().ge(80))

    Properties:
        level: The risk level
        when: Condition on the affordance's value; any non-Condition
            value is read as equality with it. None means always.
        any_of: OR of AND groups of clauses, each on the affordance's own
            value or on another affordance addressed by JSON pointer.
            Accepts a ConditionChain. Exclusive with `when`.
    """

    level: RiskLevel
    when: Optional[Condition] = None
    any_of: Groups = ()

    def __post_init__(self):
        if not isinstance(self.level, RiskLevel):
            raise TypeError(f"Fixed risk level must be a RiskLevel, got {self.level!r}")
        if self.when is not None:
            object.__setattr__(self, "when", as_condition(self.when))
        groups = as_groups(self.any_of)
        if groups and self.when is not None:
            raise ValueError("A fixed risk is gated by either `when` or `any_of`, not both")
        object.__setattr__(self, "any_of", groups)

    @property
    def gated(self) -> bool:
        return self.when is not None or bool(self.any_of)

    def _clause_domain(
        self,
        clause: Clause,
        domain: Optional[Domain],
        affordances: Optional[Mapping[str, Affordance]],
    ) -> Domain:
        if clause.pointer is None:
            if domain is None:
                raise InapplicableHazard(
                    "a value condition needs an affordance that carries a value",
                    offending=str(clause),
                )
            return domain
        kind, name = parse_pointer(clause.pointer)
        if affordances is None:
            raise InapplicableHazard(
                "a pointer condition needs the Thing's affordances",
                offending=clause.pointer,
            )
        target = affordances.get(name)
        if target is None or target.kind is not kind:
            raise UnknownAffordance(
                f"condition pointer {clause.pointer} does not name an affordance of the Thing",
                offending=clause.pointer,
            )
        if target.domain is None:
            raise InapplicableHazard(
                f"condition pointer {clause.pointer} names a {kind.value} that carries no value",
                offending=clause.pointer,
            )
        return target.domain

    def validate(
        self,
        domain: Optional[Domain],
        policy: Optional[ValidationPolicy] = None,
        affordances: Optional[Mapping[str, Affordance]] = None,
    ) -> None:
        if self.when is not None:
            _validate_condition(Clause(self.when), self._clause_domain(Clause(self.when), domain, None))
        for group in self.any_of:
            for clause in group:
                _validate_condition(clause, self._clause_domain(clause, domain, affordances))

    def resolve(
        self,
        value: Any = None,
        domain: Optional[Domain] = None,
        state: Optional[Mapping[str, Any]] = None,
        affordances: Optional[Mapping[str, Affordance]] = None,
    ) -> Optional[RiskLevel]:
        """
        Risk level for the affordance's value and, for pointer clauses,
        the Thing `state` as {pointer: value}.
        """
        if not self.gated:
            if value is not None:
                check_value(value, domain)
            return self.level
        if self.when is not None:
            check_value(value, domain)
            return self.level if self.when.evaluate(value) else None

        state = state or {}
        values: Dict[Optional[str], Any] = {}
        for group in self.any_of:
            for clause in group:
                if clause.pointer in values:
                    continue
                if clause.pointer is None:
                    check_value(value, domain)
                    values[None] = value
                    continue
                if clause.pointer not in state:
                    raise RangeOutOfDomain(f"no value for {clause.pointer} in the Thing state", offending=clause.pointer)
                _, name = parse_pointer(clause.pointer)
                target = (affordances or {}).get(name)
                check_value(state[clause.pointer], target.domain if target is not None else None)
                values[clause.pointer] = state[clause.pointer]
        return self.level if holds(self.any_of, values) else None

    def levels(self) -> List[RiskLevel]:
        return [self.level]


def _validate_condition(clause: Clause, domain: Domain) -> None:
    condition = clause.condition
    if condition.operator.ordering and not domain.ordered:
        raise RangeOutOfDomain(
            f"operator '{condition.operator.value}' needs an ordered domain, got {domain}",
            offending=str(clause),
        )
    if not domain.contains(condition.value):
        raise RangeOutOfDomain(
            f"condition value {condition.value!r} is outside domain {domain}",
            offending=str(clause),
        )


@dataclass(frozen=True)
class RangeTable:
    """
    Sub-ranges of an affordance's domain mapped to risk levels.

    Rows are kept in canonical order (by lower bound), so two tables with
    the same rows are equal whatever order they were authored in.
    Lookup is a binary search over interval lower bounds, or a hash
    lookup for value sets.

    Example:
        RangeTable([
            RiskRange("[0, 50)", LOW),
            RiskRange("[50, 100]", HIGH),
        ])
    """

    ranges: Tuple[RiskRange, ...]
    _starts: Tuple[float, ...] = field(init=False, repr=False, compare=False)
    _intervals: Tuple[RiskRange, ...] = field(init=False, repr=False, compare=False)
    _by_value: Dict[Hashable, RiskRange] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        rows = []
        for row in self.ranges:
            if not isinstance(row, RiskRange):
                rng, level = row
                row = RiskRange(rng, level)
            rows.append(row)
        rows.sort(key=RiskRange.sort_key)
        object.__setattr__(self, "ranges", tuple(rows))

        intervals = tuple(r for r in rows if isinstance(r.range, Interval))
        by_value: Dict[Hashable, RiskRange] = {}
        for row in rows:
            if isinstance(row.range, ValueSet):
                for key in row.range.keys():
                    by_value.setdefault(key, row)
        object.__setattr__(self, "_intervals", intervals)
        object.__setattr__(self, "_starts", tuple(r.range.low for r in intervals))
        object.__setattr__(self, "_by_value", by_value)

    @classmethod
    def from_mapping(cls, mapping: Mapping[Any, Optional[RiskLevel]]) -> "RangeTable":
        """Build from {"[0, 50)": LOW, "[50, 100]": HIGH} style mappings."""
        return cls(tuple(RiskRange(rng, level) for rng, level in mapping.items()))

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(
        self,
        domain: Optional[Domain],
        policy: Optional[ValidationPolicy] = None,
        affordances: Optional[Mapping[str, Affordance]] = None,
    ) -> None:
        policy = policy or ValidationPolicy()
        if not self.ranges:
            raise RangeGap("risk range table has no ranges")
        if domain is None or not (domain.ordered or domain.enumerable):
            raise InapplicableHazard(
                f"a risk range table needs a numeric, enum or boolean domain, got {domain or 'no value'}"
            )
        if isinstance(domain, NumericDomain):
            self._validate_intervals(domain, policy)
        else:
            self._validate_value_sets(domain, policy)

    def _validate_intervals(self, domain: NumericDomain, policy: ValidationPolicy) -> None:
        for row in self.ranges:
            rng = row.range
            if not isinstance(rng, Interval):
                raise RangeOutOfDomain(f"value set {rng} cannot map numeric domain {domain}", offending=str(rng))
            if rng.is_empty() or (domain.integer and _span_empty(rng.integer_span())):
                raise RangeOutOfDomain(f"range {rng} contains no value of domain {domain}", offending=str(rng))
            if not _interval_within(rng, domain):
                raise RangeOutOfDomain(f"range {rng} exceeds domain {domain}", offending=str(rng))

        # Rows are sorted by lower bound; compare each with the row reaching furthest so far.
        reach = self.ranges[0].range
        for row in self.ranges[1:]:
            if _intervals_overlap(reach, row.range, domain.integer):
                raise RangeOverlap(f"ranges {reach} and {row.range} overlap", offending=(str(reach), str(row.range)))
            if row.range.high > reach.high or (row.range.high == reach.high and row.range.upper_closed):
                reach = row.range

        if policy.gap_policy is GapPolicy.REJECT:
            gap = first_gap([r.range for r in self.ranges], domain)
            if gap is not None:
                raise RangeGap(f"values {gap} of domain {domain} are not covered", offending=str(gap))

    def _validate_value_sets(self, domain: Domain, policy: ValidationPolicy) -> None:
        seen: Dict[Hashable, ValueSet] = {}
        for row in self.ranges:
            rng = row.range
            if not isinstance(rng, ValueSet):
                raise RangeOutOfDomain(f"interval {rng} cannot map domain {domain}", offending=str(rng))
            if rng.is_empty():
                raise RangeOutOfDomain("empty value set", offending=str(rng))
            for value in rng.values:
                if not domain.contains(value):
                    raise RangeOutOfDomain(f"value {value!r} is not in domain {domain}", offending=str(rng))
                key = value_key(value)
                if key in seen:
                    raise RangeOverlap(
                        f"ranges {seen[key]} and {rng} both contain {value!r}",
                        offending=(str(seen[key]), str(rng)),
                    )
                seen[key] = rng

        if policy.gap_policy is GapPolicy.REJECT:
            missing = [v for v in domain.values.values if value_key(v) not in seen]
            if missing:
                gap = ValueSet(tuple(missing))
                raise RangeGap(f"values {gap} of domain {domain} are not covered", offending=str(gap))

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def lookup(self, value: Any) -> Optional[RiskRange]:
        """The row containing `value`, or None if no row does."""
        try:
            found = self._by_value.get(value_key(value))
        except TypeError:
            return None
        if found is not None or not is_number(value):
            return found
        index = bisect_right(self._starts, value)
        # Only the last two rows starting at or before the value can hold it:
        # the earlier one when the later starts with an open bound at `value`.
        for candidate in self._intervals[max(0, index - 2):index][::-1]:
            if candidate.range.contains(value):
                return candidate
        return None

    def resolve(
        self,
        value: Any,
        domain: Optional[Domain] = None,
        state: Optional[Mapping[str, Any]] = None,
        affordances: Optional[Mapping[str, Affordance]] = None,
    ) -> Optional[RiskLevel]:
        check_value(value, domain)
        row = self.lookup(value)
        return None if row is None else row.level

    def levels(self) -> List[RiskLevel]:
        return [r.level for r in self.ranges if r.level is not None]


RiskMapping = Union[FixedRisk, RangeTable]


def _span_empty(span: Tuple[Optional[int], Optional[int]]) -> bool:
    first, last = span
    return first is not None and last is not None and first > last


def _span_bounds(span: Tuple[Optional[int], Optional[int]]) -> Tuple[float, float]:
    first, last = span
    return (-math.inf if first is None else first, math.inf if last is None else last)


def _interval_within(rng: Interval, domain: NumericDomain) -> bool:
    if not domain.integer:
        return rng.within(domain.bounds)
    first, last = _span_bounds(rng.integer_span())
    dom_first, dom_last = _span_bounds(domain.bounds.integer_span())
    return dom_first <= first and last <= dom_last


def _intervals_overlap(a: Interval, b: Interval, integer: bool) -> bool:
    if not integer:
        return a.overlaps(b)
    a_first, a_last = _span_bounds(a.integer_span())
    b_first, b_last = _span_bounds(b.integer_span())
    return max(a_first, b_first) <= min(a_last, b_last)


def _gap_interval(lower: float, lower_closed: bool, upper: float, upper_closed: bool) -> Interval:
    return Interval(
        None if math.isinf(lower) else lower,
        None if math.isinf(upper) else upper,
        lower_closed,
        upper_closed,
    )


def first_gap(intervals: List[Interval], domain: NumericDomain) -> Optional[Interval]:
    """First uncovered part of the domain; intervals are sorted and disjoint."""
    if domain.integer:
        need, dom_last = _span_bounds(domain.bounds.integer_span())
        for rng in intervals:
            first, last = _span_bounds(rng.integer_span())
            if first > need:
                return _gap_interval(need, True, first - 1, True)
            need = max(need, last + 1)
        if not math.isinf(need) and need <= dom_last:
            return _gap_interval(need, True, dom_last, True)
        return None

    bounds = domain.bounds
    # `need` is the next point to cover; `need_closed` says whether the
    # point itself is still uncovered.
    need, need_closed = bounds.low, bounds.lower_closed
    for rng in intervals:
        if rng.low > need or (rng.low == need and need_closed and not rng.lower_closed):
            return _gap_interval(need, need_closed, rng.low, not rng.lower_closed)
        if rng.high > need or (rng.high == need and rng.upper_closed):
            need, need_closed = rng.high, not rng.upper_closed
    if need < bounds.high or (need == bounds.high and need_closed and bounds.upper_closed):
        return _gap_interval(need, need_closed, bounds.high, bounds.upper_closed)
    return None
