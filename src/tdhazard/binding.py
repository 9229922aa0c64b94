"""
Affordance Hazard Binding

Attaches validated (hazard, risk mapping) pairs to the named affordances of
one Thing and answers "what risk does this hazard carry for this value?".

Validation of a binding, in order:
    1. the hazard is in the catalog                  -> UnknownHazard
    2. the affordance is declared by the Thing        -> UnknownAffordance
    3. the hazard applies to the affordance kind and,
       if state dependent, the affordance has a value -> InapplicableHazard
    4. the risk mapping fits the value domain and any
       pointer condition names a valued affordance    -> RangeOutOfDomain,
                                                         RangeOverlap, RangeGap,
                                                         UnknownAffordance
    5. the hazard is not already bound there          -> DuplicateBinding

Every error carries the affordance name; those raised in steps 3-4 also
carry the hazard tag.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Set, Union

from .catalog import HazardId, HazardInfo, get_hazard, parse_hazard_id
from .config import ValidationPolicy, get_policy
from .domains import Affordance
from .errors import DuplicateBinding, HazardError, InapplicableHazard, UnknownAffordance, UnknownHazard
from .model import RiskLevel
from .risk import FixedRisk, RangeTable, RiskMapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HazardBinding:
    """
    One hazard attached to one affordance.

    Properties:
        affordance: Name of the annotated affordance
        hazard: Catalog identifier; tags such as "sho:FireHazard" are
            accepted and unknown ones raise UnknownHazard
        risk: FixedRisk or RangeTable

    A binding on its own is plain data. It is checked against the
    affordance when added to a ThingHazardExtension.
    """

    affordance: str
    hazard: HazardId
    risk: RiskMapping

    def __post_init__(self):
        try:
            hazard = parse_hazard_id(self.hazard)
        except UnknownHazard as exc:
            raise exc.with_context(affordance=self.affordance) from None
        object.__setattr__(self, "hazard", hazard)
        if isinstance(self.risk, RiskLevel):
            object.__setattr__(self, "risk", FixedRisk(self.risk))
        if not isinstance(self.risk, (FixedRisk, RangeTable)):
            raise TypeError(f"Binding risk must be a FixedRisk or RangeTable, got {type(self.risk).__name__}")

    @property
    def info(self) -> HazardInfo:
        return get_hazard(self.hazard)

    @property
    def state_dependent(self) -> bool:
        return isinstance(self.risk, RangeTable)

    def validate(
        self,
        affordance: Affordance,
        policy: Optional[ValidationPolicy] = None,
        affordances: Optional[Mapping[str, Affordance]] = None,
    ) -> None:
        """
        Check this binding against the affordance it annotates.

        `affordances` are the Thing's other affordances, which pointer
        conditions may refer to.

        Raises:
            InapplicableHazard, UnknownAffordance, RangeOutOfDomain,
            RangeOverlap, RangeGap
        """
        info = self.info
        try:
            if not info.applies_to(affordance.kind):
                kinds = ", ".join(sorted(k.value for k in info.affordance_kinds))
                raise InapplicableHazard(
                    f"{info.name} applies to {kinds}, not to {affordance.kind.value} affordances"
                )
            if info.state_dependent and affordance.domain is None:
                raise InapplicableHazard(
                    f"{info.name} depends on the affordance state, but the "
                    f"{affordance.kind.value} carries no value"
                )
            self.risk.validate(affordance.domain, policy, affordances)
        except HazardError as exc:
            raise exc.with_context(affordance=affordance.name, hazard=self.hazard.value) from None

    def resolve(
        self,
        value: Any = None,
        affordance: Optional[Affordance] = None,
        state: Optional[Mapping[str, Any]] = None,
        affordances: Optional[Mapping[str, Affordance]] = None,
    ) -> Optional[RiskLevel]:
        """Risk level for a concrete value, or None for no mapped risk."""
        domain = affordance.domain if affordance is not None else None
        try:
            return self.risk.resolve(value, domain, state=state, affordances=affordances)
        except HazardError as exc:
            raise exc.with_context(affordance=self.affordance, hazard=self.hazard.value) from None


class ThingHazardExtension:
    """
    All hazard bindings of one Thing, keyed by affordance name.

    Properties:
        affordances: The Thing's affordances by name
        policy: Validation policy, the configured one by default

    INVARIANTS:
        - every binding names a declared affordance
        - at most one binding per (affordance, hazard)
        - every binding passed validation against its affordance

    Equality compares the bindings only; the order they were added in is
    irrelevant.
    """

    def __init__(
        self,
        affordances: Union[Iterable[Affordance], Mapping[str, Affordance]] = (),
        policy: Optional[ValidationPolicy] = None,
    ):
        if isinstance(affordances, Mapping):
            affordances = affordances.values()
        self.affordances: Dict[str, Affordance] = {a.name: a for a in affordances}
        self.policy = policy or get_policy()
        self._bindings: Dict[str, Dict[HazardId, HazardBinding]] = {}

    def _affordance(self, name: str, hazard: Optional[HazardId] = None) -> Affordance:
        affordance = self.affordances.get(name)
        if affordance is None:
            raise UnknownAffordance(
                "affordance is not declared by the Thing",
                affordance=name,
                hazard=hazard.value if hazard is not None else None,
                offending=name,
            )
        return affordance

    def add(self, binding: HazardBinding) -> HazardBinding:
        """Validate and attach a binding."""
        affordance = self._affordance(binding.affordance, binding.hazard)
        binding.validate(affordance, self.policy, self.affordances)

        slot = self._bindings.setdefault(binding.affordance, {})
        if binding.hazard in slot:
            raise DuplicateBinding(
                "hazard is already bound to this affordance",
                affordance=binding.affordance,
                hazard=binding.hazard.value,
                offending=binding,
            )
        slot[binding.hazard] = binding
        logger.debug("Bound %s to %s", binding.hazard.value, binding.affordance)
        return binding

    def bind(
        self,
        affordance: str,
        hazard: Union[HazardId, str],
        risk: Union[RiskMapping, RiskLevel],
    ) -> HazardBinding:
        """Build, validate and attach a binding in one step."""
        return self.add(HazardBinding(affordance=affordance, hazard=hazard, risk=risk))

    def remove(self, affordance: str, hazard: Union[HazardId, str]) -> HazardBinding:
        hazard_id = parse_hazard_id(hazard)
        slot = self._bindings.get(affordance, {})
        if hazard_id not in slot:
            raise KeyError(f"{hazard_id.value} is not bound to '{affordance}'")
        binding = slot.pop(hazard_id)
        if not slot:
            del self._bindings[affordance]
        return binding

    def get(self, affordance: str, hazard: Union[HazardId, str]) -> Optional[HazardBinding]:
        return self._bindings.get(affordance, {}).get(parse_hazard_id(hazard))

    def bindings_for(self, affordance: str) -> List[HazardBinding]:
        """All bindings of one affordance, in catalog order."""
        self._affordance(affordance)
        slot = self._bindings.get(affordance, {})
        return [slot[h] for h in HazardId if h in slot]

    def resolve(
        self,
        affordance: str,
        hazard: Union[HazardId, str],
        value: Any = None,
        state: Optional[Mapping[str, Any]] = None,
    ) -> Optional[RiskLevel]:
        """
        Risk level of one hazard on one affordance for a runtime value.

        `state` holds the values of other affordances that pointer
        conditions refer to, keyed by pointer (e.g. {"/properties/on": True}).

        Returns:
            The RiskLevel, or None when the hazard is bound but no risk is
            mapped for this value

        Raises:
            UnknownAffordance: If the affordance is not declared
            KeyError: If the hazard is not bound to the affordance
            RangeOutOfDomain: If the value is outside the affordance domain,
                or a pointed value is missing or outside its domain
        """
        hazard_id = parse_hazard_id(hazard)
        target = self._affordance(affordance, hazard_id)
        binding = self.get(affordance, hazard_id)
        if binding is None:
            raise KeyError(f"{hazard_id.value} is not bound to '{affordance}'")
        return binding.resolve(value, target, state=state, affordances=self.affordances)

    def resolve_all(
        self,
        affordance: str,
        value: Any = None,
        state: Optional[Mapping[str, Any]] = None,
    ) -> Dict[HazardId, Optional[RiskLevel]]:
        """Resolve every hazard bound to an affordance for one value."""
        target = self._affordance(affordance)
        return {
            b.hazard: b.resolve(value, target, state=state, affordances=self.affordances)
            for b in self.bindings_for(affordance)
        }

    def hazard_ids(self) -> Set[HazardId]:
        return {hazard for slot in self._bindings.values() for hazard in slot}

    def annotated_affordances(self) -> List[str]:
        return sorted(self._bindings)

    def __iter__(self) -> Iterator[HazardBinding]:
        for name in sorted(self._bindings):
            yield from self.bindings_for(name)

    def __len__(self) -> int:
        return sum(len(slot) for slot in self._bindings.values())

    def __contains__(self, item: Any) -> bool:
        if isinstance(item, HazardBinding):
            return self.get(item.affordance, item.hazard) == item
        return False

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ThingHazardExtension):
            return NotImplemented
        return self._bindings == other._bindings

    __hash__ = None

    def __repr__(self) -> str:
        return f"ThingHazardExtension({len(self)} bindings on {len(self._bindings)} affordances)"
