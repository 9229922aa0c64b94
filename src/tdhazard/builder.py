"""
Fluent builder for hazard extensions.

Writing bindings by hand is tedious. The builder offers one method per
catalog hazard and fills in the hazard's default level when none is given:

    ext = (
        ExtensionBuilder.for_thing(lamp_td)
        .fire_hazard("brightness", ranges={"[0, 50)": LOW, "[50, 100]": HIGH})
        .electric_energy_consumption("on", when=True)
        .burn("brightness", when=when().ge(80).or_("/properties/boost").eq(True))
        .build()
    )

Nothing is validated until build(), which raises the same errors as
ThingHazardExtension.add.
"""

from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from tdhazard.binding import HazardBinding, ThingHazardExtension
from tdhazard.catalog import HazardId, get_hazard, parse_hazard_id
from tdhazard.conditions import ConditionChain
from tdhazard.config import ValidationPolicy
from tdhazard.domains import Affordance
from tdhazard.integration import affordances_from_thing
from tdhazard.model import RiskLevel
from tdhazard.risk import FixedRisk, RangeTable, RiskMapping, RiskRange


RangesArg = Union[Mapping[Any, Optional[RiskLevel]], Sequence[Any], RangeTable]


class ExtensionBuilder:
    """Collects hazard bindings and validates them all at build time."""

    def __init__(self, affordances: Iterable[Affordance], policy: Optional[ValidationPolicy] = None):
        self._affordances = list(affordances)
        self._policy = policy
        self._pending: List[HazardBinding] = []

    @classmethod
    def for_thing(cls, td: Mapping[str, Any], policy: Optional[ValidationPolicy] = None) -> "ExtensionBuilder":
        return cls(affordances_from_thing(td), policy=policy)

    def hazard(
        self,
        hazard: Union[HazardId, str],
        affordance: str,
        level: Optional[RiskLevel] = None,
        *,
        when: Any = None,
        ranges: Optional[RangesArg] = None,
    ) -> "ExtensionBuilder":
        """
        Add a hazard to an affordance.

        Args:
            hazard: Catalog identifier or tag
            affordance: Affordance name
            level: Fixed risk level, the hazard's default if omitted
            when: Condition (or value for equality) gating a fixed level, or
                a ConditionChain from conditions.when() for and/or gates
            ranges: Range table as {range: level}, a list of RiskRange or
                (range, level) pairs, or a RangeTable

        Returns:
            The builder, for chaining
        """
        hazard_id = parse_hazard_id(hazard)
        risk: RiskMapping
        if ranges is not None:
            if level is not None or when is not None:
                raise ValueError("a hazard takes either a fixed level or a range table, not both")
            risk = _as_table(ranges)
        else:
            level = level or get_hazard(hazard_id).default_level
            if isinstance(when, ConditionChain):
                risk = FixedRisk(level, any_of=when)
            else:
                risk = FixedRisk(level, when=when)
        self._pending.append(HazardBinding(affordance=affordance, hazard=hazard_id, risk=risk))
        return self

    # One method per catalog hazard. Each takes the same arguments as hazard().

    def air_poisoning(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.AIR_POISONING, affordance, level, when=when, ranges=ranges)

    def asphyxia(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.ASPHYXIA, affordance, level, when=when, ranges=ranges)

    def audio_video_record_and_store(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.AUDIO_VIDEO_RECORD_AND_STORE, affordance, level, when=when, ranges=ranges)

    def audio_video_stream(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.AUDIO_VIDEO_STREAM, affordance, level, when=when, ranges=ranges)

    def burn(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.BURN, affordance, level, when=when, ranges=ranges)

    def electric_energy_consumption(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.ELECTRIC_ENERGY_CONSUMPTION, affordance, level, when=when, ranges=ranges)

    def explosion(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.EXPLOSION, affordance, level, when=when, ranges=ranges)

    def fire_hazard(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.FIRE_HAZARD, affordance, level, when=when, ranges=ranges)

    def gas_consumption(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.GAS_CONSUMPTION, affordance, level, when=when, ranges=ranges)

    def log_energy_consumption(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.LOG_ENERGY_CONSUMPTION, affordance, level, when=when, ranges=ranges)

    def log_usage_time(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.LOG_USAGE_TIME, affordance, level, when=when, ranges=ranges)

    def pay_subscription_fee(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.PAY_SUBSCRIPTION_FEE, affordance, level, when=when, ranges=ranges)

    def power_outage(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.POWER_OUTAGE, affordance, level, when=when, ranges=ranges)

    def power_surge(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.POWER_SURGE, affordance, level, when=when, ranges=ranges)

    def record_issued_commands(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.RECORD_ISSUED_COMMANDS, affordance, level, when=when, ranges=ranges)

    def record_user_preferences(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.RECORD_USER_PREFERENCES, affordance, level, when=when, ranges=ranges)

    def scald(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.SCALD, affordance, level, when=when, ranges=ranges)

    def spend_money(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.SPEND_MONEY, affordance, level, when=when, ranges=ranges)

    def spoiled_food(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.SPOILED_FOOD, affordance, level, when=when, ranges=ranges)

    def take_device_screenshots(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.TAKE_DEVICE_SCREENSHOTS, affordance, level, when=when, ranges=ranges)

    def take_pictures(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.TAKE_PICTURES, affordance, level, when=when, ranges=ranges)

    def unauthorised_physical_access(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.UNAUTHORISED_PHYSICAL_ACCESS, affordance, level, when=when, ranges=ranges)

    def water_consumption(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.WATER_CONSUMPTION, affordance, level, when=when, ranges=ranges)

    def water_flooding(self, affordance, level=None, *, when=None, ranges=None):
        return self.hazard(HazardId.WATER_FLOODING, affordance, level, when=when, ranges=ranges)

    def build(self) -> ThingHazardExtension:
        ext = ThingHazardExtension(self._affordances, policy=self._policy)
        for binding in self._pending:
            ext.add(binding)
        return ext


def _as_table(ranges: RangesArg) -> RangeTable:
    if isinstance(ranges, RangeTable):
        return ranges
    if isinstance(ranges, Mapping):
        return RangeTable.from_mapping(ranges)
    return RangeTable(tuple(r if isinstance(r, RiskRange) else RiskRange(*r) for r in ranges))
