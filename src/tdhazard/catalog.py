"""
Hazard Catalog

The closed, versioned set of hazards an affordance can be annotated with.

Each hazard has intrinsic attributes that never vary by Thing:
    - a stable tag (the HazardId value, e.g. "sho:FireHazard")
    - a human-readable name and description
    - a category (financial, privacy, safety)
    - a default risk level
    - the affordance kinds it can be attached to
    - whether it only makes sense on an affordance that carries a value

ARCHITECTURAL RULE:
    The catalog grows only by editing this module and bumping
    CATALOG_VERSION. There is no runtime registration: hazards coming
    from untrusted documents are looked up, never added.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, List, Mapping, Optional, Union

from .errors import UnknownHazard
from .model import AffordanceKind, RiskLevel, LOW, MEDIUM, HIGH


CATALOG_VERSION = "1.1"

NAMESPACE_PREFIX = "sho"


class HazardCategory(Enum):
    """Top-level grouping of hazards."""

    FINANCIAL = "sho:Financial"
    PRIVACY = "sho:Privacy"
    SAFETY = "sho:Safety"


class HazardId(Enum):
    """Identifier of every hazard in the catalog."""

    AIR_POISONING = "sho:AirPoisoning"
    ASPHYXIA = "sho:Asphyxia"
    AUDIO_VIDEO_RECORD_AND_STORE = "sho:AudioVideoRecordAndStore"
    AUDIO_VIDEO_STREAM = "sho:AudioVideoStream"
    BURN = "sho:Burn"
    ELECTRIC_ENERGY_CONSUMPTION = "sho:ElectricEnergyConsumption"
    EXPLOSION = "sho:Explosion"
    FIRE_HAZARD = "sho:FireHazard"
    GAS_CONSUMPTION = "sho:GasConsumption"
    LOG_ENERGY_CONSUMPTION = "sho:LogEnergyConsumption"
    LOG_USAGE_TIME = "sho:LogUsageTime"
    PAY_SUBSCRIPTION_FEE = "sho:PaySubscriptionFee"
    POWER_OUTAGE = "sho:PowerOutage"
    POWER_SURGE = "sho:PowerSurge"
    RECORD_ISSUED_COMMANDS = "sho:RecordIssuedCommands"
    RECORD_USER_PREFERENCES = "sho:RecordUserPreferences"
    SCALD = "sho:Scald"
    SPEND_MONEY = "sho:SpendMoney"
    SPOILED_FOOD = "sho:SpoiledFood"
    TAKE_DEVICE_SCREENSHOTS = "sho:TakeDeviceScreenshots"
    TAKE_PICTURES = "sho:TakePictures"
    UNAUTHORISED_PHYSICAL_ACCESS = "sho:UnauthorisedPhysicalAccess"
    WATER_CONSUMPTION = "sho:WaterConsumption"
    WATER_FLOODING = "sho:WaterFlooding"

    @property
    def short_name(self) -> str:
        """The tag without its namespace prefix, e.g. "FireHazard"."""
        return self.value.split(":", 1)[1]


@dataclass(frozen=True)
class HazardInfo:
    """
    Static metadata of one catalog hazard.

    Properties:
        id: Catalog identifier
        name: Human-readable name
        description: What executing the affordance may cause
        category: Financial, privacy or safety
        default_level: Risk level used when an author gives none
        affordance_kinds: Kinds of affordance the hazard may annotate
        state_dependent: The hazard varies with the affordance's value,
            so the affordance must declare a value domain
    """

    id: HazardId
    name: str
    description: str
    category: HazardCategory
    default_level: RiskLevel
    affordance_kinds: FrozenSet[AffordanceKind]
    state_dependent: bool = False

    def applies_to(self, kind: AffordanceKind) -> bool:
        return kind in self.affordance_kinds


# Events only report state, so hazards with physical or financial effects
# attach to properties and actions.
_EFFECT_KINDS = frozenset({AffordanceKind.PROPERTY, AffordanceKind.ACTION})
_ALL_KINDS = frozenset(AffordanceKind)


def _safety(id, name, description, level=HIGH, state_dependent=False):
    return HazardInfo(id, name, description, HazardCategory.SAFETY, level, _EFFECT_KINDS, state_dependent)


def _financial(id, name, description, level=MEDIUM, state_dependent=False):
    return HazardInfo(id, name, description, HazardCategory.FINANCIAL, level, _EFFECT_KINDS, state_dependent)


def _privacy(id, name, description, level=MEDIUM):
    return HazardInfo(id, name, description, HazardCategory.PRIVACY, level, _ALL_KINDS)


_ENTRIES = (
    _safety(
        HazardId.AIR_POISONING,
        "Air poisoning",
        "The execution may release toxic gases",
    ),
    _safety(
        HazardId.ASPHYXIA,
        "Asphyxia",
        "The execution may cause oxygen deficiency by gaseous substances",
    ),
    _privacy(
        HazardId.AUDIO_VIDEO_RECORD_AND_STORE,
        "Audio video record and store",
        "The execution authorises the app to record and save a video with audio on persistent storage",
        level=HIGH,
    ),
    _privacy(
        HazardId.AUDIO_VIDEO_STREAM,
        "Audio video stream",
        "The execution authorises the app to obtain a video stream with audio",
        level=HIGH,
    ),
    _safety(
        HazardId.BURN,
        "Burn",
        "The execution may cause burns through contact with hot surfaces",
        level=MEDIUM,
        state_dependent=True,
    ),
    _financial(
        HazardId.ELECTRIC_ENERGY_CONSUMPTION,
        "Electric energy consumption",
        "The execution enables a device that consumes electricity",
        level=LOW,
        state_dependent=True,
    ),
    _safety(
        HazardId.EXPLOSION,
        "Explosion",
        "The execution may cause an explosion",
    ),
    _safety(
        HazardId.FIRE_HAZARD,
        "Fire hazard",
        "The execution may cause fire",
        state_dependent=True,
    ),
    _financial(
        HazardId.GAS_CONSUMPTION,
        "Gas consumption",
        "The execution enables a device that consumes gas",
        level=LOW,
        state_dependent=True,
    ),
    _privacy(
        HazardId.LOG_ENERGY_CONSUMPTION,
        "Log energy consumption",
        "The execution authorises the app to get and save information about the app's energy "
        "impact on the device the app runs on",
        level=LOW,
    ),
    _privacy(
        HazardId.LOG_USAGE_TIME,
        "Log usage time",
        "The execution authorises the app to get and save information about the app's duration of use",
        level=LOW,
    ),
    _financial(
        HazardId.PAY_SUBSCRIPTION_FEE,
        "Pay subscription fee",
        "The execution authorises the app to use payment information and make a periodic payment",
        level=HIGH,
    ),
    _safety(
        HazardId.POWER_OUTAGE,
        "Power outage",
        "The execution may cause an interruption in the supply of electricity",
        level=MEDIUM,
    ),
    _safety(
        HazardId.POWER_SURGE,
        "Power surge",
        "The execution may lead to exposure to high voltages",
    ),
    _privacy(
        HazardId.RECORD_ISSUED_COMMANDS,
        "Record issued commands",
        "The execution authorises the app to get and save user inputs",
    ),
    _privacy(
        HazardId.RECORD_USER_PREFERENCES,
        "Record user preferences",
        "The execution authorises the app to get and save information about the user's preferences",
    ),
    _safety(
        HazardId.SCALD,
        "Scald",
        "The execution may cause scalding from hot liquids or steam",
        level=MEDIUM,
        state_dependent=True,
    ),
    _financial(
        HazardId.SPEND_MONEY,
        "Spend money",
        "The execution authorises the app to use payment information and make a payment transaction",
        level=HIGH,
    ),
    _safety(
        HazardId.SPOILED_FOOD,
        "Spoiled food",
        "The execution may lead to rotten food",
        level=MEDIUM,
    ),
    _privacy(
        HazardId.TAKE_DEVICE_SCREENSHOTS,
        "Take device screenshots",
        "The execution authorises the app to read the display output and take screenshots of it",
    ),
    _privacy(
        HazardId.TAKE_PICTURES,
        "Take pictures",
        "The execution authorises the app to use a camera and take photos",
        level=HIGH,
    ),
    _safety(
        HazardId.UNAUTHORISED_PHYSICAL_ACCESS,
        "Unauthorised physical access",
        "The execution disables a protection mechanism and unauthorised individuals may physically enter home",
    ),
    _financial(
        HazardId.WATER_CONSUMPTION,
        "Water consumption",
        "The execution enables a device that consumes water",
        level=LOW,
        state_dependent=True,
    ),
    _safety(
        HazardId.WATER_FLOODING,
        "Water flooding",
        "The execution allows water usage which may lead to flood",
        state_dependent=True,
    ),
)

HAZARDS: Mapping[HazardId, HazardInfo] = MappingProxyType({entry.id: entry for entry in _ENTRIES})


def parse_hazard_id(hazard: Union[HazardId, str]) -> HazardId:
    """
    Resolve a hazard identifier.

    Accepts a HazardId, a namespaced tag ("sho:FireHazard") or a bare
    tag ("FireHazard").

    Raises:
        UnknownHazard: If the identifier is not in the catalog
    """
    if isinstance(hazard, HazardId):
        return hazard
    if isinstance(hazard, str):
        tag = hazard if ":" in hazard else f"{NAMESPACE_PREFIX}:{hazard}"
        try:
            return HazardId(tag)
        except ValueError:
            pass
    raise UnknownHazard(
        f"{hazard!r} is not in hazard catalog version {CATALOG_VERSION}",
        offending=hazard,
    )


def get_hazard(hazard: Union[HazardId, str]) -> HazardInfo:
    """
    Retrieve a hazard's static metadata.

    Raises:
        UnknownHazard: If the identifier is not in the catalog
    """
    return HAZARDS[parse_hazard_id(hazard)]


def list_hazards(category: Optional[HazardCategory] = None) -> List[HazardInfo]:
    """All catalog hazards, optionally restricted to one category."""
    return [info for info in HAZARDS.values() if category is None or info.category == category]
