"""
Example Things used by the demos and tests.

A dimmable lamp whose fire hazard depends on brightness, and a camera whose
privacy hazards hold only while it is switched on.
"""
import copy
from typing import Any, Dict

from tdhazard.binding import ThingHazardExtension
from tdhazard.builder import ExtensionBuilder
from tdhazard.conditions import Condition, Operator
from tdhazard.model import HIGH, LOW, MEDIUM


_LAMP_TD: Dict[str, Any] = {
    "@context": "https://www.w3.org/2022/wot/td/v1.1",
    "title": "Dimmable lamp",
    "securityDefinitions": {"nosec_sc": {"scheme": "nosec"}},
    "security": "nosec_sc",
    "properties": {
        "on": {"type": "boolean"},
        "brightness": {"type": "integer", "minimum": 0, "maximum": 100, "unit": "percent"},
    },
    "actions": {
        "toggle": {"forms": [{"href": "/toggle"}]},
    },
    "events": {
        "overheated": {"data": {"type": "number", "minimum": 0}},
    },
}

_CAMERA_TD: Dict[str, Any] = {
    "@context": "https://www.w3.org/2022/wot/td/v1.1",
    "title": "Indoor camera",
    "securityDefinitions": {"nosec_sc": {"scheme": "nosec"}},
    "security": "nosec_sc",
    "properties": {
        "on": {"type": "boolean"},
        "resolution": {"type": "string", "enum": ["480p", "720p", "1080p"]},
    },
    "actions": {
        "takePhoto": {"forms": [{"href": "/photo"}]},
    },
    "events": {
        "motion": {"data": {"type": "string"}},
    },
}


def lamp_thing() -> Dict[str, Any]:
    return copy.deepcopy(_LAMP_TD)


def camera_thing() -> Dict[str, Any]:
    return copy.deepcopy(_CAMERA_TD)


def build_lamp_extension() -> ThingHazardExtension:
    return (
        ExtensionBuilder.for_thing(_LAMP_TD)
        .fire_hazard("brightness", ranges={"[0, 50)": LOW, "[50, 100]": HIGH})
        .electric_energy_consumption(
            "brightness",
            ranges={"[0, 0]": None, "(0, 70)": LOW, "[70, 100]": MEDIUM},
        )
        .electric_energy_consumption("on", LOW, when=True)
        .power_surge("toggle", MEDIUM)
        .build()
    )


def build_camera_extension() -> ThingHazardExtension:
    return (
        ExtensionBuilder.for_thing(_CAMERA_TD)
        .audio_video_stream("on", when=True)
        .take_pictures("takePhoto")
        .audio_video_record_and_store(
            "resolution",
            ranges=[(["480p"], LOW), (["720p", "1080p"], HIGH)],
        )
        .log_usage_time("motion", LOW, when=Condition(Operator.NE, ""))
        .build()
    )
