"""
Extension Integration Layer: hazard extension <-> Thing Description.

The Thing Description is an external collaborator: this module receives
it already parsed (a dict as produced by json.load or yaml.safe_load),
reads only what hazard validation needs and writes only the `sho:`
vendor-extension keys.

Reading:
    affordances_from_thing(td)   -> affordance kinds and value domains
    extract_extension(td)        -> validated ThingHazardExtension

Writing:
    embed_extension(td, ext)     -> copy of td carrying the extension
    strip_extension(td)          -> copy of td without it
"""

import copy
import logging
from typing import Any, Dict, List, Mapping, Optional

from tdhazard.binding import ThingHazardExtension
from tdhazard.catalog import NAMESPACE_PREFIX, HazardId, get_hazard
from tdhazard.config import SerializationConfig, ValidationPolicy, get_config
from tdhazard.domains import Affordance, domain_from_schema
from tdhazard.errors import MalformedExtension
from tdhazard.model import AffordanceKind
from tdhazard.serialization import HAZARDS_KEY, VERSION_KEY, extension_from_dict, extension_to_dict

logger = logging.getLogger(__name__)

RISKS_KEY = "sho:risks"
CONTEXT_KEY = "@context"


def _schema_of(kind: AffordanceKind, affordance: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
    if kind is AffordanceKind.PROPERTY:
        return affordance
    if kind is AffordanceKind.ACTION:
        return affordance.get("input")
    return affordance.get("data")


def affordances_from_thing(td: Mapping[str, Any]) -> List[Affordance]:
    """
    Collect the affordances of a parsed Thing Description.

    The value domain is taken from the property itself, the action
    `input` and the event `data` schema respectively.

    Raises:
        TypeError: If an affordance map or entry is not an object
        ValueError: If two affordances of different kinds share a name
    """
    found: Dict[str, Affordance] = {}
    for kind in AffordanceKind:
        section = td.get(kind.section) or {}
        if not isinstance(section, Mapping):
            raise TypeError(f"Thing Description '{kind.section}' must be an object")
        for name, affordance in section.items():
            if not isinstance(affordance, Mapping):
                raise TypeError(f"{kind.value} '{name}' must be an object")
            if name in found:
                raise ValueError(
                    f"affordance name '{name}' is used by both a {found[name].kind.value} "
                    f"and a {kind.value}; hazard bindings are keyed by name"
                )
            found[name] = Affordance(name=name, kind=kind, domain=domain_from_schema(_schema_of(kind, affordance)))
    return list(found.values())


def risk_details(ext: ThingHazardExtension) -> List[Dict[str, Any]]:
    """Catalog details of every hazard the extension uses, in catalog order."""
    used = ext.hazard_ids()
    details = []
    for hazard in HazardId:
        if hazard not in used:
            continue
        info = get_hazard(hazard)
        details.append({
            "@id": info.id.value,
            "sho:name": info.name,
            "sho:description": info.description,
            "sho:category": info.category.value,
        })
    return details


def _with_context(context: Any, namespace_uri: str) -> Any:
    entry = {NAMESPACE_PREFIX: namespace_uri}
    if context is None:
        return [entry]
    if isinstance(context, list):
        for item in context:
            if isinstance(item, Mapping) and NAMESPACE_PREFIX in item:
                return context
        return context + [entry]
    if isinstance(context, Mapping):
        if NAMESPACE_PREFIX in context:
            return context
        return [context, entry]
    return [context, entry]


def embed_extension(
    td: Mapping[str, Any],
    ext: ThingHazardExtension,
    config: Optional[SerializationConfig] = None,
) -> Dict[str, Any]:
    """
    Return a copy of the Thing Description carrying the extension.

    Any previous extension is replaced. The input is not modified.
    """
    config = config or get_config().serialization
    out = strip_extension(td)
    out[CONTEXT_KEY] = _with_context(out.get(CONTEXT_KEY), config.namespace_uri)
    out.update(extension_to_dict(ext))
    if config.include_risk_details:
        out[RISKS_KEY] = risk_details(ext)
    logger.debug("Embedded %d hazard bindings into '%s'", len(ext), td.get("title", "<untitled>"))
    return out


def strip_extension(td: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of the Thing Description without the hazard keys."""
    out = copy.deepcopy(dict(td))
    for key in (VERSION_KEY, HAZARDS_KEY, RISKS_KEY):
        out.pop(key, None)
    return out


def _check_risk_details(details: Any) -> None:
    if not isinstance(details, list):
        raise MalformedExtension(f"'{RISKS_KEY}' must be an array", offending=details)
    for i, detail in enumerate(details):
        if not isinstance(detail, Mapping) or not isinstance(detail.get("@id"), str):
            raise MalformedExtension(f"'{RISKS_KEY}/{i}' must be an object with an '@id'", offending=detail)
        info = get_hazard(detail["@id"])
        expected = {
            "sho:name": info.name,
            "sho:description": info.description,
            "sho:category": info.category.value,
        }
        for key, value in expected.items():
            if key in detail and detail[key] != value:
                raise MalformedExtension(
                    f"'{RISKS_KEY}/{i}/{key}' is {detail[key]!r}, the catalog says {value!r}",
                    hazard=info.id.value,
                    offending=detail,
                )


def extract_extension(
    td: Mapping[str, Any],
    policy: Optional[ValidationPolicy] = None,
) -> ThingHazardExtension:
    """
    Rebuild the hazard extension of a Thing Description.

    The fragment is validated from scratch against the affordances the
    document declares; parsing successfully does not make it trusted.
    A Thing without the extension yields an empty one.
    """
    affordances = affordances_from_thing(td)
    if RISKS_KEY in td:
        _check_risk_details(td[RISKS_KEY])
    if HAZARDS_KEY not in td:
        return ThingHazardExtension(affordances, policy=policy)

    fragment = {key: td[key] for key in (VERSION_KEY, HAZARDS_KEY) if key in td}
    ext = extension_from_dict(fragment, affordances, policy)
    logger.debug("Extracted %d hazard bindings from '%s'", len(ext), td.get("title", "<untitled>"))
    return ext
