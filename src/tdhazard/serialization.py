"""
Serialization helpers for hazard extensions.

Provides lossless JSON/YAML round-trip via an intermediate dict that is the
vendor-extension fragment of a Thing Description:

    {
      "sho:catalogVersion": "1.1",
      "sho:hazards": {
        "<affordance>": [
          {"sho:hazard": "sho:FireHazard", "sho:risk": <risk>}
        ]
      }
    }

    <risk>  := {"sho:level": <level>, "sho:when": <condition>?}
             | {"sho:level": <level>, "sho:conditions": [[<clause>, ...], ...]}
             | {"sho:ranges": [{"sho:range": <range>, "sho:level": <level> | null}]}
    <level> := {"sho:label": "high", "sho:weight": 3}
    <range> := {"sho:min": 0, "sho:max": 50, "sho:minInclusive": true, "sho:maxInclusive": false}
             | {"sho:values": [...]}
    <condition> := <value> | {"sho:op": "lt", "sho:value": <value>}
    <clause> := {"sho:condition": <condition>, "sho:pointer": "/properties/on"?}

An equality with an object value is always written in operator form.
"sho:conditions" is an OR of AND groups; a clause without a pointer tests
the annotated affordance's own value.

Deserialization never trusts the fragment: structure errors raise
MalformedExtension and every binding is rebuilt through
ThingHazardExtension.add, so catalog, domain and duplicate checks run
exactly as they do for hand-built extensions.
"""
from __future__ import annotations

import json
import warnings
from typing import Any, Dict, Iterable, List, Mapping, Optional

import yaml

from tdhazard.binding import HazardBinding, ThingHazardExtension
from tdhazard.catalog import CATALOG_VERSION, HazardId, parse_hazard_id
from tdhazard.conditions import Clause, Condition, Operator, equals
from tdhazard.config import ValidationPolicy, get_config
from tdhazard.domains import Affordance
from tdhazard.errors import MalformedExtension, UnknownHazard
from tdhazard.model import Interval, Range, RiskLevel, ValueSet
from tdhazard.risk import FixedRisk, RangeTable, RiskMapping, RiskRange


VERSION_KEY = "sho:catalogVersion"
HAZARDS_KEY = "sho:hazards"


def _malformed(message: str, where: str, offending: Any = None) -> MalformedExtension:
    return MalformedExtension(f"{message} at {where}", offending=offending)


def _expect_mapping(d: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(d, Mapping):
        raise _malformed(f"expected an object, got {type(d).__name__}", where, d)
    return d


def _expect_list(d: Any, where: str) -> List[Any]:
    if not isinstance(d, list):
        raise _malformed(f"expected an array, got {type(d).__name__}", where, d)
    return d


def _require(d: Mapping[str, Any], key: str, where: str) -> Any:
    if key not in d:
        raise _malformed(f"missing '{key}'", where, dict(d))
    return d[key]


def level_to_dict(level: Optional[RiskLevel]) -> Optional[Dict[str, Any]]:
    if level is None:
        return None
    d: Dict[str, Any] = {"sho:label": level.label}
    if level.weight is not None:
        d["sho:weight"] = level.weight
    return d


def level_from_dict(d: Any, where: str = "level") -> Optional[RiskLevel]:
    if d is None:
        return None
    d = _expect_mapping(d, where)
    try:
        return RiskLevel(label=_require(d, "sho:label", where), weight=d.get("sho:weight"))
    except ValueError as exc:
        raise _malformed(str(exc), where, dict(d)) from None


def range_to_dict(rng: Range) -> Dict[str, Any]:
    if isinstance(rng, ValueSet):
        return {"sho:values": list(rng.values)}
    d: Dict[str, Any] = {}
    if rng.lower is not None:
        d["sho:min"] = rng.lower
        d["sho:minInclusive"] = rng.lower_closed
    if rng.upper is not None:
        d["sho:max"] = rng.upper
        d["sho:maxInclusive"] = rng.upper_closed
    return d


def range_from_dict(d: Any, where: str = "range") -> Range:
    d = _expect_mapping(d, where)
    if "sho:values" in d:
        values = _expect_list(d["sho:values"], f"{where}/sho:values")
        try:
            return ValueSet(tuple(values))
        except TypeError:
            raise _malformed("value set members must be JSON values", where, values) from None
    try:
        return Interval(
            lower=d.get("sho:min"),
            upper=d.get("sho:max"),
            lower_closed=_expect_bool(d.get("sho:minInclusive", True), f"{where}/sho:minInclusive"),
            upper_closed=_expect_bool(d.get("sho:maxInclusive", False), f"{where}/sho:maxInclusive"),
        )
    except TypeError as exc:
        raise _malformed(str(exc), where, dict(d)) from None


def _expect_bool(value: Any, where: str) -> bool:
    if not isinstance(value, bool):
        raise _malformed(f"expected a boolean, got {value!r}", where, value)
    return value


def condition_to_dict(cond: Optional[Condition]) -> Any:
    if cond is None:
        return None
    # A bare mapping on the wire is always an operator object.
    if cond.operator is Operator.EQ and not isinstance(cond.value, Mapping):
        return cond.value
    return {"sho:op": cond.operator.value, "sho:value": cond.value}


def condition_from_dict(d: Any, where: str = "condition") -> Condition:
    if not isinstance(d, Mapping):
        return equals(d)
    try:
        op = Operator(_require(d, "sho:op", where))
    except ValueError:
        raise _malformed(f"unknown operator {d.get('sho:op')!r}", where, dict(d)) from None
    return Condition(operator=op, value=_require(d, "sho:value", where))


def clause_to_dict(clause: Clause) -> Dict[str, Any]:
    d: Dict[str, Any] = {"sho:condition": condition_to_dict(clause.condition)}
    if clause.pointer is not None:
        d["sho:pointer"] = clause.pointer
    return d


def clause_from_dict(d: Any, where: str = "clause") -> Clause:
    d = _expect_mapping(d, where)
    condition = condition_from_dict(_require(d, "sho:condition", where), f"{where}/sho:condition")
    try:
        return Clause(condition, pointer=d.get("sho:pointer"))
    except ValueError as exc:
        raise _malformed(str(exc), where, dict(d)) from None


def risk_to_dict(risk: RiskMapping) -> Dict[str, Any]:
    if isinstance(risk, FixedRisk):
        d: Dict[str, Any] = {"sho:level": level_to_dict(risk.level)}
        if risk.when is not None:
            d["sho:when"] = condition_to_dict(risk.when)
        if risk.any_of:
            d["sho:conditions"] = [[clause_to_dict(c) for c in group] for group in risk.any_of]
        return d
    return {
        "sho:ranges": [
            {"sho:range": range_to_dict(r.range), "sho:level": level_to_dict(r.level)}
            for r in risk.ranges
        ]
    }


def risk_from_dict(d: Any, where: str = "risk") -> RiskMapping:
    d = _expect_mapping(d, where)
    if "sho:ranges" in d:
        if "sho:level" in d:
            raise _malformed("a risk has either 'sho:level' or 'sho:ranges', not both", where, dict(d))
        rows = []
        for i, row in enumerate(_expect_list(d["sho:ranges"], f"{where}/sho:ranges")):
            row_where = f"{where}/sho:ranges/{i}"
            row = _expect_mapping(row, row_where)
            rows.append(
                RiskRange(
                    range=range_from_dict(_require(row, "sho:range", row_where), f"{row_where}/sho:range"),
                    level=level_from_dict(_require(row, "sho:level", row_where), f"{row_where}/sho:level"),
                )
            )
        return RangeTable(tuple(rows))

    level = level_from_dict(_require(d, "sho:level", where), f"{where}/sho:level")
    if level is None:
        raise _malformed("a fixed risk needs a level", where, dict(d))
    when = None
    if "sho:when" in d:
        when = condition_from_dict(d["sho:when"], f"{where}/sho:when")
    any_of = []
    if "sho:conditions" in d:
        groups_where = f"{where}/sho:conditions"
        for i, group in enumerate(_expect_list(d["sho:conditions"], groups_where)):
            group_where = f"{groups_where}/{i}"
            any_of.append(
                [clause_from_dict(c, f"{group_where}/{j}") for j, c in enumerate(_expect_list(group, group_where))]
            )
    try:
        return FixedRisk(level=level, when=when, any_of=any_of)
    except ValueError as exc:
        raise _malformed(str(exc), where, dict(d)) from None


def binding_to_dict(b: HazardBinding) -> Dict[str, Any]:
    return {"sho:hazard": b.hazard.value, "sho:risk": risk_to_dict(b.risk)}


def binding_from_dict(affordance: str, d: Any, where: str = "binding") -> HazardBinding:
    d = _expect_mapping(d, where)
    tag = _require(d, "sho:hazard", where)
    if not isinstance(tag, str):
        raise _malformed(f"hazard identifier must be a string, got {tag!r}", where, tag)
    try:
        hazard = parse_hazard_id(tag)
    except UnknownHazard as exc:
        raise UnknownHazard(f"{exc.message} at {where}", affordance=affordance, offending=tag) from None
    risk = risk_from_dict(_require(d, "sho:risk", where), f"{where}/sho:risk")
    return HazardBinding(affordance=affordance, hazard=hazard, risk=risk)


def extension_to_dict(ext: ThingHazardExtension) -> Dict[str, Any]:
    hazards: Dict[str, List[Dict[str, Any]]] = {}
    for name in ext.annotated_affordances():
        hazards[name] = [binding_to_dict(b) for b in ext.bindings_for(name)]
    return {VERSION_KEY: CATALOG_VERSION, HAZARDS_KEY: hazards}


def extension_from_dict(
    d: Any,
    affordances: Iterable[Affordance],
    policy: Optional[ValidationPolicy] = None,
) -> ThingHazardExtension:
    """
    Rebuild and revalidate an extension from its fragment.

    Args:
        d: The fragment dict
        affordances: The Thing's affordances the fragment refers to
        policy: Validation policy, the configured one by default

    Raises:
        MalformedExtension: If the fragment is structurally invalid
        UnknownHazard, UnknownAffordance, InapplicableHazard,
        RangeOutOfDomain, RangeOverlap, RangeGap, DuplicateBinding:
            If a binding fails validation
    """
    d = _expect_mapping(d, "fragment")
    version = d.get(VERSION_KEY)
    if version is not None and str(version) != CATALOG_VERSION and get_config().serialization.warn_on_version_mismatch:
        warnings.warn(
            f"Hazard extension was written for catalog version {version}, "
            f"this library provides {CATALOG_VERSION}",
            UserWarning,
        )

    ext = ThingHazardExtension(affordances, policy=policy)
    hazards = _expect_mapping(_require(d, HAZARDS_KEY, "fragment"), HAZARDS_KEY)
    for name, entries in hazards.items():
        where = f"{HAZARDS_KEY}/{name}"
        for i, entry in enumerate(_expect_list(entries, where)):
            ext.add(binding_from_dict(str(name), entry, f"{where}/{i}"))
    return ext


def extension_to_json(ext: ThingHazardExtension) -> str:
    return json.dumps(extension_to_dict(ext), sort_keys=True)


def extension_from_json(
    s: str,
    affordances: Iterable[Affordance],
    policy: Optional[ValidationPolicy] = None,
) -> ThingHazardExtension:
    try:
        d = json.loads(s)
    except json.JSONDecodeError as exc:
        raise MalformedExtension(f"invalid JSON: {exc}") from None
    return extension_from_dict(d, affordances, policy)


def extension_to_yaml(ext: ThingHazardExtension) -> str:
    return yaml.safe_dump(extension_to_dict(ext))


def extension_from_yaml(
    s: str,
    affordances: Iterable[Affordance],
    policy: Optional[ValidationPolicy] = None,
) -> ThingHazardExtension:
    try:
        d = yaml.safe_load(s)
    except yaml.YAMLError as exc:
        raise MalformedExtension(f"invalid YAML: {exc}") from None
    return extension_from_dict(d, affordances, policy)


def hazard_tags(ext: ThingHazardExtension) -> List[str]:
    """Tags of the hazards in use, in catalog order."""
    used = ext.hazard_ids()
    return [h.value for h in HazardId if h in used]
