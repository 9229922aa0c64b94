"""
Tests for embedding hazard extensions into Thing Descriptions and
extracting them back.
"""

import json

import pytest

from tdhazard.binding import ThingHazardExtension
from tdhazard.config import SerializationConfig, reset_config
from tdhazard.domains import BooleanDomain, EnumDomain, NumericDomain
from tdhazard.errors import MalformedExtension, RangeOutOfDomain, UnknownAffordance, UnknownHazard
from tdhazard.examples import build_lamp_extension, lamp_thing
from tdhazard.integration import (
    CONTEXT_KEY,
    RISKS_KEY,
    affordances_from_thing,
    embed_extension,
    extract_extension,
    risk_details,
    strip_extension,
)
from tdhazard.model import HIGH, LOW, AffordanceKind, Interval, ValueSet
from tdhazard.risk import RangeTable, RiskRange
from tdhazard.serialization import HAZARDS_KEY, VERSION_KEY, hazard_tags


SHO_CONTEXT = {"sho": "https://purl.org/sifis/hazards#"}


@pytest.fixture
def annotated():
    return embed_extension(lamp_thing(), build_lamp_extension())


class TestAffordancesFromThing:
    """Test reading affordances from a parsed TD."""

    def test_kinds_and_domains(self):
        affordances = {a.name: a for a in affordances_from_thing(lamp_thing())}
        assert set(affordances) == {"on", "brightness", "toggle", "overheated"}
        assert affordances["on"].domain == BooleanDomain()
        assert affordances["brightness"].domain == NumericDomain(Interval(0, 100, upper_closed=True), integer=True)
        assert affordances["toggle"].kind is AffordanceKind.ACTION
        assert affordances["toggle"].domain is None
        assert affordances["overheated"].kind is AffordanceKind.EVENT
        assert affordances["overheated"].domain == NumericDomain(Interval(0, None))

    def test_action_input_schema(self):
        td = {"actions": {"fade": {"input": {"type": "integer", "minimum": 0, "maximum": 10}}}}
        (fade,) = affordances_from_thing(td)
        assert fade.domain == NumericDomain(Interval(0, 10, upper_closed=True), integer=True)

    def test_thing_without_affordances(self):
        assert affordances_from_thing({"title": "Empty"}) == []

    def test_name_shared_across_kinds(self):
        td = {"properties": {"on": {"type": "boolean"}}, "actions": {"on": {}}}
        with pytest.raises(ValueError):
            affordances_from_thing(td)

    def test_malformed_affordance_map(self):
        with pytest.raises(TypeError):
            affordances_from_thing({"properties": ["on"]})
        with pytest.raises(TypeError):
            affordances_from_thing({"properties": {"on": "boolean"}})

    def test_object_and_array_enums(self):
        td = {
            "properties": {
                "preset": {"type": "object", "enum": [{"level": 1}, {"level": 2}]},
                "pair": {"type": "array", "const": [1, 2]},
            }
        }
        affordances = {a.name: a for a in affordances_from_thing(td)}
        assert affordances["preset"].domain == EnumDomain(ValueSet(({"level": 2}, {"level": 1})))
        assert affordances["preset"].domain.contains({"level": 1})
        assert not affordances["preset"].domain.contains({"level": 3})
        assert affordances["pair"].domain.contains([1, 2])
        assert not affordances["pair"].domain.contains([2, 1])

    def test_object_enum_extension_survives_embedding(self):
        td = {"properties": {"preset": {"type": "object", "enum": [{"level": 1}, {"level": 2}]}}}
        ext = ThingHazardExtension(affordances_from_thing(td))
        table = RangeTable(
            (
                RiskRange(ValueSet(({"level": 1},)), LOW),
                RiskRange(ValueSet(({"level": 2},)), HIGH),
            )
        )
        ext.bind("preset", "sho:RecordUserPreferences", table)

        restored = extract_extension(json.loads(json.dumps(embed_extension(td, ext))))

        assert restored == ext
        assert restored.resolve("preset", "sho:RecordUserPreferences", {"level": 2}) == HIGH


class TestEmbed:
    """Test writing the extension into a TD."""

    def test_fragment_and_context(self, annotated):
        assert annotated[VERSION_KEY] == "1.1"
        assert sorted(annotated[HAZARDS_KEY]) == ["brightness", "on", "toggle"]
        assert annotated[CONTEXT_KEY] == ["https://www.w3.org/2022/wot/td/v1.1", SHO_CONTEXT]

    def test_input_not_modified(self):
        td = lamp_thing()
        embed_extension(td, build_lamp_extension())
        assert td == lamp_thing()

    def test_risk_details(self, annotated):
        details = annotated[RISKS_KEY]
        assert [d["@id"] for d in details] == hazard_tags(build_lamp_extension())
        fire = details[1]
        assert fire["sho:name"] == "Fire hazard"
        assert fire["sho:category"] == "sho:Safety"

    def test_risk_details_can_be_omitted(self):
        td = embed_extension(lamp_thing(), build_lamp_extension(), SerializationConfig(include_risk_details=False))
        assert RISKS_KEY not in td
        assert HAZARDS_KEY in td

    def test_risk_details_env_override(self, monkeypatch):
        monkeypatch.setenv("TDHAZARD_INCLUDE_RISK_DETAILS", "0")
        reset_config()
        assert RISKS_KEY not in embed_extension(lamp_thing(), build_lamp_extension())

    def test_embed_is_idempotent(self, annotated):
        assert embed_extension(annotated, build_lamp_extension()) == annotated

    def test_context_variants(self):
        ext = build_lamp_extension()
        td = dict(lamp_thing(), **{CONTEXT_KEY: {"@vocab": "x"}})
        assert embed_extension(td, ext)[CONTEXT_KEY] == [{"@vocab": "x"}, SHO_CONTEXT]

        td = dict(lamp_thing())
        del td[CONTEXT_KEY]
        assert embed_extension(td, ext)[CONTEXT_KEY] == [SHO_CONTEXT]

    def test_strip(self, annotated):
        stripped = strip_extension(annotated)
        for key in (VERSION_KEY, HAZARDS_KEY, RISKS_KEY):
            assert key not in stripped
        assert stripped["properties"] == lamp_thing()["properties"]

    def test_risk_details_function(self):
        assert risk_details(ThingHazardExtension()) == []


class TestExtract:
    """Test reading the extension back from a TD."""

    def test_round_trip(self, annotated):
        assert extract_extension(annotated) == build_lamp_extension()

    def test_round_trip_through_json(self, annotated):
        td = json.loads(json.dumps(annotated))
        ext = extract_extension(td)
        assert ext.resolve("brightness", "sho:FireHazard", 30).label == "low"
        assert ext.resolve("brightness", "sho:FireHazard", 75).label == "high"

    def test_thing_without_extension(self):
        ext = extract_extension(lamp_thing())
        assert len(ext) == 0
        assert set(ext.affordances) == {"on", "brightness", "toggle", "overheated"}

    def test_revalidated_against_thing(self, annotated):
        annotated["properties"]["brightness"]["maximum"] = 60
        with pytest.raises(RangeOutOfDomain):
            extract_extension(annotated)

    def test_affordance_removed_from_thing(self, annotated):
        del annotated["actions"]["toggle"]
        with pytest.raises(UnknownAffordance):
            extract_extension(annotated)

    def test_unknown_hazard_tag(self, annotated):
        annotated[HAZARDS_KEY]["toggle"][0]["sho:hazard"] = "sho:Teleportation"
        with pytest.raises(UnknownHazard):
            extract_extension(annotated)

    def test_tampered_risk_details(self, annotated):
        annotated[RISKS_KEY][1]["sho:category"] = "sho:Privacy"
        with pytest.raises(MalformedExtension):
            extract_extension(annotated)

    def test_unknown_risk_detail(self, annotated):
        annotated[RISKS_KEY].append({"@id": "sho:Teleportation"})
        with pytest.raises(UnknownHazard):
            extract_extension(annotated)

    def test_risk_details_must_be_list(self, annotated):
        annotated[RISKS_KEY] = {"@id": "sho:FireHazard"}
        with pytest.raises(MalformedExtension):
            extract_extension(annotated)
