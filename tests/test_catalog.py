"""
Tests for the hazard catalog.

The catalog is closed: every lookup outside it fails loudly.
"""

import pytest

from tdhazard.catalog import (
    CATALOG_VERSION,
    HAZARDS,
    HazardCategory,
    HazardId,
    get_hazard,
    list_hazards,
    parse_hazard_id,
)
from tdhazard.errors import HazardError, UnknownHazard
from tdhazard.model import HIGH, LOW, AffordanceKind


class TestLookup:
    """Test hazard identifier resolution."""

    def test_namespaced_tag(self):
        assert parse_hazard_id("sho:FireHazard") is HazardId.FIRE_HAZARD

    def test_bare_tag(self):
        assert parse_hazard_id("FireHazard") is HazardId.FIRE_HAZARD

    def test_hazard_id_passthrough(self):
        assert parse_hazard_id(HazardId.SCALD) is HazardId.SCALD

    def test_get_hazard(self):
        info = get_hazard("sho:SpendMoney")
        assert info.id is HazardId.SPEND_MONEY
        assert info.category is HazardCategory.FINANCIAL
        assert info.default_level == HIGH

    @pytest.mark.parametrize("tag", ["sho:Teleportation", "other:FireHazard", "", "firehazard"])
    def test_unknown_tag(self, tag):
        with pytest.raises(UnknownHazard) as excinfo:
            get_hazard(tag)
        assert excinfo.value.offending == tag
        assert CATALOG_VERSION in str(excinfo.value)

    def test_non_string_identifier(self):
        with pytest.raises(UnknownHazard):
            parse_hazard_id(42)

    def test_unknown_hazard_is_lookup_error(self):
        with pytest.raises(LookupError):
            get_hazard("sho:Teleportation")
        with pytest.raises(HazardError):
            get_hazard("sho:Teleportation")

    def test_short_name(self):
        assert HazardId.TAKE_PICTURES.short_name == "TakePictures"


class TestEnumeration:
    """Test listing the catalog."""

    def test_every_id_has_metadata(self):
        assert set(HAZARDS) == set(HazardId)
        assert len(list_hazards()) == len(HazardId) == 24

    def test_catalog_order(self):
        assert [info.id for info in list_hazards()] == list(HazardId)

    def test_filter_by_category(self):
        privacy = list_hazards(HazardCategory.PRIVACY)
        assert privacy
        assert all(info.category is HazardCategory.PRIVACY for info in privacy)
        total = sum(len(list_hazards(c)) for c in HazardCategory)
        assert total == len(HazardId)

    def test_catalog_is_read_only(self):
        with pytest.raises(TypeError):
            HAZARDS[HazardId.BURN] = get_hazard(HazardId.SCALD)

    def test_every_hazard_is_described(self):
        for info in list_hazards():
            assert info.name
            assert info.description
            assert info.affordance_kinds


class TestApplicability:
    """Test which affordance kinds hazards attach to."""

    def test_privacy_applies_to_events(self):
        assert get_hazard("sho:LogUsageTime").applies_to(AffordanceKind.EVENT)

    def test_safety_does_not_apply_to_events(self):
        info = get_hazard("sho:FireHazard")
        assert info.applies_to(AffordanceKind.PROPERTY)
        assert info.applies_to(AffordanceKind.ACTION)
        assert not info.applies_to(AffordanceKind.EVENT)

    def test_state_dependent_hazards(self):
        dependent = {info.id for info in list_hazards() if info.state_dependent}
        assert dependent == {
            HazardId.BURN,
            HazardId.ELECTRIC_ENERGY_CONSUMPTION,
            HazardId.FIRE_HAZARD,
            HazardId.GAS_CONSUMPTION,
            HazardId.SCALD,
            HazardId.WATER_CONSUMPTION,
            HazardId.WATER_FLOODING,
        }

    def test_consumption_defaults_to_low(self):
        assert get_hazard(HazardId.WATER_CONSUMPTION).default_level == LOW
