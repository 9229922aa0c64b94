"""
Tests for the fluent extension builder.
"""

import pytest

from tdhazard.builder import ExtensionBuilder
from tdhazard.catalog import HazardId
from tdhazard.conditions import when
from tdhazard.errors import DuplicateBinding, RangeOverlap, UnknownAffordance, UnknownHazard
from tdhazard.examples import camera_thing, lamp_thing
from tdhazard.model import HIGH, LOW, MEDIUM
from tdhazard.risk import FixedRisk, RangeTable, RiskRange


class TestHelpers:
    """Test the per-hazard helper methods."""

    def test_one_helper_per_hazard(self):
        for hazard in HazardId:
            helper = getattr(ExtensionBuilder, hazard.name.lower())
            assert helper.__name__ == hazard.name.lower()

    def test_default_level(self):
        ext = ExtensionBuilder.for_thing(camera_thing()).take_pictures("takePhoto").build()
        assert ext.resolve("takePhoto", "sho:TakePictures") == HIGH

    def test_explicit_level(self):
        ext = ExtensionBuilder.for_thing(camera_thing()).take_pictures("takePhoto", LOW).build()
        assert ext.resolve("takePhoto", HazardId.TAKE_PICTURES) == LOW

    def test_gated_level(self):
        ext = ExtensionBuilder.for_thing(camera_thing()).audio_video_stream("on", when=True).build()
        assert ext.get("on", "sho:AudioVideoStream").risk == FixedRisk(HIGH, when=True)
        assert ext.resolve("on", "sho:AudioVideoStream", False) is None

    def test_condition_chain(self):
        gate = when("/properties/on").eq(True).and_().ge(50)
        ext = ExtensionBuilder.for_thing(lamp_thing()).burn("brightness", HIGH, when=gate).build()
        assert ext.get("brightness", "sho:Burn").risk == FixedRisk(HIGH, any_of=gate)
        assert ext.resolve("brightness", "sho:Burn", 80, state={"/properties/on": True}) == HIGH
        assert ext.resolve("brightness", "sho:Burn", 20, state={"/properties/on": True}) is None

    def test_chain_checked_at_build(self):
        builder = ExtensionBuilder.for_thing(lamp_thing()).burn("brightness", when=when("/properties/dimmer").eq(1))
        with pytest.raises(UnknownAffordance):
            builder.build()


class TestRanges:
    """Test the accepted range table forms."""

    def test_mapping(self):
        ext = (
            ExtensionBuilder.for_thing(lamp_thing())
            .fire_hazard("brightness", ranges={"[0, 50)": LOW, "[50, 100]": HIGH})
            .build()
        )
        assert ext.resolve("brightness", "sho:FireHazard", 75) == HIGH

    def test_pairs_and_rows(self):
        ext = (
            ExtensionBuilder.for_thing(lamp_thing())
            .fire_hazard("brightness", ranges=[("[0, 50)", LOW), RiskRange("[50, 100]", HIGH)])
            .build()
        )
        assert ext.resolve("brightness", "sho:FireHazard", 30) == LOW

    def test_range_table(self):
        table = RangeTable.from_mapping({"[0, 100]": MEDIUM})
        ext = ExtensionBuilder.for_thing(lamp_thing()).burn("brightness", ranges=table).build()
        assert ext.get("brightness", "sho:Burn").risk is table

    def test_level_and_ranges_conflict(self):
        builder = ExtensionBuilder.for_thing(lamp_thing())
        with pytest.raises(ValueError):
            builder.fire_hazard("brightness", HIGH, ranges={"[0, 100]": HIGH})
        with pytest.raises(ValueError):
            builder.fire_hazard("brightness", when=50, ranges={"[0, 100]": HIGH})


class TestErrors:
    """Test where builder errors surface."""

    def test_unknown_hazard_is_immediate(self):
        with pytest.raises(UnknownHazard):
            ExtensionBuilder.for_thing(lamp_thing()).hazard("sho:Teleportation", "on")

    def test_validation_at_build(self):
        builder = ExtensionBuilder.for_thing(lamp_thing()).fire_hazard("volume", HIGH)
        with pytest.raises(UnknownAffordance):
            builder.build()

    def test_overlap_at_build(self):
        builder = ExtensionBuilder.for_thing(lamp_thing()).fire_hazard(
            "brightness", ranges={"[0, 60)": LOW, "[50, 100]": HIGH}
        )
        with pytest.raises(RangeOverlap):
            builder.build()

    def test_duplicate_at_build(self):
        builder = (
            ExtensionBuilder.for_thing(camera_thing())
            .take_pictures("takePhoto")
            .hazard("TakePictures", "takePhoto", LOW)
        )
        with pytest.raises(DuplicateBinding):
            builder.build()
