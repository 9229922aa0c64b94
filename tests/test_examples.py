"""
Tests for the example Things shipped with the package.
"""

from tdhazard.examples import build_camera_extension, build_lamp_extension, camera_thing, lamp_thing
from tdhazard.integration import embed_extension, extract_extension
from tdhazard.model import HIGH, LOW, MEDIUM


class TestLamp:
    """Test the dimmable lamp example."""

    def test_fire_hazard_by_brightness(self):
        lamp = build_lamp_extension()
        assert lamp.resolve("brightness", "sho:FireHazard", 30) == LOW
        assert lamp.resolve("brightness", "sho:FireHazard", 75) == HIGH
        assert lamp.resolve("brightness", "sho:FireHazard", 100) == HIGH

    def test_energy_consumption(self):
        lamp = build_lamp_extension()
        assert lamp.resolve("brightness", "sho:ElectricEnergyConsumption", 0) is None
        assert lamp.resolve("brightness", "sho:ElectricEnergyConsumption", 69) == LOW
        assert lamp.resolve("brightness", "sho:ElectricEnergyConsumption", 70) == MEDIUM
        assert lamp.resolve("on", "sho:ElectricEnergyConsumption", True) == LOW

    def test_things_are_copies(self):
        td = lamp_thing()
        td["title"] = "Changed"
        assert lamp_thing()["title"] == "Dimmable lamp"


class TestCamera:
    """Test the indoor camera example."""

    def test_stream_only_while_on(self):
        camera = build_camera_extension()
        assert camera.resolve("on", "sho:AudioVideoStream", True) == HIGH
        assert camera.resolve("on", "sho:AudioVideoStream", False) is None

    def test_recording_by_resolution(self):
        camera = build_camera_extension()
        assert camera.resolve("resolution", "sho:AudioVideoRecordAndStore", "480p") == LOW
        assert camera.resolve("resolution", "sho:AudioVideoRecordAndStore", "1080p") == HIGH

    def test_usage_logged_on_motion(self):
        camera = build_camera_extension()
        assert camera.resolve("motion", "sho:LogUsageTime", "hallway") == LOW
        assert camera.resolve("motion", "sho:LogUsageTime", "") is None

    def test_survives_embedding(self):
        camera = build_camera_extension()
        assert extract_extension(embed_extension(camera_thing(), camera)) == camera
