"""
Tests for configuration loading: YAML defaults, profiles and env overrides.
"""

import pytest

from tdhazard.config import (
    GapPolicy,
    _deep_merge,
    _dict_to_config,
    get_config,
    get_policy,
    reset_config,
)


class TestDefaults:
    """Test the packaged defaults."""

    def test_default_values(self):
        config = get_config()
        assert config.validation.gap_policy is GapPolicy.REJECT
        assert config.serialization.include_risk_details
        assert config.serialization.warn_on_version_mismatch
        assert config.serialization.namespace_uri == "https://purl.org/sifis/hazards#"

    def test_cached(self):
        assert get_config() is get_config()
        assert get_policy() is get_config().validation

    def test_reset_reloads(self):
        first = get_config()
        reset_config()
        assert get_config() is not first
        assert get_config() == first


class TestOverrides:
    """Test profile and environment overrides."""

    def test_lenient_profile(self, monkeypatch):
        monkeypatch.setenv("TDHAZARD_PROFILE", "lenient")
        reset_config()
        assert get_policy().gap_policy is GapPolicy.ALLOW_UNMAPPED
        assert get_config().serialization.include_risk_details

    def test_missing_profile(self, monkeypatch):
        monkeypatch.setenv("TDHAZARD_PROFILE", "nonexistent")
        reset_config()
        with pytest.raises(FileNotFoundError):
            get_config()

    @pytest.mark.parametrize("profile", ["../x", "lenient/../default", "/etc/passwd", "lenient.yaml"])
    def test_profile_must_be_a_bare_name(self, monkeypatch, profile):
        monkeypatch.setenv("TDHAZARD_PROFILE", profile)
        reset_config()
        with pytest.raises(ValueError, match="TDHAZARD_PROFILE"):
            get_config()

    def test_gap_policy_env(self, monkeypatch):
        monkeypatch.setenv("TDHAZARD_GAP_POLICY", "ALLOW_UNMAPPED")
        reset_config()
        assert get_policy().gap_policy is GapPolicy.ALLOW_UNMAPPED

    def test_env_beats_profile(self, monkeypatch):
        monkeypatch.setenv("TDHAZARD_PROFILE", "lenient")
        monkeypatch.setenv("TDHAZARD_GAP_POLICY", "reject")
        reset_config()
        assert get_policy().gap_policy is GapPolicy.REJECT

    @pytest.mark.parametrize("value,expected", [("0", False), ("false", False), ("yes", True), ("1", True)])
    def test_flag_env(self, monkeypatch, value, expected):
        monkeypatch.setenv("TDHAZARD_WARN_ON_VERSION_MISMATCH", value)
        reset_config()
        assert get_config().serialization.warn_on_version_mismatch is expected

    def test_invalid_gap_policy(self, monkeypatch):
        monkeypatch.setenv("TDHAZARD_GAP_POLICY", "sometimes")
        reset_config()
        with pytest.raises(ValueError, match="sometimes"):
            get_config()


class TestHelpers:
    """Test the merge and conversion helpers."""

    def test_deep_merge(self):
        base = {"validation": {"gap_policy": "reject"}, "serialization": {"include_risk_details": True}}
        _deep_merge(base, {"validation": {"gap_policy": "allow_unmapped"}})
        assert base == {
            "validation": {"gap_policy": "allow_unmapped"},
            "serialization": {"include_risk_details": True},
        }

    def test_dict_to_config_fills_defaults(self):
        config = _dict_to_config({})
        assert config.validation.gap_policy is GapPolicy.REJECT
        assert config.serialization.include_risk_details
