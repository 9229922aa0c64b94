import pytest

from tdhazard.config import reset_config


_ENV_VARS = (
    "TDHAZARD_PROFILE",
    "TDHAZARD_GAP_POLICY",
    "TDHAZARD_INCLUDE_RISK_DETAILS",
    "TDHAZARD_WARN_ON_VERSION_MISMATCH",
)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Every test starts from the packaged defaults."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()
