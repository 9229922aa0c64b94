# Config loader: YAML defaults + TDHAZARD_PROFILE merge + env overrides.
# Holds the validation and serialization policy shared by every extension.

import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

import yaml

_CONFIG_DIR = Path(__file__).resolve().parent
_PROFILE_NAME = re.compile(r"[A-Za-z0-9_-]+")


class GapPolicy(Enum):
    """
    What to do with parts of a domain no risk range covers.

    REJECT: a range table must cover the whole domain; uncovered parts
        raise RangeGap. "No hazard" must be stated with a null level.
    ALLOW_UNMAPPED: uncovered values resolve to no mapped risk.
    """

    REJECT = "reject"
    ALLOW_UNMAPPED = "allow_unmapped"


def _load_yaml(path: Path) -> dict:
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge override into base recursively. Modifies base in place."""
    for k, v in override.items():
        if k in base and isinstance(base[k], dict) and isinstance(v, dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(data: dict) -> None:
    """Apply environment variable overrides to data in place."""
    # TDHAZARD_GAP_POLICY
    if v := os.environ.get("TDHAZARD_GAP_POLICY"):
        data.setdefault("validation", {})["gap_policy"] = v

    # TDHAZARD_INCLUDE_RISK_DETAILS
    if v := os.environ.get("TDHAZARD_INCLUDE_RISK_DETAILS"):
        data.setdefault("serialization", {})["include_risk_details"] = _env_flag(v)

    # TDHAZARD_WARN_ON_VERSION_MISMATCH
    if v := os.environ.get("TDHAZARD_WARN_ON_VERSION_MISMATCH"):
        data.setdefault("serialization", {})["warn_on_version_mismatch"] = _env_flag(v)


# --- Dataclasses ---


@dataclass(frozen=True)
class ValidationPolicy:
    gap_policy: GapPolicy = GapPolicy.REJECT


@dataclass(frozen=True)
class SerializationConfig:
    include_risk_details: bool = True
    namespace_uri: str = "https://purl.org/sifis/hazards#"
    warn_on_version_mismatch: bool = True


@dataclass(frozen=True)
class AppConfig:
    validation: ValidationPolicy
    serialization: SerializationConfig


def _dict_to_config(data: dict) -> AppConfig:
    v = data.get("validation", {})
    s = data.get("serialization", {})
    defaults = SerializationConfig()

    try:
        gap_policy = GapPolicy(str(v.get("gap_policy", GapPolicy.REJECT.value)).lower())
    except ValueError:
        choices = ", ".join(p.value for p in GapPolicy)
        raise ValueError(f"Invalid gap_policy {v.get('gap_policy')!r}; expected one of: {choices}")

    return AppConfig(
        validation=ValidationPolicy(gap_policy=gap_policy),
        serialization=SerializationConfig(
            include_risk_details=bool(s.get("include_risk_details", defaults.include_risk_details)),
            namespace_uri=s.get("namespace_uri", defaults.namespace_uri),
            warn_on_version_mismatch=bool(s.get("warn_on_version_mismatch", defaults.warn_on_version_mismatch)),
        ),
    )


_cached_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Load and cache config. YAML defaults + TDHAZARD_PROFILE merge + env overrides."""
    global _cached_config
    if _cached_config is not None:
        return _cached_config

    data = _load_yaml(_CONFIG_DIR / "default.yaml")

    profile = os.environ.get("TDHAZARD_PROFILE")
    if profile:
        # Profiles are bare names of YAML files beside this module.
        if not _PROFILE_NAME.fullmatch(profile):
            raise ValueError(f"Invalid TDHAZARD_PROFILE {profile!r}; expected letters, digits, '_' or '-'")
        profile_path = _CONFIG_DIR / f"{profile}.yaml"
        if not profile_path.exists():
            raise FileNotFoundError(f"TDHAZARD_PROFILE={profile} but {profile_path} not found")
        _deep_merge(data, _load_yaml(profile_path))

    _apply_env_overrides(data)
    _cached_config = _dict_to_config(data)
    return _cached_config


def reset_config() -> None:
    """Drop the cached config so the next get_config() reloads it."""
    global _cached_config
    _cached_config = None


def get_policy() -> ValidationPolicy:
    return get_config().validation
