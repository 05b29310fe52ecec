from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from helio_watch.core.constants import DEFAULT_SURFACE_PATCH_COUNT, OBSERVATION_INTERVAL_S
from helio_watch.core.errors import ConfigurationError


@dataclass(frozen=True)
class Configuration:
    """
    Read-only settings loaded once at startup.

    min_sun_observation_angle_rad: half angle of the surface cap an observer resolves
    sun_observation_equipment: equipment id that qualifies a vessel as a sun observer
    """
    min_sun_observation_angle_rad: float
    sun_observation_equipment: str
    surface_patch_count: int = DEFAULT_SURFACE_PATCH_COUNT
    observation_interval_s: float = OBSERVATION_INTERVAL_S
    hide_radiation_belts: bool = True
    evaluator_provider: Optional[str] = None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _require(cfg: Dict[str, Any], key: str, errors: List[str]) -> Any:
    if key not in cfg:
        errors.append(f"Missing key: {key}")
        return None
    return cfg[key]


def validate_config(cfg: Any) -> List[str]:
    """Return every problem found in a raw configuration mapping."""
    if not isinstance(cfg, dict):
        return ["configuration root must be a mapping"]

    errors: List[str] = []

    angle = _require(cfg, "min_sun_observation_angle_rad", errors)
    if angle is not None:
        if not _is_number(angle) or not math.isfinite(float(angle)):
            errors.append("min_sun_observation_angle_rad must be a finite number")
        elif float(angle) < 0.0:
            errors.append("min_sun_observation_angle_rad must be >= 0")

    equipment = _require(cfg, "sun_observation_equipment", errors)
    if equipment is not None and (not isinstance(equipment, str) or not equipment.strip()):
        errors.append("sun_observation_equipment must be a non-empty string")

    if "surface_patch_count" in cfg:
        count = cfg["surface_patch_count"]
        if not isinstance(count, int) or isinstance(count, bool) or count <= 0:
            errors.append("surface_patch_count must be a positive integer")

    if "observation_interval_s" in cfg:
        interval = cfg["observation_interval_s"]
        if not _is_number(interval) or float(interval) < OBSERVATION_INTERVAL_S:
            errors.append(f"observation_interval_s must be >= {OBSERVATION_INTERVAL_S}")

    if "hide_radiation_belts" in cfg and not isinstance(cfg["hide_radiation_belts"], bool):
        errors.append("hide_radiation_belts must be a boolean")

    provider = cfg.get("evaluator_provider")
    if provider is not None and (not isinstance(provider, str) or not provider.strip()):
        errors.append("evaluator_provider must be a module path string")

    return errors


def config_from_dict(cfg: Any) -> Configuration:
    errors = validate_config(cfg)
    if errors:
        raise ConfigurationError("Invalid configuration: " + "; ".join(errors), errors)

    return Configuration(
        min_sun_observation_angle_rad=float(cfg["min_sun_observation_angle_rad"]),
        sun_observation_equipment=cfg["sun_observation_equipment"].strip(),
        surface_patch_count=int(cfg.get("surface_patch_count", DEFAULT_SURFACE_PATCH_COUNT)),
        observation_interval_s=float(cfg.get("observation_interval_s", OBSERVATION_INTERVAL_S)),
        hide_radiation_belts=bool(cfg.get("hide_radiation_belts", True)),
        evaluator_provider=cfg.get("evaluator_provider"),
    )


def load_config(path: Union[str, Path]) -> Configuration:
    """
    Load and validate a YAML configuration file.
    Any read, parse or validation failure surfaces as ConfigurationError.
    """
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Configuration file not found: {p}", [str(exc)]) from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Configuration file is not valid YAML: {p}", [str(exc)]) from exc

    return config_from_dict(raw)
