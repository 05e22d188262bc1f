from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "HOMERUN_"
SETTINGS_FILE_ENV = "HOMERUN_SETTINGS_FILE"


def _default_rarity_weights() -> Dict[str, float]:
    return {"blue": 5.0, "purple": 3.0, "orange": 2.0, "red": 1.0}


@dataclass
class EngineSettings:
    """Tunable constants for generation, pursuit and battle consequences.

    Built from (lowest to highest precedence): defaults < YAML settings file
    (HOMERUN_SETTINGS_FILE or an explicit path) < HOMERUN_* environment variables.
    Nested values such as rarity weights can only be set from the file.
    """

    # Run resources
    max_sanity: int = 5

    # Pursuit
    aggression_per_step: float = 0.005
    max_chase_bonus: float = 0.8
    chase_distance: float = 4.0
    threat_bands: Tuple[float, float, float] = (2.0, 3.0, 5.0)
    spotted_delay_ms: int = 1000

    # Population
    loot_count: int = 8
    currency_count: int = 7
    antagonist_count: int = 10
    large_grid_threshold: int = 20
    large_grid_multiplier: float = 1.5
    item_attempts: int = 50
    antagonist_attempts: int = 100
    spawn_attempts: int = 500
    exit_fallback_attempts: int = 500
    min_player_distance: float = 4.0
    min_antagonist_spacing: float = 4.0
    rarity_weights: Dict[str, float] = field(default_factory=_default_rarity_weights)

    # Battle consequences and consumables
    retreat_radius: int = 2
    retreat_attempts: int = 20
    untrackable_steps: int = 5
    teleport_radius: int = 3
    teleport_attempts: int = 20

    # ------------------------ Core API ------------------------
    def validate(self) -> None:
        """Raise ConfigError for values the engine cannot run with."""
        problems = []
        if self.max_sanity < 1:
            problems.append(f"max_sanity must be >= 1, got {self.max_sanity}")
        if not 0.0 <= self.aggression_per_step <= 1.0:
            problems.append(f"aggression_per_step must be within 0..1, got {self.aggression_per_step}")
        if not 0.0 <= self.max_chase_bonus <= 1.0:
            problems.append(f"max_chase_bonus must be within 0..1, got {self.max_chase_bonus}")
        if self.chase_distance <= 0:
            problems.append(f"chase_distance must be positive, got {self.chase_distance}")
        if len(self.threat_bands) != 3 or list(self.threat_bands) != sorted(self.threat_bands):
            problems.append(f"threat_bands must be three ascending distances, got {self.threat_bands}")
        for name in ("loot_count", "currency_count", "antagonist_count", "retreat_radius", "untrackable_steps"):
            if getattr(self, name) < 0:
                problems.append(f"{name} must be non-negative, got {getattr(self, name)}")
        for name in (
            "item_attempts",
            "antagonist_attempts",
            "spawn_attempts",
            "exit_fallback_attempts",
            "retreat_attempts",
            "teleport_attempts",
        ):
            if getattr(self, name) < 1:
                problems.append(f"{name} must be >= 1, got {getattr(self, name)}")
        if self.large_grid_multiplier < 1.0:
            problems.append(f"large_grid_multiplier must be >= 1, got {self.large_grid_multiplier}")
        if any(w < 0 for w in self.rarity_weights.values()) or not any(self.rarity_weights.values()):
            problems.append(f"rarity_weights need a positive weight, got {self.rarity_weights}")
        unknown_tiers = sorted(set(self.rarity_weights) - {"blue", "purple", "orange", "red"})
        if unknown_tiers:
            problems.append(f"rarity_weights has unknown tiers: {unknown_tiers}")
        if problems:
            raise ConfigError("Invalid engine settings: " + "; ".join(problems))

    def scaled_count(self, base: int, grid_width: int) -> int:
        """Population target for a grid; wide grids scale every count up."""
        if grid_width > self.large_grid_threshold:
            return int(base * self.large_grid_multiplier)
        return base

    def as_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    # ------------------------ Loading & Overrides ------------------------
    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EngineSettings":
        allowed = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - allowed)
        if unknown:
            logger.warning("Ignoring unknown engine settings: %s", ", ".join(unknown))
        filtered = {k: v for k, v in data.items() if k in allowed}
        if "threat_bands" in filtered:
            filtered["threat_bands"] = tuple(float(x) for x in filtered["threat_bands"])
        obj = cls(**filtered)
        obj.validate()
        return obj

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
        env = os.environ if env is None else env
        out: Dict[str, Any] = {}
        for f in dataclasses.fields(cls):
            if f.name in ("rarity_weights", "threat_bands"):
                continue
            key = ENV_PREFIX + f.name.upper()
            raw = env.get(key)
            if raw is None or raw == "":
                continue
            caster = float if isinstance(f.default, float) else int
            try:
                out[f.name] = caster(raw)
            except ValueError as exc:
                raise ConfigError(f"Invalid value for {key}={raw!r}: {exc}") from exc
        return out

    @classmethod
    def from_yaml_file(cls, path: Path) -> Dict[str, Any]:
        if not path.exists():
            logger.debug("Settings file not found: %s", path)
            return {}
        with path.open("r", encoding="utf-8") as f:
            doc = yaml.safe_load(f) or {}
        if not isinstance(doc, dict):
            raise ConfigError(f"Settings file {path} must contain a mapping, got {type(doc).__name__}")
        logger.debug("Loaded engine settings from %s", path)
        # Allow either a flat mapping or everything nested under 'engine'
        if isinstance(doc.get("engine"), dict):
            return dict(doc["engine"])
        return doc

    @classmethod
    def from_sources(
        cls,
        *,
        env: Optional[Mapping[str, str]] = None,
        file_path: Optional[Union[Path, str]] = None,
    ) -> "EngineSettings":
        env = os.environ if env is None else env
        data: Dict[str, Any] = {}
        if file_path is None and env.get(SETTINGS_FILE_ENV):
            file_path = env[SETTINGS_FILE_ENV]
        if file_path is not None:
            data.update(cls.from_yaml_file(Path(file_path).expanduser().resolve()))
        data.update(cls.from_env(env))
        return cls.from_dict(data)


__all__ = ["EngineSettings", "ENV_PREFIX", "SETTINGS_FILE_ENV"]
