"""
Master configuration for the Frontier discovery engine.

ALL tunable parameters live here. Nothing in the simulation is hardcoded.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any

# Independent existence rolls per area.
DEFAULT_LOCATION_CONFIG: dict[str, float] = {
    "mining_chance": 0.30,
    "woodcutting_chance": 0.30,
    "creature_camp_chance": 0.25,
    "difficulty_spread": 3.0,  # camp difficulty = distance + round(U(-s, s))
}

DEFAULT_DISCOVERY_CONFIG: dict[str, float] = {
    "non_guild_chance": 0.01,
    "base_rate": 0.05,
    "level_bonus": 0.05,  # per level above 1
    "distance_penalty": 0.05,  # per distance above 1
    "connected_bonus": 0.05,  # per known connected area
    "non_connected_weight": 0.20,  # times known/total at this distance
    "base_roll_interval": 2.0,
    "roll_interval_reduction": 0.1,  # per step of levels
    "roll_interval_level_step": 10,
    "min_roll_interval": 1.0,
}

_PROBABILITY_KEYS = ("mining_chance", "woodcutting_chance", "creature_camp_chance", "non_guild_chance")


@dataclass
class ExperimentConfig:
    """
    Master configuration — every probability, weight and budget as a slider.

    Use ``to_dict()`` / ``from_dict()`` for serialization and comparison.
    """

    # === Experiment identity ===
    experiment_name: str = "default"
    random_seed: int | str | None = None

    # === Session budget ===
    session_ticks: int = 1000

    # === Player ===
    # 0 = not enrolled in the Exploration guild (fixed 1% success rate)
    starting_exploration_level: int = 1

    # === Travel ===
    base_travel_time: int = 10

    # === Location generation (independent existence rolls per area) ===
    # Partial mappings are completed from DEFAULT_LOCATION_CONFIG.
    location_config: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_LOCATION_CONFIG),
    )

    # === Connection generation ===
    # Probability of rolling 0, 1, 2, 3 connections per neighbouring band
    connection_count_weights: list[float] = field(
        default_factory=lambda: [0.15, 0.35, 0.35, 0.15],
    )
    # Probability of travel multiplier 1x, 2x, 3x, 4x
    travel_multiplier_weights: list[float] = field(
        default_factory=lambda: [0.15, 0.35, 0.35, 0.15],
    )

    # === Discovery probability model ===
    # Partial mappings are completed from DEFAULT_DISCOVERY_CONFIG.
    discovery_config: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_DISCOVERY_CONFIG),
    )

    def __post_init__(self) -> None:
        self.location_config = {**DEFAULT_LOCATION_CONFIG, **self.location_config}
        self.discovery_config = {**DEFAULT_DISCOVERY_CONFIG, **self.discovery_config}
        self.validate()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def validate(self) -> None:
        """Raise ``ValueError`` if the configuration cannot drive a world."""
        if self.session_ticks < 0:
            raise ValueError(f"session_ticks must be >= 0, got {self.session_ticks}")
        if self.starting_exploration_level < 0:
            raise ValueError(
                "starting_exploration_level must be >= 0, "
                f"got {self.starting_exploration_level}"
            )
        if self.base_travel_time <= 0:
            raise ValueError(f"base_travel_time must be > 0, got {self.base_travel_time}")
        for name in ("connection_count_weights", "travel_multiplier_weights"):
            weights = getattr(self, name)
            if len(weights) != 4:
                raise ValueError(f"{name} needs exactly 4 weights, got {len(weights)}")
            if any(w < 0 for w in weights) or not math.isclose(sum(weights), 1.0, abs_tol=1e-9):
                raise ValueError(f"{name} must be non-negative and sum to 1, got {weights}")

        for name, defaults in (
            ("location_config", DEFAULT_LOCATION_CONFIG),
            ("discovery_config", DEFAULT_DISCOVERY_CONFIG),
        ):
            unknown = sorted(set(getattr(self, name)) - set(defaults))
            if unknown:
                raise ValueError(f"Unknown {name} keys: {unknown}")

        params = {**self.location_config, **self.discovery_config}
        for key in _PROBABILITY_KEYS:
            if not 0.0 <= params[key] <= 1.0:
                raise ValueError(f"{key} must be in [0, 1], got {params[key]}")
        if params["difficulty_spread"] < 0:
            raise ValueError(f"difficulty_spread must be >= 0, got {params['difficulty_spread']}")
        if params["roll_interval_level_step"] <= 0:
            raise ValueError(
                f"roll_interval_level_step must be > 0, got {params['roll_interval_level_step']}"
            )
        for key in ("min_roll_interval", "base_roll_interval"):
            if params[key] <= 0:
                raise ValueError(f"{key} must be > 0, got {params[key]}")

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        d: dict[str, Any] = {}
        for k, v in self.__dict__.items():
            if k.startswith("_"):
                continue
            d[k] = v
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ExperimentConfig:
        """Deserialize from a dict."""
        return cls(**{k: v for k, v in d.items() if not k.startswith("_")})

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    @classmethod
    def from_json(cls, s: str) -> ExperimentConfig:
        return cls.from_dict(json.loads(s))

    def with_overrides(self, **overrides: Any) -> ExperimentConfig:
        """Return a copy with top-level parameters replaced."""
        d = self.to_dict()
        d.update(overrides)
        return ExperimentConfig.from_dict(json.loads(json.dumps(d, default=str)))

    def diff(self, other: ExperimentConfig) -> dict[str, tuple[Any, Any]]:
        """Return parameters that differ between two configs."""
        diffs: dict[str, tuple[Any, Any]] = {}
        for k in self.to_dict():
            v1 = getattr(self, k)
            v2 = getattr(other, k)
            if v1 != v2:
                diffs[k] = (v1, v2)
        return diffs
