"""
Experiment presets — pre-configured exploration scenarios.

Each preset returns an ExperimentConfig tuned to test one question about
discovery pacing.
"""

from __future__ import annotations

from frontier.core.config import ExperimentConfig


def baseline() -> ExperimentConfig:
    """Default parameters: a fresh guild member with a full session."""
    return ExperimentConfig(
        experiment_name="baseline",
        random_seed=42,
        session_ticks=1000,
    )


def non_guild() -> ExperimentConfig:
    """A player who never joined the guild (flat 1% per roll)."""
    return ExperimentConfig(
        experiment_name="non_guild",
        random_seed=42,
        session_ticks=1000,
        starting_exploration_level=0,
    )


def veteran_explorer() -> ExperimentConfig:
    """Level 20 explorer: faster rolls, much higher chance."""
    return ExperimentConfig(
        experiment_name="veteran_explorer",
        random_seed=42,
        session_ticks=1000,
        starting_exploration_level=20,
    )


def short_session() -> ExperimentConfig:
    """A 120-tick session; most runs end mid-roll."""
    return ExperimentConfig(
        experiment_name="short_session",
        random_seed=42,
        session_ticks=120,
    )


def dense_world() -> ExperimentConfig:
    """Connection counts skewed towards 3 and short travel multipliers."""
    return ExperimentConfig(
        experiment_name="dense_world",
        random_seed=42,
        session_ticks=1000,
        connection_count_weights=[0.05, 0.15, 0.30, 0.50],
        travel_multiplier_weights=[0.50, 0.30, 0.15, 0.05],
        location_config={
            "mining_chance": 0.60,
            "woodcutting_chance": 0.60,
            "creature_camp_chance": 0.50,
            "difficulty_spread": 3.0,
        },
    )


# Registry of all presets
PRESETS: dict[str, callable] = {
    "baseline": baseline,
    "non_guild": non_guild,
    "veteran_explorer": veteran_explorer,
    "short_session": short_session,
    "dense_world": dense_world,
}


def get_preset(name: str) -> ExperimentConfig:
    """Get a preset config by name."""
    if name not in PRESETS:
        raise KeyError(f"Unknown preset: '{name}'. Available: {list(PRESETS.keys())}")
    return PRESETS[name]()


def list_presets() -> list[str]:
    """Return list of available preset names."""
    return list(PRESETS.keys())
