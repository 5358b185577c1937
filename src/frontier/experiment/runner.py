"""
Experiment Runner — batch Monte-Carlo execution and parameter sweeps.

Drives exploration engines with a policy until the session ends, then
aggregates results across seeds.  Engines share no state, so multi-seed
batches run on a thread pool.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from frontier.core.config import ExperimentConfig
from frontier.core.engine import ExplorationEngine
from frontier.core.outcomes import ActionOutcome, FailureCode
from frontier.experiment.policies import Policy, PolicyMemory, frontier_policy
from frontier.metrics.collector import DiscoveryMetricsCollector

logger = logging.getLogger(__name__)

# Outcomes after which no further action can succeed.
_TERMINAL_FAILURES = frozenset({
    FailureCode.NOT_ENROLLED,
    FailureCode.SESSION_ENDED,
    FailureCode.TIME_EXHAUSTED,
})


@dataclass
class RunResult:
    """Result of a single exploration run."""
    config: ExperimentConfig
    seed: int | str
    outcomes: list[ActionOutcome]
    summary: dict[str, Any]
    known_areas: int
    known_locations: int
    known_connections: int
    max_distance: int
    final_level: int
    total_luck_delta: int
    ticks_used: int
    stop_reason: str


@dataclass
class BatchResult:
    """Aggregates over many runs of one configuration."""
    config: ExperimentConfig
    runs: list[RunResult]
    aggregates: dict[str, dict[str, float]] = field(default_factory=dict)


def _describe(values: list[float]) -> dict[str, float]:
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return {"mean": 0.0, "std": 0.0, "min": 0.0, "p50": 0.0, "p90": 0.0, "max": 0.0}
    return {
        "mean": float(arr.mean()),
        "std": float(arr.std()),
        "min": float(arr.min()),
        "p50": float(np.percentile(arr, 50)),
        "p90": float(np.percentile(arr, 90)),
        "max": float(arr.max()),
    }


class ExperimentRunner:
    """
    Run, compare, and sweep exploration experiments.
    """

    def __init__(self, max_actions: int = 10_000):
        self.max_actions = max_actions

    def run_experiment(
        self,
        config: ExperimentConfig,
        policy: Policy = frontier_policy,
        enroll: bool = False,
    ) -> RunResult:
        """Play one session to the end and return results.

        With ``enroll`` set, a player outside the guild joins before acting.
        """
        engine = ExplorationEngine(config)
        if enroll:
            engine.enroll()
        collector = DiscoveryMetricsCollector(engine.config)
        memory = PolicyMemory()
        stop_reason = "max_actions"

        for _ in range(self.max_actions):
            if engine.session_over:
                stop_reason = "session_over"
                break
            action = policy(engine, memory)
            if action is None:
                stop_reason = "policy_done"
                break
            area_id = engine.player.current_area_id
            outcome = engine.execute(action)
            memory.observe(area_id, outcome)
            collector.collect(outcome, engine)
            if outcome.failure_code in _TERMINAL_FAILURES:
                stop_reason = outcome.failure_code.value
                break

        summary = collector.summary()
        logger.debug(
            "Run %s seed=%s stopped (%s) after %d actions",
            config.experiment_name, engine.seed, stop_reason, len(engine.history),
        )
        return RunResult(
            config=engine.config,
            seed=engine.seed,
            outcomes=list(engine.history),
            summary=summary,
            known_areas=len(engine.player.known_area_ids),
            known_locations=len(engine.player.known_location_ids),
            known_connections=len(engine.player.known_connection_ids),
            max_distance=max((a.distance for a in engine.known_areas()), default=0),
            final_level=engine.exploration_skill.level,
            total_luck_delta=engine.player.total_luck_delta,
            ticks_used=engine.clock.current_tick,
            stop_reason=stop_reason,
        )

    def run_multi_seed(
        self,
        config: ExperimentConfig,
        seeds: list[int | str],
        policy: Policy = frontier_policy,
        max_workers: int | None = None,
        enroll: bool = False,
    ) -> BatchResult:
        """
        Run the same configuration with multiple seeds in parallel.

        Results come back in seed order regardless of completion order.
        """
        configs = [
            config.with_overrides(
                random_seed=seed,
                experiment_name=f"{config.experiment_name}_seed{seed}",
            )
            for seed in seeds
        ]
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            runs = list(pool.map(
                lambda c: self.run_experiment(c, policy, enroll), configs,
            ))
        return BatchResult(config=config, runs=runs, aggregates=self.aggregate(runs))

    @staticmethod
    def aggregate(runs: list[RunResult]) -> dict[str, dict[str, float]]:
        return {
            "ticks_used": _describe([r.ticks_used for r in runs]),
            "known_areas": _describe([r.known_areas for r in runs]),
            "known_locations": _describe([r.known_locations for r in runs]),
            "max_distance": _describe([r.max_distance for r in runs]),
            "final_level": _describe([r.final_level for r in runs]),
            "total_luck_delta": _describe([r.total_luck_delta for r in runs]),
        }

    def run_parameter_sweep(
        self,
        base_config: ExperimentConfig,
        param_name: str,
        values: list[Any],
        seeds: list[int | str] | None = None,
        policy: Policy = frontier_policy,
    ) -> dict[str, BatchResult]:
        """
        Sweep a single top-level parameter across multiple values.

        Args:
            base_config: Base configuration to modify
            param_name: Attribute on ExperimentConfig to vary
            values: Values to test
            seeds: Seeds per value (defaults to the base config's seed)

        Returns:
            Dict mapping ``"{param}={value}"`` -> BatchResult
        """
        if param_name not in base_config.to_dict():
            raise ValueError(f"Unknown config parameter: '{param_name}'")
        seeds = seeds or [base_config.random_seed if base_config.random_seed is not None else 0]

        results: dict[str, BatchResult] = {}
        for val in values:
            config = base_config.with_overrides(
                **{param_name: val, "experiment_name": f"sweep_{param_name}={val}"},
            )
            results[f"{param_name}={val}"] = self.run_multi_seed(config, seeds, policy)
        return results

    def compare_experiments(
        self,
        configs: dict[str, ExperimentConfig],
        seeds: list[int | str],
        policy: Policy = frontier_policy,
    ) -> dict[str, BatchResult]:
        """Run several configurations over the same seeds."""
        return {name: self.run_multi_seed(cfg, seeds, policy) for name, cfg in configs.items()}
