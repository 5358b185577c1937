"""
Metrics Collector — per-action discovery statistics.

Records one ``ActionMetrics`` row per resolved action plus running
aggregates (ticks by action type, failures by code, level-up ticks, furthest
known distance).  Provides time series extraction and a JSON export for
visualization.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np

from frontier.core.config import ExperimentConfig
from frontier.core.outcomes import ActionOutcome

if TYPE_CHECKING:
    from frontier.core.engine import ExplorationEngine


@dataclass
class ActionMetrics:
    """State of the session right after one action."""

    index: int
    action_type: str
    success: bool
    failure_code: str | None
    tick_after: int
    ticks_consumed: int
    roll_count: int
    known_areas: int
    known_locations: int
    known_connections: int
    max_known_distance: int
    exploration_level: int
    total_luck_delta: int
    current_streak: int
    luck_delta: int | None = None


@dataclass
class _Totals:
    ticks_by_action: dict[str, int] = field(default_factory=dict)
    actions_by_type: dict[str, int] = field(default_factory=dict)
    discoveries_by_kind: dict[str, int] = field(
        default_factory=lambda: {"area": 0, "location": 0, "connection": 0},
    )
    failures_by_code: dict[str, int] = field(default_factory=dict)
    level_up_ticks: list[int] = field(default_factory=list)
    luck_deltas: list[int] = field(default_factory=list)


class DiscoveryMetricsCollector:
    """
    Collects per-action metrics for a single exploration session.
    """

    def __init__(self, config: ExperimentConfig):
        self.config = config
        self.metrics_history: list[ActionMetrics] = []
        self._totals = _Totals()

    def collect(self, outcome: ActionOutcome, engine: ExplorationEngine) -> ActionMetrics:
        """Record *outcome* against the engine's post-action state."""
        t = self._totals
        kind = outcome.action_type.value
        t.actions_by_type[kind] = t.actions_by_type.get(kind, 0) + 1
        t.ticks_by_action[kind] = t.ticks_by_action.get(kind, 0) + outcome.ticks_consumed

        if outcome.success:
            if outcome.discovered_area_id:
                t.discoveries_by_kind["area"] += 1
            elif outcome.discovered_location_id:
                t.discoveries_by_kind["location"] += 1
            elif outcome.discovered_connection_id:
                t.discoveries_by_kind["connection"] += 1
        elif outcome.failure_code is not None:
            code = outcome.failure_code.value
            t.failures_by_code[code] = t.failures_by_code.get(code, 0) + 1

        if outcome.level_ups:
            tick = outcome.tick_before + outcome.ticks_consumed
            t.level_up_ticks.extend(tick for _ in outcome.level_ups)
        if outcome.luck is not None:
            t.luck_deltas.append(outcome.luck.luck_delta)

        known = engine.known_areas()
        metrics = ActionMetrics(
            index=len(self.metrics_history),
            action_type=kind,
            success=outcome.success,
            failure_code=outcome.failure_code.value if outcome.failure_code else None,
            tick_after=engine.clock.current_tick,
            ticks_consumed=outcome.ticks_consumed,
            roll_count=len(outcome.rolls),
            known_areas=len(known),
            known_locations=len(engine.player.known_location_ids),
            known_connections=len(engine.player.known_connection_ids),
            max_known_distance=max((a.distance for a in known), default=0),
            exploration_level=engine.exploration_skill.level,
            total_luck_delta=engine.player.total_luck_delta,
            current_streak=engine.player.current_streak,
            luck_delta=outcome.luck.luck_delta if outcome.luck else None,
        )
        self.metrics_history.append(metrics)
        return metrics

    def get_time_series(self, field_name: str) -> list[Any]:
        """Extract a time series for a specific metric field."""
        return [getattr(m, field_name) for m in self.metrics_history]

    def summary(self) -> dict[str, Any]:
        """Aggregate statistics over everything collected so far."""
        t = self._totals
        last = self.metrics_history[-1] if self.metrics_history else None
        luck = np.array(t.luck_deltas, dtype=float)
        return {
            "actions": len(self.metrics_history),
            "actions_by_type": dict(t.actions_by_type),
            "ticks_by_action": dict(t.ticks_by_action),
            "ticks_used": sum(t.ticks_by_action.values()),
            "discoveries": dict(t.discoveries_by_kind),
            "failures_by_code": dict(t.failures_by_code),
            "level_up_ticks": list(t.level_up_ticks),
            "max_known_distance": max(self.get_time_series("max_known_distance"), default=0),
            "final_level": last.exploration_level if last else self.config.starting_exploration_level,
            "total_luck_delta": last.total_luck_delta if last else 0,
            "mean_luck_delta": float(luck.mean()) if luck.size else 0.0,
            "luck_std": float(luck.std()) if luck.size else 0.0,
        }

    def export_for_visualization(self) -> list[dict[str, Any]]:
        """Export all metrics as a list of JSON-serializable dicts."""
        return [asdict(m) for m in self.metrics_history]

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        return {
            "metrics_history": self.export_for_visualization(),
            "totals": asdict(self._totals),
        }

    @classmethod
    def from_dict(cls, config: ExperimentConfig, d: dict[str, Any]) -> DiscoveryMetricsCollector:
        collector = cls(config)
        collector.metrics_history = [ActionMetrics(**m) for m in d.get("metrics_history", [])]
        if "totals" in d:
            collector._totals = _Totals(**d["totals"])
        return collector
