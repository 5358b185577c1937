"""Tests for ExperimentRunner."""

import pytest

from frontier.core.config import ExperimentConfig
from frontier.experiment.policies import survey_first_policy
from frontier.experiment.presets import non_guild
from frontier.experiment.runner import BatchResult, ExperimentRunner, RunResult

STOP_REASONS = {"session_over", "policy_done", "max_actions", "time_exhausted", "session_ended", "not_enrolled"}


def _config(**overrides):
    overrides.setdefault("random_seed", 42)
    overrides.setdefault("session_ticks", 200)
    return ExperimentConfig(**overrides)


class TestRunExperiment:
    def test_run_single_experiment(self):
        result = ExperimentRunner().run_experiment(_config())
        assert isinstance(result, RunResult)
        assert result.stop_reason in STOP_REASONS
        assert 0 < result.ticks_used <= 200
        assert result.known_areas >= 1
        assert result.summary["actions"] == len(result.outcomes)

    def test_deterministic(self):
        runner = ExperimentRunner()
        a = runner.run_experiment(_config())
        b = runner.run_experiment(_config())
        assert [o.to_dict() for o in a.outcomes] == [o.to_dict() for o in b.outcomes]

    def test_max_actions(self):
        result = ExperimentRunner(max_actions=3).run_experiment(_config())
        assert len(result.outcomes) <= 3

    def test_non_guild_stops_without_enrolling(self):
        result = ExperimentRunner().run_experiment(non_guild())
        assert result.stop_reason == "not_enrolled"
        assert result.ticks_used == 0

    def test_enroll_flag(self):
        result = ExperimentRunner().run_experiment(non_guild().with_overrides(session_ticks=100), enroll=True)
        assert result.final_level >= 1
        assert result.ticks_used > 0

    def test_alternate_policy(self):
        result = ExperimentRunner().run_experiment(_config(), policy=survey_first_policy)
        assert result.outcomes[0].action_type.value == "survey"


class TestMultiSeed:
    def test_results_in_seed_order(self):
        batch = ExperimentRunner().run_multi_seed(_config(), seeds=[1, 2, 3], max_workers=2)
        assert isinstance(batch, BatchResult)
        assert [r.seed for r in batch.runs] == [1, 2, 3]
        assert batch.runs[0].config.experiment_name == "default_seed1"

    def test_matches_sequential_runs(self):
        runner = ExperimentRunner()
        batch = runner.run_multi_seed(_config(), seeds=[5, 6])
        single = runner.run_experiment(_config(random_seed=6))
        assert batch.runs[1].ticks_used == single.ticks_used
        assert batch.runs[1].known_areas == single.known_areas

    def test_aggregates(self):
        batch = ExperimentRunner().run_multi_seed(_config(), seeds=[1, 2, 3, 4])
        stats = batch.aggregates["known_areas"]
        assert stats["min"] <= stats["p50"] <= stats["p90"] <= stats["max"]
        assert stats["mean"] == pytest.approx(sum(r.known_areas for r in batch.runs) / 4)


class TestSweep:
    def test_parameter_sweep(self):
        results = ExperimentRunner().run_parameter_sweep(
            _config(), "starting_exploration_level", [1, 10], seeds=[1, 2],
        )
        assert set(results) == {"starting_exploration_level=1", "starting_exploration_level=10"}
        assert all(len(b.runs) == 2 for b in results.values())
        assert all(r.final_level >= 10 for r in results["starting_exploration_level=10"].runs)

    def test_unknown_parameter(self):
        with pytest.raises(ValueError):
            ExperimentRunner().run_parameter_sweep(_config(), "gravity", [1])

    def test_compare_experiments(self):
        results = ExperimentRunner().compare_experiments(
            {"short": _config(session_ticks=50), "long": _config(session_ticks=300)},
            seeds=[1, 2],
        )
        assert results["short"].aggregates["ticks_used"]["max"] <= 50
