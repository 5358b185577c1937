"""Tests for experiment presets and exploration policies."""

import pytest

from frontier.core.config import ExperimentConfig
from frontier.core.engine import ExplorationEngine
from frontier.core.outcomes import (
    ActionOutcome,
    ActionType,
    ExploreAction,
    FailureCode,
    SurveyAction,
    TravelAction,
)
from frontier.experiment.policies import (
    POLICIES,
    PolicyMemory,
    frontier_policy,
    get_policy,
    survey_first_policy,
)
from frontier.experiment.presets import PRESETS, get_preset, list_presets


class TestPresets:
    def test_list_presets(self):
        names = list_presets()
        assert names == list(PRESETS.keys())
        assert "baseline" in names
        assert "non_guild" in names

    def test_all_presets_return_config(self):
        for name, factory in PRESETS.items():
            config = factory()
            assert isinstance(config, ExperimentConfig), f"{name} failed"
            assert config.experiment_name == name

    def test_presets_drive_an_engine(self):
        for name in list_presets():
            engine = ExplorationEngine(get_preset(name))
            engine.survey()
            assert len(engine.history) == 1

    def test_non_guild_level_zero(self):
        assert get_preset("non_guild").starting_exploration_level == 0

    def test_unknown_preset(self):
        with pytest.raises(KeyError):
            get_preset("nonexistent")


def _outcome(**kwargs):
    kwargs.setdefault("action_type", ActionType.EXPLORE)
    kwargs.setdefault("tick_before", 0)
    kwargs.setdefault("success", False)
    return ActionOutcome(**kwargs)


class TestPolicyMemory:
    def test_fully_explored_and_surveyed_out(self):
        memory = PolicyMemory()
        memory.observe("town", _outcome(failure_code=FailureCode.AREA_FULLY_EXPLORED, area_fully_explored=True))
        assert not memory.finished("town")
        memory.observe("town", _outcome(action_type=ActionType.SURVEY, failure_code=FailureCode.NO_UNDISCOVERED_AREAS))
        assert memory.finished("town")

    def test_successful_explore_can_finish_area(self):
        memory = PolicyMemory()
        memory.observe("a", _outcome(success=True, discovered_location_id="a-loc-0", area_fully_explored=True))
        assert "a" in memory.fully_explored

    def test_unaffordable_cleared_after_move(self):
        memory = PolicyMemory()
        memory.observe("town", _outcome(
            action_type=ActionType.TRAVEL, failure_code=FailureCode.INSUFFICIENT_TIME, destination_area_id="far",
        ))
        assert memory.unaffordable == {"far"}
        memory.observe("town", _outcome(action_type=ActionType.TRAVEL, success=True, destination_area_id="near"))
        assert memory.unaffordable == set()


class TestPolicies:
    def _engine(self):
        return ExplorationEngine(ExperimentConfig(random_seed=42))

    def test_frontier_explores_first(self):
        engine = self._engine()
        memory = PolicyMemory()
        assert isinstance(frontier_policy(engine, memory), ExploreAction)
        memory.fully_explored.add("town")
        assert isinstance(frontier_policy(engine, memory), SurveyAction)

    def test_survey_first(self):
        engine = self._engine()
        memory = PolicyMemory()
        assert isinstance(survey_first_policy(engine, memory), SurveyAction)
        memory.surveyed_out.add("town")
        assert isinstance(survey_first_policy(engine, memory), ExploreAction)

    def test_travels_to_nearest_unfinished(self):
        engine = self._engine()
        first = engine.world.connections_touching("town")[0]
        engine.player.learn_area(first.to_area_id)
        engine.player.learn_connection(first.id)
        memory = PolicyMemory(fully_explored={"town"}, surveyed_out={"town"})
        action = frontier_policy(engine, memory)
        assert action == TravelAction(destination_area_id=first.to_area_id)

    def test_done_when_everything_finished(self):
        engine = self._engine()
        memory = PolicyMemory(fully_explored={"town"}, surveyed_out={"town"})
        assert frontier_policy(engine, memory) is None

    def test_registry(self):
        assert get_policy("frontier") is frontier_policy
        assert set(POLICIES) == {"frontier", "survey_first"}
        with pytest.raises(KeyError):
            get_policy("random_walk")
