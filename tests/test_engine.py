"""Integration tests for ExplorationEngine."""

import pytest

from frontier.core.config import ExperimentConfig
from frontier.core.engine import ExplorationEngine
from frontier.core.outcomes import ActionType, FailureCode
from frontier.core.world import TOWN_ID


def _play(engine, steps=30):
    """Alternate survey and explore, travelling whenever an area is known."""
    outcomes = []
    for i in range(steps):
        if engine.session_over:
            break
        if i % 3 == 0:
            outcomes.append(engine.survey())
        elif i % 3 == 1:
            outcomes.append(engine.explore())
        else:
            targets = [a for a in engine.reachable_areas() if a != engine.player.current_area_id]
            if targets:
                outcomes.append(engine.travel(targets[0]))
            else:
                outcomes.append(engine.survey())
    return outcomes


class TestConstruction:
    def test_starts_in_town(self):
        engine = ExplorationEngine(ExperimentConfig(random_seed=42))
        assert engine.player.current_area_id == TOWN_ID
        assert [a.id for a in engine.known_areas()] == [TOWN_ID]
        assert engine.clock.current_tick == 0
        assert engine.clock.session_remaining_ticks == 1000
        assert engine.exploration_skill.level == 1

    def test_missing_seed_is_recorded(self):
        engine = ExplorationEngine(ExperimentConfig())
        assert engine.seed is not None
        assert engine.config.random_seed == engine.seed

        replay = ExplorationEngine(ExperimentConfig(random_seed=engine.seed))
        assert [o.to_dict() for o in _play(engine, 10)] == [o.to_dict() for o in _play(replay, 10)]

    def test_invalid_config_rejected(self):
        with pytest.raises(ValueError):
            ExplorationEngine(ExperimentConfig(session_ticks=-5))


class TestDeterminism:
    def test_same_seed_same_outcomes(self):
        a = ExplorationEngine(ExperimentConfig(random_seed=42))
        b = ExplorationEngine(ExperimentConfig(random_seed=42))
        assert [o.to_dict() for o in _play(a)] == [o.to_dict() for o in _play(b)]
        assert a.to_dict() == b.to_dict()

    def test_different_seeds_diverge(self):
        a = ExplorationEngine(ExperimentConfig(random_seed=1))
        b = ExplorationEngine(ExperimentConfig(random_seed=2))
        assert [o.to_dict() for o in _play(a)] != [o.to_dict() for o in _play(b)]


class TestInvariants:
    def test_clock_accounting(self):
        engine = ExplorationEngine(ExperimentConfig(random_seed=11, session_ticks=400))
        outcomes = _play(engine, 60)
        assert sum(o.ticks_consumed for o in outcomes) == engine.clock.current_tick
        assert engine.clock.current_tick + engine.clock.session_remaining_ticks == 400

    def test_knowledge_only_grows(self):
        engine = ExplorationEngine(ExperimentConfig(random_seed=13))
        seen = set(engine.player.known_area_ids)
        for _ in range(20):
            _play(engine, 3)
            now = set(engine.player.known_area_ids)
            assert seen <= now
            seen = now

    def test_known_locations_belong_to_known_areas(self):
        engine = ExplorationEngine(ExperimentConfig(random_seed=17, starting_exploration_level=20))
        _play(engine, 80)
        known = set(engine.player.known_area_ids)
        assert all(loc.area_id in known for loc in engine.known_locations())

    def test_failures_cost_nothing(self):
        engine = ExplorationEngine(ExperimentConfig(random_seed=3, starting_exploration_level=0))
        outcome = engine.survey()
        assert outcome.failure_code == FailureCode.NOT_ENROLLED
        assert engine.clock.current_tick == 0
        assert len(engine.history) == 1


class TestActions:
    def test_enroll_unlocks_discovery(self):
        engine = ExplorationEngine(ExperimentConfig(random_seed=3, starting_exploration_level=0))
        assert engine.enroll().level == 1
        assert engine.survey().failure_code != FailureCode.NOT_ENROLLED

    def test_execute_accepts_dicts(self):
        engine = ExplorationEngine(ExperimentConfig(random_seed=5))
        assert engine.execute({"type": "survey"}).action_type == ActionType.SURVEY
        assert engine.execute({"type": "EXPLORE"}).action_type == ActionType.EXPLORE
        outcome = engine.execute({"type": "travel", "destination_area_id": TOWN_ID})
        assert outcome.failure_code == FailureCode.ALREADY_AT_DESTINATION

    def test_execute_rejects_unknown(self):
        engine = ExplorationEngine(ExperimentConfig(random_seed=5))
        with pytest.raises(ValueError):
            engine.execute({"type": "dig"})
        with pytest.raises(ValueError):
            engine.execute({"type": "travel"})

    def test_world_final_before_reachable(self):
        engine = ExplorationEngine(ExperimentConfig(random_seed=21, starting_exploration_level=30))
        assert engine.world.rolled_bands == [0, 1, 2]
        while not engine.session_over:
            outcome = engine.survey()
            if outcome.success:
                break
        target = engine.world.get_area(outcome.discovered_area_id)
        assert target.generated
        assert target.distance + 1 in engine.world.rolled_bands
        assert engine.travel(target.id).success
        assert engine.player.current_area_id == target.id

    def test_fully_explored_area_stays_fully_explored(self):
        engine = ExplorationEngine(ExperimentConfig(
            random_seed=21, starting_exploration_level=30, session_ticks=20000,
        ))
        outcome = engine.survey()
        assert outcome.success
        first = outcome.discovered_area_id
        assert engine.travel(first).success
        for _ in range(50):
            if engine.is_area_fully_explored(first):
                break
            engine.explore()
        assert engine.is_area_fully_explored(first)
        edges = {c.id for c in engine.world.connections_touching(first)}

        for _ in range(20):
            engine.survey()
            targets = [a for a in engine.reachable_areas() if a != engine.player.current_area_id]
            if targets:
                engine.travel(targets[-1])

        assert engine.is_area_fully_explored(first)
        assert {c.id for c in engine.world.connections_touching(first)} == edges

    def test_world_independent_of_discovery_history(self):
        played = ExplorationEngine(ExperimentConfig(random_seed=13, starting_exploration_level=5))
        _play(played, steps=40)
        idle = ExplorationEngine(ExperimentConfig(random_seed=13, starting_exploration_level=5))
        idle.draws.draw()

        played.world.ensure_band(8)
        idle.world.ensure_band(8)
        assert played.world.to_dict() == idle.world.to_dict()

    def test_snapshot(self):
        engine = ExplorationEngine(ExperimentConfig(random_seed=9))
        engine.survey()
        snap = engine.snapshot()
        assert snap["seed"] == 9
        assert snap["actions_taken"] == 1
        assert snap["current_tick"] == engine.clock.current_tick


class TestSerialization:
    def test_restore_continues_identically(self):
        original = ExplorationEngine(ExperimentConfig(random_seed=77))
        _play(original, 12)

        restored = ExplorationEngine.from_dict(original.to_dict())
        assert restored.to_dict() == original.to_dict()

        tail_a = [o.to_dict() for o in _play(original, 15)]
        tail_b = [o.to_dict() for o in _play(restored, 15)]
        assert tail_a == tail_b

    def test_restored_draw_counter(self):
        engine = ExplorationEngine(ExperimentConfig(random_seed=4))
        _play(engine, 5)
        restored = ExplorationEngine.from_dict(engine.to_dict())
        assert restored.draws.counter == engine.draws.counter
