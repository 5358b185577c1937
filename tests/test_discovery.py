"""Tests for Survey and Explore resolution."""

import pytest

from frontier.core.discovery import DiscoveryResolver
from frontier.core.outcomes import ActionType, FailureCode
from frontier.core.rng import DrawSource
from frontier.core.skills import EXPLORATION, SkillState
from frontier.core.state import PlayerExplorationState, SessionClock
from frontier.core.world import TOWN_ID, WorldGraph, world_draws

HIT = 0.0
MISS = 0.99


def _make_resolver(draws, level=1, remaining=1000, seed=7):
    world = WorldGraph(world_draws(seed))
    world.initialize()
    player = PlayerExplorationState.starting_at(TOWN_ID)
    clock = SessionClock(0, remaining)
    skills = {EXPLORATION: SkillState(level, 0)}
    return DiscoveryResolver(world, player, clock, skills, draws)


class TestPreconditions:
    def test_not_enrolled(self, scripted_draws):
        r = _make_resolver(scripted_draws([HIT]), level=0)
        for outcome in (r.survey(), r.explore()):
            assert not outcome.success
            assert outcome.failure_code == FailureCode.NOT_ENROLLED
            assert outcome.ticks_consumed == 0
            assert outcome.rolls == []
        assert r.clock.current_tick == 0

    def test_session_ended(self, scripted_draws):
        r = _make_resolver(scripted_draws([HIT]), remaining=0)
        assert r.survey().failure_code == FailureCode.SESSION_ENDED
        assert r.explore().failure_code == FailureCode.SESSION_ENDED

    def test_not_enrolled_checked_before_session_end(self, scripted_draws):
        r = _make_resolver(scripted_draws([HIT]), level=0, remaining=0)
        assert r.survey().failure_code == FailureCode.NOT_ENROLLED

    def test_no_undiscovered_areas(self, scripted_draws):
        r = _make_resolver(scripted_draws([HIT]))
        for area in r.world.areas_at_distance(1):
            r.player.learn_area(area.id)
        outcome = r.survey()
        assert outcome.failure_code == FailureCode.NO_UNDISCOVERED_AREAS
        assert outcome.ticks_consumed == 0

    def test_area_fully_explored(self, scripted_draws):
        r = _make_resolver(scripted_draws([HIT]))
        for conn in r.world.connections_touching(TOWN_ID):
            r.player.learn_connection(conn.reverse_id)
        outcome = r.explore()
        assert outcome.failure_code == FailureCode.AREA_FULLY_EXPLORED
        assert outcome.area_fully_explored is True
        assert outcome.ticks_consumed == 0


class TestSurvey:
    def test_first_roll_success(self, scripted_draws):
        r = _make_resolver(scripted_draws([HIT]))
        outcome = r.survey()

        assert outcome.success
        assert outcome.action_type == ActionType.SURVEY
        assert outcome.ticks_consumed == 2
        assert [roll.label for roll in outcome.rolls] == ["survey_roll_2"]
        # pick index 0: the first town edge
        first = r.world.connections_touching(TOWN_ID)[0]
        assert outcome.discovered_area_id == first.to_area_id
        assert outcome.discovered_connection_id == first.id
        assert r.player.knows_area(first.to_area_id)
        assert r.player.knows_connection(first.id)

    def test_xp_and_luck(self, scripted_draws):
        r = _make_resolver(scripted_draws([HIT]))
        outcome = r.survey()
        # town: distance 0, chance 0.10, interval 2 -> expected 20 ticks
        assert outcome.xp_gained == 2
        assert outcome.luck.expected_ticks == 20
        assert outcome.luck.actual_ticks == 2
        assert outcome.luck.luck_delta == 18
        assert outcome.luck.current_streak == 1
        assert r.player.total_luck_delta == 18

    def test_unlucky_discovery_with_level_ups(self, scripted_draws):
        r = _make_resolver(scripted_draws([MISS] * 11 + [HIT, HIT]))
        outcome = r.survey()
        assert outcome.success
        assert outcome.ticks_consumed == 24
        assert len(outcome.rolls) == 12
        assert outcome.luck.luck_delta == -4
        assert outcome.luck.current_streak == -1
        assert outcome.xp_gained == 24
        assert [(u.from_level, u.to_level) for u in outcome.level_ups] == [(1, 2), (2, 3)]
        assert r.skills[EXPLORATION] == SkillState(3, 11)

    def test_streak_flips_on_sign_change(self, scripted_draws):
        r = _make_resolver(scripted_draws([MISS] * 11 + [HIT, HIT]))
        first = r.survey()
        assert first.luck.current_streak == -1
        second = r.survey()
        assert second.luck.luck_delta > 0
        assert second.luck.current_streak == 1
        assert r.player.total_luck_delta == first.luck.luck_delta + second.luck.luck_delta

    def test_time_exhausted(self, scripted_draws):
        r = _make_resolver(scripted_draws([HIT]), remaining=1)
        outcome = r.survey()
        assert not outcome.success
        assert outcome.failure_code == FailureCode.TIME_EXHAUSTED
        assert outcome.ticks_consumed == 1
        assert outcome.rolls == []
        assert outcome.xp_gained == 0
        assert r.clock.session_remaining_ticks == 0
        assert r.player.total_luck_delta == 0
        assert r.player.known_area_ids == [TOWN_ID]

    def test_fractional_interval_accounting(self, scripted_draws):
        # level 10 -> 1.9 ticks per roll: 1 tick, then 2 ticks
        r = _make_resolver(scripted_draws([MISS]), level=10, remaining=3)
        outcome = r.survey()
        assert outcome.failure_code == FailureCode.TIME_EXHAUSTED
        assert outcome.ticks_consumed == 3
        assert [roll.label for roll in outcome.rolls] == ["survey_roll_1", "survey_roll_3"]

    def test_never_exceeds_budget(self):
        for remaining in range(1, 30):
            r = _make_resolver(DrawSource(remaining), remaining=remaining)
            outcome = r.survey()
            assert 0 < outcome.ticks_consumed <= remaining
            assert r.clock.session_remaining_ticks >= 0

    def test_roll_audit_counters_increase(self):
        r = _make_resolver(DrawSource(3))
        outcome = r.survey()
        counters = [roll.rng_counter for roll in outcome.rolls]
        assert counters == sorted(counters)
        assert all(roll.probability == pytest.approx(0.10) for roll in outcome.rolls)


class TestExplore:
    def test_discovers_connection_only(self, scripted_draws):
        r = _make_resolver(scripted_draws([HIT]))
        outcome = r.explore()
        assert outcome.success
        assert outcome.action_type == ActionType.EXPLORE
        assert outcome.discovered_connection_id is not None
        assert outcome.discovered_location_id is None
        assert outcome.discovered_area_id is None
        # the far end stays unknown
        far = r.world.connection_by_id(outcome.discovered_connection_id).to_area_id
        assert not r.player.knows_area(far)
        assert outcome.area_fully_explored is False
        assert [roll.label for roll in outcome.rolls] == ["explore_roll_2"]

    def test_locations_offered_first(self, scripted_draws):
        r = _make_resolver(scripted_draws([HIT]))
        target = next(a for a in r.world.areas_at_distance(1) if a.locations)
        r.player.learn_area(target.id)
        r.player.current_area_id = target.id
        outcome = r.explore()
        assert outcome.discovered_location_id == target.locations[0].id

    def test_reports_fully_explored_after_last_find(self, scripted_draws):
        r = _make_resolver(scripted_draws([HIT]))
        town_edges = r.world.connections_touching(TOWN_ID)
        for conn in town_edges[1:]:
            r.player.learn_connection(conn.id)
        outcome = r.explore()
        assert outcome.discovered_connection_id == town_edges[0].id
        assert outcome.area_fully_explored is True

    def test_knowledge_never_shrinks(self):
        r = _make_resolver(DrawSource(21), level=5, remaining=5000)
        previous = (set(), set(), set())
        for i in range(40):
            r.survey() if i % 2 else r.explore()
            current = (
                set(r.player.known_area_ids),
                set(r.player.known_location_ids),
                set(r.player.known_connection_ids),
            )
            for before, after in zip(previous, current):
                assert before <= after
            previous = current
