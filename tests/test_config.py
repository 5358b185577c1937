"""Tests for ExperimentConfig."""

import pytest

from frontier.core.config import ExperimentConfig


class TestConfigDefaults:
    def test_default_experiment_name(self):
        c = ExperimentConfig()
        assert c.experiment_name == "default"

    def test_default_budget_and_level(self):
        c = ExperimentConfig()
        assert c.session_ticks == 1000
        assert c.starting_exploration_level == 1
        assert c.base_travel_time == 10

    def test_default_distributions(self):
        c = ExperimentConfig()
        assert c.connection_count_weights == [0.15, 0.35, 0.35, 0.15]
        assert c.travel_multiplier_weights == [0.15, 0.35, 0.35, 0.15]

    def test_default_location_chances(self):
        c = ExperimentConfig()
        assert c.location_config["mining_chance"] == 0.30
        assert c.location_config["woodcutting_chance"] == 0.30
        assert c.location_config["creature_camp_chance"] == 0.25

    def test_mutable_defaults_not_shared(self):
        a = ExperimentConfig()
        b = ExperimentConfig()
        a.discovery_config["base_rate"] = 0.5
        assert b.discovery_config["base_rate"] == 0.05


class TestValidation:
    def test_negative_ticks_rejected(self):
        with pytest.raises(ValueError):
            ExperimentConfig(session_ticks=-1)

    def test_negative_level_rejected(self):
        with pytest.raises(ValueError):
            ExperimentConfig(starting_exploration_level=-1)

    def test_zero_travel_time_rejected(self):
        with pytest.raises(ValueError):
            ExperimentConfig(base_travel_time=0)

    def test_weights_must_sum_to_one(self):
        with pytest.raises(ValueError):
            ExperimentConfig(connection_count_weights=[0.5, 0.5, 0.5, 0.5])

    def test_weights_need_four_entries(self):
        with pytest.raises(ValueError):
            ExperimentConfig(travel_multiplier_weights=[0.5, 0.5])


    def test_unknown_location_key_rejected(self):
        with pytest.raises(ValueError, match="gold_chance"):
            ExperimentConfig(location_config={"gold_chance": 0.5})

    def test_unknown_discovery_key_rejected(self):
        with pytest.raises(ValueError):
            ExperimentConfig(discovery_config={"base_rat": 0.5})

    def test_zero_level_step_rejected(self):
        with pytest.raises(ValueError):
            ExperimentConfig(discovery_config={"roll_interval_level_step": 0})

    def test_chance_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            ExperimentConfig(location_config={"mining_chance": 1.5})
        with pytest.raises(ValueError):
            ExperimentConfig(discovery_config={"non_guild_chance": -0.1})

    def test_negative_spread_rejected(self):
        with pytest.raises(ValueError):
            ExperimentConfig(location_config={"difficulty_spread": -1})


class TestPartialMappings:
    def test_location_config_completed_from_defaults(self):
        c = ExperimentConfig(location_config={"mining_chance": 0.5})
        assert c.location_config["mining_chance"] == 0.5
        assert c.location_config["woodcutting_chance"] == 0.30
        assert c.location_config["difficulty_spread"] == 3.0

    def test_discovery_config_completed_from_defaults(self):
        c = ExperimentConfig(discovery_config={"base_rate": 0.2})
        assert c.discovery_config["base_rate"] == 0.2
        assert c.discovery_config["roll_interval_level_step"] == 10

    def test_partial_config_drives_an_engine(self):
        from frontier.core.engine import ExplorationEngine
        from frontier.core.world import GatheringSkill

        engine = ExplorationEngine(ExperimentConfig(
            random_seed=4, location_config={"mining_chance": 1.0},
        ))
        engine.world.ensure_band(2)
        for area in engine.world.areas[1:]:
            assert area.locations[0].gathering_skill == GatheringSkill.MINING

    def test_partial_config_survives_roundtrip(self):
        c = ExperimentConfig(location_config={"mining_chance": 0.5})
        restored = ExperimentConfig.from_json(c.to_json())
        assert restored.location_config == c.location_config


class TestSerialization:
    def test_json_roundtrip(self):
        c = ExperimentConfig(experiment_name="x", random_seed=7, session_ticks=300)
        restored = ExperimentConfig.from_json(c.to_json())
        assert restored.to_dict() == c.to_dict()

    def test_with_overrides_copies(self):
        c = ExperimentConfig(random_seed=1)
        d = c.with_overrides(random_seed=2, session_ticks=50)
        assert d.random_seed == 2
        assert d.session_ticks == 50
        assert c.random_seed == 1
        d.location_config["mining_chance"] = 0.9
        assert c.location_config["mining_chance"] == 0.30

    def test_diff(self):
        a = ExperimentConfig()
        b = ExperimentConfig(session_ticks=10)
        assert a.diff(b) == {"session_ticks": (1000, 10)}

    def test_unknown_key_rejected(self):
        with pytest.raises(TypeError):
            ExperimentConfig.from_dict({"not_a_field": 1})
