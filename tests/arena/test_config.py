"""Unit tests for configuration models and environment-driven settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from arena.config import (
    AIParameters,
    ArenaSettings,
    DirectorConfig,
    JitterBands,
    PlacementConfig,
    replace,
)

pytestmark = pytest.mark.unit


class TestDefaults:
    def test_director_defaults(self):
        cfg = DirectorConfig()
        assert cfg.max_agents == 5
        assert cfg.spawn_interval == 10.0
        assert cfg.placement.min_player_distance == 15.0
        assert cfg.placement.min_agent_distance == 8.0
        assert cfg.placement.max_spawn_attempts == 50
        assert cfg.bounds.half_x == 25.0

    def test_jitter_bands_are_asymmetric(self):
        bands = JitterBands()
        assert bands.detection_range == bands.attack_range == bands.move_speed == 0.2
        assert bands.fire_rate == bands.patrol_radius == 0.3

    def test_keep_closing_fraction_default(self):
        assert DirectorConfig().tuning.keep_closing_fraction == 0.7


class TestFireRateClamp:
    def test_positive_rate_interval(self):
        assert AIParameters(fire_rate=4.0).fire_interval == pytest.approx(0.25)

    @pytest.mark.parametrize("rate", [0.0, -2.0])
    def test_non_positive_rate_never_fires(self, rate):
        assert AIParameters(fire_rate=rate).fire_interval is None

    @pytest.mark.parametrize("rate", [float("nan"), float("inf")])
    def test_non_finite_rate_collapses_to_zero(self, rate):
        params = AIParameters(fire_rate=rate)
        assert params.fire_rate == 0.0
        assert params.fire_interval is None


class TestValidation:
    def test_zero_attempt_budget_rejected(self):
        with pytest.raises(ValidationError):
            PlacementConfig(max_spawn_attempts=0)

    def test_negative_range_rejected(self):
        with pytest.raises(ValidationError):
            AIParameters(detection_range=-1.0)

    def test_models_are_frozen(self):
        cfg = DirectorConfig()
        with pytest.raises(ValidationError):
            cfg.max_agents = 9

    def test_replace_revalidates(self):
        cfg = DirectorConfig()
        assert replace(cfg, max_agents=9).max_agents == 9
        assert cfg.max_agents == 5
        with pytest.raises(ValidationError):
            replace(cfg, spawn_interval=0.0)


class TestArenaSettings:
    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("ARENA_MAX_AGENTS", "7")
        monkeypatch.setenv("ARENA_AI_FIRE_RATE", "2.5")
        monkeypatch.setenv("ARENA_MAP_SIZE_X", "80")
        cfg = ArenaSettings().to_director_config()
        assert cfg.max_agents == 7
        assert cfg.ai.fire_rate == 2.5
        assert cfg.bounds.half_x == 40.0

    def test_defaults_match_director_defaults(self):
        assert ArenaSettings().to_director_config() == DirectorConfig()
