"""Tests for movement_engine.py"""

import math
import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.services.game_state import Agent, Position, RoundPhase, Side, ENTRY_FRAGGER
from app.services.movement_engine import MovementEngine


def make_agent(x=60.0, y=180.0, side=Side.T, role=ENTRY_FRAGGER, agent_id="t-entry"):
    return Agent(id=agent_id, name="Entry", side=side, role=role, position=Position(x, y))


@pytest.fixture
def engine():
    return MovementEngine()


class TestPaths:
    """Tests for path interpolation."""

    def test_path_shape(self):
        """Ten points ending exactly on the target."""
        points = MovementEngine.calculate_path(Position(0, 0), Position(100, 50))
        assert points.shape == (10, 2)
        assert tuple(points[-1]) == (100.0, 50.0)
        assert tuple(points[0]) == pytest.approx((10.0, 5.0))

    def test_zero_length_path(self):
        """Start equal to end gives points on the start."""
        points = MovementEngine.calculate_path(Position(5, 5), Position(5, 5))
        assert all(tuple(p) == (5.0, 5.0) for p in points)


class TestMovement:
    """Tests for position updates."""

    def test_moves_speed_per_second(self, engine):
        """One simulated second covers 25 units toward long doors."""
        agent = make_agent()
        engine.update_positions([agent], RoundPhase.LIVE, 1.0, "default")
        moved = agent.position.distance_to(Position(60, 180))
        assert moved == pytest.approx(25.0)
        # Still on the straight line to the target
        assert agent.position.distance_to(Position(85, 80)) == pytest.approx(math.hypot(25, 100) - 25.0)

    def test_never_overshoots(self, engine):
        """Long steps stop exactly on the target."""
        agent = make_agent()
        engine.update_positions([agent], RoundPhase.LIVE, 10.0, "default")
        assert (agent.position.x, agent.position.y) == (85.0, 80.0)
        assert engine.get_path(agent.id).finished

    def test_strategy_speed_multiplier(self, engine):
        """Rush B moves at 1.5x speed."""
        agent = make_agent(x=0.0, y=0.0)
        engine.update_positions([agent], RoundPhase.LIVE, 1.0, "rush_b")
        assert agent.position.distance_to(Position(0, 0)) == pytest.approx(37.5)

    def test_zero_delta_does_not_move(self, engine):
        agent = make_agent()
        engine.update_positions([agent], RoundPhase.LIVE, 0.0, "default")
        assert (agent.position.x, agent.position.y) == (60.0, 180.0)

    def test_dead_agents_do_not_move(self, engine):
        """Dead agents are skipped and get no path."""
        agent = make_agent()
        agent.is_alive = False
        engine.update_positions([agent], RoundPhase.LIVE, 1.0, "default")
        assert (agent.position.x, agent.position.y) == (60.0, 180.0)
        assert engine.get_path(agent.id) is None

    def test_mid_round_call_target(self, engine):
        """An active call overrides the strategy target."""
        agent = make_agent()
        engine.update_positions([agent], RoundPhase.LIVE, 1.0, "default", current_call="execute_a")
        assert (engine.get_path(agent.id).target.x, engine.get_path(agent.id).target.y) == (220.0, 80.0)

    def test_hold_positions_stays_put(self, engine):
        """Hold positions targets the current spot."""
        agent = make_agent(x=100.0, y=100.0)
        engine.update_positions([agent], RoundPhase.LIVE, 1.0, "default", current_call="hold_positions")
        assert (agent.position.x, agent.position.y) == (100.0, 100.0)


class TestPathCache:
    """Tests for cached path invalidation."""

    def test_cache_is_kept_until_invalidated(self, engine):
        """A phase change alone does not re-target."""
        agent = make_agent()
        engine.update_positions([agent], RoundPhase.FREEZETIME, 1.0, "default")
        assert (engine.get_path(agent.id).target.x, engine.get_path(agent.id).target.y) == (60.0, 180.0)

        engine.update_positions([agent], RoundPhase.LIVE, 1.0, "default")
        assert (engine.get_path(agent.id).target.x, engine.get_path(agent.id).target.y) == (60.0, 180.0)

        engine.invalidate([agent.id])
        engine.update_positions([agent], RoundPhase.LIVE, 1.0, "default")
        assert (engine.get_path(agent.id).target.x, engine.get_path(agent.id).target.y) == (85.0, 80.0)

    def test_invalidate_all(self, engine):
        agents = [make_agent(agent_id="a"), make_agent(agent_id="b")]
        engine.update_positions(agents, RoundPhase.LIVE, 1.0, "default")
        assert sorted(engine.cached_agent_ids) == ["a", "b"]
        engine.invalidate()
        assert engine.cached_agent_ids == []

    def test_remove_agent(self, engine):
        agents = [make_agent(agent_id="a"), make_agent(agent_id="b")]
        engine.update_positions(agents, RoundPhase.LIVE, 1.0, "default")
        engine.remove_agent("a")
        assert engine.cached_agent_ids == ["b"]
        engine.clear()
        assert engine.cached_agent_ids == []


class TestPositioningStats:
    """Tests for positioning score and adherence."""

    def test_on_target_scores_one(self, engine):
        """An agent on its target scores 1 and adherence averages toward it."""
        agent = make_agent(x=85.0, y=80.0)
        engine.update_positions([agent], RoundPhase.LIVE, 1.0, "default")
        assert agent.strategy_stats.positioning_score == 1.0
        assert agent.strategy_stats.strategy_adherence == 0.5
        engine.update_positions([agent], RoundPhase.LIVE, 1.0, "default")
        assert agent.strategy_stats.strategy_adherence == 0.75

    def test_far_from_target_scores_zero(self, engine):
        """Beyond 50 units the score bottoms out at 0."""
        agent = make_agent()
        engine.update_positions([agent], RoundPhase.LIVE, 1.0, "default")
        assert agent.strategy_stats.positioning_score == 0.0

    def test_partial_score(self, engine):
        """Score falls linearly with distance."""
        agent = make_agent(x=85.0, y=105.0)
        engine.update_positions([agent], RoundPhase.LIVE, 0.0, "default")
        assert agent.strategy_stats.positioning_score == pytest.approx(0.5)
