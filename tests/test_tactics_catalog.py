"""Tests for tactics_catalog.py"""

import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.services.game_state import (
    Agent, Position, RoundPhase, Side, ENTRY_FRAGGER, AWPER, ROLES,
)
from app.services.tactics_catalog import TacticsCatalog, HOLD_CURRENT


def make_agent(side=Side.T, role=ENTRY_FRAGGER, x=0.0, y=0.0):
    return Agent(id=f"{side.value}-{role}", name=role, side=side, role=role, position=Position(x, y))


@pytest.fixture
def catalog():
    return TacticsCatalog()


class TestStrategies:
    """Tests for strategy lookup and validation."""

    def test_attacker_strategies(self, catalog):
        """Test the attacker strategy list."""
        strategies = catalog.available_strategies(Side.T)
        for key in ['default', 'rush_b', 'split_a', 'mid_control', 'eco_rush', 'fake_a_b']:
            assert key in strategies

    def test_defender_strategies(self, catalog):
        """Test the defender strategy list."""
        strategies = catalog.available_strategies(Side.CT)
        for key in ['default', 'stack_b', 'retake_setup', 'mid_control']:
            assert key in strategies

    def test_validate_strategy_is_side_specific(self, catalog):
        """A strategy only validates for the side that owns it."""
        assert catalog.validate_strategy(Side.T, 'rush_b')
        assert not catalog.validate_strategy(Side.CT, 'rush_b')
        assert catalog.validate_strategy(Side.CT, 'stack_b')
        assert not catalog.validate_strategy(Side.T, 'unknown')

    def test_every_strategy_covers_every_role(self, catalog):
        """Each strategy assigns waypoints to all five roles."""
        for side in Side:
            for key in catalog.available_strategies(side):
                setup = catalog.get_strategy(side, key)
                for role in ROLES:
                    waypoints = setup.positions.get(role)
                    assert waypoints, f"{side.value}/{key} missing {role}"
                    for name in waypoints:
                        assert name in catalog.WAYPOINTS

    def test_speed_multiplier(self, catalog):
        """Rush strategies move faster."""
        assert catalog.speed_multiplier(Side.T, 'rush_b') == 1.5
        assert catalog.speed_multiplier(Side.T, 'eco_rush') == 1.3
        assert catalog.speed_multiplier(Side.T, 'default') == 1.0
        assert catalog.speed_multiplier(Side.T, 'unknown') == 1.0

    def test_utility_for_role(self, catalog):
        """Test per-role utility lists."""
        assert catalog.utility_for_role(Side.T, 'default', 'Support') == ['smoke', 'flash']
        assert catalog.utility_for_role(Side.T, 'unknown', 'Support') == []

    def test_strategy_priority(self, catalog):
        """Test priority weights lookup."""
        assert catalog.strategy_priority(Side.T, 'rush_b')['speed'] == 0.8
        assert catalog.strategy_priority(Side.T, 'unknown') == {}


class TestPositions:
    """Tests for position resolution."""

    def test_freezetime_uses_first_waypoint(self, catalog):
        """In freezetime agents hold their spawn waypoint."""
        agent = make_agent()
        position = catalog.position_for_agent(agent, RoundPhase.FREEZETIME, 'default')
        assert (position.x, position.y) == (60, 180)

    def test_live_uses_second_waypoint(self, catalog):
        """Entry fragger heads to long doors on default."""
        agent = make_agent()
        position = catalog.position_for_agent(agent, RoundPhase.LIVE, 'default')
        assert (position.x, position.y) == (85, 80)

    def test_planted_clamps_to_last_waypoint(self, catalog):
        """Short waypoint lists clamp to their last entry."""
        agent = make_agent()
        live = catalog.position_for_agent(agent, RoundPhase.LIVE, 'default')
        planted = catalog.position_for_agent(agent, RoundPhase.PLANTED, 'default')
        assert (planted.x, planted.y) == (live.x, live.y)

    def test_planted_uses_third_waypoint(self, catalog):
        """Split A ends on A site."""
        agent = make_agent()
        position = catalog.position_for_agent(agent, RoundPhase.PLANTED, 'split_a')
        assert (position.x, position.y) == (220, 80)

    def test_unknown_strategy_falls_back_to_spawn(self, catalog):
        """Unknown strategies send agents back to spawn."""
        agent = make_agent(side=Side.CT, role=AWPER)
        position = catalog.position_for_agent(agent, RoundPhase.LIVE, 'nonsense')
        assert (position.x, position.y) == (230, 170)

    def test_call_position(self, catalog):
        """Execute A sends everyone to A site."""
        agent = make_agent()
        position = catalog.position_for_call(agent, 'execute_a')
        assert (position.x, position.y) == (220, 80)

    def test_hold_positions_returns_current(self, catalog):
        """Holding keeps the agent where it is, as a copy."""
        agent = make_agent(x=12.0, y=34.0)
        position = catalog.position_for_call(agent, 'hold_positions')
        assert (position.x, position.y) == (12.0, 34.0)
        assert position is not agent.position

    def test_calls_per_side(self, catalog):
        """Test mid-round call lists."""
        assert 'execute_b' in catalog.available_calls(Side.T)
        assert 'retake' in catalog.available_calls(Side.CT)
        assert not catalog.validate_call(Side.T, 'retake')
        assert catalog.get_call(Side.CT, 'hold_positions').positions[ENTRY_FRAGGER] == HOLD_CURRENT

    def test_spawns(self, catalog):
        """Test side spawns."""
        t_spawn = catalog.spawn_position(Side.T)
        ct_spawn = catalog.spawn_position(Side.CT)
        assert (t_spawn.x, t_spawn.y) == (60, 180)
        assert (ct_spawn.x, ct_spawn.y) == (230, 170)
