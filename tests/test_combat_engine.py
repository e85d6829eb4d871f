"""Tests for combat_engine.py"""

import random
import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.services.combat_engine import CombatEngine
from app.services.events import CombatEventType
from app.services.game_state import (
    Agent, AgentSkills, Position, Side, ENTRY_FRAGGER, SUPPORT, LURKER, ROLES,
)


class ScriptedRandom(random.Random):
    """Returns queued values from random(); misses once the queue is empty."""

    def __init__(self, values):
        super().__init__(0)
        self.values = list(values)

    def random(self):
        if self.values:
            return self.values.pop(0)
        return 0.99


def make_agent(agent_id, side, x=0.0, y=0.0, role=ENTRY_FRAGGER, aim=0.9, weapons=None,
               equipment=None, health=100, armor=0):
    return Agent(
        id=agent_id, name=agent_id, side=side, role=role,
        position=Position(x, y),
        skills=AgentSkills(aim=aim),
        weapons=list(weapons or []),
        equipment=list(equipment or []),
        health=health, armor=armor,
    )


STRATEGIES = {Side.T: "default", Side.CT: "default"}


class TestEngagement:
    """Tests for gunfights."""

    def test_hit_deals_damage(self):
        """A body hit at 10 units with a rifle deals 23."""
        engine = CombatEngine(ScriptedRandom([0.99, 0.0]))
        attacker = make_agent("t1", Side.T, weapons=["ak47"])
        target = make_agent("ct1", Side.CT, x=10.0)

        events = engine.process_combat_round([attacker, target], STRATEGIES, 1000)

        assert len(events) == 1
        assert events[0].kind == CombatEventType.DAMAGE
        assert events[0].damage == 23
        assert events[0].victim.id == "ct1"
        assert target.health == 77
        assert target.is_alive

    def test_miss_produces_nothing(self):
        engine = CombatEngine(ScriptedRandom([0.99, 0.95]))
        attacker = make_agent("t1", Side.T, weapons=["ak47"])
        target = make_agent("ct1", Side.CT, x=10.0)

        assert engine.process_combat_round([attacker, target], STRATEGIES, 1000) == []
        assert target.health == 100

    def test_kill_updates_stats(self):
        """A lethal hit kills, credits the attacker and records the death."""
        engine = CombatEngine(ScriptedRandom([0.0, 0.0]))
        attacker = make_agent("t1", Side.T, weapons=["ak47"])
        target = make_agent("ct1", Side.CT, x=10.0, health=50)

        events = engine.process_combat_round([attacker, target], STRATEGIES, 4000)

        assert [e.kind for e in events] == [CombatEventType.KILL]
        assert events[0].is_headshot
        assert not target.is_alive
        assert target.health == 0
        assert attacker.match_stats.kills == 1
        assert attacker.match_stats.headshots == 1
        assert target.match_stats.deaths == 1
        assert engine.last_death("ct1") == 4000

    def test_dead_agents_neither_shoot_nor_get_shot(self):
        """An agent killed earlier in the pass does not fire back."""
        engine = CombatEngine(ScriptedRandom([0.99, 0.0]))
        shooter = make_agent("ct1", Side.CT, weapons=["awp"])
        victim = make_agent("t1", Side.T, x=10.0, weapons=["ak47"], health=50)

        events = engine.process_combat_round([shooter, victim], STRATEGIES, 1000)

        assert len(events) == 1
        assert events[0].kind == CombatEventType.KILL
        assert shooter.health == 100

    def test_no_weapon_no_engagement(self):
        engine = CombatEngine(ScriptedRandom([0.0, 0.0]))
        attacker = make_agent("t1", Side.T)
        target = make_agent("ct1", Side.CT, x=10.0)

        assert engine.process_combat_round([attacker, target], STRATEGIES, 1000) == []
        assert engine.rng.values == [0.0, 0.0]

    def test_out_of_range(self):
        """Default strategy does not engage at 100 units."""
        engine = CombatEngine(ScriptedRandom([0.0, 0.0]))
        attacker = make_agent("t1", Side.T, weapons=["ak47"])
        target = make_agent("ct1", Side.CT, x=100.0)

        assert engine.process_combat_round([attacker, target], STRATEGIES, 1000) == []

    def test_teammates_are_not_targets(self):
        engine = CombatEngine(ScriptedRandom([0.0, 0.0]))
        attacker = make_agent("t1", Side.T, weapons=["ak47"])
        mate = make_agent("t2", Side.T, x=5.0)
        assert engine.find_valid_targets(attacker, [attacker, mate]) == []

    @pytest.mark.parametrize("seed", range(5))
    def test_health_and_armor_stay_in_bounds(self, seed):
        """Repeated seeded fights never push health or armor out of range."""
        engine = CombatEngine(random.Random(seed))
        agents = []
        for i, role in enumerate(ROLES):
            agents.append(make_agent(f"t{i}", Side.T, x=i * 5.0, role=role,
                                     weapons=["ak47"], equipment=["he", "flash"], armor=100))
            agents.append(make_agent(f"ct{i}", Side.CT, x=i * 5.0, y=30.0, role=role,
                                     weapons=["m4a4"], equipment=["molotov"]))

        for step in range(20):
            engine.process_combat_round(agents, STRATEGIES, step * 1000)
            for agent in agents:
                assert 0 <= agent.health <= 100
                assert 0 <= agent.armor <= 100
                assert agent.is_alive == (agent.health > 0)


class TestHitProbability:
    """Tests for hit probability and engagement rules."""

    def test_capped_at_090(self):
        attacker = make_agent("t1", Side.T, aim=1.0)
        attacker.strategy_stats.positioning_score = 1.0
        target = make_agent("ct1", Side.CT, x=10.0)
        assert CombatEngine().calculate_hit_probability(attacker, target, "default") == 0.9

    def test_distance_falloff(self):
        attacker = make_agent("t1", Side.T, aim=0.5)
        target = make_agent("ct1", Side.CT, x=200.0)
        assert CombatEngine().calculate_hit_probability(attacker, target, "default") == pytest.approx(0.25)

    def test_zero_distance(self):
        attacker = make_agent("t1", Side.T, aim=0.5)
        target = make_agent("ct1", Side.CT)
        assert CombatEngine().calculate_hit_probability(attacker, target, "default") == pytest.approx(0.5)

    def test_strategy_bonus(self):
        entry = make_agent("t1", Side.T, role=ENTRY_FRAGGER)
        lurker = make_agent("t2", Side.T, role=LURKER)
        support = make_agent("t3", Side.T, role=SUPPORT)
        assert CombatEngine.strategy_bonus(entry, "rush_b") == 0.15
        assert CombatEngine.strategy_bonus(support, "rush_b") == 0.05
        assert CombatEngine.strategy_bonus(lurker, "split_a") == 0.1
        assert CombatEngine.strategy_bonus(support, "split_a") == 0.05
        assert CombatEngine.strategy_bonus(support, "eco_rush") == 0.1
        assert CombatEngine.strategy_bonus(support, "default") == 0.0

    def test_rush_b_entry_always_engages(self):
        """Entry fraggers on rush B take fights at any range."""
        engine = CombatEngine()
        entry = make_agent("t1", Side.T, role=ENTRY_FRAGGER)
        support = make_agent("t2", Side.T, role=SUPPORT)
        target = make_agent("ct1", Side.CT, x=200.0)
        assert engine.should_engage(entry, target, "rush_b")
        assert not engine.should_engage(support, target, "rush_b")

    def test_engagement_ranges(self):
        engine = CombatEngine()
        attacker = make_agent("t1", Side.T, role=SUPPORT)
        target = make_agent("ct1", Side.CT, x=65.0)
        assert engine.should_engage(attacker, target, "default")
        assert engine.should_engage(attacker, target, "mid_control")
        assert not engine.should_engage(attacker, target, "split_a")
        assert not engine.should_engage(attacker, target, "eco_rush")

    def test_flank(self):
        """Targets behind the attacker's facing count as flanks."""
        engine = CombatEngine()
        attacker = make_agent("t1", Side.T)
        behind = make_agent("ct1", Side.CT, x=-10.0, y=1.0)
        ahead = make_agent("ct2", Side.CT, x=10.0)
        assert engine.is_valid_flank(attacker, behind)
        assert not engine.is_valid_flank(attacker, ahead)
        # Split A engages flanks past its range
        far_behind = make_agent("ct3", Side.CT, x=-150.0, y=1.0)
        assert engine.should_engage(attacker, far_behind, "split_a")

    def test_strategy_kill(self):
        engine = CombatEngine()
        entry = make_agent("t1", Side.T, role=ENTRY_FRAGGER)
        near = make_agent("ct1", Side.CT, x=20.0)
        assert engine.is_strategy_kill(entry, near, "rush_b")
        assert engine.is_strategy_kill(entry, near, "eco_rush")
        assert not engine.is_strategy_kill(entry, near, "default")
        entry.strategy_stats.positioning_score = 0.8
        assert engine.is_strategy_kill(entry, near, "default")


class TestTradeKills:
    """Tests for trade kill detection."""

    def test_trade_inside_window(self):
        """A kill within 3 s of the attacker's own recorded death is a trade."""
        engine = CombatEngine(ScriptedRandom([0.99, 0.0]))
        attacker = make_agent("t1", Side.T, weapons=["ak47"])
        target = make_agent("ct1", Side.CT, x=10.0, health=10)
        engine.record_death("t1", 1000)

        events = engine.process_combat_round([attacker, target], STRATEGIES, 3000)

        assert [e.kind for e in events] == [CombatEventType.KILL, CombatEventType.TRADE]
        assert events[0].is_trade_kill
        assert attacker.match_stats.trade_kills == 1

    def test_no_trade_outside_window(self):
        engine = CombatEngine(ScriptedRandom([0.99, 0.0]))
        attacker = make_agent("t1", Side.T, weapons=["ak47"])
        target = make_agent("ct1", Side.CT, x=10.0, health=10)
        engine.record_death("t1", 1000)

        events = engine.process_combat_round([attacker, target], STRATEGIES, 5000)

        assert [e.kind for e in events] == [CombatEventType.KILL]
        assert attacker.match_stats.trade_kills == 0

    def test_no_recorded_death(self):
        engine = CombatEngine()
        assert not engine.is_trade_kill(make_agent("t1", Side.T), 1000)

    def test_reset_forgets_deaths(self):
        engine = CombatEngine()
        engine.record_death("t1", 1000)
        engine.record_death("t2", 1000)
        engine.remove_agent("t2")
        assert engine.last_death("t2") is None
        engine.reset()
        assert engine.last_death("t1") is None


class TestUtility:
    """Tests for utility resolution."""

    def test_flash(self):
        """Flashes cut positioning by 20% and credit a flash assist."""
        engine = CombatEngine(ScriptedRandom([]))
        thrower = make_agent("t1", Side.T, equipment=["flash", "kevlar"])
        target = make_agent("ct1", Side.CT, x=90.0)
        target.strategy_stats.positioning_score = 0.5

        events = engine.process_combat_round([thrower, target], STRATEGIES, 1000)

        assert events == []
        assert target.strategy_stats.positioning_score == pytest.approx(0.4)
        assert thrower.match_stats.flash_assists == 1
        assert thrower.equipment == ["kevlar"]
        assert thrower.strategy_stats.utility_usage == pytest.approx(0.2)

    def test_he_grenade(self):
        engine = CombatEngine(ScriptedRandom([]))
        thrower = make_agent("t1", Side.T, equipment=["he"])
        target = make_agent("ct1", Side.CT, x=40.0)

        events = engine.process_combat_round([thrower, target], STRATEGIES, 1000)

        assert [e.kind for e in events] == [CombatEventType.UTILITY]
        assert events[0].damage == 50
        assert target.health == 50
        assert thrower.match_stats.utility_damage == 50
        assert thrower.equipment == []

    def test_molotov_kill(self):
        """Lethal utility emits a utility event followed by a kill."""
        engine = CombatEngine(ScriptedRandom([]))
        thrower = make_agent("ct1", Side.CT, equipment=["molotov"])
        target = make_agent("t1", Side.T, x=20.0, health=30)

        events = engine.process_combat_round([thrower, target], STRATEGIES, 2000)

        assert [e.kind for e in events] == [CombatEventType.UTILITY, CombatEventType.KILL]
        assert events[0].damage == 30
        assert thrower.match_stats.kills == 1
        assert thrower.match_stats.utility_damage == 30
        assert not target.is_alive

    def test_utility_kept_without_targets(self):
        """Nothing in radius, nothing thrown."""
        engine = CombatEngine(ScriptedRandom([]))
        thrower = make_agent("t1", Side.T, equipment=["smoke", "he"])
        target = make_agent("ct1", Side.CT, x=75.0)

        assert engine.process_combat_round([thrower, target], STRATEGIES, 1000) == []
        assert thrower.equipment == ["smoke", "he"]
        assert thrower.strategy_stats.utility_usage == 0.0
