"""Combat Engine for Dust2 tactical simulations.

Resolves gunfights and utility between opposing agents on the combat
cadence. Every engagement is a pair of seeded random draws:

1. Headshot roll: aim * 0.3
2. Hit roll: clamp(aim * min(1, 100 / distance) + positioning * 0.2 + bonus, 0, 0.9)

Damage comes from WeaponDatabase.calculate_damage. Kills are tagged as
strategy kills when they match the attacking side's plan, and as trade
kills when the attacker's own last recorded death is within the trade
window of the game clock.
"""

from typing import Dict, List, Optional
import logging
import math
import random

from .events import AgentRef, CombatEvent, CombatEventType
from .game_state import Agent, Side, ENTRY_FRAGGER, LURKER
from .weapon_system import WeaponDatabase, UtilityKind

logger = logging.getLogger(__name__)


class CombatEngine:
    """Per-match combat resolver.

    Owns the last-death map (agent id -> game clock ms) used for trade kill
    detection; it must be reset between rounds.
    """

    TRADE_KILL_WINDOW_MS = 3000
    MAX_HIT_PROBABILITY = 0.9
    HEADSHOT_FACTOR = 0.3
    POSITIONING_WEIGHT = 0.2
    FLASH_POSITIONING_PENALTY = 0.8
    UTILITY_USAGE_STEP = 0.2
    FLANK_ANGLE = 2 * math.pi / 3  # 120 degrees

    # Strategy -> max engagement distance
    ENGAGEMENT_RANGE = {
        "rush_b": 50.0,
        "default": 80.0,
        "eco_rush": 30.0,
        "split_a": 60.0,
    }
    DEFAULT_ENGAGEMENT_RANGE = 70.0

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self._last_deaths: Dict[str, int] = {}

    def process_combat_round(
        self,
        agents: List[Agent],
        strategies: Dict[Side, str],
        now_ms: int,
    ) -> List[CombatEvent]:
        """Resolve one combat pass over all agents.

        Agents act in list order. Liveness is re-checked at every engagement,
        so an agent killed earlier in the pass neither shoots nor is shot.

        Args:
            agents: Every agent in the match, both sides
            strategies: Active strategy key per side
            now_ms: Game clock used for event timestamps and trade windows

        Returns:
            Ordered combat events produced by this pass
        """
        events: List[CombatEvent] = []

        for attacker in agents:
            if not attacker.is_alive:
                continue
            strategy = strategies.get(attacker.side, "default")

            for target in self.find_valid_targets(attacker, agents):
                if not attacker.is_alive:
                    break
                if not target.is_alive:
                    continue
                if self.should_engage(attacker, target, strategy):
                    events.extend(self.resolve_engagement(attacker, target, strategy, now_ms))

            if attacker.is_alive and attacker.equipment:
                events.extend(self.process_utility(attacker, agents, now_ms))

        return events

    def resolve_engagement(
        self,
        attacker: Agent,
        target: Agent,
        strategy: str,
        now_ms: int,
    ) -> List[CombatEvent]:
        """One attacker shooting at one target. Empty list on a miss or no weapon."""
        weapon = attacker.primary_weapon
        if not weapon:
            return []

        distance = attacker.position.distance_to(target.position)
        is_headshot = self.rng.random() < attacker.skills.aim * self.HEADSHOT_FACTOR
        if self.rng.random() >= self.calculate_hit_probability(attacker, target, strategy):
            return []

        damage = WeaponDatabase.calculate_damage(weapon, distance, is_headshot, target.armor)
        killed = target.apply_damage(damage)

        if not killed:
            return [CombatEvent(
                kind=CombatEventType.DAMAGE,
                attacker=AgentRef.of(attacker),
                victim=AgentRef.of(target),
                weapon=weapon,
                damage=damage,
                is_headshot=is_headshot,
                position=target.position.copy(),
                timestamp_ms=now_ms,
            )]

        is_trade = self.is_trade_kill(attacker, now_ms)
        events = [self._register_kill(
            attacker, target, weapon, damage, now_ms,
            is_headshot=is_headshot,
            is_strategy_kill=self.is_strategy_kill(attacker, target, strategy),
            is_trade_kill=is_trade,
        )]
        if is_trade:
            events.append(CombatEvent(
                kind=CombatEventType.TRADE,
                attacker=AgentRef.of(attacker),
                victim=AgentRef.of(target),
                weapon=weapon,
                position=target.position.copy(),
                timestamp_ms=now_ms,
                is_trade_kill=True,
            ))
        return events

    def process_utility(self, attacker: Agent, agents: List[Agent], now_ms: int) -> List[CombatEvent]:
        """Throw every consumable that has an opposing agent inside its radius.

        Thrown items are removed from the attacker's equipment. Flashes
        penalise the target's positioning score and credit a flash assist;
        damaging utility hurts the target and credits utility damage to
        the thrower.
        """
        events: List[CombatEvent] = []

        for item_id in list(attacker.equipment):
            item = WeaponDatabase.get_equipment(item_id)
            if item is None or not item.is_throwable:
                continue

            targets = [
                agent for agent in agents
                if agent.side != attacker.side
                and agent.is_alive
                and attacker.position.distance_to(agent.position) <= item.radius
            ]
            if not targets:
                continue

            attacker.equipment.remove(item_id)
            attacker.strategy_stats.utility_usage += self.UTILITY_USAGE_STEP

            for target in targets:
                if not target.is_alive:
                    continue
                if item.kind == UtilityKind.FLASH:
                    target.strategy_stats.positioning_score *= self.FLASH_POSITIONING_PENALTY
                    attacker.match_stats.flash_assists += 1
                    continue
                if item.damage <= 0:
                    continue

                before = target.health
                killed = target.apply_damage(item.damage)
                dealt = before - target.health
                attacker.match_stats.utility_damage += dealt

                events.append(CombatEvent(
                    kind=CombatEventType.UTILITY,
                    attacker=AgentRef.of(attacker),
                    victim=AgentRef.of(target),
                    weapon=item_id,
                    damage=dealt,
                    position=target.position.copy(),
                    timestamp_ms=now_ms,
                ))
                if killed:
                    events.append(self._register_kill(attacker, target, item_id, dealt, now_ms))

        return events

    def find_valid_targets(self, attacker: Agent, agents: List[Agent]) -> List[Agent]:
        # Line of sight is not modelled; every living opponent is visible
        return [a for a in agents if a.side != attacker.side and a.is_alive]

    def should_engage(self, attacker: Agent, target: Agent, strategy: str) -> bool:
        distance = attacker.position.distance_to(target.position)
        limit = self.ENGAGEMENT_RANGE.get(strategy, self.DEFAULT_ENGAGEMENT_RANGE)

        if strategy == "rush_b":
            return distance < limit or attacker.role == ENTRY_FRAGGER
        if strategy == "split_a":
            return distance < limit or self.is_valid_flank(attacker, target)
        return distance < limit

    def calculate_hit_probability(self, attacker: Agent, target: Agent, strategy: str) -> float:
        distance = attacker.position.distance_to(target.position)
        distance_factor = 1.0 if distance <= 0 else min(1.0, 100.0 / distance)
        positioning_bonus = attacker.strategy_stats.positioning_score * self.POSITIONING_WEIGHT
        probability = (
            attacker.skills.aim * distance_factor +
            positioning_bonus +
            self.strategy_bonus(attacker, strategy)
        )
        return max(0.0, min(self.MAX_HIT_PROBABILITY, probability))

    @staticmethod
    def strategy_bonus(attacker: Agent, strategy: str) -> float:
        if strategy == "rush_b":
            return 0.15 if attacker.role == ENTRY_FRAGGER else 0.05
        if strategy == "split_a":
            return 0.1 if attacker.role == LURKER else 0.05
        if strategy == "eco_rush":
            return 0.1
        return 0.0

    def is_valid_flank(self, attacker: Agent, target: Agent) -> bool:
        angle = math.atan2(
            target.position.y - attacker.position.y,
            target.position.x - attacker.position.x,
        )
        return abs(angle) > self.FLANK_ANGLE

    def is_strategy_kill(self, attacker: Agent, victim: Agent, strategy: str) -> bool:
        distance = attacker.position.distance_to(victim.position)
        if strategy == "rush_b":
            return distance < 50 and attacker.role == ENTRY_FRAGGER
        if strategy == "split_a":
            return self.is_valid_flank(attacker, victim)
        if strategy == "eco_rush":
            return distance < 30
        return attacker.strategy_stats.positioning_score > 0.7

    def is_trade_kill(self, attacker: Agent, now_ms: int) -> bool:
        last_death = self._last_deaths.get(attacker.id)
        if last_death is None:
            return False
        return 0 <= now_ms - last_death <= self.TRADE_KILL_WINDOW_MS

    def record_death(self, agent_id: str, at_ms: int) -> None:
        self._last_deaths[agent_id] = at_ms

    def last_death(self, agent_id: str) -> Optional[int]:
        return self._last_deaths.get(agent_id)

    def remove_agent(self, agent_id: str) -> None:
        self._last_deaths.pop(agent_id, None)

    def reset(self) -> None:
        """Forget all recorded deaths (round reset)."""
        self._last_deaths.clear()

    def _register_kill(
        self,
        attacker: Agent,
        victim: Agent,
        weapon: str,
        damage: int,
        now_ms: int,
        is_headshot: bool = False,
        is_strategy_kill: bool = False,
        is_trade_kill: bool = False,
    ) -> CombatEvent:
        attacker.match_stats.kills += 1
        victim.match_stats.deaths += 1
        if is_headshot:
            attacker.match_stats.headshots += 1
        if is_trade_kill:
            attacker.match_stats.trade_kills += 1
        self.record_death(victim.id, now_ms)

        logger.debug(f"{attacker.name} killed {victim.name} with {weapon} ({damage} dmg)")

        return CombatEvent(
            kind=CombatEventType.KILL,
            attacker=AgentRef.of(attacker),
            victim=AgentRef.of(victim),
            weapon=weapon,
            damage=damage,
            is_headshot=is_headshot,
            is_strategy_kill=is_strategy_kill,
            is_trade_kill=is_trade_kill,
            position=victim.position.copy(),
            timestamp_ms=now_ms,
        )
