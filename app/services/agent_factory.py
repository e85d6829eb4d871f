"""Agent Factory for Dust2 tactical simulations.

Generates agent skill vectors, assigns roles from role requirement profiles,
builds full rosters and computes the impact rating that blends combat output
with strategy execution.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional
import random
import uuid

from .game_state import (
    Agent, AgentSkills, MatchStats, Position, Side, StrategyStats,
    ENTRY_FRAGGER, AWPER, SUPPORT, IN_GAME_LEADER, LURKER, ROLES,
)


@dataclass(frozen=True)
class RoleRequirements:
    """How much each skill matters for a role (weights in [0, 1])."""
    aim: float
    reaction: float
    positioning: float
    utility: float
    leadership: float
    clutch: float

    def as_dict(self) -> Dict[str, float]:
        return {
            "aim": self.aim,
            "reaction": self.reaction,
            "positioning": self.positioning,
            "utility": self.utility,
            "leadership": self.leadership,
            "clutch": self.clutch,
        }


class AgentFactory:
    """Stateless agent generation and rating.

    Randomness comes from the `rng` passed to each call (a fresh unseeded
    Random when omitted), so callers decide whether results are seeded.
    """

    ROLE_REQUIREMENTS: Dict[str, RoleRequirements] = {
        ENTRY_FRAGGER: RoleRequirements(0.8, 0.9, 0.7, 0.5, 0.3, 0.6),
        AWPER: RoleRequirements(0.9, 0.8, 0.8, 0.4, 0.3, 0.7),
        SUPPORT: RoleRequirements(0.6, 0.6, 0.8, 0.9, 0.5, 0.5),
        IN_GAME_LEADER: RoleRequirements(0.6, 0.6, 0.7, 0.7, 0.9, 0.6),
        LURKER: RoleRequirements(0.7, 0.7, 0.9, 0.5, 0.4, 0.8),
    }

    SKILL_MIN = 0.5
    SKILL_MAX = 0.95

    FIRST_NAMES = [
        "Alex", "Max", "Sam", "Jordan", "Casey",
        "Olof", "Nikola", "Sasha", "Viktor", "Denis",
    ]
    LAST_NAMES = [
        "Smith", "Jones", "Berg", "Storm", "Kraft",
        "Popov", "Kovac", "Miller", "King", "Young",
    ]
    NICKNAMES = [
        "ace", "clutch", "flash", "swift", "shadow",
        "storm", "hawk", "steel", "blade", "frost",
    ]

    # Impact rating weights
    KILL_WEIGHT = 1.0
    ASSIST_WEIGHT = 0.3
    UTILITY_DAMAGE_WEIGHT = 0.4
    FLASH_ASSIST_WEIGHT = 0.2
    TRADE_WEIGHT = 0.5

    @classmethod
    def generate_agent(
        cls,
        side: Side,
        preferred_role: Optional[str] = None,
        rng: Optional[random.Random] = None,
        skill_multiplier: float = 1.0,
    ) -> Agent:
        """Generate a single agent.

        Args:
            side: Team the agent plays for
            preferred_role: Force a role instead of picking the best fit
            rng: Random source (seed it for reproducible rosters)
            skill_multiplier: Difficulty scaling applied to every skill

        Returns:
            A fresh, alive Agent with zeroed stats
        """
        rng = rng or random.Random()
        skills = cls.generate_skills(rng)
        if skill_multiplier != 1.0:
            skills = skills.scaled(skill_multiplier)
        role = preferred_role or cls.determine_optimal_role(skills)

        return Agent(
            id=f"{side.value}-{uuid.UUID(int=rng.getrandbits(128)).hex[:12]}",
            name=cls.generate_name(rng),
            side=side,
            role=role,
            position=Position(),
            skills=skills,
            match_stats=MatchStats(),
            strategy_stats=StrategyStats(),
        )

    @classmethod
    def build_roster(
        cls,
        side: Side,
        rng: Optional[random.Random] = None,
        skill_multiplier: float = 1.0,
    ) -> List[Agent]:
        """Five agents, one per role archetype."""
        rng = rng or random.Random()
        return [
            cls.generate_agent(side, role, rng=rng, skill_multiplier=skill_multiplier)
            for role in ROLES
        ]

    @classmethod
    def generate_skills(cls, rng: random.Random) -> AgentSkills:
        return AgentSkills(
            aim=cls._normalized_random(rng),
            reaction=cls._normalized_random(rng),
            positioning=cls._normalized_random(rng),
            utility=cls._normalized_random(rng),
            leadership=cls._normalized_random(rng),
            clutch=cls._normalized_random(rng),
        )

    @classmethod
    def determine_optimal_role(cls, skills: AgentSkills) -> str:
        """Role whose weighted requirement score is highest (first wins ties)."""
        best_role = ROLES[0]
        best_score = -1.0

        for role in ROLES:
            score = cls.calculate_role_score(skills, cls.ROLE_REQUIREMENTS[role])
            if score > best_score:
                best_score = score
                best_role = role

        return best_role

    @staticmethod
    def calculate_role_score(skills: AgentSkills, requirements: RoleRequirements) -> float:
        values = skills.as_dict()
        weights = requirements.as_dict()
        total_weight = sum(weights.values())
        if total_weight <= 0:
            return 0.0
        return sum(values[name] * weight for name, weight in weights.items()) / total_weight

    @classmethod
    def calculate_impact_rating(cls, agent: Agent) -> float:
        """Composite of combat output and strategy execution, in [0, 1].

        Six components are averaged: kills, assists, utility damage, flash
        assists, trade kills and a strategy blend of utility usage (0.3),
        positioning score (0.4) and strategy adherence (0.3).
        """
        stats = agent.match_stats
        strategy = agent.strategy_stats

        kill_impact = stats.kills * cls.KILL_WEIGHT
        assist_impact = stats.assists * cls.ASSIST_WEIGHT
        utility_impact = (stats.utility_damage / 100) * cls.UTILITY_DAMAGE_WEIGHT
        flash_impact = stats.flash_assists * cls.FLASH_ASSIST_WEIGHT
        trade_impact = stats.trade_kills * cls.TRADE_WEIGHT

        strategy_impact = (
            strategy.utility_usage * 0.3 +
            strategy.positioning_score * 0.4 +
            strategy.strategy_adherence * 0.3
        )

        total = (
            kill_impact + assist_impact + utility_impact +
            flash_impact + trade_impact + strategy_impact
        ) / 6

        return max(0.0, min(1.0, total))

    @staticmethod
    def evaluate_strategy_execution(agent: Agent, success: bool) -> None:
        """Record a round outcome against the agent and refresh adherence."""
        if success:
            agent.strategy_stats.successful_calls += 1
        else:
            agent.strategy_stats.failed_calls += 1

        total_calls = agent.strategy_stats.successful_calls + agent.strategy_stats.failed_calls
        if total_calls > 0:
            agent.strategy_stats.strategy_adherence = (
                agent.strategy_stats.successful_calls / total_calls
            )

    @classmethod
    def generate_name(cls, rng: random.Random) -> str:
        first = rng.choice(cls.FIRST_NAMES)
        nickname = rng.choice(cls.NICKNAMES)
        last = rng.choice(cls.LAST_NAMES)
        return f'{first} "{nickname}" {last}'

    @classmethod
    def _normalized_random(cls, rng: random.Random) -> float:
        # Standard normal squeezed onto [0, 1] then clipped to the skill band
        normalized = (rng.gauss(0.0, 1.0) + 3) / 6
        value = cls.SKILL_MIN + (cls.SKILL_MAX - cls.SKILL_MIN) * normalized
        return min(cls.SKILL_MAX, max(cls.SKILL_MIN, value))
