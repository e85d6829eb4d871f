"""Game state value types for Dust2 tactical simulations.

Mutable entity records (agents, teams, match and round state) owned by the
match orchestrator. Every record has explicit defaults so a fresh instance is
always valid; engines mutate them in place during a tick.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional
from enum import Enum
import math


class Side(str, Enum):
    """Team allegiance."""
    T = "t"    # attackers
    CT = "ct"  # defenders

    @property
    def opponent(self) -> "Side":
        return Side.CT if self is Side.T else Side.T


class RoundPhase(str, Enum):
    WARMUP = "warmup"
    FREEZETIME = "freezetime"
    LIVE = "live"
    PLANTED = "planted"
    ENDED = "ended"


class MatchStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    PAUSED = "paused"
    ENDED = "ended"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"

    @property
    def skill_multiplier(self) -> float:
        return {
            Difficulty.EASY: 0.7,
            Difficulty.MEDIUM: 0.85,
            Difficulty.HARD: 1.0,
            Difficulty.EXPERT: 1.2,
        }[self]


# Role archetypes
ENTRY_FRAGGER = "Entry Fragger"
AWPER = "AWPer"
SUPPORT = "Support"
IN_GAME_LEADER = "In-Game Leader"
LURKER = "Lurker"

ROLES = (ENTRY_FRAGGER, AWPER, SUPPORT, IN_GAME_LEADER, LURKER)


@dataclass
class Position:
    x: float = 0.0
    y: float = 0.0

    def distance_to(self, other: "Position") -> float:
        return math.hypot(other.x - self.x, other.y - self.y)

    def copy(self) -> "Position":
        return Position(self.x, self.y)


@dataclass
class AgentSkills:
    """Six skill dimensions, each in [0, 1]."""
    aim: float = 0.5
    reaction: float = 0.5
    positioning: float = 0.5
    utility: float = 0.5
    leadership: float = 0.5
    clutch: float = 0.5

    def as_dict(self) -> Dict[str, float]:
        return {
            "aim": self.aim,
            "reaction": self.reaction,
            "positioning": self.positioning,
            "utility": self.utility,
            "leadership": self.leadership,
            "clutch": self.clutch,
        }

    def scaled(self, multiplier: float) -> "AgentSkills":
        """Return a copy with every skill multiplied and clamped to [0, 1]."""
        return AgentSkills(**{
            name: max(0.0, min(1.0, value * multiplier))
            for name, value in self.as_dict().items()
        })


@dataclass
class MatchStats:
    """Cumulative per-match combat stats."""
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    utility_damage: int = 0
    flash_assists: int = 0
    headshots: int = 0
    trade_kills: int = 0


@dataclass
class StrategyStats:
    """Per-agent strategy execution stats."""
    utility_usage: float = 0.0
    positioning_score: float = 0.0
    strategy_adherence: float = 0.0
    impact_rating: float = 0.0
    successful_calls: int = 0
    failed_calls: int = 0


@dataclass
class Agent:
    """A single player on a team."""
    id: str
    name: str
    side: Side
    role: str
    position: Position = field(default_factory=Position)
    health: int = 100
    armor: int = 0
    is_alive: bool = True
    weapons: List[str] = field(default_factory=list)
    equipment: List[str] = field(default_factory=list)
    skills: AgentSkills = field(default_factory=AgentSkills)
    match_stats: MatchStats = field(default_factory=MatchStats)
    strategy_stats: StrategyStats = field(default_factory=StrategyStats)

    MAX_HEALTH = 100
    MAX_ARMOR = 100

    @property
    def primary_weapon(self) -> Optional[str]:
        return self.weapons[0] if self.weapons else None

    def apply_damage(self, amount: int) -> bool:
        """Subtract health, clamping to [0, 100]. Returns True if this killed the agent."""
        if not self.is_alive:
            return False
        self.health = max(0, min(self.MAX_HEALTH, self.health - max(0, int(amount))))
        if self.health <= 0:
            self.is_alive = False
            return True
        return False

    def set_armor(self, value: int) -> None:
        self.armor = max(0, min(self.MAX_ARMOR, int(value)))

    def reset_for_round(self, spawn: Position) -> None:
        """Round start: alive, full health, no armor, back at spawn."""
        self.is_alive = True
        self.health = self.MAX_HEALTH
        self.armor = 0
        self.position = spawn.copy()


@dataclass
class TeamStrategyStats:
    rounds_won_with_strategy: Dict[str, int] = field(default_factory=dict)
    strategy_success_rate: float = 0.0
    last_successful_strategy: str = ""


@dataclass
class Team:
    """One side's roster, economy and strategy record."""
    side: Side
    money: int = 800
    loss_bonus: int = 1400
    round_wins: int = 0
    strategy: str = "default"
    timeout_available: bool = True
    agents: List[Agent] = field(default_factory=list)
    strategy_stats: TeamStrategyStats = field(default_factory=TeamStrategyStats)

    def alive_agents(self) -> List[Agent]:
        return [a for a in self.agents if a.is_alive]

    @property
    def any_alive(self) -> bool:
        return any(a.is_alive for a in self.agents)

    def find_agent(self, agent_id: str) -> Optional[Agent]:
        for agent in self.agents:
            if agent.id == agent_id:
                return agent
        return None


@dataclass
class Momentum:
    side: Optional[Side] = None
    factor: float = 0.0


@dataclass
class MatchState:
    id: str = ""
    status: MatchStatus = MatchStatus.PENDING
    current_round: int = 1
    max_rounds: int = 30
    score: Dict[Side, int] = field(default_factory=lambda: {Side.T: 0, Side.CT: 0})
    winner: Optional[Side] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    map_name: str = "de_dust2"
    momentum: Momentum = field(default_factory=Momentum)


@dataclass
class ActiveCall:
    """A mid-round call and the simulated time at which it lapses."""
    side: Side
    call: str
    issued_at_ms: int
    expires_at_ms: int


@dataclass
class RoundState:
    phase: RoundPhase = RoundPhase.WARMUP
    time_left: float = 15.0
    bomb_planted: bool = False
    bomb_site: Optional[str] = None
    plant_time_ms: Optional[int] = None
    winner: Optional[Side] = None
    end_reason: Optional[str] = None
    current_strategy: Dict[Side, str] = field(
        default_factory=lambda: {Side.T: "default", Side.CT: "default"}
    )
    active_call: Optional[ActiveCall] = None
    started_at_ms: int = 0
    live_at_ms: Optional[int] = None


@dataclass
class MatchConfig:
    """Initialization configuration for a match."""
    max_rounds: int = 30
    starting_side: Side = Side.T
    initial_strategy: str = "default"
    difficulty: Difficulty = Difficulty.MEDIUM
    match_id: Optional[str] = None
    auto_buy_bots: bool = True
