"""Event records produced during a match.

Two closed variants share the bounded match log:
- CombatEvent: kill / damage / utility / trade, produced by the combat engine
- GameEvent: round and match lifecycle, produced by the orchestrator

Both are frozen; once appended to the log they never change.
"""

from dataclasses import dataclass
from typing import Optional, Union
from enum import Enum

from .game_state import Agent, Position, Side


class CombatEventType(str, Enum):
    KILL = "kill"
    DAMAGE = "damage"
    UTILITY = "utility"
    TRADE = "trade"


class GameEventType(str, Enum):
    ROUND_START = "round_start"
    ROUND_END = "round_end"
    PLANT = "plant"
    DEFUSE = "defuse"
    MATCH_END = "match_end"
    STRATEGY_CHANGE = "strategy_change"
    MID_ROUND_CALL = "mid_round_call"
    ECONOMY_UPDATE = "economy_update"
    BUY = "buy"


@dataclass(frozen=True)
class AgentRef:
    """Identity of an agent at the moment an event happened."""
    id: str
    name: str
    side: Side
    role: str

    @classmethod
    def of(cls, agent: Agent) -> "AgentRef":
        return cls(id=agent.id, name=agent.name, side=agent.side, role=agent.role)


@dataclass(frozen=True)
class CombatEvent:
    kind: CombatEventType
    attacker: AgentRef
    timestamp_ms: int
    position: Position
    victim: Optional[AgentRef] = None
    weapon: Optional[str] = None
    damage: int = 0
    is_headshot: bool = False
    is_strategy_kill: bool = False
    is_trade_kill: bool = False
    is_wallbang: bool = False

    @property
    def is_kill(self) -> bool:
        return self.kind == CombatEventType.KILL


@dataclass(frozen=True)
class GameEvent:
    kind: GameEventType
    round_number: int
    timestamp_ms: int
    side: Optional[Side] = None
    value: Optional[str] = None  # strategy, call, site, reason or agent id
    amount: int = 0              # money moved, if any


MatchEvent = Union[CombatEvent, GameEvent]
