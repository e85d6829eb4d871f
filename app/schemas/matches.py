from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Literal, Union
from datetime import datetime


class FrozenModel(BaseModel):
    """Snapshot models are read-only once built."""
    model_config = ConfigDict(frozen=True)


# ----------------------------------------------------------------------
# Snapshots
# ----------------------------------------------------------------------

class PositionSnapshot(FrozenModel):
    x: float
    y: float


class AgentSkillsSnapshot(FrozenModel):
    aim: float
    reaction: float
    positioning: float
    utility: float
    leadership: float
    clutch: float


class AgentMatchStatsSnapshot(FrozenModel):
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    utility_damage: int = 0
    flash_assists: int = 0
    headshots: int = 0
    trade_kills: int = 0


class AgentStrategyStatsSnapshot(FrozenModel):
    utility_usage: float = 0.0
    positioning_score: float = 0.0
    strategy_adherence: float = 0.0
    impact_rating: float = 0.0
    successful_calls: int = 0
    failed_calls: int = 0


class AgentSnapshot(FrozenModel):
    id: str
    name: str
    side: str  # 't' or 'ct'
    role: str
    position: PositionSnapshot
    health: int
    armor: int
    is_alive: bool
    weapons: List[str] = []
    equipment: List[str] = []
    skills: AgentSkillsSnapshot
    match_stats: AgentMatchStatsSnapshot
    strategy_stats: AgentStrategyStatsSnapshot


class TeamSnapshot(FrozenModel):
    side: str
    money: int
    loss_bonus: int
    round_wins: int
    strategy: str
    timeout_available: bool
    agents: List[AgentSnapshot]
    rounds_won_with_strategy: Dict[str, int] = {}
    strategy_success_rate: float = 0.0
    last_successful_strategy: str = ""


class MomentumSnapshot(FrozenModel):
    side: Optional[str] = None
    factor: float = 0.0


class MatchInfoSnapshot(FrozenModel):
    id: str
    status: str  # 'pending', 'active', 'paused', 'ended'
    current_round: int
    max_rounds: int
    score: Dict[str, int]
    winner: Optional[str] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    map_name: str
    map_areas: List[str] = []
    momentum: MomentumSnapshot


class ActiveCallSnapshot(FrozenModel):
    side: str
    call: str
    issued_at_ms: int
    expires_at_ms: int


class RoundSnapshot(FrozenModel):
    phase: str  # 'warmup', 'freezetime', 'live', 'planted', 'ended'
    time_left: float
    bomb_planted: bool = False
    bomb_site: Optional[str] = None
    plant_time_ms: Optional[int] = None
    winner: Optional[str] = None
    end_reason: Optional[str] = None
    current_strategy: Dict[str, str]
    active_call: Optional[ActiveCallSnapshot] = None


class AgentRefSnapshot(FrozenModel):
    id: str
    name: str
    side: str
    role: str


class CombatEventSnapshot(FrozenModel):
    category: Literal["combat"] = "combat"
    kind: str  # 'kill', 'damage', 'utility', 'trade'
    attacker: AgentRefSnapshot
    victim: Optional[AgentRefSnapshot] = None
    weapon: Optional[str] = None
    damage: int = 0
    is_headshot: bool = False
    is_strategy_kill: bool = False
    is_trade_kill: bool = False
    is_wallbang: bool = False
    position: PositionSnapshot
    timestamp_ms: int


class GameEventSnapshot(FrozenModel):
    category: Literal["game"] = "game"
    kind: str
    round_number: int
    timestamp_ms: int
    side: Optional[str] = None
    value: Optional[str] = None
    amount: int = 0


EventSnapshot = Union[CombatEventSnapshot, GameEventSnapshot]


class MatchSnapshot(FrozenModel):
    """Complete, immutable view of a match delivered to subscribers."""
    match: MatchInfoSnapshot
    round: RoundSnapshot
    teams: Dict[str, TeamSnapshot]
    events: List[EventSnapshot] = []
    combat_result: Optional[CombatEventSnapshot] = None
    clock_ms: int = 0
    tick_count: int = 0


# ----------------------------------------------------------------------
# Requests
# ----------------------------------------------------------------------

class AgentCreate(BaseModel):
    id: str
    name: str
    role: str
    aim: float = Field(0.5, ge=0, le=1)
    reaction: float = Field(0.5, ge=0, le=1)
    positioning: float = Field(0.5, ge=0, le=1)
    utility: float = Field(0.5, ge=0, le=1)
    leadership: float = Field(0.5, ge=0, le=1)
    clutch: float = Field(0.5, ge=0, le=1)


class MatchCreate(BaseModel):
    max_rounds: int = 30
    starting_side: str = "t"
    initial_strategy: str = "default"
    difficulty: str = "medium"
    match_id: Optional[str] = None
    auto_buy_bots: bool = True
    seed: Optional[int] = None
    # Omitted rosters are generated
    player_roster: Optional[List[AgentCreate]] = None
    bot_roster: Optional[List[AgentCreate]] = None


class StrategyUpdate(BaseModel):
    side: str
    strategy: str


class MidRoundCallRequest(BaseModel):
    side: str
    call: str


class BuyRequest(BaseModel):
    side: str
    agent_id: str
    weapons: List[str] = []
    equipment: List[str] = []


class AutoBuyRequest(BaseModel):
    side: str
    tier: Optional[str] = None  # 'eco', 'semi'/'force', 'full'; recommended if omitted


class PlantRequest(BaseModel):
    site: str


class StrategyStatsResponse(BaseModel):
    side: str
    strategy: str
    total_rounds: int
    wins: int
    success_rate: float
    avg_kills: float
    avg_time: float
    objective_success: float


class CatalogResponse(BaseModel):
    side: str
    keys: List[str]
