# Core simulation modules
from .weapon_system import WeaponDatabase, WeaponStats, EquipmentStats, WeaponCategory, UtilityKind
from .game_state import (
    Agent, AgentSkills, Team, MatchState, RoundState, MatchConfig,
    Side, RoundPhase, MatchStatus, Difficulty, Position,
)
from .events import CombatEvent, CombatEventType, GameEvent, GameEventType
from .tactics_catalog import TacticsCatalog, StrategySetup, MidRoundCall
from .agent_factory import AgentFactory
from .economy_engine import BuyEngine, EconomyEngine, BuyType, Loadout
from .movement_engine import MovementEngine
from .combat_engine import CombatEngine
from .round_engine import RoundEngine, StrategyRecord
from .match_orchestrator import MatchOrchestrator, MatchRegistry, MatchConfigurationError

__all__ = [
    "WeaponDatabase",
    "WeaponStats",
    "EquipmentStats",
    "WeaponCategory",
    "UtilityKind",
    "Agent",
    "AgentSkills",
    "Team",
    "MatchState",
    "RoundState",
    "MatchConfig",
    "Side",
    "RoundPhase",
    "MatchStatus",
    "Difficulty",
    "Position",
    "CombatEvent",
    "CombatEventType",
    "GameEvent",
    "GameEventType",
    "TacticsCatalog",
    "StrategySetup",
    "MidRoundCall",
    "AgentFactory",
    "BuyEngine",
    "EconomyEngine",
    "BuyType",
    "Loadout",
    "MovementEngine",
    "CombatEngine",
    "RoundEngine",
    "StrategyRecord",
    "MatchOrchestrator",
    "MatchRegistry",
    "MatchConfigurationError",
]
