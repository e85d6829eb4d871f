from .matches import (
    MatchSnapshot, MatchInfoSnapshot, RoundSnapshot, TeamSnapshot, AgentSnapshot,
    CombatEventSnapshot, GameEventSnapshot,
    AgentCreate, MatchCreate, StrategyUpdate, MidRoundCallRequest, BuyRequest,
    AutoBuyRequest, PlantRequest, StrategyStatsResponse, CatalogResponse,
)

__all__ = [
    "MatchSnapshot", "MatchInfoSnapshot", "RoundSnapshot", "TeamSnapshot", "AgentSnapshot",
    "CombatEventSnapshot", "GameEventSnapshot",
    "AgentCreate", "MatchCreate", "StrategyUpdate", "MidRoundCallRequest", "BuyRequest",
    "AutoBuyRequest", "PlantRequest", "StrategyStatsResponse", "CatalogResponse",
]
