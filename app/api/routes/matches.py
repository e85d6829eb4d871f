from fastapi import APIRouter, Depends, HTTPException, Query, Request
from typing import List, Optional

from ...schemas.matches import (
    AgentCreate, AutoBuyRequest, BuyRequest, CatalogResponse, MatchCreate,
    MatchSnapshot, MidRoundCallRequest, PlantRequest, StrategyStatsResponse,
    StrategyUpdate,
)
from ...services.economy_engine import Loadout
from ...services.game_state import Agent, AgentSkills, MatchConfig, Side
from ...services.match_orchestrator import (
    MatchConfigurationError, MatchOrchestrator, MatchRegistry,
)
from ...services.tactics_catalog import TacticsCatalog

router = APIRouter()

_catalog = TacticsCatalog()


def get_registry(request: Request) -> MatchRegistry:
    """Registry owned by the application (created in the lifespan)."""
    return request.app.state.registry


def get_match(match_id: str, registry: MatchRegistry = Depends(get_registry)) -> MatchOrchestrator:
    orchestrator = registry.get(match_id)
    if orchestrator is None:
        raise HTTPException(status_code=404, detail="Match not found")
    return orchestrator


def _parse_side(side: str) -> Side:
    try:
        return Side(side)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown side: {side}")


def _accepted(accepted: bool, orchestrator: MatchOrchestrator, detail: str) -> MatchSnapshot:
    if not accepted:
        raise HTTPException(status_code=409, detail=detail)
    return orchestrator.get_snapshot()


def _to_agents(roster: Optional[List[AgentCreate]]) -> Optional[List[Agent]]:
    if roster is None:
        return None
    return [
        Agent(
            id=entry.id,
            name=entry.name,
            side=Side.T,  # reassigned at initialization
            role=entry.role,
            skills=AgentSkills(
                aim=entry.aim,
                reaction=entry.reaction,
                positioning=entry.positioning,
                utility=entry.utility,
                leadership=entry.leadership,
                clutch=entry.clutch,
            ),
        )
        for entry in roster
    ]


# ----------------------------------------------------------------------
# Catalog
# ----------------------------------------------------------------------

@router.get("/catalog/strategies/{side}", response_model=CatalogResponse)
async def list_strategies(side: str):
    """Strategies available to a side."""
    parsed = _parse_side(side)
    return CatalogResponse(side=parsed.value, keys=_catalog.available_strategies(parsed))


@router.get("/catalog/calls/{side}", response_model=CatalogResponse)
async def list_calls(side: str):
    """Mid-round calls available to a side."""
    parsed = _parse_side(side)
    return CatalogResponse(side=parsed.value, keys=_catalog.available_calls(parsed))


# ----------------------------------------------------------------------
# Matches
# ----------------------------------------------------------------------

@router.get("/", response_model=List[str])
async def list_matches(registry: MatchRegistry = Depends(get_registry)):
    """Ids of all in-memory matches."""
    return registry.ids()


@router.post("/", response_model=MatchSnapshot)
async def create_match(body: MatchCreate, registry: MatchRegistry = Depends(get_registry)):
    """Create and initialize a match. Rosters are generated when omitted."""
    config = MatchConfig(
        max_rounds=body.max_rounds,
        starting_side=body.starting_side,
        initial_strategy=body.initial_strategy,
        difficulty=body.difficulty,
        match_id=body.match_id,
        auto_buy_bots=body.auto_buy_bots,
    )
    try:
        orchestrator = registry.create(
            config,
            player_roster=_to_agents(body.player_roster),
            bot_roster=_to_agents(body.bot_roster),
            seed=body.seed,
        )
    except MatchConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return orchestrator.get_snapshot()


@router.get("/{match_id}", response_model=MatchSnapshot)
async def get_snapshot(orchestrator: MatchOrchestrator = Depends(get_match)):
    return orchestrator.get_snapshot()


@router.delete("/{match_id}")
async def delete_match(match_id: str, registry: MatchRegistry = Depends(get_registry)):
    if not registry.remove(match_id):
        raise HTTPException(status_code=404, detail="Match not found")
    return {"deleted": match_id}


@router.post("/{match_id}/start", response_model=MatchSnapshot)
async def start_match(orchestrator: MatchOrchestrator = Depends(get_match)):
    """Start the paced tick loop on the server's event loop."""
    return _accepted(orchestrator.start_game_loop(), orchestrator, "Match is not active")


@router.post("/{match_id}/stop", response_model=MatchSnapshot)
async def stop_match(orchestrator: MatchOrchestrator = Depends(get_match)):
    orchestrator.stop_game_loop()
    return orchestrator.get_snapshot()


@router.post("/{match_id}/pause", response_model=MatchSnapshot)
async def pause_match(orchestrator: MatchOrchestrator = Depends(get_match)):
    return _accepted(orchestrator.pause_match(), orchestrator, "Match is not active")


@router.post("/{match_id}/resume", response_model=MatchSnapshot)
async def resume_match(orchestrator: MatchOrchestrator = Depends(get_match)):
    return _accepted(orchestrator.resume_match(), orchestrator, "Match is not paused")


@router.post("/{match_id}/tick", response_model=MatchSnapshot)
async def advance_match(
    ticks: int = Query(1, ge=1, le=10000),
    orchestrator: MatchOrchestrator = Depends(get_match),
):
    """Advance the match headlessly by a number of ticks."""
    executed = orchestrator.run_ticks(ticks)
    return _accepted(executed > 0, orchestrator, "Match is not active")


@router.post("/{match_id}/strategy", response_model=MatchSnapshot)
async def update_strategy(body: StrategyUpdate, orchestrator: MatchOrchestrator = Depends(get_match)):
    """Change a side's strategy (freezetime only)."""
    accepted = orchestrator.update_strategy(_parse_side(body.side), body.strategy)
    return _accepted(accepted, orchestrator, "Strategy change rejected")


@router.post("/{match_id}/call", response_model=MatchSnapshot)
async def make_call(body: MidRoundCallRequest, orchestrator: MatchOrchestrator = Depends(get_match)):
    """Issue a mid-round call (live only)."""
    accepted = orchestrator.make_mid_round_call(_parse_side(body.side), body.call)
    return _accepted(accepted, orchestrator, "Mid-round call rejected")


@router.post("/{match_id}/buy", response_model=MatchSnapshot)
async def buy(body: BuyRequest, orchestrator: MatchOrchestrator = Depends(get_match)):
    loadout = Loadout(weapons=list(body.weapons), equipment=list(body.equipment))
    loadout.total = loadout.computed_cost()
    accepted = orchestrator.process_buy(_parse_side(body.side), body.agent_id, loadout)
    return _accepted(accepted, orchestrator, "Buy rejected")


@router.post("/{match_id}/auto-buy", response_model=MatchSnapshot)
async def auto_buy(body: AutoBuyRequest, orchestrator: MatchOrchestrator = Depends(get_match)):
    accepted = orchestrator.auto_buy(_parse_side(body.side), body.tier)
    return _accepted(accepted, orchestrator, "Nothing bought")


@router.post("/{match_id}/plant", response_model=MatchSnapshot)
async def plant_bomb(body: PlantRequest, orchestrator: MatchOrchestrator = Depends(get_match)):
    return _accepted(orchestrator.plant_bomb(body.site), orchestrator, "Plant rejected")


@router.post("/{match_id}/defuse", response_model=MatchSnapshot)
async def defuse_bomb(orchestrator: MatchOrchestrator = Depends(get_match)):
    return _accepted(orchestrator.defuse_bomb(), orchestrator, "Defuse rejected")


@router.post("/{match_id}/clear-combat-result", response_model=MatchSnapshot)
async def clear_combat_result(orchestrator: MatchOrchestrator = Depends(get_match)):
    orchestrator.clear_combat_result()
    return orchestrator.get_snapshot()


@router.get("/{match_id}/strategy-stats/{side}/{strategy}", response_model=StrategyStatsResponse)
async def strategy_stats(
    side: str,
    strategy: str,
    orchestrator: MatchOrchestrator = Depends(get_match),
):
    """Success rate and averages for a side's strategy so far this match."""
    parsed = _parse_side(side)
    record = orchestrator.get_strategy_stats(parsed, strategy)
    return StrategyStatsResponse(
        side=parsed.value,
        strategy=strategy,
        total_rounds=record.total_rounds,
        wins=record.wins,
        success_rate=record.success_rate,
        avg_kills=record.avg_kills,
        avg_time=record.avg_time,
        objective_success=record.objective_success,
    )
