"""Match Orchestrator for Dust2 tactical simulations.

Owns the authoritative match state and is its only writer. Every tick runs
the same fixed pipeline:

1. Pending actions (mid-round call expiry)
2. Round timer (RoundEngine)
3. Movement for both sides (freezetime, live, planted)
4. Combat on the combat cadence (live, planted)
5. Elimination win-check
6. Snapshot publish to subscribers

Commands (strategy changes, calls, buys, bomb triggers) validate their
preconditions and return False instead of raising when they do not apply.
Only initialization fails loudly, with MatchConfigurationError.
"""

from collections import deque
from datetime import datetime
from typing import Callable, Deque, Dict, List, Optional
import asyncio
import copy
import logging
import random
import uuid

from ..config import Settings, get_settings
from ..schemas.matches import (
    ActiveCallSnapshot, AgentMatchStatsSnapshot, AgentRefSnapshot,
    AgentSkillsSnapshot, AgentSnapshot, AgentStrategyStatsSnapshot,
    CombatEventSnapshot, GameEventSnapshot, MatchInfoSnapshot, MatchSnapshot,
    MomentumSnapshot, PositionSnapshot, RoundSnapshot, TeamSnapshot,
)
from .agent_factory import AgentFactory
from .combat_engine import CombatEngine
from .economy_engine import BuyEngine, BuyType, EconomyEngine, Loadout
from .events import (
    AgentRef, CombatEvent, CombatEventType, GameEvent, GameEventType, MatchEvent,
)
from .game_state import (
    Agent, Difficulty, MatchConfig, MatchState, MatchStatus, Momentum,
    RoundPhase, RoundState, Side, Team,
)
from .movement_engine import MovementEngine
from .round_engine import RoundEngine, StrategyRecord
from .tactics_catalog import TacticsCatalog
from .weapon_system import WeaponDatabase

logger = logging.getLogger(__name__)


Listener = Callable[[MatchSnapshot], None]


class MatchConfigurationError(ValueError):
    """Raised when a match cannot be initialized from the given rosters/config."""


class MatchOrchestrator:
    """Drives one match: tick loop, commands and snapshot publishing."""

    MOVEMENT_PHASES = (RoundPhase.FREEZETIME, RoundPhase.LIVE, RoundPhase.PLANTED)
    COMBAT_PHASES = (RoundPhase.LIVE, RoundPhase.PLANTED)

    MOMENTUM_STEP = 0.2
    MOMENTUM_CAP = 1.0

    def __init__(
        self,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
        catalog: Optional[TacticsCatalog] = None,
    ):
        self.settings = settings or get_settings()
        self.rng = rng or random.Random()
        self.catalog = catalog or TacticsCatalog()

        self.movement = MovementEngine(self.catalog)
        self.combat = CombatEngine(self.rng)
        self.rounds = RoundEngine(self.settings)

        self.config = MatchConfig(max_rounds=self.settings.default_max_rounds)
        self.match = MatchState(map_name=self.catalog.MAP_NAME)
        self.round = RoundState(time_left=float(self.settings.warmup_time))
        self.teams: Dict[Side, Team] = {
            Side.T: Team(side=Side.T, money=self.settings.starting_money),
            Side.CT: Team(side=Side.CT, money=self.settings.starting_money),
        }
        self.bot_side: Optional[Side] = None

        self.events: Deque[MatchEvent] = deque(maxlen=self.settings.event_log_size)
        self.combat_result: Optional[CombatEvent] = None

        self.clock_ms = 0
        self.tick_count = 0
        self._last_combat_ms = 0
        self._round_kills: Dict[Side, int] = {Side.T: 0, Side.CT: 0}

        self._listeners: List[Listener] = []
        self._loop_task: Optional[asyncio.Task] = None
        self._autoplay = False

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def initialize_match(
        self,
        player_roster: List[Agent],
        bot_roster: List[Agent],
        config: Optional[MatchConfig] = None,
    ) -> MatchSnapshot:
        """Set up a fresh match.

        The player roster plays config.starting_side and the bot roster the
        other side. Both rosters are copied, so the same agents can seed
        several matches; bot skills are scaled on the copies by the
        difficulty multiplier.

        Args:
            player_roster: Agents controlled by the player
            bot_roster: Agents controlled by the simulation
            config: Match configuration (defaults to MatchConfig())

        Returns:
            Snapshot of the initialized match

        Raises:
            MatchConfigurationError: If rosters or config cannot form a match
        """
        config = config or MatchConfig(max_rounds=self.settings.default_max_rounds)
        starting_side, difficulty = self._validate_config(player_roster, bot_roster, config)

        self.stop_game_loop()
        self.movement.clear()
        self.combat.reset()
        self.rounds.reset_history()
        self.events.clear()
        self.combat_result = None
        self.clock_ms = 0
        self.tick_count = 0
        self._last_combat_ms = 0
        self._round_kills = {Side.T: 0, Side.CT: 0}

        self.config = config
        self.bot_side = starting_side.opponent

        strategies = {
            side: config.initial_strategy
            if self.catalog.validate_strategy(side, config.initial_strategy) else "default"
            for side in Side
        }

        rosters = {starting_side: player_roster, starting_side.opponent: bot_roster}
        for side, roster in rosters.items():
            team = Team(
                side=side,
                money=self.settings.starting_money,
                strategy=strategies[side],
                # The caller's agents are never mutated
                agents=[copy.deepcopy(agent) for agent in roster],
            )
            for agent in team.agents:
                agent.side = side
                if side == self.bot_side:
                    agent.skills = agent.skills.scaled(difficulty.skill_multiplier)
                agent.reset_for_round(self.catalog.spawn_position(side))
                self._equip_spawn_pistol(agent)
            self.teams[side] = team

        self.match = MatchState(
            id=config.match_id or str(uuid.uuid4()),
            status=MatchStatus.ACTIVE,
            current_round=1,
            max_rounds=config.max_rounds,
            started_at=datetime.now(),
            map_name=self.catalog.MAP_NAME,
        )
        self.round = self.rounds.create_warmup_round(strategies)

        logger.info(
            f"Match {self.match.id} initialized: player={starting_side.value}, "
            f"difficulty={difficulty.value}, max_rounds={config.max_rounds}"
        )
        self._notify()
        return self.get_snapshot()

    def _validate_config(self, player_roster, bot_roster, config: MatchConfig):
        if not player_roster or not bot_roster:
            raise MatchConfigurationError("Both rosters must contain agents")

        size = self.settings.team_size
        for label, roster in (("player", player_roster), ("bot", bot_roster)):
            if len(roster) != size:
                raise MatchConfigurationError(
                    f"{label} roster has {len(roster)} agents, expected {size}"
                )

        ids = [agent.id for agent in list(player_roster) + list(bot_roster)]
        if len(set(ids)) != len(ids):
            raise MatchConfigurationError("Agent ids must be unique across both rosters")

        if not isinstance(config.max_rounds, int) or config.max_rounds <= 0:
            raise MatchConfigurationError(f"max_rounds must be positive, got {config.max_rounds}")

        try:
            starting_side = Side(config.starting_side)
        except ValueError:
            raise MatchConfigurationError(f"Invalid starting side: {config.starting_side!r}")

        try:
            difficulty = Difficulty(config.difficulty)
        except ValueError:
            raise MatchConfigurationError(f"Invalid difficulty: {config.difficulty!r}")

        return starting_side, difficulty

    # ------------------------------------------------------------------
    # Loop control
    # ------------------------------------------------------------------

    def start_game_loop(self) -> bool:
        """Schedule the paced tick loop on the running asyncio event loop."""
        if self.match.status != MatchStatus.ACTIVE:
            logger.warning(f"Cannot start loop: match status is {self.match.status.value}")
            return False
        if self.is_running:
            return True

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("Cannot start game loop without a running event loop")
            return False

        self._autoplay = True
        self._loop_task = loop.create_task(self._run_loop())
        logger.info(f"Game loop started for match {self.match.id}")
        return True

    def stop_game_loop(self) -> bool:
        """Cancel future ticks. A tick already in progress always completes."""
        self._autoplay = False
        return self._cancel_loop()

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    async def _run_loop(self) -> None:
        interval = self.settings.tick_interval_ms / 1000
        try:
            while self.match.status == MatchStatus.ACTIVE:
                self.tick()
                await asyncio.sleep(interval)
        finally:
            if self._loop_task is asyncio.current_task():
                self._loop_task = None
            logger.info(f"Game loop stopped for match {self.match.id}")

    def _cancel_loop(self) -> bool:
        task = self._loop_task
        self._loop_task = None
        if task is None or task.done():
            return False
        task.cancel()
        return True

    def pause_match(self) -> bool:
        if self.match.status != MatchStatus.ACTIVE:
            return False
        self.match.status = MatchStatus.PAUSED
        self._cancel_loop()
        logger.info(f"Match {self.match.id} paused")
        self._notify()
        return True

    def resume_match(self) -> bool:
        if self.match.status != MatchStatus.PAUSED:
            return False
        self.match.status = MatchStatus.ACTIVE
        logger.info(f"Match {self.match.id} resumed")
        if self._autoplay:
            self.start_game_loop()
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self) -> bool:
        """Advance the match by one fixed simulated step.

        Returns:
            False if the match is not active or the tick failed (in which
            case the match is paused).
        """
        if self.match.status != MatchStatus.ACTIVE:
            return False

        try:
            self._advance(self.settings.tick_seconds)
        except Exception:
            logger.exception(f"Tick {self.tick_count} failed for match {self.match.id}")
            self.pause_match()
            return False

        self._notify()
        return True

    def run_ticks(self, count: int) -> int:
        """Run up to count ticks headlessly; stops early if the match stops."""
        executed = 0
        for _ in range(max(0, count)):
            if not self.tick():
                break
            executed += 1
        return executed

    def _advance(self, delta_seconds: float) -> None:
        self.clock_ms += int(round(delta_seconds * 1000))
        self.tick_count += 1

        self._process_pending_actions()

        update = self.rounds.tick(self.round, delta_seconds, self.clock_ms)
        if update.ready_for_next_round:
            self._start_next_round()
            return
        if update.round_ended:
            self._on_round_end()
            return
        if update.changed:
            self.movement.invalidate()
            if update.phase == RoundPhase.FREEZETIME:
                self._on_freezetime_start()
            elif update.phase == RoundPhase.LIVE:
                self._last_combat_ms = self.clock_ms

        phase = self.round.phase
        if phase in self.MOVEMENT_PHASES:
            self._update_movement(delta_seconds)

        if phase in self.COMBAT_PHASES and \
                self.clock_ms - self._last_combat_ms >= self.settings.combat_interval_ms:
            self._process_combat()
            self._last_combat_ms = self.clock_ms

        self._check_elimination()

    def _process_pending_actions(self) -> None:
        expired = self.rounds.expire_call(self.round, self.clock_ms)
        if expired is not None:
            self.movement.invalidate(self._agent_ids(expired.side))
            logger.debug(f"Call {expired.call} for {expired.side.value} expired")

    def _update_movement(self, delta_seconds: float) -> None:
        call = self.round.active_call
        for side, team in self.teams.items():
            self.movement.update_positions(
                team.agents,
                self.round.phase,
                delta_seconds,
                self.round.current_strategy.get(side, team.strategy),
                call.call if call is not None and call.side == side else None,
            )

    def _process_combat(self) -> None:
        results = self.combat.process_combat_round(
            self.all_agents(),
            self.round.current_strategy,
            self.clock_ms,
        )
        for event in results:
            self.events.append(event)
            if event.kind == CombatEventType.KILL:
                self._round_kills[event.attacker.side] += 1
        if results:
            self.combat_result = results[-1]

    def _check_elimination(self) -> None:
        alive = {side: team.any_alive for side, team in self.teams.items()}
        winner = self.rounds.check_elimination(self.round, alive)
        if winner is None:
            return
        reason = self.rounds.elimination_reason(winner, alive)
        if self.rounds.end_round(self.round, winner, reason, self.clock_ms, self.match.current_round):
            self._on_round_end()

    # ------------------------------------------------------------------
    # Round / match transitions
    # ------------------------------------------------------------------

    def _on_freezetime_start(self) -> None:
        self._emit(GameEventType.ROUND_START)
        logger.info(f"Round {self.match.current_round} starting")
        if self.config.auto_buy_bots and self.bot_side is not None:
            self.auto_buy(self.bot_side, notify=False)

    def _on_round_end(self) -> None:
        """Settle a round that RoundEngine just moved to ended."""
        winner = self.round.winner
        loser = winner.opponent
        self.rounds.record_kills(dict(self._round_kills))
        outcome = self.rounds.last_outcome()
        if outcome is not None:
            outcome.round_number = self.match.current_round

        self.match.score[winner] += 1
        winning_team = self.teams[winner]
        winning_team.round_wins += 1

        strategy = self.round.current_strategy.get(winner, winning_team.strategy)
        stats = winning_team.strategy_stats
        stats.rounds_won_with_strategy[strategy] = stats.rounds_won_with_strategy.get(strategy, 0) + 1
        stats.last_successful_strategy = strategy
        for side, team in self.teams.items():
            played = self.round.current_strategy.get(side, team.strategy)
            team.strategy_stats.strategy_success_rate = \
                self.rounds.get_strategy_stats(side, played).success_rate

        for agent in self.all_agents():
            AgentFactory.evaluate_strategy_execution(agent, agent.side == winner)
            agent.strategy_stats.impact_rating = AgentFactory.calculate_impact_rating(agent)

        income = EconomyEngine.settle_round(winning_team, self.teams[loser])
        self._update_momentum(winner)
        self.movement.invalidate()

        self._emit(GameEventType.ROUND_END, side=winner, value=self.round.end_reason)
        for side in (winner, loser):
            self._emit(GameEventType.ECONOMY_UPDATE, side=side, amount=income[side])

        if self.rounds.check_match_end(self.match):
            self._end_match()

    def _start_next_round(self) -> None:
        self.match.current_round += 1
        strategies = {side: team.strategy for side, team in self.teams.items()}
        self.round = self.rounds.create_round(strategies, self.clock_ms)

        for side, team in self.teams.items():
            spawn = self.catalog.spawn_position(side)
            for agent in team.agents:
                if not agent.is_alive:
                    # The dead drop everything they carried
                    agent.weapons = []
                    agent.equipment = []
                agent.reset_for_round(spawn)
                self._equip_spawn_pistol(agent)

        self.movement.clear()
        self.combat.reset()
        self._round_kills = {Side.T: 0, Side.CT: 0}
        self._on_freezetime_start()

    def _end_match(self) -> None:
        self.match.status = MatchStatus.ENDED
        self.match.winner = self.rounds.determine_winner(self.match.score)
        self.match.ended_at = datetime.now()
        self._autoplay = False
        self._cancel_loop()

        result = self.match.winner.value if self.match.winner else "draw"
        self._emit(GameEventType.MATCH_END, side=self.match.winner, value=result)
        logger.info(
            f"Match {self.match.id} ended: {result} "
            f"({self.match.score[Side.T]}-{self.match.score[Side.CT]})"
        )

    def _update_momentum(self, winner: Side) -> None:
        momentum = self.match.momentum
        if momentum.side == winner:
            momentum.factor = min(self.MOMENTUM_CAP, momentum.factor + self.MOMENTUM_STEP)
        else:
            self.match.momentum = Momentum(side=winner, factor=self.MOMENTUM_STEP)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def update_strategy(self, side, strategy: str) -> bool:
        """Change a side's strategy. Freezetime only."""
        side = self._parse_side(side)
        if side is None or not self._accepting_commands():
            return False
        if not self.rounds.can_change_strategy(self.round):
            logger.warning(f"Strategy change rejected: phase is {self.round.phase.value}")
            return False
        if not self.catalog.validate_strategy(side, strategy):
            logger.warning(f"Unknown strategy {strategy!r} for {side.value}")
            return False

        self.teams[side].strategy = strategy
        self.round.current_strategy[side] = strategy
        self.movement.invalidate(self._agent_ids(side))
        self._emit(GameEventType.STRATEGY_CHANGE, side=side, value=strategy)
        self._notify()
        return True

    def make_mid_round_call(self, side, call: str) -> bool:
        """Issue a call that overrides a side's targets until it expires. Live only."""
        side = self._parse_side(side)
        if side is None or not self._accepting_commands():
            return False
        if not self.rounds.can_make_call(self.round):
            logger.warning(f"Mid-round call rejected: phase is {self.round.phase.value}")
            return False
        if not self.catalog.validate_call(side, call):
            logger.warning(f"Unknown call {call!r} for {side.value}")
            return False

        previous = self.round.active_call
        self.rounds.set_active_call(self.round, side, call, self.clock_ms)
        if previous is not None and previous.side != side:
            self.movement.invalidate(self._agent_ids(previous.side))
        self.movement.invalidate(self._agent_ids(side))
        self._emit(GameEventType.MID_ROUND_CALL, side=side, value=call)
        self._notify()
        return True

    def process_buy(self, side, agent_id: str, loadout: Loadout, notify: bool = True) -> bool:
        """Add a loadout to what an agent carries, paid from team money.

        Only items the agent does not already own are charged. A bought gun
        replaces the carried gun of the same slot and equipment is merged.
        Rejected when the agent is unknown, the loadout holds unknown items
        or it costs more than the team has.
        """
        side = self._parse_side(side)
        if side is None or not self._accepting_commands():
            return False

        team = self.teams[side]
        agent = team.find_agent(agent_id)
        if agent is None:
            logger.warning(f"Buy rejected: unknown agent {agent_id} on {side.value}")
            return False

        items = list(loadout.weapons) + list(loadout.equipment)
        unknown = [item for item in items
                   if item not in WeaponDatabase.WEAPONS and item not in WeaponDatabase.EQUIPMENT]
        if unknown:
            logger.warning(f"Buy rejected: unknown items {unknown}")
            return False

        owned = BuyEngine.owned_items(agent)
        cost = sum(WeaponDatabase.item_cost(item) for item in set(items) - owned)
        if cost > team.money:
            logger.warning(f"Buy rejected: {side.value} has {team.money}, loadout costs {cost}")
            return False

        team.money -= cost
        agent.weapons = BuyEngine.merge_weapons(agent.weapons, loadout.weapons)
        agent.equipment = agent.equipment + [
            item for item in dict.fromkeys(loadout.equipment) if item not in agent.equipment
        ]
        if "kevlar" in loadout.equipment:
            agent.set_armor(agent.MAX_ARMOR)

        self._emit(GameEventType.BUY, side=side, value=agent.id, amount=cost)
        if notify:
            self._notify()
        return True

    def auto_buy(self, side, tier=None, notify: bool = True) -> bool:
        """Buy for a whole team with an even money split.

        Uses the recommended tier for the per-agent money when none is given.
        Agents keep what they carry: nobody trades a primary down or pays
        for an item they already own.
        """
        side = self._parse_side(side)
        if side is None or not self._accepting_commands():
            return False

        team = self.teams[side]
        if not team.agents:
            return False

        if tier is None:
            buy_type = BuyEngine.recommend_tier(team.money // len(team.agents))
        else:
            buy_type = BuyType.parse(tier)
            if buy_type is None:
                logger.warning(f"Auto-buy rejected: unknown tier {tier!r}")
                return False

        bought = False
        for agent_buy in BuyEngine.calculate_team_buy(team.agents, team.money, buy_type, side):
            agent = team.find_agent(agent_buy.agent_id)
            loadout = BuyEngine.fit_to_holdings(agent, agent_buy.loadout)
            if loadout.is_empty:
                continue
            bought = self.process_buy(side, agent.id, loadout, notify=False) or bought

        if bought:
            logger.info(f"{side.value} auto-bought ({buy_type.value}), {team.money} left")
        if notify:
            self._notify()
        return bought

    def plant_bomb(self, site: str) -> bool:
        if not self._accepting_commands():
            return False
        if not self.rounds.plant_bomb(self.round, site, self.clock_ms):
            logger.warning(f"Plant rejected: phase {self.round.phase.value}, site {site!r}")
            return False

        self.movement.invalidate()
        self._emit(GameEventType.PLANT, side=Side.T, value=site)
        logger.info(f"Bomb planted at {site}")
        self._notify()
        return True

    def defuse_bomb(self) -> bool:
        if not self._accepting_commands():
            return False
        if not self.rounds.defuse_bomb(self.round, self.clock_ms):
            logger.warning(f"Defuse rejected: phase {self.round.phase.value}")
            return False

        self._emit(GameEventType.DEFUSE, side=Side.CT, value=self.round.bomb_site)
        self._on_round_end()
        self._notify()
        return True

    def clear_combat_result(self) -> bool:
        self.combat_result = None
        self._notify()
        return True

    def get_strategy_stats(self, side, strategy: str) -> StrategyRecord:
        side = self._parse_side(side)
        if side is None:
            return StrategyRecord()
        return self.rounds.get_strategy_stats(side, strategy)

    def teardown(self) -> None:
        """Stop the loop, drop listeners and forget per-agent engine state."""
        self.stop_game_loop()
        self._listeners.clear()
        for agent in self.all_agents():
            self.movement.remove_agent(agent.id)
            self.combat.remove_agent(agent.id)

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a snapshot listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.get_snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Match listener raised")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def all_agents(self) -> List[Agent]:
        return self.teams[Side.T].agents + self.teams[Side.CT].agents

    def find_agent(self, agent_id: str) -> Optional[Agent]:
        for agent in self.all_agents():
            if agent.id == agent_id:
                return agent
        return None

    @staticmethod
    def _equip_spawn_pistol(agent: Agent) -> None:
        if not agent.weapons:
            agent.weapons = [WeaponDatabase.default_pistol(agent.side.value)]

    def _agent_ids(self, side: Side) -> List[str]:
        return [agent.id for agent in self.teams[side].agents]

    def _accepting_commands(self) -> bool:
        return self.match.status in (MatchStatus.ACTIVE, MatchStatus.PAUSED)

    @staticmethod
    def _parse_side(side) -> Optional[Side]:
        try:
            return Side(side)
        except ValueError:
            logger.warning(f"Unknown side {side!r}")
            return None

    def _emit(
        self,
        kind: GameEventType,
        side: Optional[Side] = None,
        value: Optional[str] = None,
        amount: int = 0,
    ) -> None:
        self.events.append(GameEvent(
            kind=kind,
            round_number=self.match.current_round,
            timestamp_ms=self.clock_ms,
            side=side,
            value=value,
            amount=amount,
        ))

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def get_snapshot(self) -> MatchSnapshot:
        """Build an immutable view of the current state."""
        momentum = self.match.momentum
        call = self.round.active_call

        return MatchSnapshot(
            match=MatchInfoSnapshot(
                id=self.match.id,
                status=self.match.status.value,
                current_round=self.match.current_round,
                max_rounds=self.match.max_rounds,
                score={side.value: score for side, score in self.match.score.items()},
                winner=self.match.winner.value if self.match.winner else None,
                started_at=self.match.started_at,
                ended_at=self.match.ended_at,
                map_name=self.match.map_name,
                map_areas=list(self.catalog.MAP_AREAS),
                momentum=MomentumSnapshot(
                    side=momentum.side.value if momentum.side else None,
                    factor=momentum.factor,
                ),
            ),
            round=RoundSnapshot(
                phase=self.round.phase.value,
                time_left=self.round.time_left,
                bomb_planted=self.round.bomb_planted,
                bomb_site=self.round.bomb_site,
                plant_time_ms=self.round.plant_time_ms,
                winner=self.round.winner.value if self.round.winner else None,
                end_reason=self.round.end_reason,
                current_strategy={s.value: k for s, k in self.round.current_strategy.items()},
                active_call=ActiveCallSnapshot(
                    side=call.side.value,
                    call=call.call,
                    issued_at_ms=call.issued_at_ms,
                    expires_at_ms=call.expires_at_ms,
                ) if call else None,
            ),
            teams={side.value: _team_snapshot(team) for side, team in self.teams.items()},
            events=[_event_snapshot(event) for event in self.events],
            combat_result=_event_snapshot(self.combat_result) if self.combat_result else None,
            clock_ms=self.clock_ms,
            tick_count=self.tick_count,
        )


def _agent_snapshot(agent: Agent) -> AgentSnapshot:
    return AgentSnapshot(
        id=agent.id,
        name=agent.name,
        side=agent.side.value,
        role=agent.role,
        position=PositionSnapshot(x=agent.position.x, y=agent.position.y),
        health=agent.health,
        armor=agent.armor,
        is_alive=agent.is_alive,
        weapons=list(agent.weapons),
        equipment=list(agent.equipment),
        skills=AgentSkillsSnapshot(**agent.skills.as_dict()),
        match_stats=AgentMatchStatsSnapshot(**vars(agent.match_stats)),
        strategy_stats=AgentStrategyStatsSnapshot(**vars(agent.strategy_stats)),
    )


def _team_snapshot(team: Team) -> TeamSnapshot:
    return TeamSnapshot(
        side=team.side.value,
        money=team.money,
        loss_bonus=team.loss_bonus,
        round_wins=team.round_wins,
        strategy=team.strategy,
        timeout_available=team.timeout_available,
        agents=[_agent_snapshot(agent) for agent in team.agents],
        rounds_won_with_strategy=dict(team.strategy_stats.rounds_won_with_strategy),
        strategy_success_rate=team.strategy_stats.strategy_success_rate,
        last_successful_strategy=team.strategy_stats.last_successful_strategy,
    )


def _ref_snapshot(ref: Optional[AgentRef]) -> Optional[AgentRefSnapshot]:
    if ref is None:
        return None
    return AgentRefSnapshot(id=ref.id, name=ref.name, side=ref.side.value, role=ref.role)


def _event_snapshot(event: MatchEvent):
    if isinstance(event, CombatEvent):
        return CombatEventSnapshot(
            kind=event.kind.value,
            attacker=_ref_snapshot(event.attacker),
            victim=_ref_snapshot(event.victim),
            weapon=event.weapon,
            damage=event.damage,
            is_headshot=event.is_headshot,
            is_strategy_kill=event.is_strategy_kill,
            is_trade_kill=event.is_trade_kill,
            is_wallbang=event.is_wallbang,
            position=PositionSnapshot(x=event.position.x, y=event.position.y),
            timestamp_ms=event.timestamp_ms,
        )
    return GameEventSnapshot(
        kind=event.kind.value,
        round_number=event.round_number,
        timestamp_ms=event.timestamp_ms,
        side=event.side.value if event.side else None,
        value=event.value,
        amount=event.amount,
    )


class MatchRegistry:
    """In-memory set of running matches, owned by the application."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._matches: Dict[str, MatchOrchestrator] = {}

    def create(
        self,
        config: Optional[MatchConfig] = None,
        player_roster: Optional[List[Agent]] = None,
        bot_roster: Optional[List[Agent]] = None,
        seed: Optional[int] = None,
    ) -> MatchOrchestrator:
        """Create and initialize a match; missing rosters are generated.

        Raises:
            MatchConfigurationError: If the rosters or config are invalid
        """
        config = config or MatchConfig(max_rounds=self.settings.default_max_rounds)
        rng = random.Random(seed)
        orchestrator = MatchOrchestrator(self.settings, rng=rng)

        try:
            player_side = Side(config.starting_side)
        except ValueError:
            raise MatchConfigurationError(f"Invalid starting side: {config.starting_side!r}")

        if player_roster is None:
            player_roster = AgentFactory.build_roster(player_side, rng=rng)
        if bot_roster is None:
            bot_roster = AgentFactory.build_roster(player_side.opponent, rng=rng)

        orchestrator.initialize_match(player_roster, bot_roster, config)
        if orchestrator.match.id in self._matches:
            orchestrator.teardown()
            raise MatchConfigurationError(f"Match {orchestrator.match.id} already exists")

        self._matches[orchestrator.match.id] = orchestrator
        return orchestrator

    def get(self, match_id: str) -> Optional[MatchOrchestrator]:
        return self._matches.get(match_id)

    def remove(self, match_id: str) -> bool:
        orchestrator = self._matches.pop(match_id, None)
        if orchestrator is None:
            return False
        orchestrator.teardown()
        return True

    def ids(self) -> List[str]:
        return list(self._matches.keys())

    def shutdown(self) -> None:
        for match_id in list(self._matches):
            self.remove(match_id)

    def __len__(self) -> int:
        return len(self._matches)

    def __contains__(self, match_id: str) -> bool:
        return match_id in self._matches
