"""Round Engine for Dust2 tactical simulations.

Owns the round phase state machine:

    warmup -> freezetime -> live -> (planted) -> ended -> next round | match end

Timers count down in simulated seconds. When a timer reaches zero the round
moves to the next phase and the timer is reset to that phase's constant;
at most one transition happens per tick, so a long tick can never skip a
phase. Also keeps the round outcome history used for strategy success rates.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging

from ..config import Settings, get_settings
from .game_state import ActiveCall, MatchState, RoundPhase, RoundState, Side

logger = logging.getLogger(__name__)


# End reasons
REASON_TIME_RAN_OUT = "Time ran out"
REASON_BOMB_DETONATED = "Bomb detonated"
REASON_BOMB_DEFUSED = "Bomb defused"
REASON_T_ELIMINATED = "All terrorists eliminated"
REASON_CT_ELIMINATED = "All counter-terrorists eliminated"


@dataclass
class TimerUpdate:
    """What a single timer advance did to the round."""
    previous: RoundPhase
    phase: RoundPhase
    round_ended: bool = False
    ready_for_next_round: bool = False

    @property
    def changed(self) -> bool:
        return self.previous != self.phase


@dataclass
class SideOutcome:
    strategy: str
    success: bool
    kills: int = 0
    objective: bool = False
    round_time: float = 0.0


@dataclass
class RoundOutcome:
    """Record of a finished round."""
    round_number: int
    winner: Side
    end_reason: str
    sides: Dict[Side, SideOutcome] = field(default_factory=dict)


@dataclass
class StrategyRecord:
    """Aggregated results of one side playing one strategy."""
    total_rounds: int = 0
    wins: int = 0
    success_rate: float = 0.0
    avg_kills: float = 0.0
    avg_time: float = 0.0
    objective_success: float = 0.0


class RoundEngine:
    """Round timers, bomb state, win determination and outcome history."""

    BOMB_SITES = ("A", "B")

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.history: List[RoundOutcome] = []

    # ------------------------------------------------------------------
    # Round construction
    # ------------------------------------------------------------------

    def create_warmup_round(self, strategies: Dict[Side, str]) -> RoundState:
        """Round state for the first round of a match, starting in warmup."""
        return RoundState(
            phase=RoundPhase.WARMUP,
            time_left=float(self.settings.warmup_time),
            current_strategy=dict(strategies),
        )

    def create_round(self, strategies: Dict[Side, str], now_ms: int = 0) -> RoundState:
        """Fresh round state in freezetime, carrying strategies forward."""
        return RoundState(
            phase=RoundPhase.FREEZETIME,
            time_left=float(self.settings.freeze_time),
            current_strategy=dict(strategies),
            started_at_ms=now_ms,
        )

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    def tick(self, state: RoundState, delta_seconds: float, now_ms: int = 0) -> TimerUpdate:
        """Advance the round timer by one step.

        Args:
            state: Round to mutate in place
            delta_seconds: Simulated seconds elapsed
            now_ms: Game clock after this step

        Returns:
            TimerUpdate describing any phase transition
        """
        previous = state.phase
        state.time_left = max(0.0, state.time_left - delta_seconds)
        if state.time_left > 0:
            return TimerUpdate(previous, state.phase)

        if previous == RoundPhase.WARMUP:
            state.phase = RoundPhase.FREEZETIME
            state.time_left = float(self.settings.freeze_time)
            state.started_at_ms = now_ms
        elif previous == RoundPhase.FREEZETIME:
            state.phase = RoundPhase.LIVE
            state.time_left = float(self.settings.round_time)
            state.live_at_ms = now_ms
        elif previous == RoundPhase.LIVE:
            self.end_round(state, Side.CT, REASON_TIME_RAN_OUT, now_ms)
            return TimerUpdate(previous, state.phase, round_ended=True)
        elif previous == RoundPhase.PLANTED:
            self.end_round(state, Side.T, REASON_BOMB_DETONATED, now_ms)
            return TimerUpdate(previous, state.phase, round_ended=True)
        elif previous == RoundPhase.ENDED:
            return TimerUpdate(previous, state.phase, ready_for_next_round=True)

        return TimerUpdate(previous, state.phase)

    # ------------------------------------------------------------------
    # Bomb
    # ------------------------------------------------------------------

    def plant_bomb(self, state: RoundState, site: str, now_ms: int = 0) -> bool:
        """Plant at a site. Only valid while live and not yet planted."""
        if state.phase != RoundPhase.LIVE or state.bomb_planted:
            return False
        if site not in self.BOMB_SITES:
            return False

        state.phase = RoundPhase.PLANTED
        state.bomb_planted = True
        state.bomb_site = site
        state.plant_time_ms = now_ms
        state.time_left = float(self.settings.bomb_timer)
        return True

    def defuse_bomb(self, state: RoundState, now_ms: int = 0) -> bool:
        if state.phase != RoundPhase.PLANTED or not state.bomb_planted:
            return False
        self.end_round(state, Side.CT, REASON_BOMB_DEFUSED, now_ms)
        return True

    # ------------------------------------------------------------------
    # Round end
    # ------------------------------------------------------------------

    def end_round(
        self,
        state: RoundState,
        winner: Side,
        reason: str,
        now_ms: int = 0,
        round_number: int = 0,
    ) -> bool:
        """Move the round to ended and record its outcome.

        Returns False (and changes nothing) if the round already ended or
        never went live.
        """
        if state.phase not in (RoundPhase.LIVE, RoundPhase.PLANTED):
            return False

        defused = reason == REASON_BOMB_DEFUSED
        round_time = (
            (now_ms - state.live_at_ms) / 1000.0
            if state.live_at_ms is not None else 0.0
        )

        self.history.append(RoundOutcome(
            round_number=round_number,
            winner=winner,
            end_reason=reason,
            sides={
                Side.T: SideOutcome(
                    strategy=state.current_strategy.get(Side.T, "default"),
                    success=winner == Side.T,
                    objective=state.bomb_planted,
                    round_time=round_time,
                ),
                Side.CT: SideOutcome(
                    strategy=state.current_strategy.get(Side.CT, "default"),
                    success=winner == Side.CT,
                    objective=winner == Side.CT and defused,
                    round_time=round_time,
                ),
            },
        ))

        state.phase = RoundPhase.ENDED
        state.time_left = float(self.settings.post_round_time)
        state.winner = winner
        state.end_reason = reason
        state.active_call = None

        logger.info(f"Round ended: {winner.value} wins ({reason})")
        return True

    def check_elimination(self, state: RoundState, alive: Dict[Side, bool]) -> Optional[Side]:
        """Winner by elimination, if one side has nobody left.

        If both sides are wiped out in the same pass the defenders take it.
        """
        if state.phase not in (RoundPhase.LIVE, RoundPhase.PLANTED):
            return None
        if not alive.get(Side.CT, False):
            return Side.CT if not alive.get(Side.T, False) else Side.T
        if not alive.get(Side.T, False):
            return Side.CT
        return None

    @staticmethod
    def elimination_reason(winner: Side, alive: Dict[Side, bool]) -> str:
        if winner == Side.CT and not alive.get(Side.T, False):
            return REASON_T_ELIMINATED
        return REASON_CT_ELIMINATED

    def record_kills(self, kills: Dict[Side, int]) -> None:
        """Attach per-side kill totals to the most recent outcome."""
        if not self.history:
            return
        outcome = self.history[-1]
        for side, count in kills.items():
            if side in outcome.sides:
                outcome.sides[side].kills = count

    # ------------------------------------------------------------------
    # Command preconditions
    # ------------------------------------------------------------------

    @staticmethod
    def can_change_strategy(state: RoundState) -> bool:
        return state.phase == RoundPhase.FREEZETIME

    @staticmethod
    def can_make_call(state: RoundState) -> bool:
        return state.phase == RoundPhase.LIVE

    def set_active_call(self, state: RoundState, side: Side, call: str, now_ms: int) -> ActiveCall:
        """Replace any active call with a new one that lapses after the call duration."""
        state.active_call = ActiveCall(
            side=side,
            call=call,
            issued_at_ms=now_ms,
            expires_at_ms=now_ms + int(self.settings.mid_round_call_duration * 1000),
        )
        return state.active_call

    @staticmethod
    def expire_call(state: RoundState, now_ms: int) -> Optional[ActiveCall]:
        """Clear the active call if it has lapsed. Returns the expired call."""
        call = state.active_call
        if call is None or now_ms < call.expires_at_ms:
            return None
        state.active_call = None
        return call

    # ------------------------------------------------------------------
    # Match end
    # ------------------------------------------------------------------

    @staticmethod
    def check_match_end(match: MatchState) -> bool:
        """Either side past half of max rounds, or the round cap reached."""
        half = match.max_rounds / 2
        if any(score > half for score in match.score.values()):
            return True
        return match.current_round >= match.max_rounds

    @staticmethod
    def determine_winner(score: Dict[Side, int]) -> Optional[Side]:
        """Side with strictly more rounds; None on a tie."""
        t_score = score.get(Side.T, 0)
        ct_score = score.get(Side.CT, 0)
        if t_score > ct_score:
            return Side.T
        if ct_score > t_score:
            return Side.CT
        return None

    # ------------------------------------------------------------------
    # Strategy outcomes
    # ------------------------------------------------------------------

    def get_strategy_stats(self, side: Side, strategy: str) -> StrategyRecord:
        rounds = [
            outcome for outcome in self.history
            if outcome.sides[side].strategy == strategy
        ]
        total = len(rounds)
        if total == 0:
            return StrategyRecord()

        wins = sum(1 for outcome in rounds if outcome.winner == side)
        return StrategyRecord(
            total_rounds=total,
            wins=wins,
            success_rate=wins / total,
            avg_kills=sum(o.sides[side].kills for o in rounds) / total,
            avg_time=sum(o.sides[side].round_time for o in rounds) / total,
            objective_success=sum(1 for o in rounds if o.sides[side].objective) / total,
        )

    def last_outcome(self) -> Optional[RoundOutcome]:
        return self.history[-1] if self.history else None

    def reset_history(self) -> None:
        self.history = []
