#!/usr/bin/env python3
"""
Simulation Runner - plays a full headless match

Generates both rosters, auto-buys for both sides every freezetime and
ticks the MatchOrchestrator until the match ends, then writes the final
snapshot as JSON.

Usage:
    # Full 30-round match
    python scripts/simulate.py

    # Short seeded match on hard difficulty
    python scripts/simulate.py --rounds 6 --difficulty hard --seed 42

    # Specify output
    python scripts/simulate.py --rounds 10 -o output/match_001.json
"""

import sys
import os
import json
import argparse
import logging
import random
from pathlib import Path
from datetime import datetime

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.config import get_settings
from app.services.game_state import Difficulty, MatchConfig, MatchStatus, RoundPhase, Side
from app.services.match_orchestrator import MatchRegistry

# Default output directory
OUTPUT_DIR = Path(__file__).parent.parent / "output"

logger = logging.getLogger("simulate")


def run_match(
    rounds: int,
    difficulty: str,
    seed=None,
    player_side: str = "t",
    t_strategy: str = "default",
    plant_after: float = 40.0,
):
    """Play one match headlessly and return the orchestrator when it ends.

    Args:
        rounds: Max rounds of the match
        difficulty: Bot difficulty
        seed: Seed for rosters and combat
        player_side: Side the generated "player" roster plays
        t_strategy: Strategy the attackers pick every freezetime
        plant_after: Live seconds after which surviving attackers plant
    """
    settings = get_settings()
    registry = MatchRegistry(settings)
    config = MatchConfig(
        max_rounds=rounds,
        starting_side=player_side,
        difficulty=difficulty,
        auto_buy_bots=True,
    )
    orchestrator = registry.create(config, seed=seed)
    player = Side(player_side)
    site_rng = random.Random(seed)

    per_round = (settings.freeze_time + settings.round_time +
                 settings.bomb_timer + settings.post_round_time)
    max_ticks = int((settings.warmup_time + per_round * rounds) / settings.tick_seconds) + 10

    bought_round = 0
    for _ in range(max_ticks):
        if orchestrator.match.status != MatchStatus.ACTIVE:
            break

        state = orchestrator.round
        current = orchestrator.match.current_round

        if state.phase == RoundPhase.FREEZETIME and bought_round != current:
            orchestrator.auto_buy(player)
            orchestrator.update_strategy(Side.T, t_strategy)
            bought_round = current

        if state.phase == RoundPhase.LIVE and \
                state.time_left <= settings.round_time - plant_after and \
                orchestrator.teams[Side.T].any_alive:
            orchestrator.plant_bomb(site_rng.choice(orchestrator.catalog.BOMB_SITES))

        orchestrator.tick()

    return orchestrator


def print_summary(orchestrator):
    snapshot = orchestrator.get_snapshot()
    match = snapshot.match
    print(f"\nResult:")
    print(f"  Winner: {match.winner or 'draw'}")
    print(f"  Score: T {match.score['t']} - {match.score['ct']} CT")
    print(f"  Rounds played: {match.current_round}")
    print(f"  Simulated time: {snapshot.clock_ms / 1000:.0f}s over {snapshot.tick_count} ticks")

    print(f"\nTop fraggers:")
    agents = [a for team in snapshot.teams.values() for a in team.agents]
    for agent in sorted(agents, key=lambda a: a.match_stats.kills, reverse=True)[:5]:
        print(f"  [{agent.side.upper():>2}] {agent.name:<28} {agent.role:<15} "
              f"K {agent.match_stats.kills:>2} / D {agent.match_stats.deaths:>2}  "
              f"impact {agent.strategy_stats.impact_rating:.2f}")


def main():
    parser = argparse.ArgumentParser(
        description="Play a headless Dust2 match",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/simulate.py --rounds 6 --seed 7
  python scripts/simulate.py --difficulty expert -o output/expert.json
        """
    )

    parser.add_argument('--rounds', '-r', type=int, default=30,
                       help='Max rounds (default: 30)')
    parser.add_argument('--difficulty', '-d', default='medium',
                       choices=[d.value for d in Difficulty],
                       help='Bot difficulty (default: medium)')
    parser.add_argument('--seed', type=int, default=None,
                       help='Random seed for rosters and combat')
    parser.add_argument('--side', '-s', choices=['t', 'ct'], default='t',
                       help='Player side (default: t)')
    parser.add_argument('--strategy', default='default',
                       help='Attacker strategy each round (default: default)')
    parser.add_argument('--plant-after', type=float, default=40.0,
                       help='Live seconds before attackers plant (default: 40)')
    parser.add_argument('--output', '-o', type=str,
                       help='Output JSON file path')
    parser.add_argument('--verbose', '-v', action='store_true',
                       help='Log round lifecycle')

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    print(f"{'='*60}")
    print(f"SIMULATION: de_dust2 - {args.rounds} rounds, {args.difficulty.upper()} bots")
    print(f"{'='*60}")

    orchestrator = run_match(
        rounds=args.rounds,
        difficulty=args.difficulty,
        seed=args.seed,
        player_side=args.side,
        t_strategy=args.strategy,
        plant_after=args.plant_after,
    )
    print_summary(orchestrator)

    if args.output:
        output_path = Path(args.output)
    else:
        output_path = OUTPUT_DIR / f"match_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w') as f:
        f.write(orchestrator.get_snapshot().model_dump_json(indent=2))

    print(f"\nSaved to: {output_path}")


if __name__ == "__main__":
    main()
