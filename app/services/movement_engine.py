"""Movement Engine for Dust2 tactical simulations.

Moves agents along straight-line interpolated paths toward the waypoint
their strategy (or an active mid-round call) assigns them, and scores how
well each agent is holding its assigned spot.

Paths are cached per agent id. The cache is never refreshed implicitly:
callers invalidate it when the target may have changed (phase change,
strategy change, mid-round call set or expired) and clear it on round reset.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional
import logging

import numpy as np

from .game_state import Agent, Position, RoundPhase
from .tactics_catalog import TacticsCatalog

logger = logging.getLogger(__name__)


@dataclass
class MovementPath:
    """Interpolated points toward a target and progress along them."""
    points: np.ndarray  # shape (N, 2)
    target: Position
    current_index: int = 0

    @property
    def finished(self) -> bool:
        return self.current_index >= len(self.points)


class MovementEngine:
    """Advances living agents toward tactic-derived targets."""

    MOVEMENT_SPEED = 25.0     # map units per simulated second
    PATH_STEPS = 10           # interpolated points per path
    MAX_ALLOWED_DISTANCE = 50.0  # distance at which positioning score hits 0

    def __init__(self, catalog: Optional[TacticsCatalog] = None):
        self.catalog = catalog or TacticsCatalog()
        self._paths: Dict[str, MovementPath] = {}

    def update_positions(
        self,
        agents: Iterable[Agent],
        phase: RoundPhase,
        delta_seconds: float,
        strategy: str,
        current_call: Optional[str] = None,
    ) -> None:
        """Move every living agent one step and refresh its positioning stats.

        Args:
            agents: Agents of one side
            phase: Current round phase (selects the strategy waypoint)
            delta_seconds: Simulated time elapsed since the previous step
            strategy: Strategy key of the agents' side
            current_call: Active mid-round call for this side, if any
        """
        for agent in agents:
            if not agent.is_alive:
                continue

            path = self._paths.get(agent.id)
            if path is None:
                target = self.resolve_target(agent, phase, strategy, current_call)
                path = self._create_path(agent, target)

            speed = self.MOVEMENT_SPEED * self.catalog.speed_multiplier(agent.side, strategy)
            self._move_along_path(agent, path, speed * max(0.0, delta_seconds))
            self._update_positioning_stats(agent, path.target)

    def resolve_target(
        self,
        agent: Agent,
        phase: RoundPhase,
        strategy: str,
        current_call: Optional[str] = None,
    ) -> Position:
        if current_call:
            return self.catalog.position_for_call(agent, current_call)
        return self.catalog.position_for_agent(agent, phase, strategy)

    def get_path(self, agent_id: str) -> Optional[MovementPath]:
        return self._paths.get(agent_id)

    def invalidate(self, agent_ids: Optional[Iterable[str]] = None) -> None:
        """Drop cached paths so targets are re-resolved on the next step.

        With no ids, every cached path is dropped.
        """
        if agent_ids is None:
            self._paths.clear()
            return
        for agent_id in agent_ids:
            self._paths.pop(agent_id, None)

    def remove_agent(self, agent_id: str) -> None:
        self._paths.pop(agent_id, None)

    def clear(self) -> None:
        self._paths.clear()

    @property
    def cached_agent_ids(self) -> List[str]:
        return list(self._paths.keys())

    def _create_path(self, agent: Agent, target: Position) -> MovementPath:
        path = MovementPath(
            points=self.calculate_path(agent.position, target),
            target=target,
        )
        self._paths[agent.id] = path
        logger.debug(f"Path for {agent.id} -> ({target.x:.0f}, {target.y:.0f})")
        return path

    @classmethod
    def calculate_path(cls, start: Position, end: Position) -> np.ndarray:
        """Evenly spaced points from start (exclusive) to end (inclusive)."""
        fractions = np.linspace(0.0, 1.0, cls.PATH_STEPS + 1)[1:]
        xs = start.x + (end.x - start.x) * fractions
        ys = start.y + (end.y - start.y) * fractions
        return np.column_stack((xs, ys))

    def _move_along_path(self, agent: Agent, path: MovementPath, budget: float) -> None:
        """Spend a movement budget walking path points in order, never overshooting."""
        while budget > 0 and not path.finished:
            point = path.points[path.current_index]
            dx = float(point[0]) - agent.position.x
            dy = float(point[1]) - agent.position.y
            distance = float(np.hypot(dx, dy))

            if distance <= budget:
                agent.position = Position(float(point[0]), float(point[1]))
                budget -= distance
                path.current_index += 1
                continue

            ratio = budget / distance
            agent.position = Position(
                agent.position.x + dx * ratio,
                agent.position.y + dy * ratio,
            )
            budget = 0.0

    def _update_positioning_stats(self, agent: Agent, target: Position) -> None:
        stats = agent.strategy_stats
        distance = agent.position.distance_to(target)

        stats.positioning_score = max(0.0, 1.0 - distance / self.MAX_ALLOWED_DISTANCE)
        stats.strategy_adherence = (stats.strategy_adherence + stats.positioning_score) / 2
