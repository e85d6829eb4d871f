"""Tactics Catalog for Dust2 tactical simulations.

Static lookup of map waypoints, per-side strategies (per-role waypoint lists
indexed by round phase, per-role utility, priority weights) and mid-round
calls. Read-only: nothing here changes during a match.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .game_state import (
    Agent, Position, RoundPhase, Side,
    ENTRY_FRAGGER, AWPER, SUPPORT, IN_GAME_LEADER, LURKER, ROLES,
)


# Waypoint name meaning "stay where you are"
HOLD_CURRENT = "current"


@dataclass
class StrategySetup:
    """A named per-side positional/utility plan."""
    key: str
    side: Side
    description: str
    # role -> waypoint names, one per phase (freezetime, live, planted)
    positions: Dict[str, Tuple[str, ...]]
    utility: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    priority: Dict[str, float] = field(default_factory=dict)
    speed_multiplier: float = 1.0


@dataclass
class MidRoundCall:
    """A transient override of every role's target waypoint."""
    key: str
    side: Side
    description: str
    positions: Dict[str, str]


class TacticsCatalog:
    """Static de_dust2 tactics data."""

    MAP_NAME = "de_dust2"
    MAP_AREAS = ("A", "B", "Mid", "T_Spawn", "CT_Spawn")
    BOMB_SITES = ("A", "B")

    WAYPOINTS: Dict[str, Tuple[float, float]] = {
        "t_spawn": (60, 180),
        "t_mid": (120, 150),
        "long_doors": (85, 80),
        "upper_tunnels": (80, 200),
        "lower_tunnels": (100, 220),
        "ct_spawn": (230, 170),
        "b_platform": (70, 220),
        "window": (150, 120),
        "a_site": (220, 80),
        "goose": (200, 90),
        "car": (240, 70),
        "mid_doors": (150, 150),
        "catwalk": (180, 120),
        "xbox": (130, 130),
    }

    SPAWNS = {Side.T: "t_spawn", Side.CT: "ct_spawn"}

    PHASE_INDEX = {
        RoundPhase.WARMUP: 0,
        RoundPhase.FREEZETIME: 0,
        RoundPhase.LIVE: 1,
        RoundPhase.PLANTED: 2,
        RoundPhase.ENDED: 0,
    }

    STRATEGIES: Dict[Side, Dict[str, StrategySetup]] = {
        Side.T: {
            "default": StrategySetup(
                key="default", side=Side.T,
                description="Balanced setup with standard positions",
                positions={
                    ENTRY_FRAGGER: ("t_spawn", "long_doors"),
                    AWPER: ("t_spawn", "t_mid"),
                    SUPPORT: ("t_spawn", "upper_tunnels"),
                    IN_GAME_LEADER: ("t_spawn", "catwalk"),
                    LURKER: ("t_spawn", "lower_tunnels"),
                },
                utility={
                    SUPPORT: ("smoke", "flash"),
                    ENTRY_FRAGGER: ("flash", "flash"),
                    IN_GAME_LEADER: ("smoke", "molotov"),
                },
            ),
            "rush_b": StrategySetup(
                key="rush_b", side=Side.T,
                description="Fast B execute with full team commitment",
                positions={
                    ENTRY_FRAGGER: ("t_spawn", "upper_tunnels", "b_platform"),
                    AWPER: ("t_spawn", "upper_tunnels", "b_platform"),
                    SUPPORT: ("t_spawn", "upper_tunnels", "b_platform"),
                    IN_GAME_LEADER: ("t_spawn", "upper_tunnels", "b_platform"),
                    LURKER: ("t_spawn", "mid_doors"),
                },
                utility={
                    SUPPORT: ("smoke", "flash", "flash"),
                    ENTRY_FRAGGER: ("flash", "flash"),
                    IN_GAME_LEADER: ("molotov",),
                },
                priority={"speed": 0.8, "utility": 0.2},
                speed_multiplier=1.5,
            ),
            "split_a": StrategySetup(
                key="split_a", side=Side.T,
                description="Split attack through Long and Short A",
                positions={
                    ENTRY_FRAGGER: ("t_spawn", "long_doors", "a_site"),
                    AWPER: ("t_spawn", "catwalk", "a_site"),
                    SUPPORT: ("t_spawn", "catwalk", "a_site"),
                    IN_GAME_LEADER: ("t_spawn", "long_doors", "a_site"),
                    LURKER: ("t_spawn", "upper_tunnels"),
                },
                utility={
                    SUPPORT: ("smoke", "smoke", "flash"),
                    ENTRY_FRAGGER: ("flash", "molotov"),
                    IN_GAME_LEADER: ("smoke", "flash"),
                },
                priority={"coordination": 0.7, "utility": 0.3},
            ),
            "mid_control": StrategySetup(
                key="mid_control", side=Side.T,
                description="Secure mid control before site hit",
                positions={
                    ENTRY_FRAGGER: ("t_spawn", "t_mid", "catwalk"),
                    AWPER: ("t_spawn", "t_mid", "mid_doors"),
                    SUPPORT: ("t_spawn", "xbox", "catwalk"),
                    IN_GAME_LEADER: ("t_spawn", "t_mid", "mid_doors"),
                    LURKER: ("t_spawn", "lower_tunnels"),
                },
                utility={
                    SUPPORT: ("smoke", "flash"),
                    ENTRY_FRAGGER: ("flash", "molotov"),
                    IN_GAME_LEADER: ("smoke", "flash"),
                },
            ),
            "eco_rush": StrategySetup(
                key="eco_rush", side=Side.T,
                description="Economic round with rushed strategy",
                positions={
                    ENTRY_FRAGGER: ("t_spawn", "long_doors", "a_site"),
                    AWPER: ("t_spawn", "long_doors", "a_site"),
                    SUPPORT: ("t_spawn", "long_doors", "car"),
                    IN_GAME_LEADER: ("t_spawn", "long_doors", "a_site"),
                    LURKER: ("t_spawn", "long_doors", "goose"),
                },
                priority={"speed": 1.0},
                speed_multiplier=1.3,
            ),
            "fake_a_b": StrategySetup(
                key="fake_a_b", side=Side.T,
                description="Fake presence at A before B execute",
                positions={
                    ENTRY_FRAGGER: ("t_spawn", "upper_tunnels", "b_platform"),
                    AWPER: ("t_spawn", "upper_tunnels", "b_platform"),
                    SUPPORT: ("t_spawn", "long_doors", "b_platform"),
                    IN_GAME_LEADER: ("t_spawn", "upper_tunnels", "b_platform"),
                    LURKER: ("t_spawn", "long_doors", "mid_doors"),
                },
                utility={
                    SUPPORT: ("smoke", "smoke", "flash"),
                    ENTRY_FRAGGER: ("flash",),
                    IN_GAME_LEADER: ("molotov", "flash"),
                },
                priority={"deception": 0.6, "utility": 0.4},
            ),
        },
        Side.CT: {
            "default": StrategySetup(
                key="default", side=Side.CT,
                description="Balanced setup with standard positions",
                positions={
                    ENTRY_FRAGGER: ("ct_spawn", "long_doors"),
                    AWPER: ("ct_spawn", "mid_doors"),
                    SUPPORT: ("ct_spawn", "b_platform"),
                    IN_GAME_LEADER: ("ct_spawn", "a_site"),
                    LURKER: ("ct_spawn", "window"),
                },
                utility={
                    SUPPORT: ("smoke", "flash"),
                    ENTRY_FRAGGER: ("flash", "flash"),
                    IN_GAME_LEADER: ("smoke", "molotov"),
                },
            ),
            "stack_b": StrategySetup(
                key="stack_b", side=Side.CT,
                description="Stack multiple players on B site",
                positions={
                    ENTRY_FRAGGER: ("ct_spawn", "b_platform"),
                    AWPER: ("ct_spawn", "window"),
                    SUPPORT: ("ct_spawn", "b_platform"),
                    IN_GAME_LEADER: ("ct_spawn", "b_platform"),
                    LURKER: ("ct_spawn", "mid_doors"),
                },
                utility={
                    SUPPORT: ("smoke", "flash"),
                    ENTRY_FRAGGER: ("molotov",),
                    IN_GAME_LEADER: ("smoke", "flash"),
                },
            ),
            "retake_setup": StrategySetup(
                key="retake_setup", side=Side.CT,
                description="Setup for retake scenarios",
                positions={
                    ENTRY_FRAGGER: ("ct_spawn", "car"),
                    AWPER: ("ct_spawn", "mid_doors"),
                    SUPPORT: ("ct_spawn", "window"),
                    IN_GAME_LEADER: ("ct_spawn", "goose"),
                    LURKER: ("ct_spawn", "b_platform"),
                },
                utility={
                    SUPPORT: ("smoke", "flash", "flash"),
                    ENTRY_FRAGGER: ("flash", "molotov"),
                    IN_GAME_LEADER: ("smoke", "flash"),
                },
            ),
            "mid_control": StrategySetup(
                key="mid_control", side=Side.CT,
                description="Contest mid before the attack commits",
                positions={
                    ENTRY_FRAGGER: ("ct_spawn", "mid_doors"),
                    AWPER: ("ct_spawn", "catwalk"),
                    SUPPORT: ("ct_spawn", "window"),
                    IN_GAME_LEADER: ("ct_spawn", "mid_doors"),
                    LURKER: ("ct_spawn", "b_platform"),
                },
                utility={
                    SUPPORT: ("smoke", "flash"),
                    AWPER: ("flash",),
                },
            ),
        },
    }

    MID_ROUND_CALLS: Dict[Side, Dict[str, MidRoundCall]] = {
        Side.T: {
            "rotate_a": MidRoundCall("rotate_a", Side.T, "Rotate to A", {
                ENTRY_FRAGGER: "a_site", AWPER: "long_doors", SUPPORT: "catwalk",
                IN_GAME_LEADER: "a_site", LURKER: "mid_doors",
            }),
            "rotate_b": MidRoundCall("rotate_b", Side.T, "Rotate to B", {
                ENTRY_FRAGGER: "b_platform", AWPER: "window", SUPPORT: "b_platform",
                IN_GAME_LEADER: "b_platform", LURKER: "upper_tunnels",
            }),
            "execute_a": MidRoundCall("execute_a", Side.T, "Everyone onto A", {
                role: "a_site" for role in ROLES
            }),
            "execute_b": MidRoundCall("execute_b", Side.T, "Everyone onto B", {
                role: "b_platform" for role in ROLES
            }),
            "hold_positions": MidRoundCall("hold_positions", Side.T, "Hold current positions", {
                role: HOLD_CURRENT for role in ROLES
            }),
            "fall_back": MidRoundCall("fall_back", Side.T, "Fall back to spawn", {
                role: "t_spawn" for role in ROLES
            }),
        },
        Side.CT: {
            "rotate_a": MidRoundCall("rotate_a", Side.CT, "Rotate to A", {
                ENTRY_FRAGGER: "a_site", AWPER: "long_doors", SUPPORT: "catwalk",
                IN_GAME_LEADER: "a_site", LURKER: "mid_doors",
            }),
            "rotate_b": MidRoundCall("rotate_b", Side.CT, "Rotate to B", {
                ENTRY_FRAGGER: "b_platform", AWPER: "window", SUPPORT: "b_platform",
                IN_GAME_LEADER: "b_platform", LURKER: "upper_tunnels",
            }),
            "retake": MidRoundCall("retake", Side.CT, "Retake through CT and short", {
                ENTRY_FRAGGER: "car", AWPER: "catwalk", SUPPORT: "goose",
                IN_GAME_LEADER: "a_site", LURKER: "window",
            }),
            "stack_b": MidRoundCall("stack_b", Side.CT, "Collapse onto B", {
                role: "b_platform" for role in ROLES
            }),
            "hold_positions": MidRoundCall("hold_positions", Side.CT, "Hold current positions", {
                role: HOLD_CURRENT for role in ROLES
            }),
            "fall_back": MidRoundCall("fall_back", Side.CT, "Fall back to spawn", {
                role: "ct_spawn" for role in ROLES
            }),
        },
    }

    def get_waypoint(self, name: str) -> Optional[Position]:
        coords = self.WAYPOINTS.get(name)
        if coords is None:
            return None
        return Position(float(coords[0]), float(coords[1]))

    def spawn_position(self, side: Side) -> Position:
        return self.get_waypoint(self.SPAWNS[side])

    def default_position(self, agent: Agent) -> Position:
        return self.spawn_position(agent.side)

    def get_strategy(self, side: Side, key: str) -> Optional[StrategySetup]:
        return self.STRATEGIES.get(side, {}).get(key)

    def get_call(self, side: Side, key: str) -> Optional[MidRoundCall]:
        return self.MID_ROUND_CALLS.get(side, {}).get(key)

    def position_for_agent(self, agent: Agent, phase: RoundPhase, strategy: str) -> Position:
        """Target waypoint for an agent's role under a strategy in a given phase.

        The phase picks an index into the role's waypoint list, clamped to its
        last entry. Unknown strategies or roles fall back to the spawn.
        """
        setup = self.get_strategy(agent.side, strategy or "default")
        if setup is None:
            return self.default_position(agent)

        waypoints = setup.positions.get(agent.role)
        if not waypoints:
            return self.default_position(agent)

        index = min(self.PHASE_INDEX.get(phase, 0), len(waypoints) - 1)
        return self.get_waypoint(waypoints[index]) or self.default_position(agent)

    def position_for_call(self, agent: Agent, call: str) -> Position:
        """Target waypoint for an agent's role under a mid-round call."""
        mid_round_call = self.get_call(agent.side, call)
        if mid_round_call is None:
            return self.default_position(agent)

        waypoint = mid_round_call.positions.get(agent.role)
        if waypoint is None:
            return self.default_position(agent)
        if waypoint == HOLD_CURRENT:
            return agent.position.copy()
        return self.get_waypoint(waypoint) or self.default_position(agent)

    def utility_for_role(self, side: Side, strategy: str, role: str) -> List[str]:
        setup = self.get_strategy(side, strategy)
        if setup is None:
            return []
        return list(setup.utility.get(role, ()))

    def available_strategies(self, side: Side) -> List[str]:
        return list(self.STRATEGIES.get(side, {}).keys())

    def available_calls(self, side: Side) -> List[str]:
        return list(self.MID_ROUND_CALLS.get(side, {}).keys())

    def validate_strategy(self, side: Side, key: str) -> bool:
        return self.get_strategy(side, key) is not None

    def validate_call(self, side: Side, key: str) -> bool:
        return self.get_call(side, key) is not None

    def strategy_priority(self, side: Side, key: str) -> Dict[str, float]:
        setup = self.get_strategy(side, key)
        return dict(setup.priority) if setup else {}

    def speed_multiplier(self, side: Side, key: str) -> float:
        setup = self.get_strategy(side, key)
        return setup.speed_multiplier if setup else 1.0
