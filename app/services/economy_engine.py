"""Economy Engine for Dust2 tactical simulations.

Handles buy tier classification, loadout generation and round-end income
based on the standard competitive economy rules.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set
from enum import Enum
import logging

from .game_state import Agent, Side, Team
from .weapon_system import WeaponDatabase, WeaponCategory

logger = logging.getLogger(__name__)


class BuyType(Enum):
    """Classification of buy tiers by spending cap."""
    ECO = "eco"    # pistol only, save the rest
    SEMI = "semi"  # SMG plus armor and some utility
    FULL = "full"  # rifle or sniper plus armor and utility

    @classmethod
    def parse(cls, value) -> Optional["BuyType"]:
        """Parse a tier name; 'force' is accepted as an alias for semi."""
        if isinstance(value, BuyType):
            return value
        if not isinstance(value, str):
            return None
        value = value.lower()
        if value == "force":
            return cls.SEMI
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass
class Loadout:
    """Weapons and equipment bought for one agent."""
    weapons: List[str] = field(default_factory=list)
    equipment: List[str] = field(default_factory=list)
    total: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.weapons and not self.equipment

    def computed_cost(self) -> int:
        return sum(WeaponDatabase.item_cost(i) for i in self.weapons + self.equipment)


@dataclass
class AgentBuy:
    agent_id: str
    loadout: Loadout


class BuyEngine:
    """Stateless loadout calculation backed by the weapon catalog."""

    MAX_SPEND: Dict[BuyType, int] = {
        BuyType.ECO: 2000,
        BuyType.SEMI: 4000,
        BuyType.FULL: 7000,
    }

    # Weapon classes eligible as a primary for each tier
    PRIMARY_CLASSES: Dict[BuyType, tuple] = {
        BuyType.ECO: (),
        BuyType.SEMI: (WeaponCategory.SMG,),
        BuyType.FULL: (WeaponCategory.RIFLE, WeaponCategory.SNIPER),
    }

    # Slot and upgrade order of weapon classes; 0 is the pistol slot
    CLASS_RANK: Dict[WeaponCategory, int] = {
        WeaponCategory.PISTOL: 0,
        WeaponCategory.SMG: 1,
        WeaponCategory.RIFLE: 2,
        WeaponCategory.SNIPER: 2,
    }

    # Semi buys only take a primary when more than this remains
    SEMI_PRIMARY_THRESHOLD = 2000

    # Per-agent money thresholds for tier recommendation
    ECO_THRESHOLD = 2000
    SEMI_THRESHOLD = 4000

    @classmethod
    def calculate_agent_buy(cls, agent: Agent, money: int, strategy, side: Side) -> Loadout:
        """Calculate one agent's loadout.

        Args:
            agent: Agent buying (its role drives weapon preference)
            money: Money available to this agent
            strategy: Buy tier ('eco', 'semi'/'force', 'full')
            side: Side of the agent; defender-only items are skipped for 't'

        Returns:
            Loadout whose total never exceeds money. Empty when money is
            negative or the tier or side is unknown.
        """
        loadout = Loadout()
        tier = BuyType.parse(strategy)
        if money is None or money < 0 or tier is None:
            return loadout

        try:
            side = Side(side)
        except ValueError:
            logger.warning(f"Buy skipped: unknown side {side!r}")
            return loadout

        max_spend = min(int(money), cls.MAX_SPEND[tier])
        remaining = max_spend

        if tier == BuyType.FULL or (tier == BuyType.SEMI and remaining > cls.SEMI_PRIMARY_THRESHOLD):
            weapon = cls.select_primary(agent.role, tier, remaining)
            if weapon:
                loadout.weapons.append(weapon)
                remaining -= WeaponDatabase.WEAPONS[weapon].cost

        if not loadout.weapons or tier == BuyType.ECO:
            pistol = cls.select_pistol(agent.role, remaining)
            if pistol:
                loadout.weapons.append(pistol)
                remaining -= WeaponDatabase.WEAPONS[pistol].cost

        equipment = cls.select_equipment(remaining, tier, side)
        loadout.equipment = equipment
        remaining -= sum(WeaponDatabase.EQUIPMENT[item].cost for item in equipment)

        loadout.total = max_spend - remaining
        return loadout

    @classmethod
    def calculate_team_buy(
        cls,
        agents: List[Agent],
        team_money: int,
        strategy,
        side: Side,
    ) -> List[AgentBuy]:
        """Split team money evenly (floor) and buy for every agent."""
        if not agents or team_money <= 0:
            return []

        individual_money = team_money // len(agents)
        return [
            AgentBuy(agent.id, cls.calculate_agent_buy(agent, individual_money, strategy, side))
            for agent in agents
        ]

    @classmethod
    def recommend_tier(cls, money_per_agent: int) -> BuyType:
        if money_per_agent < cls.ECO_THRESHOLD:
            return BuyType.ECO
        if money_per_agent < cls.SEMI_THRESHOLD:
            return BuyType.SEMI
        return BuyType.FULL

    @classmethod
    def select_primary(cls, role: str, tier: BuyType, money: int) -> Optional[str]:
        """Most preferred affordable primary for a role; ties go to the pricier gun."""
        classes = cls.PRIMARY_CLASSES[tier]
        candidates = [
            weapon for weapon in WeaponDatabase.WEAPONS.values()
            if weapon.category in classes
            and weapon.preference_rank(role) is not None
            and weapon.cost <= money
        ]
        if not candidates:
            return None

        candidates.sort(key=lambda w: (w.preference_rank(role), -w.cost))
        return candidates[0].weapon_id

    @classmethod
    def select_pistol(cls, role: str, money: int) -> Optional[str]:
        """Affordable pistol, role-preferred first, then most expensive."""
        pistols = [
            weapon for weapon in WeaponDatabase.get_weapons_by_category(WeaponCategory.PISTOL)
            if weapon.cost <= money
        ]
        if not pistols:
            return None

        pistols.sort(key=lambda w: (w.preference_rank(role) is None, -w.cost))
        return pistols[0].weapon_id

    @classmethod
    def select_equipment(cls, money: int, tier: BuyType, side: Side) -> List[str]:
        """Armor (not on eco), then utility by ascending priority."""
        equipment: List[str] = []
        remaining = money
        if remaining <= 0:
            return equipment

        kevlar = WeaponDatabase.EQUIPMENT["kevlar"]
        helmet = WeaponDatabase.EQUIPMENT["helmet"]
        if tier != BuyType.ECO and remaining >= kevlar.cost:
            equipment.append(kevlar.equipment_id)
            remaining -= kevlar.cost
            if remaining >= helmet.cost:
                equipment.append(helmet.equipment_id)
                remaining -= helmet.cost

        utility = sorted(
            (item for item in WeaponDatabase.EQUIPMENT.values()
             if not item.is_armor and (not item.defender_only or side == Side.CT)),
            key=lambda item: item.priority,
        )
        for item in utility:
            if item.cost <= remaining:
                equipment.append(item.equipment_id)
                remaining -= item.cost

        return equipment

    @classmethod
    def class_rank(cls, weapon_id: str) -> int:
        return cls.CLASS_RANK[WeaponDatabase.get_category(weapon_id)]

    @classmethod
    def owned_items(cls, agent: Agent) -> Set[str]:
        """Items an agent already has. Armor only counts while it has armor left."""
        owned = set(agent.weapons)
        for item in agent.equipment:
            stats = WeaponDatabase.get_equipment(item)
            if stats is not None and stats.is_armor and agent.armor <= 0:
                continue
            owned.add(item)
        return owned

    @classmethod
    def fit_to_holdings(cls, agent: Agent, loadout: Loadout) -> Loadout:
        """Drop items the agent already owns and guns that would not be an upgrade.

        A carried SMG, rifle or sniper is kept over any bought gun of the same
        or a lower class, and makes a bought pistol pointless.
        """
        owned = cls.owned_items(agent)
        held_rank = max((cls.class_rank(w) for w in agent.weapons), default=-1)

        weapons = []
        for weapon in loadout.weapons:
            if weapon in owned:
                continue
            rank = cls.class_rank(weapon)
            if held_rank > 0 and rank <= held_rank:
                continue
            weapons.append(weapon)

        fitted = Loadout(
            weapons=weapons,
            equipment=[item for item in loadout.equipment if item not in owned],
        )
        fitted.total = fitted.computed_cost()
        return fitted

    @classmethod
    def merge_weapons(cls, held: List[str], bought: List[str]) -> List[str]:
        """Bought guns replace the held gun of the same slot; the primary stays first."""
        weapons = list(held)
        for weapon in bought:
            if weapon in weapons:
                continue
            is_pistol = cls.class_rank(weapon) == 0
            weapons = [w for w in weapons if (cls.class_rank(w) == 0) != is_pistol]
            if is_pistol:
                weapons.append(weapon)
            else:
                weapons.insert(0, weapon)
        return weapons


class EconomyEngine:
    """Round-end income rules."""

    WIN_REWARD = 3250
    MONEY_CAP = 16000
    LOSS_BONUS_FLOOR = 1400
    LOSS_BONUS_STEP = 500
    LOSS_BONUS_CAP = 3400

    @classmethod
    def settle_round(cls, winner: Team, loser: Team) -> Dict[Side, int]:
        """Pay out round income and advance loss bonuses.

        The winner earns the win reward and its loss bonus resets to the
        floor. The loser is paid its current loss bonus, which then grows by
        one step up to the cap. Money is clamped to [0, MONEY_CAP].

        Returns:
            Income actually credited to each side after capping
        """
        winner_before = winner.money
        loser_before = loser.money

        winner.money = cls._clamp_money(winner.money + cls.WIN_REWARD)
        winner.loss_bonus = cls.LOSS_BONUS_FLOOR

        payout = max(cls.LOSS_BONUS_FLOOR, loser.loss_bonus)
        loser.money = cls._clamp_money(loser.money + payout)
        loser.loss_bonus = min(cls.LOSS_BONUS_CAP, payout + cls.LOSS_BONUS_STEP)

        income = {
            winner.side: winner.money - winner_before,
            loser.side: loser.money - loser_before,
        }
        logger.debug(
            f"Round settled: {winner.side.value} +{income[winner.side]}, "
            f"{loser.side.value} +{income[loser.side]} (next loss bonus {loser.loss_bonus})"
        )
        return income

    @classmethod
    def _clamp_money(cls, value: int) -> int:
        return max(0, min(cls.MONEY_CAP, int(value)))
