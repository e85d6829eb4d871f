"""Weapon System for Dust2 tactical simulations.

Contains the buyable weapon and equipment catalog, the per-class base damage
table and the damage formula used by the combat engine.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
from enum import Enum
import math


class WeaponCategory(Enum):
    PISTOL = "pistol"
    SMG = "smg"
    RIFLE = "rifle"
    SNIPER = "sniper"


class UtilityKind(Enum):
    ARMOR = "armor"        # kevlar / helmet
    KIT = "kit"            # defuse kit
    FLASH = "flash"
    SMOKE = "smoke"
    MOLOTOV = "molotov"
    GRENADE = "grenade"


@dataclass(frozen=True)
class WeaponStats:
    """Statistics for a single buyable weapon."""
    weapon_id: str
    name: str
    category: WeaponCategory
    cost: int
    # Roles that prefer this weapon, most preferred first
    preference: Tuple[str, ...] = ()

    def preference_rank(self, role: str) -> Optional[int]:
        """Index of role in the preference list, None if not preferred."""
        try:
            return self.preference.index(role)
        except ValueError:
            return None


@dataclass(frozen=True)
class EquipmentStats:
    """Statistics for armor, kits and throwable utility."""
    equipment_id: str
    kind: UtilityKind
    cost: int
    priority: int  # lower is bought first
    defender_only: bool = False
    radius: float = 0.0
    damage: int = 0
    duration_ms: int = 0

    @property
    def is_throwable(self) -> bool:
        return self.kind in (
            UtilityKind.FLASH, UtilityKind.SMOKE,
            UtilityKind.MOLOTOV, UtilityKind.GRENADE,
        )

    @property
    def is_armor(self) -> bool:
        return self.kind == UtilityKind.ARMOR


class WeaponDatabase:
    """Database of all buyable weapons and equipment."""

    WEAPONS: Dict[str, WeaponStats] = {
        # Pistols
        "glock": WeaponStats("glock", "Glock-18", WeaponCategory.PISTOL, 200,
                             ("Entry Fragger",)),
        "usp": WeaponStats("usp", "USP-S", WeaponCategory.PISTOL, 200,
                           ("Support",)),
        "deagle": WeaponStats("deagle", "Desert Eagle", WeaponCategory.PISTOL, 700,
                              ("AWPer", "Entry Fragger")),

        # SMGs
        "mp9": WeaponStats("mp9", "MP9", WeaponCategory.SMG, 1250,
                           ("Support", "In-Game Leader")),
        "mac10": WeaponStats("mac10", "MAC-10", WeaponCategory.SMG, 1050,
                             ("Entry Fragger", "Lurker")),

        # Rifles
        "ak47": WeaponStats("ak47", "AK-47", WeaponCategory.RIFLE, 2700,
                            ("Entry Fragger", "Lurker")),
        "m4a4": WeaponStats("m4a4", "M4A4", WeaponCategory.RIFLE, 3100,
                            ("Support", "In-Game Leader")),
        "awp": WeaponStats("awp", "AWP", WeaponCategory.SNIPER, 4750,
                           ("AWPer",)),
    }

    EQUIPMENT: Dict[str, EquipmentStats] = {
        "kevlar": EquipmentStats("kevlar", UtilityKind.ARMOR, 650, 1),
        "helmet": EquipmentStats("helmet", UtilityKind.ARMOR, 350, 2),
        "defuse": EquipmentStats("defuse", UtilityKind.KIT, 400, 3, defender_only=True),
        "flash": EquipmentStats("flash", UtilityKind.FLASH, 200, 4,
                                radius=100.0, duration_ms=3000),
        "smoke": EquipmentStats("smoke", UtilityKind.SMOKE, 300, 5,
                                radius=50.0, duration_ms=18000),
        "molotov": EquipmentStats("molotov", UtilityKind.MOLOTOV, 400, 6,
                                  radius=50.0, damage=40, duration_ms=7000),
        "he": EquipmentStats("he", UtilityKind.GRENADE, 300, 7,
                             radius=50.0, damage=50),
    }

    # (body, head) base damage per weapon class
    BASE_DAMAGE: Dict[WeaponCategory, Dict[str, int]] = {
        WeaponCategory.RIFLE: {"body": 25, "head": 100},
        WeaponCategory.SMG: {"body": 20, "head": 80},
        WeaponCategory.PISTOL: {"body": 15, "head": 65},
        WeaponCategory.SNIPER: {"body": 100, "head": 100},
    }

    # Pistol every agent spawns with, by side value
    DEFAULT_PISTOLS: Dict[str, str] = {"t": "glock", "ct": "usp"}

    ARMOR_DAMAGE_MULTIPLIER = 0.75
    MIN_FALLOFF = 0.5
    FALLOFF_DISTANCE = 200.0

    @classmethod
    def get_weapon(cls, weapon_id: str) -> Optional[WeaponStats]:
        return cls.WEAPONS.get(weapon_id)

    @classmethod
    def get_equipment(cls, equipment_id: str) -> Optional[EquipmentStats]:
        return cls.EQUIPMENT.get(equipment_id)

    @classmethod
    def get_category(cls, weapon_id: str) -> WeaponCategory:
        """Damage class of a weapon; unknown ids count as pistols."""
        weapon = cls.WEAPONS.get(weapon_id)
        return weapon.category if weapon else WeaponCategory.PISTOL

    @classmethod
    def default_pistol(cls, side: str) -> str:
        return cls.DEFAULT_PISTOLS.get(side, "glock")

    @classmethod
    def get_weapons_by_category(cls, category: WeaponCategory) -> List[WeaponStats]:
        return [w for w in cls.WEAPONS.values() if w.category == category]

    @classmethod
    def item_cost(cls, item_id: str) -> int:
        """Cost of a weapon or equipment id, 0 when unknown."""
        if item_id in cls.WEAPONS:
            return cls.WEAPONS[item_id].cost
        if item_id in cls.EQUIPMENT:
            return cls.EQUIPMENT[item_id].cost
        return 0

    @classmethod
    def calculate_damage(
        cls,
        weapon_id: str,
        distance: float,
        is_headshot: bool,
        target_armor: int,
    ) -> int:
        """Calculate damage dealt by a single hit.

        damage = base[head|body] * max(0.5, 1 - distance / 200) * (0.75 if armored)

        Args:
            weapon_id: Weapon firing the shot
            distance: Distance to the target in map units
            is_headshot: Whether the hit landed on the head
            target_armor: Target's current armor value

        Returns:
            Integer damage (floored)
        """
        table = cls.BASE_DAMAGE[cls.get_category(weapon_id)]
        base = table["head"] if is_headshot else table["body"]

        distance_multiplier = max(cls.MIN_FALLOFF, 1.0 - (distance / cls.FALLOFF_DISTANCE))
        armor_multiplier = cls.ARMOR_DAMAGE_MULTIPLIER if target_armor > 0 else 1.0

        return int(math.floor(base * distance_multiplier * armor_multiplier))
