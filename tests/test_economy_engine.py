"""Tests for economy_engine.py"""

import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.services.economy_engine import BuyEngine, BuyType, EconomyEngine, Loadout
from app.services.game_state import (
    Agent, Side, Team, ROLES, ENTRY_FRAGGER, AWPER, SUPPORT, LURKER,
)


def make_agent(role, side=Side.T):
    return Agent(id=f"{side.value}-{role}", name=role, side=side, role=role)


class TestBuyType:
    """Tests for tier parsing."""

    def test_parse(self):
        assert BuyType.parse("eco") == BuyType.ECO
        assert BuyType.parse("FULL") == BuyType.FULL
        assert BuyType.parse("force") == BuyType.SEMI
        assert BuyType.parse(BuyType.SEMI) == BuyType.SEMI
        assert BuyType.parse("yolo") is None
        assert BuyType.parse(None) is None

    def test_recommend_tier(self):
        """Tier thresholds sit at 2000 and 4000 per agent."""
        assert BuyEngine.recommend_tier(0) == BuyType.ECO
        assert BuyEngine.recommend_tier(1999) == BuyType.ECO
        assert BuyEngine.recommend_tier(2000) == BuyType.SEMI
        assert BuyEngine.recommend_tier(3999) == BuyType.SEMI
        assert BuyEngine.recommend_tier(4000) == BuyType.FULL


class TestAgentBuy:
    """Tests for single agent loadouts."""

    def test_awper_full_buy(self):
        """An AWPer with 5000 on a full buy takes the AWP and a flash."""
        loadout = BuyEngine.calculate_agent_buy(make_agent(AWPER, Side.CT), 5000, "full", "ct")
        assert loadout.weapons == ["awp"]
        assert loadout.equipment == ["flash"]
        assert loadout.total == 4950

    def test_full_buy_capped_at_max_spend(self):
        """Full buys spend out of 7000 at most."""
        loadout = BuyEngine.calculate_agent_buy(make_agent(ENTRY_FRAGGER), 10000, "full", "t")
        assert loadout.weapons == ["ak47"]
        assert loadout.equipment == ["kevlar", "helmet", "flash", "smoke", "molotov", "he"]
        assert loadout.total == 4900

    def test_defender_buys_kit(self):
        """Defenders pick up a defuse kit after armor."""
        loadout = BuyEngine.calculate_agent_buy(make_agent(SUPPORT, Side.CT), 10000, "full", Side.CT)
        assert loadout.weapons == ["m4a4"]
        assert loadout.equipment == ["kevlar", "helmet", "defuse", "flash", "smoke", "molotov", "he"]
        assert loadout.total == 5700

    def test_attacker_never_buys_kit(self):
        """Attackers skip defender-only items."""
        for role in ROLES:
            loadout = BuyEngine.calculate_agent_buy(make_agent(role), 16000, "full", "t")
            assert "defuse" not in loadout.equipment

    def test_eco_takes_pricier_preferred_pistol(self):
        """Entry fraggers prefer both glock and deagle; the deagle wins on cost."""
        loadout = BuyEngine.calculate_agent_buy(make_agent(ENTRY_FRAGGER), 800, "eco", "t")
        assert loadout.weapons == ["deagle"]
        assert loadout.equipment == []
        assert loadout.total == 700

    def test_eco_skips_armor(self):
        """Eco rounds buy utility but no armor."""
        loadout = BuyEngine.calculate_agent_buy(make_agent(SUPPORT, Side.CT), 1000, "eco", "ct")
        assert loadout.weapons == ["usp"]
        assert loadout.equipment == ["defuse", "flash"]
        assert loadout.total == 800

    def test_semi_buy_takes_smg(self):
        """Semi buys with more than 2000 take a preferred SMG."""
        loadout = BuyEngine.calculate_agent_buy(make_agent(SUPPORT), 3000, "semi", "t")
        assert loadout.weapons == ["mp9"]
        assert loadout.equipment == ["kevlar", "helmet", "flash", "smoke"]
        assert loadout.total == 2750

    def test_semi_buy_low_money_falls_back_to_pistol(self):
        """Semi buys at or below 2000 skip the primary."""
        loadout = BuyEngine.calculate_agent_buy(make_agent(LURKER), 1500, "force", "t")
        assert loadout.weapons == ["deagle"]
        assert loadout.equipment == ["kevlar"]
        assert loadout.total == 1350

    def test_negative_money(self):
        """Negative money buys nothing."""
        loadout = BuyEngine.calculate_agent_buy(make_agent(AWPER), -5, "full", "t")
        assert loadout.is_empty
        assert loadout.total == 0

    def test_unknown_tier(self):
        """Unknown tiers buy nothing."""
        loadout = BuyEngine.calculate_agent_buy(make_agent(AWPER), 5000, "yolo", "t")
        assert loadout == Loadout()

    def test_unknown_side(self):
        """Unknown sides buy nothing instead of raising."""
        loadout = BuyEngine.calculate_agent_buy(make_agent(AWPER), 5000, "full", "x")
        assert loadout == Loadout()
        buys = BuyEngine.calculate_team_buy([make_agent(AWPER)], 5000, "full", "x")
        assert [buy.loadout for buy in buys] == [Loadout()]

    def test_zero_money(self):
        loadout = BuyEngine.calculate_agent_buy(make_agent(AWPER), 0, "eco", "t")
        assert loadout.is_empty

    @pytest.mark.parametrize("tier", ["eco", "semi", "full"])
    @pytest.mark.parametrize("side", ["t", "ct"])
    def test_total_never_exceeds_money(self, tier, side):
        """Totals match item costs and never exceed available money."""
        for role in ROLES:
            for money in range(0, 9001, 250):
                loadout = BuyEngine.calculate_agent_buy(make_agent(role, Side(side)), money, tier, side)
                assert loadout.total <= money
                assert loadout.total <= BuyEngine.MAX_SPEND[BuyType.parse(tier)]
                assert loadout.total == loadout.computed_cost()


class TestTeamBuy:
    """Tests for team loadouts."""

    def test_even_split(self):
        """Team money is split with floor division."""
        agents = [make_agent(role) for role in ROLES]
        buys = BuyEngine.calculate_team_buy(agents, 10004, "semi", "t")
        assert [b.agent_id for b in buys] == [a.id for a in agents]
        for buy in buys:
            assert buy.loadout.total <= 2000

    def test_no_agents(self):
        assert BuyEngine.calculate_team_buy([], 5000, "full", "t") == []

    def test_no_money(self):
        agents = [make_agent(role) for role in ROLES]
        assert BuyEngine.calculate_team_buy(agents, 0, "full", "t") == []


class TestHoldings:
    """Tests for buys on top of what an agent already carries."""

    def test_carried_rifle_skips_eco_pistol(self):
        agent = make_agent(ENTRY_FRAGGER)
        agent.weapons = ["m4a4"]
        loadout = BuyEngine.calculate_agent_buy(agent, 800, "eco", "t")
        assert loadout.weapons == ["deagle"]

        fitted = BuyEngine.fit_to_holdings(agent, loadout)
        assert fitted.is_empty
        assert fitted.total == 0

    def test_owned_items_not_bought_again(self):
        """Armor is bought again once it is used up, everything else is not."""
        agent = make_agent(SUPPORT, Side.CT)
        agent.weapons = ["m4a4", "usp"]
        agent.equipment = ["kevlar", "helmet", "flash"]
        loadout = BuyEngine.calculate_agent_buy(agent, 10000, "full", "ct")

        fitted = BuyEngine.fit_to_holdings(agent, loadout)
        assert fitted.weapons == []
        assert fitted.equipment == ["kevlar", "helmet", "defuse", "smoke", "molotov", "he"]
        assert fitted.total == 2400

        agent.armor = 100
        fitted = BuyEngine.fit_to_holdings(agent, loadout)
        assert fitted.equipment == ["defuse", "smoke", "molotov", "he"]
        assert fitted.total == 1400

    def test_smg_upgraded_to_rifle(self):
        agent = make_agent(SUPPORT, Side.CT)
        agent.weapons = ["mp9", "usp"]
        loadout = BuyEngine.calculate_agent_buy(agent, 10000, "full", "ct")
        assert BuyEngine.fit_to_holdings(agent, loadout).weapons == ["m4a4"]

    def test_merge_weapons(self):
        """A bought gun replaces the carried gun of its slot."""
        assert BuyEngine.merge_weapons(["usp"], ["m4a4"]) == ["m4a4", "usp"]
        assert BuyEngine.merge_weapons(["m4a4", "glock"], ["deagle"]) == ["m4a4", "deagle"]
        assert BuyEngine.merge_weapons(["mp9", "usp"], ["m4a4"]) == ["m4a4", "usp"]
        assert BuyEngine.merge_weapons(["ak47"], ["ak47"]) == ["ak47"]


class TestRoundIncome:
    """Tests for round-end income."""

    def test_winner_reward(self):
        """Winners earn 3250 and reset their loss bonus."""
        winner = Team(side=Side.CT, money=800, loss_bonus=2400)
        loser = Team(side=Side.T, money=800)
        income = EconomyEngine.settle_round(winner, loser)
        assert winner.money == 4050
        assert winner.loss_bonus == 1400
        assert income[Side.CT] == 3250
        assert income[Side.T] == 1400

    def test_consecutive_losses(self):
        """Loss bonus grows 1400, 1900, 2400, 2900 and is paid before growing."""
        winner = Team(side=Side.CT)
        loser = Team(side=Side.T, money=800)
        bonuses = [loser.loss_bonus]
        payouts = []
        for _ in range(3):
            payouts.append(EconomyEngine.settle_round(winner, loser)[Side.T])
            bonuses.append(loser.loss_bonus)
        assert bonuses == [1400, 1900, 2400, 2900]
        assert payouts == [1400, 1900, 2400]
        assert loser.money == 800 + 1400 + 1900 + 2400

    def test_loss_bonus_cap(self):
        """Loss bonus never exceeds 3400."""
        winner = Team(side=Side.CT)
        loser = Team(side=Side.T, money=0)
        for _ in range(10):
            EconomyEngine.settle_round(winner, loser)
        assert loser.loss_bonus == 3400

    def test_money_cap(self):
        """Money never exceeds 16000."""
        winner = Team(side=Side.T, money=15000)
        loser = Team(side=Side.CT, money=15500)
        income = EconomyEngine.settle_round(winner, loser)
        assert winner.money == 16000
        assert loser.money == 16000
        assert income[Side.T] == 1000
        assert income[Side.CT] == 500
