"""Unit tests for EconomySystem: spending, rewards, lives, upgrades, scrapper income."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from scrapline.sim.timebase import set_sim_now_ms
from scrapline.systems.economy import (
    EconomySystem,
    kill_reward,
    refund_for,
    structure_cost,
    wave_bonus,
)


pytestmark = pytest.mark.unit


def _make_scrapper(structure_id: int):
    return SimpleNamespace(
        structure_id=structure_id,
        stats={"scrap_rate": 1, "scrap_interval_ms": 5000},
    )


class TestFormulas:
    @pytest.mark.parametrize("wave,reward", [(0, 15), (1, 16), (2, 18), (3, 19), (10, 30)])
    def test_kill_reward(self, wave, reward):
        assert kill_reward(wave) == reward

    @pytest.mark.parametrize("wave,bonus", [(1, 30), (2, 40), (10, 120)])
    def test_wave_bonus(self, wave, bonus):
        assert wave_bonus(wave) == bonus

    def test_refund_rounds_down(self):
        assert refund_for(40) == 20
        assert refund_for(5) == 2
        assert refund_for(15) == 7

    def test_structure_cost(self):
        assert structure_cost("sentry") == 40
        assert structure_cost("wall") == 5
        assert structure_cost("nope") == 0


class TestSpending:
    def test_buy_structure(self):
        econ = EconomySystem(starting_scraps=100)
        assert econ.buy_structure("sentry")
        assert econ.scraps == 60
        assert econ.total_spent == 40
        assert econ.transaction_log[-1]["type"] == "structure_purchase"
        assert econ.transaction_log[-1]["cost"] == 40

    def test_cannot_overspend(self):
        econ = EconomySystem(starting_scraps=30)
        assert not econ.can_afford_structure("sentry")
        assert not econ.buy_structure("sentry")
        assert econ.scraps == 30
        assert econ.transaction_log == []

    def test_unknown_structure_never_affordable(self):
        econ = EconomySystem(starting_scraps=10_000)
        assert not econ.can_afford_structure("laser")
        assert not econ.buy_structure("laser")

    def test_negative_spend_rejected(self):
        econ = EconomySystem(starting_scraps=10)
        assert not econ.spend(-5, "cheat")
        assert econ.scraps == 10

    def test_refund(self):
        econ = EconomySystem(starting_scraps=0)
        assert econ.refund_structure("rpg", 80) == 40
        assert econ.scraps == 40

    def test_log_is_stamped_with_sim_time(self):
        econ = EconomySystem(starting_scraps=100)
        set_sim_now_ms(2500)
        econ.reward_kill(1)
        assert econ.transaction_log[-1]["at_ms"] == 2500
        assert econ.get_recent_transactions(1) == econ.transaction_log[-1:]


class TestRewardsAndLives:
    def test_rewards(self):
        econ = EconomySystem(starting_scraps=0)
        assert econ.reward_kill(2, "fast") == 18
        assert econ.reward_wave(2) == 40
        assert econ.scraps == 58
        assert econ.total_earned == 58

    def test_lives_clamp_at_zero(self):
        econ = EconomySystem(starting_lives=2)
        econ.lose_life()
        assert econ.lives == 1 and not econ.is_game_over
        econ.lose_life(5)
        assert econ.lives == 0
        assert econ.is_game_over

    def test_reset(self):
        econ = EconomySystem(starting_scraps=100, starting_lives=3)
        econ.buy_structure("sentry")
        econ.buy_upgrade("damage", 1)
        econ.lose_life()
        econ.reset()
        assert (econ.scraps, econ.lives) == (100, 3)
        assert econ.transaction_log == []
        assert econ.upgrade_cost("damage") == 50


class TestUpgrades:
    def test_cost_grows_per_stat(self):
        econ = EconomySystem(starting_scraps=1000)
        assert econ.upgrade_cost("damage") == 50
        assert econ.buy_upgrade("damage", structure_id=1)
        assert econ.scraps == 950
        assert econ.upgrade_cost("damage") == 75
        assert econ.buy_upgrade("damage", structure_id=2)
        assert econ.upgrade_cost("damage") == 112
        # Other stats keep their own price.
        assert econ.upgrade_cost("range") == 50

    def test_unaffordable_upgrade_keeps_price(self):
        econ = EconomySystem(starting_scraps=10)
        assert not econ.buy_upgrade("range", structure_id=1)
        assert econ.upgrade_cost("range") == 50
        assert econ.scraps == 10

    def test_unknown_stat(self):
        econ = EconomySystem(starting_scraps=1000)
        assert econ.upgrade_cost("armor") is None
        assert not econ.buy_upgrade("armor", structure_id=1)


class TestScrapperIncome:
    def test_pays_every_interval_during_waves(self):
        econ = EconomySystem(starting_scraps=0)
        scrappers = [_make_scrapper(7)]
        assert econ.update_scrappers(4.0, scrappers, wave_active=True) == 0
        assert econ.update_scrappers(1.0, scrappers, wave_active=True) == 1
        assert econ.update_scrappers(10.0, scrappers, wave_active=True) == 2
        assert econ.scraps == 3

    def test_paused_between_waves(self):
        econ = EconomySystem(starting_scraps=0)
        scrappers = [_make_scrapper(7)]
        econ.update_scrappers(4.0, scrappers, wave_active=True)
        assert econ.update_scrappers(60.0, scrappers, wave_active=False) == 0
        # The timer kept its progress.
        assert econ.update_scrappers(1.0, scrappers, wave_active=True) == 1

    def test_removed_scrapper_forgets_progress(self):
        econ = EconomySystem(starting_scraps=0)
        econ.update_scrappers(4.0, [_make_scrapper(7)], wave_active=True)
        econ.update_scrappers(0.5, [], wave_active=True)
        assert econ.update_scrappers(1.0, [_make_scrapper(7)], wave_active=True) == 0
