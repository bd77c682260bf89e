"""
Economy system for scraps, lives, rewards and upgrade pricing.
"""
import math

from config import (
    STARTING_SCRAPS, STARTING_LIVES, STRUCTURE_STATS,
    KILL_REWARD_BASE, KILL_REWARD_PER_WAVE,
    WAVE_BONUS_BASE, WAVE_BONUS_PER_WAVE,
    UPGRADE_BASE_COST, UPGRADE_COST_GROWTH, UPGRADE_MULTIPLIERS,
)
from scrapline.sim.timebase import now_ms


def kill_reward(wave_number: int) -> int:
    """Scraps paid per creep killed during `wave_number`."""
    return KILL_REWARD_BASE + math.floor(wave_number * KILL_REWARD_PER_WAVE)


def wave_bonus(wave_number: int) -> int:
    """Scraps paid when `wave_number` is cleared."""
    return WAVE_BONUS_BASE + wave_number * WAVE_BONUS_PER_WAVE


def structure_cost(structure_type: str) -> int:
    return int(STRUCTURE_STATS.get(structure_type, {}).get("cost", 0))


def refund_for(cost: int) -> int:
    return math.floor(cost / 2)


class EconomySystem:
    """Manages scraps, lives and the passive income of scrapper structures."""

    def __init__(self, starting_scraps: int = STARTING_SCRAPS, starting_lives: int = STARTING_LIVES):
        self.starting_scraps = starting_scraps
        self.starting_lives = starting_lives
        self.reset()

    def reset(self):
        self.scraps = self.starting_scraps
        self.lives = self.starting_lives
        self.total_earned = 0
        self.total_spent = 0
        self.transaction_log = []
        # Session-wide upgrade prices, one per stat.
        self.upgrade_costs = {stat: UPGRADE_BASE_COST for stat in UPGRADE_MULTIPLIERS}
        # structure_id -> ms of income accrued toward the next payout
        self._scrapper_timers = {}

    def _log(self, kind: str, **fields):
        entry = {"type": kind, "at_ms": now_ms()}
        entry.update(fields)
        self.transaction_log.append(entry)

    @property
    def is_game_over(self) -> bool:
        return self.lives <= 0

    def can_afford(self, amount: int) -> bool:
        return self.scraps >= amount

    def can_afford_structure(self, structure_type: str) -> bool:
        """Check if the player can afford a structure. Unknown types are never affordable."""
        if structure_type not in STRUCTURE_STATS:
            return False
        return self.can_afford(structure_cost(structure_type))

    def spend(self, amount: int, reason: str, **fields) -> bool:
        """Attempt to spend scraps. Returns True if successful."""
        if amount < 0 or self.scraps < amount:
            return False
        self.scraps -= amount
        self.total_spent += amount
        self._log(reason, cost=amount, **fields)
        return True

    def earn(self, amount: int, reason: str, **fields) -> int:
        if amount <= 0:
            return 0
        self.scraps += amount
        self.total_earned += amount
        self._log(reason, amount=amount, **fields)
        return amount

    def buy_structure(self, structure_type: str) -> bool:
        """Attempt to purchase a structure. Returns True if successful."""
        if structure_type not in STRUCTURE_STATS:
            return False
        return self.spend(structure_cost(structure_type), "structure_purchase", structure=structure_type)

    def refund_structure(self, structure_type: str, cost: int) -> int:
        """Half the purchase cost back (rounded down) for a sold structure."""
        refund = refund_for(cost)
        self.earn(refund, "structure_refund", structure=structure_type)
        return refund

    def reward_kill(self, wave_number: int, creep_type: str = "normal") -> int:
        return self.earn(kill_reward(wave_number), "creep_kill", wave=wave_number, creep=creep_type)

    def reward_wave(self, wave_number: int) -> int:
        return self.earn(wave_bonus(wave_number), "wave_bonus", wave=wave_number)

    def lose_life(self, amount: int = 1) -> int:
        self.lives = max(0, self.lives - amount)
        self._log("life_lost", lives=self.lives)
        return self.lives

    def upgrade_cost(self, stat: str):
        return self.upgrade_costs.get(stat)

    def buy_upgrade(self, stat: str, structure_id: int) -> bool:
        """Pay for one upgrade of `stat`; its price then grows for the rest of the session."""
        cost = self.upgrade_costs.get(stat)
        if cost is None:
            return False
        if not self.spend(cost, "upgrade", stat=stat, structure_id=structure_id):
            return False
        self.upgrade_costs[stat] = math.floor(cost * UPGRADE_COST_GROWTH)
        return True

    def update_scrappers(self, dt: float, scrappers: list, wave_active: bool) -> int:
        """
        Accrue scrapper income. Timers only run while a wave is active.

        Returns scraps earned this tick.
        """
        if not wave_active:
            return 0
        earned = 0
        live_ids = set()
        for scrapper in scrappers:
            sid = scrapper.structure_id
            live_ids.add(sid)
            interval = scrapper.stats.get("scrap_interval_ms", 0)
            if interval <= 0:
                continue
            elapsed = self._scrapper_timers.get(sid, 0.0) + dt * 1000
            while elapsed >= interval:
                elapsed -= interval
                earned += self.earn(scrapper.stats.get("scrap_rate", 0), "scrap_income", structure_id=sid)
            self._scrapper_timers[sid] = elapsed
        for sid in list(self._scrapper_timers):
            if sid not in live_ids:
                del self._scrapper_timers[sid]
        return earned

    def get_recent_transactions(self, count: int = 5) -> list:
        """Get the most recent transactions."""
        return self.transaction_log[-count:]
