# spinbot/services/spin.py
from __future__ import annotations

import enum
import logging
import random
from dataclasses import dataclass
from datetime import datetime

from spinbot.database.errors import StoreError
from spinbot.database.models import DAILY_SPINS
from spinbot.database.repo.accounts import AccountSnapshot, AccountStore, SpinChange
from spinbot.utils.dates import Clock, as_utc, utc_now

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Reward:
    label: str
    value: float


# Uniform draw over the table; "Try Again" is the no-op outcome.
REWARDS: tuple[Reward, ...] = (
    Reward("0.001 ETH", 0.001),
    Reward("5 USDT", 5.0),
    Reward("Try Again", 0.0),
    Reward("0.1 ETH", 0.1),
)


class SpinStatus(str, enum.Enum):
    GRANTED = "granted"
    NO_SPINS_LEFT = "no_spins_left"
    STORE_ERROR = "store_error"


@dataclass(frozen=True, slots=True)
class SpinResult:
    status: SpinStatus
    spins_left: int = 0
    reward: Reward | None = None
    balance: float | None = None
    error: StoreError | None = None

    @property
    def ok(self) -> bool:
        return self.status == SpinStatus.GRANTED


def needs_rollover(last_spin_at: datetime | None, now: datetime) -> bool:
    if last_spin_at is None:
        return True
    return as_utc(last_spin_at).date() != as_utc(now).date()


def effective_spins_left(spins_left: int, last_spin_at: datetime | None, now: datetime) -> int:
    """Spins the user can still take today, counting a pending rollover."""
    if needs_rollover(last_spin_at, now):
        return DAILY_SPINS
    return max(int(spins_left), 0)


class SpinService:
    def __init__(
        self,
        store: AccountStore,
        *,
        clock: Clock = utc_now,
        rng: random.Random | None = None,
        rewards: tuple[Reward, ...] = REWARDS,
    ) -> None:
        if not rewards:
            raise ValueError("reward table must not be empty")
        self.store = store
        self.clock = clock
        self.rng = rng or random.SystemRandom()
        self.rewards = rewards

    def draw(self) -> Reward:
        return self.rewards[self.rng.randrange(len(self.rewards))]

    async def spin(self, telegram_id: str) -> SpinResult:
        now = as_utc(self.clock())
        reward = self.draw()

        def _mutate(acc: AccountSnapshot) -> SpinChange | None:
            # rollover and consumption land in the same update
            left = effective_spins_left(acc.spins_left, acc.last_spin_at, now)
            if left <= 0:
                return None
            granted = reward.value > 0
            return SpinChange(
                spins_left=left - 1,
                last_spin_at=now,
                reward_label=reward.label if granted else None,
                reward_value=reward.value if granted else 0.0,
            )

        try:
            await self.store.get_or_create(telegram_id)
            res = await self.store.apply_spin_update(telegram_id, _mutate)
        except StoreError as e:
            log.warning("Spin failed telegram_id=%s kind=%s: %s", telegram_id, e.kind.value, e)
            return SpinResult(status=SpinStatus.STORE_ERROR, error=e)

        if not res.applied:
            return SpinResult(
                status=SpinStatus.NO_SPINS_LEFT,
                spins_left=max(res.account.spins_left, 0),
                balance=res.account.balance,
            )

        log.info(
            "Spin granted telegram_id=%s reward=%r spins_left=%s",
            telegram_id,
            reward.label,
            res.account.spins_left,
        )
        return SpinResult(
            status=SpinStatus.GRANTED,
            spins_left=res.account.spins_left,
            reward=reward,
            balance=res.account.balance,
        )
