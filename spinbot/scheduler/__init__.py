# spinbot/scheduler/__init__.py
from __future__ import annotations

from spinbot.database.repo.accounts import AccountStore
from spinbot.scheduler.jobs import RESET_JOB_ID, ResetScheduler, build_scheduler, reset_daily_spins
from spinbot.utils.dates import Clock, utc_now


def setup_scheduler(store: AccountStore, *, clock: Clock = utc_now) -> ResetScheduler:
    scheduler = ResetScheduler(store, clock=clock)
    scheduler.start()
    return scheduler


__all__ = [
    "RESET_JOB_ID",
    "ResetScheduler",
    "build_scheduler",
    "reset_daily_spins",
    "setup_scheduler",
]
