from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from spinbot.database.errors import StoreError
from spinbot.database.models import DAILY_SPINS
from spinbot.database.repo.accounts import AccountStore
from spinbot.utils.dates import Clock, as_utc, next_utc_midnight, utc_now

log = logging.getLogger(__name__)

RESET_JOB_ID = "reset_daily_spins"
RESET_PERIOD = timedelta(hours=24)


# -------------------------------------------------
# Job: re-arm every account
# -------------------------------------------------

async def reset_daily_spins(store: AccountStore, clock: Clock = utc_now) -> int | None:
    """
    Bulk quota rearm. Failures are logged and swallowed: accounts missed here
    roll over on their owner's next spin.
    """
    now = as_utc(clock())
    try:
        n = await store.reset_all(DAILY_SPINS, now)
    except StoreError as e:
        log.exception("Daily spin reset failed (kind=%s); next attempt in 24h", e.kind.value)
        return None

    log.info("Spins reset for %s accounts at %s", n, now.isoformat())
    return n


# -------------------------------------------------
# Scheduler setup
# -------------------------------------------------

def build_scheduler(store: AccountStore, *, first_run: datetime, clock: Clock = utc_now) -> AsyncIOScheduler:
    """
    Creates an AsyncIOScheduler with the reset job registered:
    first run at `first_run`, then every 24h. Missed runs are not replayed.
    """
    scheduler = AsyncIOScheduler(timezone="UTC")

    scheduler.add_job(
        reset_daily_spins,
        trigger=IntervalTrigger(
            seconds=int(RESET_PERIOD.total_seconds()),
            start_date=first_run,
            timezone=timezone.utc,
        ),
        kwargs={"store": store, "clock": clock},
        id=RESET_JOB_ID,
        replace_existing=True,
        coalesce=True,
        max_instances=1,
        misfire_grace_time=300,
    )

    return scheduler


class ResetScheduler:
    """
    Owned handle for the daily reset: start() arms it, shutdown() stops it.
    The clock only decides the first firing; APScheduler keeps the 24h period.
    """

    def __init__(self, store: AccountStore, *, clock: Clock = utc_now) -> None:
        self.store = store
        self.clock = clock
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    @property
    def next_run_at(self) -> datetime | None:
        if self._scheduler is None:
            return None
        job = self._scheduler.get_job(RESET_JOB_ID)
        return getattr(job, "next_run_time", None) if job else None

    def start(self) -> datetime:
        if self.running:
            raise RuntimeError("ResetScheduler already started")

        first_run = next_utc_midnight(self.clock())
        self._scheduler = build_scheduler(self.store, first_run=first_run, clock=self.clock)
        self._scheduler.start()
        log.info("Daily spin reset armed, first run at %s", first_run.isoformat())
        return first_run

    def shutdown(self) -> None:
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        log.info("Daily spin reset stopped")
