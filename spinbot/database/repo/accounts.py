# spinbot/database/repo/accounts.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterator, Callable, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from spinbot.database.errors import StoreError, StoreErrorKind
from spinbot.database.models import DAILY_SPINS, Account, RewardEntry
from spinbot.database.session import Database
from spinbot.utils.dates import as_utc, to_naive_utc

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AccountSnapshot:
    """Quota/balance fields of one account as read for a spin update."""
    id: int
    telegram_id: str
    spins_left: int
    balance: float
    last_spin_at: datetime | None  # aware UTC
    version: int


@dataclass(frozen=True, slots=True)
class SpinChange:
    """New quota fields plus the reward to record (if any)."""
    spins_left: int
    last_spin_at: datetime
    reward_label: str | None = None
    reward_value: float = 0.0


@dataclass(frozen=True, slots=True)
class SpinUpdateResult:
    account: AccountSnapshot  # state after the call
    applied: bool


SpinMutation = Callable[[AccountSnapshot], Optional[SpinChange]]


@asynccontextmanager
async def _store_errors(op: str) -> AsyncIterator[None]:
    try:
        yield
    except IntegrityError as e:
        raise StoreError(StoreErrorKind.CONSTRAINT_VIOLATION, f"{op}: {e.orig}") from e
    except (SQLAlchemyError, OSError) as e:
        raise StoreError(StoreErrorKind.UNREACHABLE, f"{op}: {e}") from e


def _snapshot(row) -> AccountSnapshot:
    return AccountSnapshot(
        id=row.id,
        telegram_id=row.telegram_id,
        spins_left=int(row.spins_left),
        balance=float(row.balance or 0),
        last_spin_at=as_utc(row.last_spin_at) if row.last_spin_at is not None else None,
        version=int(row.version),
    )


class AccountStore:
    """
    Durable per-identity spin state.

    Every method opens its own session; the database (unique constraint on
    telegram_id, version predicate on updates) is the only mutual-exclusion
    point, so several server processes can share one store.
    """

    def __init__(self, db: Database, *, max_attempts: int = 25) -> None:
        self.db = db
        self.max_attempts = max_attempts

    async def get(self, telegram_id: str) -> Account | None:
        async with _store_errors("get"):
            async with self.db.session() as session:
                return await session.scalar(
                    select(Account)
                    .options(selectinload(Account.rewards))
                    .where(Account.telegram_id == telegram_id)
                )

    async def get_or_create(self, telegram_id: str) -> Account:
        account = await self.get(telegram_id)
        if account is not None:
            return account

        async with _store_errors("get_or_create"):
            async with self.db.session() as session:
                session.add(
                    Account(
                        telegram_id=telegram_id,
                        spins_left=DAILY_SPINS,
                        balance=0.0,
                        last_spin_at=None,
                        version=0,
                    )
                )
                try:
                    await session.commit()
                    log.info("Account created telegram_id=%s", telegram_id)
                except IntegrityError:
                    # lost the race against a concurrent first contact
                    await session.rollback()
                    log.debug("Account already created concurrently telegram_id=%s", telegram_id)

        account = await self.get(telegram_id)
        if account is None:
            raise StoreError(StoreErrorKind.NOT_FOUND, f"account {telegram_id} missing after create")
        return account

    async def _read_snapshot(self, session: AsyncSession, telegram_id: str) -> AccountSnapshot:
        row = (
            await session.execute(
                select(
                    Account.id,
                    Account.telegram_id,
                    Account.spins_left,
                    Account.balance,
                    Account.last_spin_at,
                    Account.version,
                ).where(Account.telegram_id == telegram_id)
            )
        ).one_or_none()
        if row is None:
            raise StoreError(StoreErrorKind.NOT_FOUND, f"account {telegram_id} not found")
        return _snapshot(row)

    async def _write_change(
        self,
        session: AsyncSession,
        current: AccountSnapshot,
        change: SpinChange,
    ) -> AccountSnapshot | None:
        """Conditional write; None when `current.version` is stale."""
        new_balance = round(current.balance + max(change.reward_value, 0.0), 6)
        res = await session.execute(
            update(Account)
            .where(Account.id == current.id, Account.version == current.version)
            .values(
                spins_left=change.spins_left,
                last_spin_at=to_naive_utc(change.last_spin_at),
                balance=new_balance,
                version=Account.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            return None

        if change.reward_label and change.reward_value > 0:
            session.add(
                RewardEntry(
                    account_id=current.id,
                    label=change.reward_label,
                    value=change.reward_value,
                )
            )
        await session.commit()

        return AccountSnapshot(
            id=current.id,
            telegram_id=current.telegram_id,
            spins_left=change.spins_left,
            balance=new_balance,
            last_spin_at=as_utc(change.last_spin_at),
            version=current.version + 1,
        )

    async def apply_spin_update(self, telegram_id: str, mutation: SpinMutation) -> SpinUpdateResult:
        """
        Optimistic read-modify-write of one account.

        `mutation` gets the current snapshot and returns the change to persist,
        or None to leave the account untouched. It may be called more than once
        when a concurrent update wins the version check.
        """
        for attempt in range(1, self.max_attempts + 1):
            async with _store_errors("apply_spin_update"):
                async with self.db.session() as session:
                    current = await self._read_snapshot(session, telegram_id)
                    change = mutation(current)
                    if change is None:
                        return SpinUpdateResult(account=current, applied=False)

                    written = await self._write_change(session, current, change)
                    if written is not None:
                        return SpinUpdateResult(account=written, applied=True)

                    await session.rollback()
                    log.debug("Spin update conflict telegram_id=%s attempt=%s", telegram_id, attempt)

        raise StoreError(
            StoreErrorKind.CONFLICT,
            f"account {telegram_id}: gave up after {self.max_attempts} concurrent updates",
        )

    async def reset_all(self, allotment: int, at: datetime) -> int:
        """
        Re-arm every account. Leaves `version` alone: a spin that read the
        pre-reset state still commits (last writer wins).
        """
        async with _store_errors("reset_all"):
            async with self.db.session() as session:
                res = await session.execute(
                    update(Account)
                    .values(spins_left=allotment, last_spin_at=to_naive_utc(at))
                    .execution_options(synchronize_session=False)
                )
                await session.commit()
                return int(res.rowcount or 0)
