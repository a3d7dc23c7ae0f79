from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update

from spinbot.database import Database
from spinbot.database.models import Account
from spinbot.database.repo.accounts import AccountStore
from spinbot.utils.dates import to_naive_utc

BOT_TOKEN = "123456789:AAFakeTokenForTests_abcdefghijklmno"


class FrozenClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FixedRng:
    """Stands in for random.Random: always picks the same table index."""

    def __init__(self, index: int) -> None:
        self.index = index

    def randrange(self, n: int) -> int:
        return self.index % n


@pytest.fixture
async def db(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'spinbot-test.db'}")
    await database.init_models()
    yield database
    await database.close()


@pytest.fixture
def store(db) -> AccountStore:
    return AccountStore(db)


@pytest.fixture
async def broken_store(tmp_path):
    # parent directory does not exist -> sqlite cannot open the file
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'nope.db'}")
    yield AccountStore(database)
    await database.close()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def set_account(db):
    async def _set(telegram_id: str, **values) -> None:
        if "last_spin_at" in values and values["last_spin_at"] is not None:
            values["last_spin_at"] = to_naive_utc(values["last_spin_at"])
        async with db.session() as session:
            await session.execute(
                update(Account).where(Account.telegram_id == telegram_id).values(**values)
            )
            await session.commit()

    return _set


@pytest.fixture
def fixed_rng():
    return FixedRng


@pytest.fixture
def clock_at():
    return FrozenClock
