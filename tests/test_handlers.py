from __future__ import annotations

from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from spinbot.config.settings import Settings
from spinbot.database.models import Account, RewardEntry
from spinbot.handlers.common import HELP_TEXT, cmd_help
from spinbot.handlers.user.balance import NO_ACCOUNT_TEXT, balance_cmd, format_amount, render_balance
from spinbot.handlers.user.start import start_cmd
from spinbot.keyboards.main import webapp_menu_kb
from spinbot.utils.middleware import IdentityMiddleware


class FakeMessage:
    def __init__(self) -> None:
        self.answers: list[tuple[str, dict]] = []

    async def answer(self, text: str, **kwargs) -> None:
        self.answers.append((text, kwargs))


@pytest.fixture
def settings() -> Settings:
    return Settings(bot_token="123:abc", frontend_url="https://example.org/spin")


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0, "0"), (0.0, "0"), (5, "5"), (5.101, "5.101"), (0.001, "0.001"), (0.1 + 0.2, "0.3")],
)
def test_format_amount(value, expected):
    assert format_amount(value) == expected


def test_render_balance_counts_pending_rollover():
    now = datetime(2024, 5, 10, 12, 0)
    account = Account(
        telegram_id="1",
        spins_left=0,
        balance=5.1,
        last_spin_at=now - timedelta(days=1),
        rewards=[RewardEntry(label="5 USDT", value=5.0), RewardEntry(label="0.1 ETH", value=0.1)],
    )

    text = render_balance(account, now)

    assert "Balance: <b>5.1</b>" in text
    assert "Spins Left Today: <b>3</b>" in text
    assert "Rewards: 5 USDT, 0.1 ETH" in text


def test_render_balance_without_rewards():
    now = datetime(2024, 5, 10, 12, 0)
    account = Account(telegram_id="1", spins_left=1, balance=0.0, last_spin_at=now, rewards=[])

    text = render_balance(account, now)

    assert "Spins Left Today: <b>1</b>" in text
    assert "No rewards yet" in text


def test_render_balance_escapes_labels():
    now = datetime(2024, 5, 10, 12, 0)
    account = Account(
        telegram_id="1", spins_left=1, balance=1.0, last_spin_at=now,
        rewards=[RewardEntry(label="<b>1 TON</b>", value=1.0)],
    )
    assert "&lt;b&gt;1 TON&lt;/b&gt;" in render_balance(account, now)


def test_webapp_menu_points_every_button_at_frontend():
    kb = webapp_menu_kb("https://example.org/spin")
    buttons = [row[0] for row in kb.inline_keyboard]

    assert [b.text for b in buttons] == ["Start SOL Spin", "Import Wallet", "Stake Coin", "Stop Games"]
    assert all(b.web_app.url == "https://example.org/spin" for b in buttons)


async def test_start_creates_account_and_shows_menu(store, settings):
    msg = FakeMessage()

    await start_cmd(msg, accounts=store, settings=settings, identity="77")

    acc = await store.get("77")
    assert acc is not None
    assert acc.spins_left == 3
    assert len(msg.answers) == 1
    assert msg.answers[0][1]["reply_markup"].inline_keyboard


async def test_start_without_frontend_url_skips_keyboard(store):
    msg = FakeMessage()

    await start_cmd(msg, accounts=store, settings=Settings(bot_token="123:abc"), identity="77")

    assert "reply_markup" not in msg.answers[0][1]


async def test_start_reports_store_failure(broken_store, settings):
    msg = FakeMessage()

    await start_cmd(msg, accounts=broken_store, settings=settings, identity="77")

    assert "went wrong" in msg.answers[0][0]


async def test_balance_for_unknown_user_does_not_create_account(store):
    msg = FakeMessage()

    await balance_cmd(msg, accounts=store, identity="88")

    assert msg.answers[0][0] == NO_ACCOUNT_TEXT
    assert await store.get("88") is None


async def test_balance_for_known_user(store):
    await store.get_or_create("88")
    msg = FakeMessage()

    await balance_cmd(msg, accounts=store, identity="88")

    assert "Your Balance Summary" in msg.answers[0][0]
    assert "Spins Left Today: <b>3</b>" in msg.answers[0][0]


async def test_handlers_ignore_updates_without_sender(store, settings):
    msg = FakeMessage()

    await start_cmd(msg, accounts=store, settings=settings, identity=None)
    await balance_cmd(msg, accounts=store, identity=None)

    assert msg.answers == []


async def test_help_lists_commands():
    msg = FakeMessage()
    await cmd_help(msg)

    assert msg.answers[0][0] == HELP_TEXT
    for cmd in ("/start", "/balance", "/help"):
        assert cmd in HELP_TEXT


async def test_identity_middleware_injects_sender_id():
    seen = {}

    async def handler(event, data):
        seen.update(data)
        return "done"

    mw = IdentityMiddleware()
    assert await mw(handler, SimpleNamespace(from_user=SimpleNamespace(id=42)), {}) == "done"
    assert seen["identity"] == "42"

    await mw(handler, SimpleNamespace(from_user=None), {})
    assert seen["identity"] is None
