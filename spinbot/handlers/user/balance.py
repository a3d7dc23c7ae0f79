from __future__ import annotations

import html
import logging
from datetime import datetime

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from spinbot.database.errors import StoreError
from spinbot.database.models import Account
from spinbot.database.repo.accounts import AccountStore
from spinbot.services.spin import effective_spins_left
from spinbot.utils.dates import utc_now

log = logging.getLogger(__name__)

router = Router()

NO_ACCOUNT_TEXT = "⚠️ You don’t have an account yet. Type /start first."


def format_amount(value: float) -> str:
    s = f"{value:.6f}".rstrip("0").rstrip(".")
    return s or "0"


def render_balance(account: Account, now: datetime) -> str:
    labels = account.reward_labels
    rewards = ", ".join(html.escape(x) for x in labels) if labels else "No rewards yet"
    spins = effective_spins_left(account.spins_left, account.last_spin_at, now)

    return (
        "📊 <b>Your Balance Summary</b>\n\n"
        f"💰 Balance: <b>{format_amount(account.balance)}</b>\n"
        f"🎯 Spins Left Today: <b>{spins}</b>\n"
        f"🏆 Rewards: {rewards}"
    )


@router.message(Command("balance"))
async def balance_cmd(message: Message, accounts: AccountStore, identity: str | None = None) -> None:
    if identity is None:
        return

    try:
        account = await accounts.get(identity)
    except StoreError:
        log.exception("/balance failed telegram_id=%s", identity)
        await message.answer("⚠️ Something went wrong. Please try again later.")
        return

    if account is None:
        await message.answer(NO_ACCOUNT_TEXT)
        return

    await message.answer(render_balance(account, utc_now()))
