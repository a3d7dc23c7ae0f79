from __future__ import annotations

import logging

from aiogram import Router
from aiogram.filters import CommandStart
from aiogram.types import Message

from spinbot.config.settings import Settings
from spinbot.database.errors import StoreError
from spinbot.database.repo.accounts import AccountStore
from spinbot.keyboards.main import webapp_menu_kb

log = logging.getLogger(__name__)

router = Router()

WELCOME_TEXT = (
    "🎮 <b>Welcome to Solana DropBox Edition!</b>\n"
    "This is a demo spin to win SOL tokens.\n\n"
    "You get 3 spins every day (UTC)."
)


@router.message(CommandStart())
async def start_cmd(
    message: Message,
    accounts: AccountStore,
    settings: Settings,
    identity: str | None = None,
) -> None:
    if identity is None:
        return

    try:
        await accounts.get_or_create(identity)
    except StoreError:
        log.exception("/start failed telegram_id=%s", identity)
        await message.answer("⚠️ Something went wrong. Please try again later.")
        return

    if not settings.frontend_url:
        log.warning("FRONTEND_URL is not set; /start sent without mini-app buttons")
        await message.answer(WELCOME_TEXT)
        return

    await message.answer(WELCOME_TEXT, reply_markup=webapp_menu_kb(settings.frontend_url))
