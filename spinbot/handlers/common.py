# spinbot/handlers/common.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

router = Router(name="common")

HELP_TEXT = (
    "🆘 <b>Available Commands</b>\n\n"
    "/start – Start the game and get access to spin\n"
    "/balance – View your balance, spins left, and rewards\n"
    "/help – Show this help menu\n\n"
    "👉 Use the buttons to <b>Spin, Import Wallet, Stake, or Stop Games</b>"
)


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT)
