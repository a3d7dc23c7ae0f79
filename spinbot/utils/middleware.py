# spinbot/utils/middleware.py
from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject


def _extract_from_user(event: TelegramObject):
    """
    Best-effort extract aiogram `from_user` from different update types.
    Works for Message, CallbackQuery, InlineQuery, etc.
    """
    u = getattr(event, "from_user", None)
    if u:
        return u

    msg = getattr(event, "message", None)
    if msg and getattr(msg, "from_user", None):
        return msg.from_user

    cb = getattr(event, "callback_query", None)
    if cb and getattr(cb, "from_user", None):
        return cb.from_user

    return None


class IdentityMiddleware(BaseMiddleware):
    """
    Injects the sender's account key into handler data as `identity`.

    Telegram already authenticated the sender, so `from_user.id` is trusted
    here the same way a verified initData user id is on the HTTP side.
    """

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        tg = _extract_from_user(event)
        data["identity"] = str(tg.id) if tg is not None else None
        return await handler(event, data)
