# spinbot/handlers/user/router.py
from aiogram import Router

from spinbot.handlers.user.balance import router as balance_router
from spinbot.handlers.user.start import router as start_router

router = Router(name="user")

router.include_router(start_router)
router.include_router(balance_router)
