# spinbot/web/routes.py
from __future__ import annotations

import json
import logging
import time

from aiohttp import web

from spinbot.services.auth import AuthError, InitDataVerifier
from spinbot.services.spin import SpinService, SpinStatus

log = logging.getLogger(__name__)

VERIFIER_KEY = web.AppKey("verifier", InitDataVerifier)
SPIN_SERVICE_KEY = web.AppKey("spin_service", SpinService)
STARTED_AT_KEY = web.AppKey("started_at", float)

NO_SPINS_LEFT_MESSAGE = "No spins left today"

_AUTH_ERRORS: dict[AuthError, tuple[int, str]] = {
    AuthError.MALFORMED: (400, "Malformed Telegram data"),
    AuthError.NO_IDENTITY: (400, "Telegram user not found in init data"),
    AuthError.INVALID_SIGNATURE: (403, "Invalid Telegram data"),
}


def _error(status: int, message: str) -> web.Response:
    return web.json_response({"error": message}, status=status)


async def _read_init_data(request: web.Request) -> str | None:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
        return None
    if not isinstance(body, dict):
        return None
    init_data = body.get("initData")
    return init_data if isinstance(init_data, str) and init_data else None


async def api_spin(request: web.Request) -> web.Response:
    init_data = await _read_init_data(request)
    if init_data is None:
        return _error(400, "initData is required")

    auth = request.app[VERIFIER_KEY].verify(init_data)
    if not auth.ok:
        status, message = _AUTH_ERRORS.get(auth.error, (400, "Malformed Telegram data"))
        log.info("Spin rejected: %s", auth.error.value if auth.error else "unknown")
        return _error(status, message)

    try:
        res = await request.app[SPIN_SERVICE_KEY].spin(auth.identity)
    except Exception:
        log.exception("Spin crashed telegram_id=%s", auth.identity)
        return _error(500, "Internal server error")

    if res.status == SpinStatus.GRANTED:
        return web.json_response(
            {
                "reward": res.reward.label if res.reward else None,
                "balance": res.balance,
                "spinsLeft": res.spins_left,
            }
        )

    if res.status == SpinStatus.NO_SPINS_LEFT:
        return web.json_response({"error": NO_SPINS_LEFT_MESSAGE, "spinsLeft": res.spins_left})

    return _error(500, "Storage unavailable, try again later")


async def health(request: web.Request) -> web.Response:
    uptime = time.monotonic() - request.app[STARTED_AT_KEY]
    return web.json_response({"status": "ok", "uptime": round(uptime, 3)})


async def index(request: web.Request) -> web.Response:
    return web.Response(text="spinbot backend is running")


def setup_routes(app: web.Application) -> None:
    app.router.add_get("/", index)
    app.router.add_get("/health", health)
    app.router.add_post("/api/spin", api_spin)
