# spinbot/web/__init__.py
from __future__ import annotations

import time

from aiohttp import web

from spinbot.services.auth import InitDataVerifier
from spinbot.services.spin import SpinService
from spinbot.web.routes import SPIN_SERVICE_KEY, STARTED_AT_KEY, VERIFIER_KEY, setup_routes


def create_app(verifier: InitDataVerifier, spin_service: SpinService) -> web.Application:
    app = web.Application()
    app[VERIFIER_KEY] = verifier
    app[SPIN_SERVICE_KEY] = spin_service
    app[STARTED_AT_KEY] = time.monotonic()
    setup_routes(app)
    return app


__all__ = ["create_app"]
