# spinbot/config/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


def _require(env: dict[str, str], key: str) -> str:
    v = env.get(key)
    if v is None or not v.strip():
        raise RuntimeError(f"Missing required environment variable: {key}")
    return v.strip()


def _to_int(value: str, key_name: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise RuntimeError(f"Invalid integer for {key_name}: {value!r}") from e


def _to_bool(value: str | None, default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class Settings:
    # --- required ---
    bot_token: str  # also the initData signing secret

    # --- mini-app ---
    frontend_url: str = ""

    # --- storage ---
    database_url: str = "sqlite+aiosqlite:///./spinbot.db"

    # --- http ---
    host: str = "0.0.0.0"
    port: int = 5000

    # --- runtime ---
    run_bot: bool = True
    environment: str = "production"  # production | development

    @property
    def is_dev(self) -> bool:
        return self.environment.lower() in {"dev", "development", "local"}

    @classmethod
    def load(cls) -> "Settings":
        """
        Loads from process env (and .env if present).
        Fails fast for required fields.
        """
        load_dotenv()
        env = os.environ

        bot_token = _require(env, "BOT_TOKEN")
        frontend_url = (env.get("FRONTEND_URL") or "").strip()

        database_url = (env.get("DATABASE_URL") or "sqlite+aiosqlite:///./spinbot.db").strip()

        host = (env.get("HOST") or "0.0.0.0").strip() or "0.0.0.0"
        port_raw = (env.get("PORT") or "").strip()
        port = _to_int(port_raw, "PORT") if port_raw else 5000

        run_bot = _to_bool(env.get("RUN_BOT"), True)
        environment = (env.get("ENVIRONMENT") or "production").strip() or "production"

        return cls(
            bot_token=bot_token,
            frontend_url=frontend_url,
            database_url=database_url,
            host=host,
            port=port,
            run_bot=run_bot,
            environment=environment,
        )
