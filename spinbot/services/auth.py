# spinbot/services/auth.py
from __future__ import annotations

import enum
import hashlib
import hmac
import json
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional
from urllib.parse import parse_qsl, urlencode

# Telegram WebApp derivation: secret = HMAC_SHA256(key="WebAppData", msg=bot_token)
WEB_APP_KEY_LABEL = b"WebAppData"

Pairs = list[tuple[str, str]]


class AuthError(str, enum.Enum):
    MALFORMED = "malformed"
    INVALID_SIGNATURE = "invalid_signature"
    NO_IDENTITY = "no_identity"


@dataclass(frozen=True, slots=True)
class InitDataResult:
    identity: str | None = None
    user: dict[str, Any] | None = None
    error: AuthError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.identity is not None


def derive_signing_key(bot_token: str) -> bytes:
    return hmac.new(WEB_APP_KEY_LABEL, bot_token.encode("utf-8"), hashlib.sha256).digest()


def build_check_string(pairs: Iterable[tuple[str, str]]) -> str:
    """
    key=value lines sorted by key, joined with "\\n".
    Duplicate keys are ordered by value so input order never matters.
    """
    return "\n".join(f"{k}={v}" for k, v in sorted(pairs, key=lambda kv: (kv[0], kv[1])))


def compute_hash(pairs: Iterable[tuple[str, str]], bot_token: str) -> str:
    return hmac.new(
        derive_signing_key(bot_token),
        build_check_string(pairs).encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def sign_init_data(fields: Mapping[str, str], bot_token: str) -> str:
    """
    Builds a signed initData query string the way Telegram does.
    Handy for tooling and tests.
    """
    pairs = [(k, str(v)) for k, v in fields.items() if k != "hash"]
    return urlencode(pairs + [("hash", compute_hash(pairs, bot_token))])


# -------------------------------------------------
# Identity extraction strategies (first hit wins)
# -------------------------------------------------

def _normalize_id(raw: Any) -> str | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, float):
        if not raw.is_integer():
            return None
        raw = int(raw)
    s = str(raw).strip()
    return s or None


def _decode_user(fields: Mapping[str, str]) -> dict[str, Any] | None:
    raw = fields.get("user")
    if not raw:
        return None
    try:
        user = json.loads(raw)
    except (json.JSONDecodeError, TypeError, ValueError):
        return None
    return user if isinstance(user, dict) else None


def _from_user_json(fields: Mapping[str, str]) -> str | None:
    user = _decode_user(fields)
    if user is None:
        return None
    return _normalize_id(user.get("id"))


def _from_flat(key: str) -> Callable[[Mapping[str, str]], Optional[str]]:
    def _strategy(fields: Mapping[str, str]) -> str | None:
        return _normalize_id(fields.get(key))

    _strategy.__name__ = f"_from_flat_{key}"
    return _strategy


IDENTITY_STRATEGIES: tuple[Callable[[Mapping[str, str]], Optional[str]], ...] = (
    _from_user_json,
    _from_flat("user_id"),
    _from_flat("id"),
)


class InitDataVerifier:
    """
    Validates Telegram WebApp initData without any server-side session.

    verify() is pure and never raises: every failure comes back as an
    InitDataResult carrying an AuthError.
    """

    def __init__(
        self,
        bot_token: str,
        *,
        strategies: tuple[Callable[[Mapping[str, str]], Optional[str]], ...] = IDENTITY_STRATEGIES,
    ) -> None:
        if not bot_token:
            raise ValueError("bot_token is required for initData verification")
        self._signing_key = derive_signing_key(bot_token)
        self.strategies = strategies

    @staticmethod
    def parse(init_data: str) -> Pairs:
        # strict: a field without "=" is a malformed payload
        return parse_qsl(init_data, keep_blank_values=True, strict_parsing=True)

    def verify(self, init_data: Any) -> InitDataResult:
        if not isinstance(init_data, str) or not init_data.strip():
            return InitDataResult(error=AuthError.MALFORMED)

        try:
            pairs = self.parse(init_data)
        except (ValueError, UnicodeError):
            return InitDataResult(error=AuthError.MALFORMED)

        hashes = [v for k, v in pairs if k == "hash"]
        if not hashes or not hashes[0]:
            return InitDataResult(error=AuthError.MALFORMED)
        supplied = hashes[0]
        fields = [(k, v) for k, v in pairs if k != "hash"]

        expected = hmac.new(
            self._signing_key,
            build_check_string(fields).encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
        if not hmac.compare_digest(expected.encode("ascii"), supplied.encode("utf-8")):
            return InitDataResult(error=AuthError.INVALID_SIGNATURE)

        # first occurrence wins, same as URLSearchParams.get
        flat: dict[str, str] = {}
        for k, v in fields:
            flat.setdefault(k, v)

        for strategy in self.strategies:
            identity = strategy(flat)
            if identity:
                return InitDataResult(identity=identity, user=_decode_user(flat))

        return InitDataResult(error=AuthError.NO_IDENTITY)
