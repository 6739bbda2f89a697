"""
Steam Guard mobile authenticator codes.

Steam hands out the authenticator `shared_secret` Base64-encoded (some tools
export it as 40 hex characters instead). `pyotp` expects a Base32 secret, so
the raw key is re-encoded before being passed to `pyotp.contrib.steam.Steam`,
which implements Steam's 5-character variant of TOTP.
"""

from __future__ import annotations

import base64
import binascii
import re
import time
from typing import Callable

from pyotp.contrib.steam import Steam

from domain.errors import InvalidSecretError
from domain.gateways import CodeGenerator

STEAM_TIME_STEP = 30

_HEX_SECRET = re.compile(r"[0-9a-fA-F]{40}")


def decode_shared_secret(shared_secret: str) -> bytes:
    """Return the raw key bytes of a hex or Base64 encoded shared secret."""

    secret = shared_secret.strip()
    if _HEX_SECRET.fullmatch(secret):
        return bytes.fromhex(secret)

    try:
        key = base64.b64decode(secret, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidSecretError("Shared secret is neither hex nor Base64") from exc

    if not key:
        raise InvalidSecretError("Shared secret is empty")
    return key


class SteamGuardCodeGenerator(CodeGenerator):
    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        interval: int = STEAM_TIME_STEP,
    ) -> None:
        self._clock = clock
        self._interval = interval

    def generate_code(self, shared_secret: str) -> str:
        key = decode_shared_secret(shared_secret)
        totp = Steam(base64.b32encode(key).decode("ascii"), interval=self._interval)
        return totp.at(int(self._clock()))
