from __future__ import annotations

import json
from typing import Optional

from itsdangerous import BadData, URLSafeSerializer

from kalkulator.core.logging_config import logger
from kalkulator.core.settings import get_settings

from .payload import HashPayload


class HashCodec:
    """
    HashPayload <-> URL-safe token.

    Tokens are signed (HMAC over `secret` + `salt`) and zlib-compressed when that makes
    them shorter. Optimized tokens drop the audit trail; the decoded payload then carries
    a SummaryOnly detail for reconstruction.
    """

    def __init__(self, secret: str, salt: str = "kalkulator-hash-v1"):
        if not secret or len(secret) < 16:
            raise ValueError("HASH_SECRET must be set (min length 16).")
        self._s = URLSafeSerializer(secret_key=secret, salt=salt)

    @classmethod
    def from_settings(cls) -> "HashCodec":
        s = get_settings()
        return cls(s.hash_secret, s.hash_salt)

    def encode(self, payload: HashPayload, *, optimized: bool = True) -> str:
        body = payload.to_minimal() if optimized else payload.to_dict()
        return self._s.dumps(body)

    def decode(self, token: Optional[str]) -> Optional[HashPayload]:
        """Invalid, tampered or foreign tokens give None; callers start fresh."""
        if not token or not isinstance(token, str):
            return None
        try:
            data = self._s.loads(token)
        except (BadData, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.info("hash_decode_failed", error=type(e).__name__)
            return None
        if not isinstance(data, dict):
            return None
        try:
            return HashPayload.from_any(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.info("hash_decode_failed", error=type(e).__name__)
            return None


def get_codec() -> HashCodec:
    return HashCodec.from_settings()


def encode(payload: HashPayload, *, optimized: bool = True) -> str:
    return get_codec().encode(payload, optimized=optimized)


def decode(token: Optional[str]) -> Optional[HashPayload]:
    return get_codec().decode(token)


def create_enquiry_url(token: str, base_url: Optional[str] = None) -> str:
    base = (base_url if base_url is not None else get_settings().app_url).rstrip("/")
    return f"{base}/poptavka?hash={token}"
