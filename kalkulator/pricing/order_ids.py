from __future__ import annotations

import secrets
import string
import time
from typing import Any, Mapping, Optional

_BASE36 = string.digits + string.ascii_lowercase


def to_base36(n: int) -> str:
    if n < 0:
        raise ValueError("base36 of a negative number")
    if n == 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_BASE36[r])
    return "".join(reversed(out))


def generate_order_id(now_ms: Optional[int] = None) -> str:
    """order_<ms timestamp in base36>_<6 random base36 chars>"""
    ts = now_ms if now_ms is not None else int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"order_{to_base36(ts)}_{suffix}"


def get_or_create_order_id(calculation_data: Optional[Mapping[str, Any]] = None) -> str:
    """Reuse the id a decoded payload already carries, otherwise mint a new one."""
    existing = (calculation_data or {}).get("orderId")
    if existing:
        return str(existing)
    return generate_order_id()
