import hashlib
from typing import Iterable, Optional

from aiogram.filters.callback_data import CallbackData


class CouponCb(CallbackData, prefix="coupon"):
    """Код купона может быть любой строкой (с ':' или длиннее 64 байт),
    поэтому в callback_data уходит только его короткий ключ."""
    action: str  # "apply" | "remove"
    key: str


class WidgetCb(CallbackData, prefix="widget"):
    action: str  # "refresh"


NOOP = "noop"


def code_key(code: str) -> str:
    return hashlib.sha256(code.encode()).hexdigest()[:16]


def resolve_code(key: str, codes: Iterable[str]) -> Optional[str]:
    for code in codes:
        if code_key(code) == key:
            return code
    return None
