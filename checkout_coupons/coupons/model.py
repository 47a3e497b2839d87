from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime, timezone
from typing import Any


class CouponType(str, Enum):
    PERCENTAGE = "percentage"  # -N%
    FIXED = "fixed"            # -N off the order
    SHIPPING = "shipping"
    BUNDLE = "bundle"          # N products for a fixed price
    GENERAL = "general"

    @classmethod
    def parse(cls, value: Any) -> "CouponType":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.GENERAL


@dataclass(frozen=True)
class Coupon:
    code: str
    description: str = ""
    type: CouponType = CouponType.GENERAL
    active: bool = True


class MessageKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True, eq=False)
class StatusMessage:
    kind: MessageKind
    text: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
