from dataclasses import dataclass
from typing import Any, Mapping, Optional

ADD_DISCOUNT_CODE = "addDiscountCode"
REMOVE_DISCOUNT_CODE = "removeDiscountCode"


@dataclass(frozen=True)
class AppliedDiscount:
    code: str


@dataclass(frozen=True)
class DiscountChange:
    type: str  # "addDiscountCode" | "removeDiscountCode"
    code: str

    @classmethod
    def add(cls, code: str) -> "DiscountChange":
        return cls(ADD_DISCOUNT_CODE, code)

    @classmethod
    def remove(cls, code: str) -> "DiscountChange":
        return cls(REMOVE_DISCOUNT_CODE, code)

    def to_payload(self) -> dict:
        return {"type": self.type, "code": self.code}


@dataclass(frozen=True)
class ChangeResult:
    type: str  # "success" | "error"
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.type == "success"

    @classmethod
    def success(cls) -> "ChangeResult":
        return cls("success")

    @classmethod
    def error(cls, message: Optional[str] = None) -> "ChangeResult":
        return cls("error", message)

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "ChangeResult":
        kind = data.get("type") if isinstance(data, Mapping) else None
        if kind == "success":
            return cls.success()
        message = data.get("message") if isinstance(data, Mapping) else None
        return cls.error(str(message) if message else None)
