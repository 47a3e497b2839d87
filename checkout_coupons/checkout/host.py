from abc import ABC, abstractmethod
from typing import Callable, Iterable, List, Optional

from checkout_coupons.checkout.model import (
    ADD_DISCOUNT_CODE,
    REMOVE_DISCOUNT_CODE,
    AppliedDiscount,
    ChangeResult,
    DiscountChange,
)


class CheckoutHost(ABC):
    """Чекаут, который владеет списком применённых кодов и решает, валиден ли код."""

    @abstractmethod
    async def discount_codes(self) -> List[AppliedDiscount]:
        """Актуальный список кодов (каждый вызов читает заново)."""
        ...

    @abstractmethod
    async def apply_discount_code_change(self, change: DiscountChange) -> ChangeResult:
        ...


class InMemoryCheckout(CheckoutHost):
    """Чекаут в памяти процесса (APP_ENV=test).

    accepts(code) решает, примет ли чекаут код; по умолчанию принимается любой.
    """

    def __init__(
        self,
        codes: Iterable[str] = (),
        accepts: Optional[Callable[[str], bool]] = None,
    ):
        self._codes: List[str] = list(codes)
        self.accepts = accepts

    @property
    def codes(self) -> List[str]:
        return list(self._codes)

    async def discount_codes(self) -> List[AppliedDiscount]:
        return [AppliedDiscount(c) for c in self._codes]

    async def apply_discount_code_change(self, change: DiscountChange) -> ChangeResult:
        code = change.code.strip()

        if change.type == ADD_DISCOUNT_CODE:
            if not code:
                return ChangeResult.error("Enter a discount code")
            if code in self._codes:
                return ChangeResult.error(f"{code} is already applied")
            if self.accepts is not None and not self.accepts(code):
                return ChangeResult.error(f"{code} is not valid for this order")
            self._codes.append(code)
            return ChangeResult.success()

        if change.type == REMOVE_DISCOUNT_CODE:
            if code not in self._codes:
                return ChangeResult.error(f"{code} is not applied")
            self._codes.remove(code)
            return ChangeResult.success()

        return ChangeResult.error(f"Unknown change type {change.type!r}")
