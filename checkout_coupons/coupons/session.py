import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from checkout_coupons.checkout.host import CheckoutHost
from checkout_coupons.coupons.catalog import CatalogProvider
from checkout_coupons.coupons.messages import MessageCenter
from checkout_coupons.coupons.model import Coupon, StatusMessage
from checkout_coupons.coupons.reconciler import SETTLE_DELAY, DiscountReconciler, Outcome
from checkout_coupons.coupons.state import OperationStateTracker, remove_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CouponRow:
    coupon: Coupon
    applied: bool
    loading: bool
    enabled: bool


@dataclass(frozen=True)
class ActiveDiscountRow:
    code: str
    description: Optional[str]
    loading: bool


@dataclass(frozen=True)
class WidgetView:
    coupons: Tuple[CouponRow, ...]
    discounts: Tuple[ActiveDiscountRow, ...]
    busy: Dict[str, bool]
    message: Optional[StatusMessage]
    any_busy: bool
    catalog_loading: bool


class CheckoutSession:
    """Виджет купонов одного покупателя: каталог + чекаут + состояние операций."""

    def __init__(
        self,
        host: CheckoutHost,
        catalog: CatalogProvider,
        *,
        tracker: Optional[OperationStateTracker] = None,
        messages: Optional[MessageCenter] = None,
        settle_delay: float = SETTLE_DELAY,
    ):
        self.host = host
        self.catalog = catalog
        self.tracker = tracker or OperationStateTracker()
        self.messages = messages or MessageCenter()
        self.reconciler = DiscountReconciler(
            host, self.tracker, self.messages, settle_delay=settle_delay
        )

    async def start(self) -> Tuple[Coupon, ...]:
        coupons = await self.catalog.load_catalog()
        logger.info("coupon catalog loaded: %d coupons", len(coupons))
        return coupons

    async def apply(self, code: str) -> Outcome:
        return await self.reconciler.apply(code)

    async def remove(self, code: str) -> Outcome:
        return await self.reconciler.remove(code)

    async def view(self) -> WidgetView:
        applied = await self.host.discount_codes()
        applied_codes = {d.code for d in applied}
        any_busy = self.tracker.is_any_busy()

        rows = tuple(
            CouponRow(
                coupon=c,
                applied=c.code in applied_codes,
                loading=self.tracker.is_busy(c.code),
                enabled=c.code not in applied_codes and not any_busy,
            )
            for c in self.catalog.coupons
        )

        discounts = []
        for d in applied:
            coupon = self.catalog.find(d.code)
            discounts.append(
                ActiveDiscountRow(
                    code=d.code,
                    description=(coupon.description or None) if coupon else None,
                    loading=self.tracker.is_busy(remove_key(d.code)),
                )
            )

        return WidgetView(
            coupons=rows,
            discounts=tuple(discounts),
            busy=self.tracker.snapshot(),
            message=self.messages.current,
            any_busy=any_busy,
            catalog_loading=self.catalog.loading,
        )
