import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, List, Sequence, Tuple

from checkout_coupons.checkout.host import CheckoutHost
from checkout_coupons.checkout.model import AppliedDiscount, DiscountChange
from checkout_coupons.coupons.messages import MessageCenter
from checkout_coupons.coupons.state import OperationStateTracker, remove_key

logger = logging.getLogger(__name__)

SETTLE_DELAY = 0.5


class Outcome(str, Enum):
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    FAILED = "failed"
    REMOVED = "removed"
    REJECTED = "rejected"  # другая операция ещё идёт


def already_applied_text(code: str) -> str:
    return f'Coupon "{code}" is already applied!'


def applied_text(code: str) -> str:
    return f'Coupon "{code}" applied successfully!'


def apply_failed_text(code: str) -> str:
    return (
        f'Failed to apply coupon "{code}". Please check if the code is valid '
        f"or if your order meets the requirements."
    )


def apply_error_text(code: str) -> str:
    return f'Error applying coupon "{code}". Please try again.'


def removed_text(code: str) -> str:
    return f'Coupon "{code}" removed successfully!'


def remove_error_text(code: str) -> str:
    return f'Error removing coupon "{code}".'


class DiscountReconciler:
    """Держит в чекауте не больше одного активного кода.

    Чекаут умеет только add/remove по одному коду, поэтому apply(code) =
    снять все текущие коды → подождать settle_delay → добавить новый;
    если новый не принят, вернуть первый из снятых.
    Список кодов читается у чекаута заново перед каждым решением.
    """

    def __init__(
        self,
        host: CheckoutHost,
        tracker: OperationStateTracker,
        messages: MessageCenter,
        settle_delay: float = SETTLE_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.host = host
        self.tracker = tracker
        self.messages = messages
        self.settle_delay = settle_delay
        self._sleep = sleep

    async def apply(self, code: str) -> Outcome:
        if self.tracker.is_any_busy():
            logger.info("apply %s rejected: another coupon operation is in flight", code)
            return Outcome.REJECTED

        self.messages.clear()
        with self.tracker.busy(code):
            try:
                return await self._apply(code)
            except Exception:
                logger.exception("error applying coupon %s", code)
                self.messages.set_error(apply_error_text(code))
                return Outcome.FAILED

    async def _apply(self, code: str) -> Outcome:
        current = await self.host.discount_codes()

        if any(d.code == code for d in current):
            self.messages.set_error(already_applied_text(code))
            return Outcome.ALREADY_APPLIED

        if current:
            failures = await self._remove_all(current)
            for failed_code, reason in failures:
                logger.warning("could not remove discount code %s: %s", failed_code, reason)
            await self._sleep(self.settle_delay)

        try:
            result = await self.host.apply_discount_code_change(DiscountChange.add(code))
        except Exception:
            logger.exception("checkout raised while adding %s", code)
            await self._restore(current)
            self.messages.set_error(apply_error_text(code))
            return Outcome.FAILED

        if result.ok:
            logger.info("coupon %s applied", code)
            self.messages.set_success(applied_text(code))
            return Outcome.APPLIED

        logger.warning("checkout rejected %s: %s", code, result.message)
        await self._restore(current)
        self.messages.set_error(apply_failed_text(code))
        return Outcome.FAILED

    async def _remove_all(self, discounts: Sequence[AppliedDiscount]) -> List[Tuple[str, str]]:
        """Снимает коды строго по очереди; ошибки копятся, цикл не прерывается."""
        failures: List[Tuple[str, str]] = []
        for discount in discounts:
            try:
                live = await self.host.discount_codes()
                if not any(d.code == discount.code for d in live):
                    # чекаут уже снял его сам
                    continue
                result = await self.host.apply_discount_code_change(
                    DiscountChange.remove(discount.code)
                )
            except Exception as e:
                failures.append((discount.code, f"{type(e).__name__}: {e}"))
                continue

            if result.ok:
                logger.info("removed discount code %s", discount.code)
            else:
                failures.append((discount.code, result.message or "rejected"))
        return failures

    async def _restore(self, previous: Sequence[AppliedDiscount]) -> None:
        # возвращаем только первый код: активным должен быть максимум один
        if not previous or not previous[0].code:
            return

        code = previous[0].code
        try:
            result = await self.host.apply_discount_code_change(DiscountChange.add(code))
        except Exception:
            logger.exception("error reapplying previous coupon %s", code)
            return

        if not result.ok:
            logger.warning("could not reapply previous coupon %s: %s", code, result.message)

    async def remove(self, code: str) -> Outcome:
        if self.tracker.is_any_busy():
            logger.info("remove %s rejected: another coupon operation is in flight", code)
            return Outcome.REJECTED

        self.messages.clear()
        with self.tracker.busy(remove_key(code)):
            try:
                result = await self.host.apply_discount_code_change(DiscountChange.remove(code))
            except Exception:
                logger.exception("error removing coupon %s", code)
                self.messages.set_error(remove_error_text(code))
                return Outcome.FAILED

            if not result.ok:
                logger.warning("checkout refused to remove %s: %s", code, result.message)
                self.messages.set_error(remove_error_text(code))
                return Outcome.FAILED

            logger.info("coupon %s removed", code)
            self.messages.set_success(removed_text(code))
            return Outcome.REMOVED
