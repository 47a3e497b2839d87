import asyncio

import pytest

from checkout_coupons.checkout.host import InMemoryCheckout
from checkout_coupons.coupons.messages import MessageCenter
from checkout_coupons.coupons.reconciler import DiscountReconciler
from checkout_coupons.coupons.state import OperationStateTracker


class RecordingCheckout(InMemoryCheckout):
    """In-memory checkout that records every change request.

    raise_on: (type, code) pairs whose change request raises instead of answering.
    gate: when set, every change request waits for it first.
    """

    def __init__(self, codes=(), accepts=None, raise_on=(), gate=None):
        super().__init__(codes, accepts)
        self.changes = []
        self.reads = 0
        self.raise_on = set(raise_on)
        self.gate = gate

    async def discount_codes(self):
        self.reads += 1
        return await super().discount_codes()

    async def apply_discount_code_change(self, change):
        self.changes.append((change.type, change.code))
        if self.gate is not None:
            await self.gate.wait()
        if (change.type, change.code) in self.raise_on:
            raise RuntimeError("checkout unavailable")
        return await super().apply_discount_code_change(change)


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, delay):
        self.calls.append(delay)
        await asyncio.sleep(0)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def make_reconciler(sleep):
    def _make(host, tracker=None, messages=None):
        return DiscountReconciler(
            host,
            tracker or OperationStateTracker(),
            messages or MessageCenter(),
            sleep=sleep,
        )

    return _make


@pytest.fixture
def make_checkout():
    return RecordingCheckout
