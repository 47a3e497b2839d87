"""Tests for the checkout session and widget rendering."""

import asyncio

import pytest

from checkout_coupons.coupons.catalog import CatalogProvider, StaticCatalogSource
from checkout_coupons.coupons.model import MessageKind
from checkout_coupons.coupons.reconciler import Outcome
from checkout_coupons.coupons.session import CheckoutSession
from checkout_coupons.keyboards.callbacks import NOOP, CouponCb, code_key, resolve_code
from checkout_coupons.keyboards.inline import coupons_kb
from checkout_coupons.utils.text import widget_text

CATALOG = [
    {"code": "SAVE20", "description": "20% off", "type": "percentage"},
    {"code": "SHIPFREE", "description": "Free shipping", "type": "shipping"},
]


@pytest.fixture
def make_session(make_checkout):
    def _make(codes=(), accepts=None, gate=None):
        host = make_checkout(codes=codes, accepts=accepts, gate=gate)
        catalog = CatalogProvider(StaticCatalogSource(CATALOG))
        return CheckoutSession(host, catalog, settle_delay=0)

    return _make


def _buttons(markup):
    return [b for row in markup.inline_keyboard for b in row]


class TestCheckoutSession:
    """Tests for CheckoutSession."""

    @pytest.mark.asyncio
    async def test_start_loads_catalog(self, make_session):
        """start() loads the catalog once."""
        session = make_session()
        coupons = await session.start()
        assert [c.code for c in coupons] == ["SAVE20", "SHIPFREE"]

    @pytest.mark.asyncio
    async def test_end_to_end_apply(self, make_session):
        """Empty checkout + SAVE20 → one add call and a success message."""
        session = make_session()
        await session.start()

        outcome = await session.apply("SAVE20")

        assert outcome == Outcome.APPLIED
        assert session.host.changes == [("addDiscountCode", "SAVE20")]
        view = await session.view()
        assert view.message.kind == MessageKind.SUCCESS
        assert [d.code for d in view.discounts] == ["SAVE20"]
        session.messages.clear()

    @pytest.mark.asyncio
    async def test_view_flags(self, make_session):
        """Applied coupons are disabled; others stay enabled while idle."""
        session = make_session(codes=["SAVE20"])
        await session.start()

        view = await session.view()

        rows = {r.coupon.code: r for r in view.coupons}
        assert rows["SAVE20"].applied and not rows["SAVE20"].enabled
        assert not rows["SHIPFREE"].applied and rows["SHIPFREE"].enabled
        assert view.discounts[0].description == "20% off"
        assert view.any_busy is False
        assert view.busy == {}
        assert view.message is None
        assert view.catalog_loading is False

    @pytest.mark.asyncio
    async def test_unknown_discount_has_no_description(self, make_session):
        """Codes outside the catalog are still listed."""
        session = make_session(codes=["STAFF"])
        await session.start()

        view = await session.view()

        assert view.discounts[0].code == "STAFF"
        assert view.discounts[0].description is None

    @pytest.mark.asyncio
    async def test_view_while_busy(self, make_session):
        """Every apply is disabled while an operation is in flight."""
        gate = asyncio.Event()
        session = make_session(gate=gate)
        await session.start()

        task = asyncio.create_task(session.apply("SAVE20"))
        while not session.host.changes:
            await asyncio.sleep(0)

        view = await session.view()
        assert view.any_busy
        assert view.busy == {"SAVE20": True}
        assert all(not r.enabled for r in view.coupons)
        assert {r.coupon.code: r.loading for r in view.coupons} == {"SAVE20": True, "SHIPFREE": False}

        gate.set()
        await task
        session.messages.clear()

    @pytest.mark.asyncio
    async def test_remove_loading_flag(self, make_session):
        """A removal marks its active discount row as loading."""
        gate = asyncio.Event()
        session = make_session(codes=["SAVE20"], gate=gate)
        await session.start()

        task = asyncio.create_task(session.remove("SAVE20"))
        while not session.host.changes:
            await asyncio.sleep(0)

        view = await session.view()
        assert view.discounts[0].loading

        gate.set()
        assert await task == Outcome.REMOVED
        session.messages.clear()


class TestWidgetRendering:
    """Tests for the Telegram text and keyboard."""

    @pytest.mark.asyncio
    async def test_keyboard_buttons(self, make_session):
        """Apply buttons for free coupons, noop for applied ones, remove for active codes."""
        session = make_session(codes=["SAVE20"])
        await session.start()

        buttons = _buttons(coupons_kb(await session.view()))

        by_text = {b.text: b.callback_data for b in buttons}
        assert by_text["SAVE20 · Applied ✓"] == NOOP
        assert by_text["SHIPFREE · Apply"] == f"coupon:apply:{code_key('SHIPFREE')}"
        assert by_text["❌ Remove SAVE20"] == f"coupon:remove:{code_key('SAVE20')}"
        assert by_text["🔄 Refresh"] == "widget:refresh"

    @pytest.mark.asyncio
    async def test_text_lists_catalog_and_active(self, make_session):
        """The text shows the banner, the catalog and the active discount."""
        session = make_session(codes=["SAVE20"])
        await session.start()
        session.messages.set_error('Coupon "X" failed')

        text = widget_text(await session.view())

        assert text.startswith("⚠️")
        assert "All coupons" in text
        assert "SHIPFREE" in text
        assert "Active Discount" in text
        assert "20% off" in text
        session.messages.clear()

    @pytest.mark.asyncio
    async def test_text_with_empty_catalog(self, make_checkout):
        """An empty catalog renders a placeholder."""
        session = CheckoutSession(make_checkout(), CatalogProvider(None, fallback=()))
        await session.start()

        assert widget_text(await session.view()) == "No coupons available right now."

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["SUMMER:2024", "X" * 60])
    async def test_keyboard_with_awkward_codes(self, make_checkout, code):
        """Codes with ':' or longer than callback data allows still get buttons."""
        session = CheckoutSession(
            make_checkout(codes=[code]),
            CatalogProvider(StaticCatalogSource([{"code": code}, {"code": "OTHER:1"}])),
        )
        await session.start()

        buttons = _buttons(coupons_kb(await session.view()))

        remove = next(b for b in buttons if b.text == f"❌ Remove {code}")
        apply = next(b for b in buttons if b.text == "OTHER:1 · Apply")
        for button in (remove, apply):
            assert len(button.callback_data.encode()) <= 64

        remove_cb = CouponCb.unpack(remove.callback_data)
        assert remove_cb.action == "remove"
        assert resolve_code(remove_cb.key, [code, "OTHER:1"]) == code

        apply_cb = CouponCb.unpack(apply.callback_data)
        assert apply_cb.action == "apply"
        assert resolve_code(apply_cb.key, [c.code for c in session.catalog.coupons]) == "OTHER:1"

    def test_unknown_key_resolves_to_none(self):
        """A key from a stale keyboard resolves to nothing."""
        assert resolve_code(code_key("GONE"), ["SAVE20", "SHIPFREE"]) is None

    @pytest.mark.asyncio
    async def test_text_before_catalog_load(self, make_session):
        """A view taken before start() shows the loading line."""
        session = make_session()

        view = await session.view()

        assert view.catalog_loading is True
        assert view.coupons == ()
        assert "Loading coupons" in widget_text(view)
