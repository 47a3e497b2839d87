from aiogram.utils.keyboard import InlineKeyboardBuilder

from checkout_coupons.coupons.session import WidgetView
from checkout_coupons.keyboards.callbacks import NOOP, CouponCb, WidgetCb, code_key


def _apply_label(code: str, applied: bool, loading: bool) -> str:
    if loading:
        return f"⏳ {code}"
    if applied:
        return f"{code} · Applied ✓"
    return f"{code} · Apply"


def coupons_kb(view: WidgetView):
    """Клавиатура виджета.

    - строки каталога: Apply (неактивные → noop)
    - активные коды: Remove
    """
    kb = InlineKeyboardBuilder()

    for row in view.coupons:
        code = row.coupon.code
        data = CouponCb(action="apply", key=code_key(code)).pack() if row.enabled else NOOP
        kb.button(text=_apply_label(code, row.applied, row.loading), callback_data=data)

    for d in view.discounts:
        text = f"⏳ {d.code}" if d.loading else f"❌ Remove {d.code}"
        data = NOOP if d.loading else CouponCb(action="remove", key=code_key(d.code)).pack()
        kb.button(text=text, callback_data=data)

    kb.button(text="🔄 Refresh", callback_data=WidgetCb(action="refresh").pack())

    kb.adjust(1)
    return kb.as_markup()
