from checkout_coupons.coupons.model import MessageKind
from checkout_coupons.coupons.session import WidgetView


def _escape(text: str) -> str:
    for ch in ("_", "*", "`", "["):
        text = text.replace(ch, f"\\{ch}")
    return text


def widget_text(view: WidgetView) -> str:
    parts = []

    if view.message is not None:
        icon = "✅" if view.message.kind == MessageKind.SUCCESS else "⚠️"
        parts.append(f"{icon} {_escape(view.message.text)}")

    if view.catalog_loading:
        parts.append("🎁 *All coupons*\n\nLoading coupons…")
    elif view.coupons:
        lines = ["🎁 *All coupons*"]
        for row in view.coupons:
            lines.append(f"\n*{_escape(row.coupon.code)}*")
            if row.coupon.description:
                lines.append(_escape(row.coupon.description))
        parts.append("\n".join(lines))

    if view.discounts:
        lines = ["*Active Discount:*"]
        for d in view.discounts:
            line = f"✓ *{_escape(d.code)}*"
            if d.description:
                line += f" · {_escape(d.description)}"
            lines.append(line)
        parts.append("\n".join(lines))

    return "\n\n".join(parts) or "No coupons available right now."


def no_checkout_text() -> str:
    return (
        "🛒 Open this bot from your checkout page link to see coupons "
        "for your order."
    )
