import asyncio
import logging

from aiogram import Router, F
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.types import CallbackQuery, Message

from checkout_coupons.config import IS_PROD
from checkout_coupons.coupons import get_session, start_session
from checkout_coupons.coupons.session import CheckoutSession
from checkout_coupons.keyboards.callbacks import NOOP, CouponCb, WidgetCb, resolve_code
from checkout_coupons.keyboards.inline import coupons_kb
from checkout_coupons.utils.render import show_text
from checkout_coupons.utils.text import no_checkout_text, widget_text

logger = logging.getLogger(__name__)

router = Router()

CHECKOUT_PREFIX = "checkout_"


def parse_checkout_id(args: str | None) -> str | None:
    if not args or not args.startswith(CHECKOUT_PREFIX):
        return None
    checkout_id = args[len(CHECKOUT_PREFIX):].strip()
    return checkout_id or None


async def render(message: Message, session: CheckoutSession, *, allow_answer: bool) -> None:
    view = await session.view()
    await show_text(
        message=message,
        text=widget_text(view),
        reply_markup=coupons_kb(view),
        allow_answer=allow_answer,
    )


async def _run_and_render(cq: CallbackQuery, session: CheckoutSession, operation) -> None:
    task = asyncio.create_task(operation)
    try:
        # даём операции поставить флаг занятости, чтобы показать ⏳
        await asyncio.sleep(0)
        if not task.done():
            await render(cq.message, session, allow_answer=False)
    finally:
        await task
    await render(cq.message, session, allow_answer=False)


@router.message(CommandStart())
async def start_cmd(message: Message, command: CommandObject):
    checkout_id = parse_checkout_id(command.args)

    if IS_PROD and not checkout_id:
        await message.answer(no_checkout_text())
        return

    session = await start_session(message.from_user.id, checkout_id)
    await render(message, session, allow_answer=True)


@router.message(Command("coupons"))
async def coupons_cmd(message: Message):
    session = get_session(message.from_user.id)
    if session is None:
        await message.answer(no_checkout_text())
        return
    await render(message, session, allow_answer=True)


@router.message(Command("refresh"))
async def refresh_cmd(message: Message):
    session = get_session(message.from_user.id)
    if session is None:
        await message.answer(no_checkout_text())
        return
    await session.start()
    await render(message, session, allow_answer=True)


@router.callback_query(WidgetCb.filter(F.action == "refresh"))
async def refresh_cb(cq: CallbackQuery):
    await cq.answer()
    session = get_session(cq.from_user.id)
    if session is None:
        await cq.message.answer(no_checkout_text())
        return
    await render(cq.message, session, allow_answer=False)


@router.callback_query(CouponCb.filter(F.action == "apply"))
async def apply_coupon(cq: CallbackQuery, callback_data: CouponCb):
    await cq.answer()
    session = get_session(cq.from_user.id)
    if session is None:
        await cq.message.answer(no_checkout_text())
        return
    code = resolve_code(callback_data.key, (c.code for c in session.catalog.coupons))
    if code is None:
        # каталог перезагрузили после того, как была нарисована кнопка
        await render(cq.message, session, allow_answer=False)
        return
    await _run_and_render(cq, session, session.apply(code))


@router.callback_query(CouponCb.filter(F.action == "remove"))
async def remove_coupon(cq: CallbackQuery, callback_data: CouponCb):
    await cq.answer()
    session = get_session(cq.from_user.id)
    if session is None:
        await cq.message.answer(no_checkout_text())
        return
    live = await session.host.discount_codes()
    code = resolve_code(callback_data.key, (d.code for d in live))
    if code is None:
        await render(cq.message, session, allow_answer=False)
        return
    await _run_and_render(cq, session, session.remove(code))


@router.callback_query(F.data == NOOP)
async def noop(cq: CallbackQuery):
    await cq.answer()
