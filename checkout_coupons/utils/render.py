from aiogram.types import Message
from aiogram.exceptions import TelegramBadRequest


async def show_text(
    message: Message,
    text: str,
    reply_markup,
    *,
    allow_answer: bool = True,
):
    """Текст виджета.

    - Колбэки (apply/remove): allow_answer=False → редактируем то же сообщение.
    - /start, /coupons: allow_answer=True → можно отправить новое.
    """
    try:
        await message.edit_text(text=text, reply_markup=reply_markup, parse_mode="Markdown")
        return
    except TelegramBadRequest as e:
        # текст не изменился, это не ошибка
        if "message is not modified" in str(e):
            return
        if allow_answer:
            await message.answer(text=text, reply_markup=reply_markup, parse_mode="Markdown")
