import asyncio
import logging
from typing import Optional

from checkout_coupons.coupons.model import MessageKind, StatusMessage

logger = logging.getLogger(__name__)

SUCCESS_TTL = 3.0
ERROR_TTL = 5.0


class MessageCenter:
    """Один слот для статусного сообщения (успех / ошибка) с автоочисткой.

    Каждое сообщение живёт своё время (success 3 c, error 5 c). Новое сообщение
    отменяет таймер предыдущего; таймер очищает слот только если там всё ещё
    «его» сообщение.
    """

    def __init__(self, success_ttl: float = SUCCESS_TTL, error_ttl: float = ERROR_TTL):
        self.success_ttl = success_ttl
        self.error_ttl = error_ttl
        self._current: Optional[StatusMessage] = None
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def current(self) -> Optional[StatusMessage]:
        return self._current

    def set_success(self, text: str) -> StatusMessage:
        return self._set(MessageKind.SUCCESS, text, self.success_ttl)

    def set_error(self, text: str) -> StatusMessage:
        return self._set(MessageKind.ERROR, text, self.error_ttl)

    def clear(self) -> None:
        self._cancel_timer()
        self._current = None

    def _set(self, kind: MessageKind, text: str, ttl: float) -> StatusMessage:
        self._cancel_timer()
        message = StatusMessage(kind=kind, text=text)
        self._current = message

        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(ttl, self._expire, message)
        return message

    def _expire(self, message: StatusMessage) -> None:
        if self._current is not message:
            return
        logger.debug("status message expired: %s", message.text)
        self._current = None
        self._timer = None

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
