from contextlib import contextmanager
from typing import Dict, Iterator

REMOVE_PREFIX = "remove:"


def remove_key(code: str) -> str:
    return f"{REMOVE_PREFIX}{code}"


class OperationStateTracker:
    """Флаги занятости по ключу операции (код купона или ``remove:<code>``).

    - is_any_busy() → глобальный запрет: пока идёт любая операция, новые не начинаем.
    - is_busy(key)  → индикатор загрузки на конкретной строке.
    """

    def __init__(self):
        self._busy: Dict[str, bool] = {}

    def begin(self, key: str) -> None:
        # повторный begin уже занятого ключа ничего не меняет
        self._busy[key] = True

    def end(self, key: str) -> None:
        self._busy.pop(key, None)

    def is_busy(self, key: str) -> bool:
        return self._busy.get(key, False)

    def is_any_busy(self) -> bool:
        return any(self._busy.values())

    def snapshot(self) -> Dict[str, bool]:
        return dict(self._busy)

    @contextmanager
    def busy(self, key: str) -> Iterator[None]:
        self.begin(key)
        try:
            yield
        finally:
            self.end(key)
