import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from checkout_coupons.coupons.model import Coupon, CouponType

logger = logging.getLogger(__name__)

_FALSE_VALUES = {"false", "0", "no", "n", "off"}

# Показываем, если живой каталог недоступен или пуст.
FALLBACK_COUPONS: Tuple[Coupon, ...] = (
    Coupon("FLAT400", "Shop any 2 eligible products at ₹699", CouponType.BUNDLE),
    Coupon("FLAT300", "Shop any 3 eligible products at ₹999", CouponType.BUNDLE),
    Coupon("BUY1199", "Shop any 4 eligible products at ₹1199", CouponType.BUNDLE),
    Coupon("FLAT20", "Get flat 20% OFF on orders above ₹499", CouponType.PERCENTAGE),
)


def _parse_active(value: Any) -> bool:
    if value in (None, ""):
        return True
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_VALUES
    return bool(value)


def parse_entry(raw: Mapping[str, Any]) -> Optional[Coupon]:
    """Запись источника → Coupon. None, если код пустой или купон выключен."""
    code = str(raw.get("code") or "").strip()
    if not code:
        return None

    active = _parse_active(raw.get("active"))
    if not active:
        return None

    return Coupon(
        code=code,
        description=str(raw.get("description") or ""),
        type=CouponType.parse(raw.get("type")),
        active=active,
    )


def parse_entries(entries: Iterable[Mapping[str, Any]]) -> Tuple[Coupon, ...]:
    coupons: List[Coupon] = []
    seen = set()
    for raw in entries:
        if not isinstance(raw, Mapping):
            continue
        coupon = parse_entry(raw)
        if coupon is None or coupon.code in seen:
            continue
        seen.add(coupon.code)
        coupons.append(coupon)
    return tuple(coupons)


class CatalogSource(ABC):
    """Внешний источник купонов: список записей с полями code/description/type/active."""

    @abstractmethod
    async def fetch_entries(self) -> Sequence[Mapping[str, Any]]:
        ...


class StaticCatalogSource(CatalogSource):
    def __init__(self, entries: Iterable[Mapping[str, Any]]):
        self._entries = [dict(e) for e in entries]

    async def fetch_entries(self) -> Sequence[Mapping[str, Any]]:
        return list(self._entries)


class CatalogProvider:
    """Каталог купонов с детерминированным fallback.

    load_catalog() никогда не бросает исключение:
    - источник не задан / упал / вернул мусор → fallback
    - после фильтрации ничего не осталось → тоже fallback
    """

    def __init__(
        self,
        source: Optional[CatalogSource] = None,
        fallback: Sequence[Coupon] = FALLBACK_COUPONS,
    ):
        self.source = source
        self.fallback = tuple(fallback)
        self.coupons: Tuple[Coupon, ...] = ()
        # пока каталог не загружен, виджет показывает «Loading coupons…»
        self.loading = True

    async def load_catalog(self) -> Tuple[Coupon, ...]:
        self.loading = True
        try:
            coupons = await self._load_live()
            if not coupons:
                coupons = self.fallback
            self.coupons = coupons
            return coupons
        finally:
            self.loading = False

    async def _load_live(self) -> Tuple[Coupon, ...]:
        if self.source is None:
            return ()

        try:
            entries = await self.source.fetch_entries()
        except Exception:
            logger.warning("coupon catalog source failed, using fallback", exc_info=True)
            return ()

        if not isinstance(entries, Sequence) or isinstance(entries, (str, bytes)):
            logger.warning("coupon catalog source returned %r, using fallback", type(entries).__name__)
            return ()

        coupons = parse_entries(entries)
        if not coupons:
            logger.info("coupon catalog source returned no active coupons, using fallback")
        return coupons

    def find(self, code: str) -> Optional[Coupon]:
        for coupon in self.coupons:
            if coupon.code == code:
                return coupon
        return None
