class CouponError(Exception):
    pass


class CatalogSourceError(CouponError):
    """Источник каталога недоступен или вернул данные не той формы."""
