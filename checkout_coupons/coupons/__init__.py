import logging
from typing import Dict, Optional

from checkout_coupons.config import IS_PROD, Config
from checkout_coupons.checkout.host import CheckoutHost, InMemoryCheckout
from checkout_coupons.coupons.catalog import (
    FALLBACK_COUPONS,
    CatalogProvider,
    CatalogSource,
    StaticCatalogSource,
)
from checkout_coupons.coupons.messages import MessageCenter
from checkout_coupons.coupons.session import CheckoutSession

logger = logging.getLogger(__name__)

_config: Optional[Config] = None
_pg_pool = None
_http = None

# сессия виджета по пользователю (память процесса)
SESSIONS: Dict[int, CheckoutSession] = {}


def configure(cfg: Config) -> None:
    global _config
    _config = cfg


def set_pg_pool(pool) -> None:
    global _pg_pool
    _pg_pool = pool


def set_http_session(session) -> None:
    global _http
    _http = session


def build_catalog_source(cfg: Config) -> Optional[CatalogSource]:
    if cfg.catalog_source == "storefront":
        from checkout_coupons.coupons.storefront_source import StorefrontCatalogSource  # lazy import
        return StorefrontCatalogSource(
            api_url=cfg.storefront_api_url,
            access_token=cfg.storefront_token,
            metaobject_type=cfg.coupon_metaobject_type,
            session=_http,
        )

    if cfg.catalog_source == "pg":
        if _pg_pool is None:
            logger.warning("CATALOG_SOURCE=pg but no PostgreSQL pool, using fallback catalog")
            return None
        from checkout_coupons.coupons.pg_source import PgCatalogSource  # lazy import
        return PgCatalogSource(_pg_pool)

    return StaticCatalogSource(
        {"code": c.code, "description": c.description, "type": c.type.value}
        for c in FALLBACK_COUPONS
    )


def build_host(cfg: Config, checkout_id: Optional[str]) -> CheckoutHost:
    if IS_PROD and checkout_id:
        from checkout_coupons.checkout.http_host import HttpCheckoutClient  # lazy import
        return HttpCheckoutClient(
            base_url=cfg.checkout_api_url,
            token=cfg.checkout_api_token,
            checkout_id=checkout_id,
            session=_http,
        )
    return InMemoryCheckout()


def get_session(user_id: int) -> Optional[CheckoutSession]:
    return SESSIONS.get(user_id)


async def start_session(user_id: int, checkout_id: Optional[str] = None) -> CheckoutSession:
    if _config is None:
        raise RuntimeError("coupons are not configured (call configure() first)")

    session = CheckoutSession(
        host=build_host(_config, checkout_id),
        catalog=CatalogProvider(build_catalog_source(_config)),
        messages=MessageCenter(_config.success_ttl, _config.error_ttl),
        settle_delay=_config.settle_delay,
    )
    SESSIONS[user_id] = session
    await session.start()
    return session
