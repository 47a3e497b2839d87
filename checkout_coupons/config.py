from __future__ import annotations
from dataclasses import dataclass
from dotenv import load_dotenv
import os

load_dotenv()


# === Application mode ===
# - APP_ENV=prod  → HTTP checkout API, storefront catalog
# - APP_ENV=test  → in-process checkout, static catalog
APP_ENV = (os.getenv("APP_ENV") or "prod").strip().lower()
IS_PROD = APP_ENV == "prod"

CATALOG_SOURCES = ("static", "storefront", "pg")


def _env_int(name: str, *, required: bool = False, default: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        if required:
            raise RuntimeError(f"{name} is not set")
        return default
    try:
        return int(raw)
    except Exception as e:
        if required:
            raise RuntimeError(f"{name} must be an integer") from e
        return default


@dataclass
class Config:
    token: str
    catalog_source: str = "static"
    checkout_api_url: str | None = None
    checkout_api_token: str | None = None
    storefront_api_url: str | None = None
    storefront_token: str | None = None
    coupon_metaobject_type: str = "coupon"
    settle_delay_ms: int = 500
    success_ttl_ms: int = 3000
    error_ttl_ms: int = 5000
    log_level: str = "INFO"

    @property
    def settle_delay(self) -> float:
        return self.settle_delay_ms / 1000

    @property
    def success_ttl(self) -> float:
        return self.success_ttl_ms / 1000

    @property
    def error_ttl(self) -> float:
        return self.error_ttl_ms / 1000


def load_config() -> Config:
    bot_token = os.getenv("BOT_TOKEN")
    if not bot_token:
        raise RuntimeError("BOT_TOKEN is not set")

    default_source = "storefront" if IS_PROD else "static"
    catalog_source = (os.getenv("CATALOG_SOURCE") or default_source).strip().lower()
    if catalog_source not in CATALOG_SOURCES:
        raise RuntimeError(
            f"CATALOG_SOURCE must be one of {', '.join(CATALOG_SOURCES)}, got {catalog_source!r}"
        )

    checkout_api_url = os.getenv("CHECKOUT_API_URL")
    checkout_api_token = os.getenv("CHECKOUT_API_TOKEN")
    storefront_api_url = os.getenv("STOREFRONT_API_URL")
    storefront_token = os.getenv("STOREFRONT_TOKEN")

    if IS_PROD:
        if not checkout_api_url:
            raise RuntimeError("CHECKOUT_API_URL is not set (APP_ENV=prod)")
        if not checkout_api_token:
            raise RuntimeError("CHECKOUT_API_TOKEN is not set (APP_ENV=prod)")

    if catalog_source == "storefront":
        if not storefront_api_url:
            raise RuntimeError("STOREFRONT_API_URL is not set (CATALOG_SOURCE=storefront)")
        if not storefront_token:
            raise RuntimeError("STOREFRONT_TOKEN is not set (CATALOG_SOURCE=storefront)")

    return Config(
        token=bot_token,
        catalog_source=catalog_source,
        checkout_api_url=checkout_api_url,
        checkout_api_token=checkout_api_token,
        storefront_api_url=storefront_api_url,
        storefront_token=storefront_token,
        coupon_metaobject_type=os.getenv("COUPON_METAOBJECT_TYPE") or "coupon",
        settle_delay_ms=_env_int("SETTLE_DELAY_MS", default=500),
        success_ttl_ms=_env_int("SUCCESS_TTL_MS", default=3000),
        error_ttl_ms=_env_int("ERROR_TTL_MS", default=5000),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
    )


@dataclass(frozen=True)
class PgConfig:
    host: str
    port: int
    database: str
    user: str
    password: str | None = None
    sslmode: str = "disable"


def load_pg_config() -> PgConfig:
    """PG_* нужны только для CATALOG_SOURCE=pg."""
    missing = [name for name in ("PG_HOST", "PG_DB", "PG_USER") if not os.getenv(name)]
    if missing:
        raise RuntimeError(f"{', '.join(missing)} not set (CATALOG_SOURCE=pg)")

    return PgConfig(
        host=os.getenv("PG_HOST"),
        port=_env_int("PG_PORT", default=5432),
        database=os.getenv("PG_DB"),
        user=os.getenv("PG_USER"),
        password=os.getenv("PG_PASS") or None,
        sslmode=(os.getenv("PG_SSLMODE") or "disable").strip().lower(),
    )
