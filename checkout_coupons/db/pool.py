import asyncpg

from checkout_coupons.config import PgConfig


async def create_pool(cfg: PgConfig) -> asyncpg.Pool:
    # каталог читается один раз на старте сессии, большой пул не нужен
    return await asyncpg.create_pool(
        host=cfg.host,
        port=cfg.port,
        database=cfg.database,
        user=cfg.user,
        password=cfg.password,
        ssl=None if cfg.sslmode == "disable" else cfg.sslmode,
        min_size=1,
        max_size=5,
        command_timeout=10,
        server_settings={"application_name": "checkout-coupons"},
    )
