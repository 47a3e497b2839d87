import asyncio
import logging

import aiohttp
from aiogram import Bot, Dispatcher

from checkout_coupons.config import load_config, load_pg_config, APP_ENV, IS_PROD
from checkout_coupons.coupons import configure, set_http_session, set_pg_pool
from checkout_coupons.db.pool import create_pool
from checkout_coupons.handlers.coupons import router as coupons_router

logger = logging.getLogger(__name__)


async def main():
    cfg = load_config()
    logging.basicConfig(
        level=cfg.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    bot = Bot(token=cfg.token)
    dp = Dispatcher()

    pool = None
    http = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=30))

    # --- PostgreSQL pool (только для CATALOG_SOURCE=pg) ---
    if cfg.catalog_source == "pg":
        pool = await create_pool(load_pg_config())
        set_pg_pool(pool)

    configure(cfg)
    set_http_session(http)

    logger.info(
        "APP_ENV=%s → checkout: %s, catalog: %s",
        APP_ENV,
        "HTTP API" if IS_PROD else "in-memory",
        cfg.catalog_source,
    )

    # --- routers ---
    dp.include_router(coupons_router)

    try:
        # --- устойчивый polling (переживает дисконнекты Telegram) ---
        while True:
            try:
                await dp.start_polling(bot)
                break
            except (asyncio.CancelledError, KeyboardInterrupt):
                raise
            except Exception as e:
                logger.warning("[polling] error: %s: %s", type(e).__name__, e)
                await asyncio.sleep(2)
    finally:
        await http.close()
        if pool is not None:
            await pool.close()


if __name__ == "__main__":
    asyncio.run(main())
