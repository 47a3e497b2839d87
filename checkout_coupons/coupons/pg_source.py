from __future__ import annotations

from typing import Any, Mapping, Sequence

import asyncpg

from checkout_coupons.coupons.catalog import CatalogSource


class PgCatalogSource(CatalogSource):
    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def fetch_entries(self) -> Sequence[Mapping[str, Any]]:
        sql = """
        SELECT
            code,
            description,
            type,
            active
        FROM coupons
        ORDER BY position, code
        """
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(sql)

        return [
            {
                "code": row["code"],
                "description": row["description"],
                "type": row["type"],
                "active": row["active"],
            }
            for row in rows
        ]
