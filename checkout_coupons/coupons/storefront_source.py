import aiohttp
from typing import Any, Dict, List, Mapping, Optional, Sequence

from checkout_coupons.coupons.catalog import CatalogSource
from checkout_coupons.coupons.errors import CatalogSourceError

COUPONS_QUERY = """
query CouponMetaobjects($type: String!, $first: Int!) {
  metaobjects(type: $type, first: $first) {
    nodes {
      fields {
        key
        value
      }
    }
  }
}
"""


def flatten_fields(node: Mapping[str, Any]) -> Dict[str, Any]:
    """[{key, value}, ...] → {key: value}."""
    fields = node.get("fields")
    if not isinstance(fields, list):
        raise CatalogSourceError("metaobject node has no fields list")

    out: Dict[str, Any] = {}
    for f in fields:
        if not isinstance(f, Mapping) or not f.get("key"):
            continue
        out[str(f["key"])] = f.get("value")
    return out


def extract_nodes(payload: Any) -> List[Mapping[str, Any]]:
    try:
        nodes = payload["data"]["metaobjects"]["nodes"]
    except (KeyError, TypeError) as e:
        raise CatalogSourceError(f"unexpected metaobjects response: {e!r}") from e

    if not isinstance(nodes, list):
        raise CatalogSourceError("metaobjects.nodes is not a list")
    return [n for n in nodes if isinstance(n, Mapping)]


class StorefrontCatalogSource(CatalogSource):
    """
    Storefront GraphQL:
    - POST {api_url}  query metaobjects(type: "coupon") { nodes { fields { key value } } }
    """

    def __init__(
        self,
        api_url: str,
        access_token: str,
        metaobject_type: str = "coupon",
        first: int = 50,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.api_url = api_url
        self.access_token = access_token
        self.metaobject_type = metaobject_type
        self.first = first
        self._session = session

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=15)
            )
        return self._session

    def _headers(self) -> Dict[str, str]:
        return {
            "X-Shopify-Storefront-Access-Token": self.access_token,
            "Content-Type": "application/json",
        }

    async def fetch_entries(self) -> Sequence[Mapping[str, Any]]:
        s = await self._get_session()
        body = {
            "query": COUPONS_QUERY,
            "variables": {"type": self.metaobject_type, "first": self.first},
        }

        async with s.post(self.api_url, headers=self._headers(), json=body) as r:
            data = await r.json(content_type=None)
            if r.status >= 400:
                raise CatalogSourceError(f"Storefront error {r.status}: {data}")

        if isinstance(data, Mapping) and data.get("errors"):
            raise CatalogSourceError(f"Storefront query errors: {data['errors']}")

        return [flatten_fields(n) for n in extract_nodes(data)]

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
