import aiohttp
from typing import Any, Dict, List, Optional

from checkout_coupons.checkout.host import CheckoutHost
from checkout_coupons.checkout.model import AppliedDiscount, ChangeResult, DiscountChange


class CheckoutApiError(Exception):
    """Checkout API ответил ошибкой транспорта / HTTP >= 400."""


def parse_discount_codes(data: Any) -> List[AppliedDiscount]:
    items = data.get("discountCodes") if isinstance(data, dict) else None
    if not isinstance(items, list):
        raise CheckoutApiError(f"unexpected discount codes response: {data!r}")

    codes: List[AppliedDiscount] = []
    for item in items:
        code = item.get("code") if isinstance(item, dict) else None
        if code:
            codes.append(AppliedDiscount(str(code)))
    return codes


class HttpCheckoutClient(CheckoutHost):
    """
    Checkout API:
    - GET  /checkouts/{id}/discount_codes
    - POST /checkouts/{id}/discount_code_changes  {type, code}
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        checkout_id: str,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.checkout_id = checkout_id
        self._session = session

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=30)
            )
        return self._session

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

    def _url(self, path: str) -> str:
        return f"{self.base_url}/checkouts/{self.checkout_id}/{path}"

    async def discount_codes(self) -> List[AppliedDiscount]:
        s = await self._get_session()
        async with s.get(self._url("discount_codes"), headers=self._headers()) as r:
            data = await r.json(content_type=None)
            if r.status >= 400:
                raise CheckoutApiError(f"Checkout discount codes error {r.status}: {data}")
        return parse_discount_codes(data)

    async def apply_discount_code_change(self, change: DiscountChange) -> ChangeResult:
        s = await self._get_session()
        async with s.post(
            self._url("discount_code_changes"),
            headers=self._headers(),
            json=change.to_payload(),
        ) as r:
            data = await r.json(content_type=None)
            if r.status >= 400:
                raise CheckoutApiError(f"Checkout change error {r.status}: {data}")
        return ChangeResult.from_payload(data if isinstance(data, dict) else {})

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
