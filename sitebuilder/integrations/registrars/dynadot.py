"""
Dynadot API3 client (availability only).

Search command:
    GET {api_url}?key=...&command=search&domain0=<domain>&show_price=1

Response:
    {"SearchResponse": {"ResponseCode": "0",
                        "SearchResults": [{"DomainName": "...",
                                           "Available": "yes",
                                           "Price": "12.99 in USD"}]}}
"""
from typing import Optional

import httpx

from .base import AvailabilityResult, RegistrarClient, RegistrarError, parse_price


class DynadotClient(RegistrarClient):
    name = "dynadot"
    display_name = "Dynadot"

    def __init__(
        self,
        api_key: Optional[str],
        api_url: str = "https://api.dynadot.com/api3.json",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(api_url, timeout=timeout, transport=transport)
        self.api_key = api_key

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _check(self, domain: str) -> AvailabilityResult:
        response = await self._request(
            "check",
            "GET",
            self.base_url,
            params={
                "key": self.api_key,
                "command": "search",
                "domain0": domain,
                "show_price": "1",
            },
        )
        payload = self._json(response)

        if not response.is_success:
            raise RegistrarError(
                f"Dynadot returned HTTP {response.status_code}", self.name, raw=payload
            )

        search = payload.get("SearchResponse") if isinstance(payload, dict) else None
        if not isinstance(search, dict):
            raise RegistrarError("Unexpected Dynadot response", self.name, raw=payload)

        if str(search.get("ResponseCode")) != "0":
            raise RegistrarError(
                search.get("Error") or "Dynadot search failed", self.name, raw=payload
            )

        results = [r for r in search.get("SearchResults") or [] if isinstance(r, dict)]
        entry = next(
            (r for r in results if str(r.get("DomainName", "")).lower() == domain.lower()),
            results[0] if results else None,
        )
        if entry is None:
            raise RegistrarError("Dynadot returned no search results", self.name, raw=payload)

        return AvailabilityResult(
            domain=domain,
            available=str(entry.get("Available", "")).lower() == "yes",
            price=parse_price(entry.get("Price")),
            raw=payload,
        )
