"""
Name.com API v4 client.

Endpoints used:
    POST /v4/domains:checkAvailability   {"domainNames": [...]}
    POST /v4/domains                     {"domain": {...}, "years": N}

Authentication is HTTP basic with the account username and API token.
Errors come back as non-2xx with {"message": ..., "details": ...}.
"""
from typing import Any, Dict, Optional

import httpx
import structlog

from .base import (
    AvailabilityResult,
    RegistrarClient,
    RegistrarError,
    RegistrationResult,
    parse_price,
)

logger = structlog.get_logger(__name__)


def error_message(payload: Any, status_code: int) -> str:
    if isinstance(payload, dict) and payload.get("message"):
        details = payload.get("details")
        return f"{payload['message']}: {details}" if details else str(payload["message"])
    return f"Name.com returned HTTP {status_code}"


class NamecomClient(RegistrarClient):
    name = "namecom"
    display_name = "Name.com"

    def __init__(
        self,
        username: Optional[str],
        token: Optional[str],
        api_url: str = "https://api.name.com",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(api_url, timeout=timeout, transport=transport)
        self.username = username
        self.token = token

    @property
    def is_configured(self) -> bool:
        return bool(self.username and self.token)

    def _auth(self) -> Optional[httpx.Auth]:
        if not self.is_configured:
            return None
        return httpx.BasicAuth(self.username, self.token)

    async def _check(self, domain: str) -> AvailabilityResult:
        response = await self._request(
            "check",
            "POST",
            f"{self.base_url}/v4/domains:checkAvailability",
            json={"domainNames": [domain]},
        )
        payload = self._json(response)

        if not response.is_success:
            raise RegistrarError(error_message(payload, response.status_code), self.name, raw=payload)

        results = payload.get("results") if isinstance(payload, dict) else None
        if isinstance(results, list):
            results = [r for r in results if isinstance(r, dict)]
        if not results:
            raise RegistrarError("Name.com returned no results", self.name, raw=payload)

        entry = next(
            (r for r in results if str(r.get("domainName", "")).lower() == domain.lower()),
            results[0],
        )
        return AvailabilityResult(
            domain=domain,
            available=bool(entry.get("purchasable", False)),
            price=parse_price(entry.get("purchasePrice")),
            raw=payload,
        )

    async def register_domain(
        self,
        domain: str,
        years: int = 1,
        contact: Optional[Dict[str, Any]] = None,
    ) -> RegistrationResult:
        """
        Register a domain on the account.

        Args:
            domain: Domain name to register
            years: Registration period
            contact: Name.com contacts object; the account defaults are used
                when empty

        Returns:
            RegistrationResult: ``success`` with the raw order, or the API error

        Raises:
            RegistrarError: If Name.com could not be reached
        """
        if not self.is_configured:
            return RegistrationResult(
                domain=domain, success=False, error="Name.com credentials not configured"
            )

        body: Dict[str, Any] = {"domain": {"domainName": domain}, "years": years}
        if contact:
            body["domain"]["contacts"] = contact

        logger.info("registering_domain", registrar=self.name, domain=domain, years=years)

        response = await self._request("register", "POST", f"{self.base_url}/v4/domains", json=body)
        payload = self._json(response)

        if not response.is_success:
            message = error_message(payload, response.status_code)
            logger.warning("domain_registration_rejected", domain=domain, error=message)
            return RegistrationResult(domain=domain, success=False, error=message, raw=payload)

        logger.info("domain_registered", registrar=self.name, domain=domain)
        return RegistrationResult(domain=domain, success=True, raw=payload)
