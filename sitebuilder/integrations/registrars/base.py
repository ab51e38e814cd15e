"""
Shared plumbing for domain registrar clients.

Availability checks never raise: configuration, transport, HTTP and parse
failures all come back as an ``AvailabilityResult`` with ``error`` set.
Registration returns a ``RegistrationResult`` for API-level rejections and
raises ``RegistrarError`` only when the registrar could not be reached.
"""
import re
import time
from typing import Any, Optional

import httpx
import structlog
from pydantic import BaseModel

from sitebuilder.core.exceptions import UpstreamError
from sitebuilder.monitoring.metrics import metrics

logger = structlog.get_logger(__name__)

_PRICE_RE = re.compile(r"\d+(?:\.\d+)?")


def parse_price(value: Any) -> Optional[float]:
    """Pull the amount out of prices like 10.99, "10.99" or "12.99 in USD"."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _PRICE_RE.search(str(value))
    return float(match.group()) if match else None


class RegistrarError(UpstreamError):
    """A registrar could not be reached or answered with something unusable."""

    def __init__(self, message: str, registrar: str, raw: Any = None):
        super().__init__(message, provider=registrar)
        self.raw = raw


class AvailabilityResult(BaseModel):
    domain: str
    available: Optional[bool] = None
    price: Optional[float] = None
    error: Optional[str] = None
    raw: Any = None


class RegistrationResult(BaseModel):
    domain: str
    success: bool
    error: Optional[str] = None
    raw: Any = None


class RegistrarClient:
    """Base class for registrar API clients."""

    name = "registrar"
    display_name = "Registrar"

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Registrar API endpoint
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests inject a mock)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        raise NotImplementedError

    def _auth(self) -> Optional[httpx.Auth]:
        return None

    async def _request(self, operation: str, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Send one request to the registrar.

        Non-2xx responses are returned to the caller; only transport
        failures raise.

        Raises:
            RegistrarError: On connection errors and timeouts
        """
        start_time = time.time()
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport, auth=self._auth()
            ) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            metrics.record_registrar_call(self.name, operation, "error", time.time() - start_time)
            logger.error("registrar_timeout", registrar=self.name, operation=operation, error=str(e))
            raise RegistrarError(f"{self.display_name} request timed out", self.name) from e
        except httpx.HTTPError as e:
            metrics.record_registrar_call(self.name, operation, "error", time.time() - start_time)
            logger.error(
                "registrar_request_failed", registrar=self.name, operation=operation, error=str(e)
            )
            raise RegistrarError(f"{self.display_name} request failed: {e}", self.name) from e

        outcome = "ok" if response.is_success else "error"
        metrics.record_registrar_call(self.name, operation, outcome, time.time() - start_time)
        logger.info(
            "registrar_response",
            registrar=self.name,
            operation=operation,
            status_code=response.status_code,
        )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return {"body": response.text}

    async def _check(self, domain: str) -> AvailabilityResult:
        raise NotImplementedError

    async def check_availability(self, domain: str) -> AvailabilityResult:
        """
        Check whether a domain can be registered.

        Returns:
            AvailabilityResult: Availability and price, or ``error`` set
        """
        if not self.is_configured:
            return AvailabilityResult(
                domain=domain, error=f"{self.display_name} credentials not configured"
            )

        try:
            return await self._check(domain)
        except RegistrarError as e:
            return AvailabilityResult(domain=domain, error=e.message, raw=e.raw)
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(
                "registrar_response_unreadable", registrar=self.name, domain=domain, error=str(e)
            )
            return AvailabilityResult(
                domain=domain, error=f"Unexpected {self.display_name} response: {e}"
            )
