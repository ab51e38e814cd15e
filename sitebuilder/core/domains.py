"""Availability checks across both registrars."""
import asyncio
from typing import Dict

import structlog

from sitebuilder.core.exceptions import ValidationError
from sitebuilder.integrations.registrars import AvailabilityResult, DynadotClient, NamecomClient

logger = structlog.get_logger(__name__)


def normalize_domain(domain: str | None) -> str:
    """
    Strip and lowercase a domain name.

    Raises:
        ValidationError: If the domain is empty
    """
    domain = (domain or "").strip().lower()
    if not domain:
        raise ValidationError("Domain name is required")
    return domain


async def check_domain(
    domain: str, dynadot: DynadotClient, namecom: NamecomClient
) -> Dict[str, AvailabilityResult]:
    """
    Ask both registrars at once.

    Both results are always returned; a failing registrar shows up as an
    ``error`` on its own result and does not affect the other.
    """
    dynadot_result, namecom_result = await asyncio.gather(
        dynadot.check_availability(domain),
        namecom.check_availability(domain),
    )

    logger.info(
        "domain_checked",
        domain=domain,
        dynadot_available=dynadot_result.available,
        dynadot_error=dynadot_result.error,
        namecom_available=namecom_result.available,
        namecom_error=namecom_result.error,
    )
    return {"dynadot": dynadot_result, "namecom": namecom_result}
