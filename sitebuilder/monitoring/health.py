"""
Health checks for liveness/readiness probes.

Checks:
- Data directory (JSON stores) is writable
- Sites directory is writable
- Stripe and registrar credentials are configured
"""
import os
from pathlib import Path
from typing import Any, Dict

import structlog

from sitebuilder.config import Settings, get_settings

logger = structlog.get_logger(__name__)


class HealthCheckError(Exception):
    """Raised when health check fails."""

    pass


class HealthCheck:
    """
    Health check service for the backend's local dependencies.

    Provides:
    - Storage directory checks
    - Configuration summary for external integrations
    - Overall readiness status
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize health check service."""
        self.settings = settings or get_settings()

    @staticmethod
    def check_directory(name: str, path: Path) -> Dict[str, Any]:
        """
        Check that a storage directory exists and is writable.

        Raises:
            HealthCheckError: If the directory is missing or read-only
        """
        if not path.is_dir():
            raise HealthCheckError(f"{name} directory does not exist: {path}")
        if not os.access(path, os.W_OK):
            raise HealthCheckError(f"{name} directory is not writable: {path}")
        return {
            "status": "healthy",
            "service": name,
            "message": f"{path} is writable",
        }

    def check_integrations(self) -> Dict[str, Any]:
        """Report which external integrations have credentials configured."""
        return {
            "status": "healthy",
            "service": "integrations",
            "stripe_test_mode": self.settings.is_test_mode,
            "dynadot_configured": bool(self.settings.dynadot_api_key),
            "namecom_configured": bool(
                self.settings.namecom_username and self.settings.namecom_token
            ),
            "admin_configured": bool(self.settings.admin_key),
        }

    async def check_all(self) -> Dict[str, Any]:
        """
        Run all health checks.

        Returns:
            Dict[str, Any]: Overall health status
        """
        checks: Dict[str, Any] = {}
        all_healthy = True

        for name, path in (
            ("data", self.settings.data_dir),
            ("sites", self.settings.sites_dir),
        ):
            try:
                checks[name] = self.check_directory(name, path)
            except HealthCheckError as e:
                logger.error("storage_health_check_failed", service=name, error=str(e))
                checks[name] = {
                    "status": "unhealthy",
                    "service": name,
                    "error": str(e),
                }
                all_healthy = False

        checks["integrations"] = self.check_integrations()

        return {
            "status": "healthy" if all_healthy else "unhealthy",
            "checks": checks,
        }

    async def liveness(self) -> Dict[str, Any]:
        """
        Liveness probe.

        Does not check dependencies; matches the public health payload.
        """
        return {
            "status": "OK",
            "message": "Stripe payment server is running",
        }

    async def readiness(self) -> Dict[str, Any]:
        """Readiness probe: all local dependencies must be available."""
        return await self.check_all()
