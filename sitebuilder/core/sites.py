"""
Static site storage.

Each site is ``<sites_dir>/<user_id>/<site_id>/index.html``. The HTML is
stored exactly as uploaded and served back as-is. Publishing only checks
that the site exists; there is no draft/live split.
"""
import time
from pathlib import Path
from typing import Any, Optional, Tuple

import structlog

from sitebuilder.core.exceptions import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

PUBLISHED_PREFIX = "/published"
INDEX_FILE = "index.html"


def public_url(user_id: Any, site_id: str) -> str:
    return f"{PUBLISHED_PREFIX}/{user_id}/{site_id}/{INDEX_FILE}"


class SitePublisher:
    """Writes and locates per-user site bundles."""

    def __init__(self, sites_dir: Path):
        self.sites_dir = Path(sites_dir)

    def site_path(self, user_id: Any, site_id: str) -> Path:
        return self.sites_dir / str(user_id) / str(site_id)

    def create(self, user_id: Any, name: Optional[str], html: Optional[str]) -> Tuple[str, str]:
        """
        Store a new site.

        Site ids are the creation time in epoch milliseconds.

        Returns:
            Tuple[str, str]: (site id, preview URL)

        Raises:
            ValidationError: If name or html is empty
        """
        if not name or not html:
            raise ValidationError("Name and html required")

        site_id = str(int(time.time() * 1000))
        path = self.site_path(user_id, site_id)
        path.mkdir(parents=True, exist_ok=True)
        (path / INDEX_FILE).write_text(html, encoding="utf-8")

        logger.info("site_created", user_id=user_id, site_id=site_id, name=name, size=len(html))
        return site_id, public_url(user_id, site_id)

    def publish(self, user_id: Any, site_id: Any) -> str:
        """
        Return the public URL of an existing site.

        Raises:
            NotFoundError: If the site does not exist
        """
        site_id = "" if site_id is None else str(site_id)
        if not site_id or site_id in (".", "..") or "/" in site_id or "\\" in site_id:
            raise NotFoundError("Site not found")

        if not self.site_path(user_id, site_id).is_dir():
            raise NotFoundError("Site not found")

        logger.info("site_published", user_id=user_id, site_id=site_id)
        return public_url(user_id, site_id)
