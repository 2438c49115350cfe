"""Domain models for customer sites.

Pure Python dataclasses, independent of any storage backend. Adapters
convert their native rows/documents to and from these.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

ALLOWED_API_SCHEMES = ("http://", "https://")


def utc_timestamp(moment: datetime | None = None) -> str:
    """Render a UTC timestamp as YYYY-MM-DDTHH:MM:SS.mmmZ."""
    if moment is None:
        moment = datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def is_valid_api_url(api: str) -> bool:
    """Check that an upstream endpoint uses http or https."""
    return api.startswith(ALLOWED_API_SCHEMES)


@dataclass
class SiteEntity:
    """Domain model for a customer site record."""

    id: str
    api: str
    name: str
    adult: bool = False
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class SiteEntry:
    """Client-side view of a site: what the site directory needs."""

    api: str
    name: str
    adult: bool = False
