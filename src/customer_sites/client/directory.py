"""Site directory: the front end's full set of video sources.

The directory is owned by the front end and only supports merging entries
in or being replaced wholesale; there is no per-entry delete.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from customer_sites.models.domain import SiteEntry


class SiteDirectory:
    """Mapping of source id to SiteEntry."""

    def __init__(self, sites: Mapping[str, SiteEntry] | None = None):
        self._sites: dict[str, SiteEntry] = dict(sites or {})

    def extend(self, sites: Mapping[str, SiteEntry]) -> None:
        """Merge sites in, overwriting entries with the same id."""
        self._sites.update(sites)

    def replace(self, sites: Mapping[str, SiteEntry]) -> None:
        """Reset the directory to exactly these sites."""
        self._sites = dict(sites)

    def snapshot(self) -> dict[str, SiteEntry]:
        return dict(self._sites)

    def get(self, site_id: str) -> SiteEntry | None:
        return self._sites.get(site_id)

    def __contains__(self, site_id: object) -> bool:
        return site_id in self._sites

    def __iter__(self) -> Iterator[str]:
        return iter(self._sites)

    def __len__(self) -> int:
        return len(self._sites)
