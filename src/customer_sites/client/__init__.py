"""Client-side cache of customer sites and the site directory it feeds."""

from customer_sites.client.directory import SiteDirectory
from customer_sites.client.registry import DEFAULT_SITES, RegistryError, SiteRegistry

__all__ = [
    "DEFAULT_SITES",
    "RegistryError",
    "SiteDirectory",
    "SiteRegistry",
]
