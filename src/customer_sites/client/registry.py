"""Client-side registry cache for customer sites.

Mirrors the server's records as id -> SiteEntry (no timestamps) and keeps
the front end's SiteDirectory in sync after every successful change.
Operations report success as a bool and never raise to their caller.

Lifecycle:
    registry = SiteRegistry("https://tv.example", directory)
    registry.init()               # defaults until a credential is known
    registry.set_password(pw)
    registry.init()               # now loads from the server
    registry.reset()              # credential revoked
"""

from __future__ import annotations

import logging
from typing import Any, Callable
from urllib.parse import quote

import httpx

from customer_sites.client.directory import SiteDirectory
from customer_sites.core.auth import compute_auth_hash, now_ms
from customer_sites.models.domain import SiteEntry, is_valid_api_url

logger = logging.getLogger(__name__)

SITES_PATH = "/customer-sites"
DEFAULT_TIMEOUT = 15.0

# Used whenever the server cannot be reached or no credential is available
DEFAULT_SITES: dict[str, SiteEntry] = {
    "qiqi": SiteEntry(api="https://www.qiqidys.com/api.php/provide/vod", name="七七资源"),
}


class RegistryError(Exception):
    """The server rejected a request or answered with an error envelope."""


class SiteRegistry:
    """In-memory mirror of the server-held customer sites."""

    def __init__(
        self,
        base_url: str,
        directory: SiteDirectory,
        credential: str | None = None,
        http_client: httpx.Client | None = None,
        on_refresh: Callable[[], Any] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize the registry.

        Args:
            base_url: Origin serving /customer-sites.
            directory: Site directory to merge records into.
            credential: Auth digest (see compute_auth_hash), if already verified.
            http_client: Optional httpx client; one is created if omitted.
            on_refresh: Called after the directory changes (UI refresh hook).
            timeout: Request timeout in seconds for the default client.
        """
        self.base_url = base_url.rstrip("/")
        self.directory = directory
        self.credential = credential
        self.on_refresh = on_refresh
        self._client = http_client or httpx.Client(timeout=timeout)
        self._sites: dict[str, SiteEntry] = {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def sites(self) -> dict[str, SiteEntry]:
        """Copy of the current id -> SiteEntry mapping."""
        return dict(self._sites)

    def set_credential(self, credential: str | None) -> None:
        self.credential = credential or None

    def set_password(self, password: str) -> None:
        """Derive and store the credential for a verified password."""
        self.credential = compute_auth_hash(password)

    def init(self) -> bool:
        """Populate the registry: from the server if a credential is known,
        otherwise from the built-in defaults.

        Returns:
            True if records were loaded from the server.
        """
        if self.credential:
            return self.load()
        self.use_defaults()
        return False

    def reset(self) -> None:
        """Forget the credential and the cached records."""
        self.credential = None
        self._sites = {}

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def load(self) -> bool:
        """Replace the cache with the server's full list.

        Falls back to the default record on any failure.
        """
        if not self.credential:
            logger.warning("No credential available; using default customer sites")
            self.use_defaults()
            return False

        try:
            result = self._request("GET", SITES_PATH)
            records = result.get("data") or []
            sites = {
                record["id"]: SiteEntry(
                    api=record["api"],
                    name=record["name"],
                    adult=bool(record.get("adult", False)),
                )
                for record in records
            }
        except (httpx.HTTPError, RegistryError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Loading customer sites failed: {e}")
            self.use_defaults()
            return False

        self._sites = sites
        if sites:
            logger.info(f"Loaded {len(sites)} customer sites")
        else:
            logger.warning("Server has no customer sites")
        self.directory.extend(self._sites)
        self._notify()
        return True

    def use_defaults(self) -> None:
        """Replace the cache with the built-in default record."""
        self._sites = dict(DEFAULT_SITES)
        self.directory.extend(self._sites)
        self._notify()

    def add(self, site_id: str, api: str, name: str, adult: bool = False) -> bool:
        """Create a site on the server and merge it locally."""
        if not self._check_ready("add", site_id) or not self._check_fields(api, name):
            return False

        payload = {"id": site_id, "api": api, "name": name, "adult": adult}
        try:
            self._request("POST", SITES_PATH, json=payload)
        except (httpx.HTTPError, RegistryError) as e:
            logger.error(f"Adding customer site {site_id!r} failed: {e}")
            return False

        self._merge(site_id, SiteEntry(api=api, name=name, adult=adult))
        return True

    def update(self, site_id: str, api: str, name: str, adult: bool = False) -> bool:
        """Update a site on the server and merge the change locally."""
        if not self._check_ready("update", site_id) or not self._check_fields(api, name):
            return False

        payload = {"api": api, "name": name, "adult": adult}
        try:
            self._request("PUT", _item_path(site_id), json=payload)
        except (httpx.HTTPError, RegistryError) as e:
            logger.error(f"Updating customer site {site_id!r} failed: {e}")
            return False

        self._merge(site_id, SiteEntry(api=api, name=name, adult=adult))
        return True

    def remove(self, site_id: str) -> bool:
        """Delete a site on the server and drop it locally.

        The directory cannot delete entries, so it is rebuilt without the
        site and the remaining customer sites are merged back in.
        """
        if not self._check_ready("remove", site_id):
            return False

        try:
            self._request("DELETE", _item_path(site_id))
        except (httpx.HTTPError, RegistryError) as e:
            logger.error(f"Removing customer site {site_id!r} failed: {e}")
            return False

        self._sites.pop(site_id, None)
        remaining = {key: entry for key, entry in self.directory.snapshot().items() if key != site_id}
        self.directory.replace(remaining)
        self.directory.extend(self._sites)
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_ready(self, action: str, site_id: str) -> bool:
        if not self.credential:
            logger.error(f"No credential available; cannot {action} customer site")
            return False
        if not site_id:
            logger.error(f"Cannot {action} customer site without an id")
            return False
        return True

    def _check_fields(self, api: str, name: str) -> bool:
        if not api or not name:
            logger.error("Customer site api and name are required")
            return False
        if not is_valid_api_url(api):
            logger.error(f"Customer site api must start with http:// or https://: {api!r}")
            return False
        return True

    def _merge(self, site_id: str, entry: SiteEntry) -> None:
        self._sites[site_id] = entry
        self.directory.extend({site_id: entry})
        self._notify()

    def _notify(self) -> None:
        if self.on_refresh is None:
            return
        try:
            self.on_refresh()
        except Exception:
            logger.exception("Site directory refresh hook failed")

    def _request(self, method: str, path: str, json: dict | None = None) -> dict[str, Any]:
        """Send an authenticated request and return the success envelope.

        Raises:
            httpx.HTTPError: Transport failure.
            RegistryError: Non-2xx status or success=false.
        """
        params = {"auth": self.credential, "t": str(now_ms())}
        response = self._client.request(method, f"{self.base_url}{path}", params=params, json=json)

        try:
            result = response.json()
        except ValueError:
            result = None

        if response.is_error:
            detail = result.get("error") if isinstance(result, dict) else response.reason_phrase
            raise RegistryError(f"{response.status_code} {detail}")
        if not isinstance(result, dict) or not result.get("success"):
            detail = result.get("error") if isinstance(result, dict) else "invalid response"
            raise RegistryError(f"server returned an error: {detail}")

        return result


def _item_path(site_id: str) -> str:
    return f"{SITES_PATH}/{quote(site_id, safe='')}"
