"""Customer sites API endpoints.

GET    /customer-sites       - List all sites
GET    /customer-sites/{id}  - Get one site
POST   /customer-sites       - Create a site
PUT    /customer-sites/{id}  - Update a site
DELETE /customer-sites/{id}  - Delete a site

Ids may contain "/"; the collection paths also answer with a trailing slash.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from customer_sites.api.app import SITES_PATH, get_storage
from customer_sites.api.errors import Conflict, NotFound, ValidationFailure
from customer_sites.models.domain import SiteEntity, is_valid_api_url, utc_timestamp
from customer_sites.models.types import SiteCreate, SiteRecord, SiteUpdate, success
from customer_sites.storage.base import SiteStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix=SITES_PATH, tags=["customer-sites"])


def _require_site(storage: SiteStorage, site_id: str) -> SiteEntity:
    site = storage.find_one(site_id)
    if site is None:
        raise NotFound("not found")
    return site


def _check_api_url(api: str) -> None:
    if not is_valid_api_url(api):
        raise ValidationFailure("api must start with http:// or https://")


@router.get("")
@router.get("/", include_in_schema=False)
def list_sites(storage: SiteStorage = Depends(get_storage)) -> dict:
    """List every stored site. An empty registry is an empty list."""
    sites = storage.find_all()
    return success([SiteRecord.from_entity(site).to_wire() for site in sites])


@router.get("/{site_id:path}")
def get_site(site_id: str, storage: SiteStorage = Depends(get_storage)) -> dict:
    """Get one site.

    Raises:
        NotFound: 404 if no site has this id.
    """
    site = _require_site(storage, site_id)
    return success(SiteRecord.from_entity(site).to_wire())


@router.post("")
@router.post("/", include_in_schema=False)
def create_site(body: SiteCreate, storage: SiteStorage = Depends(get_storage)) -> dict:
    """Create a site.

    Args:
        body: id, api and name are required; adult defaults to false.
        storage: Storage backend (injected).

    Returns:
        Envelope with the stored record, including its timestamps.

    Raises:
        ValidationFailure: 400 if a required field is missing or api is not http(s).
        Conflict: 409 if the id is already taken.
    """
    if not body.id or not body.api or not body.name:
        raise ValidationFailure("missing required fields (id, api, name)")
    _check_api_url(body.api)

    if storage.find_one(body.id) is not None:
        raise Conflict("site id already exists")

    now = utc_timestamp()
    site = SiteEntity(
        id=body.id,
        api=body.api,
        name=body.name,
        adult=bool(body.adult),
        created_at=now,
        updated_at=now,
    )
    storage.insert(site)
    logger.info(f"Created customer site {site.id!r}")

    return success(SiteRecord.from_entity(site).to_wire())


@router.put("")
@router.put("/", include_in_schema=False)
def update_site_without_id() -> dict:
    """PUT on the collection path: the id segment is required."""
    raise ValidationFailure("missing site id")


@router.put("/{site_id:path}")
def update_site(site_id: str, body: SiteUpdate, storage: SiteStorage = Depends(get_storage)) -> dict:
    """Overwrite api, name and adult of an existing site.

    Raises:
        ValidationFailure: 400 if api or name is missing or api is not http(s).
        NotFound: 404 if no site has this id.
    """
    if not body.api or not body.name:
        raise ValidationFailure("missing required fields (api, name)")
    _check_api_url(body.api)

    existing = _require_site(storage, site_id)

    fields = {
        "api": body.api,
        "name": body.name,
        "adult": bool(body.adult),
        "updated_at": utc_timestamp(),
    }
    storage.update_fields(site_id, fields)
    logger.info(f"Updated customer site {site_id!r}")

    updated = storage.find_one(site_id)
    if updated is None:
        # Deleted concurrently; report what was written
        updated = SiteEntity(id=site_id, created_at=existing.created_at, **fields)

    return success(SiteRecord.from_entity(updated).to_wire())


@router.delete("")
@router.delete("/", include_in_schema=False)
def delete_site_without_id() -> dict:
    """DELETE on the collection path: the id segment is required."""
    raise ValidationFailure("missing site id")


@router.delete("/{site_id:path}")
def delete_site(site_id: str, storage: SiteStorage = Depends(get_storage)) -> dict:
    """Delete a site.

    Raises:
        NotFound: 404 if no site has this id.
    """
    _require_site(storage, site_id)
    storage.delete(site_id)
    logger.info(f"Deleted customer site {site_id!r}")

    return success(message="deleted")
