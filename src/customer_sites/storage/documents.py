"""Document <-> domain conversion shared by the document-store backends.

Documents are keyed by _id and use camelCase timestamp fields, matching
collections written by the existing deployment.
"""

from __future__ import annotations

from typing import Any

from customer_sites.models.domain import SiteEntity

# SiteEntity attribute -> document field
_FIELD_NAMES = {
    "api": "api",
    "name": "name",
    "adult": "adult",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}


def document_to_entity(doc: dict[str, Any]) -> SiteEntity:
    """Convert a stored document to a domain entity."""
    return SiteEntity(
        id=str(doc.get("_id", doc.get("id"))),
        api=doc.get("api", ""),
        name=doc.get("name", ""),
        adult=bool(doc.get("adult", False)),
        created_at=doc.get("createdAt"),
        updated_at=doc.get("updatedAt"),
    )


def entity_to_document(site: SiteEntity) -> dict[str, Any]:
    """Convert a domain entity to a document, omitting unset timestamps."""
    doc: dict[str, Any] = {"_id": site.id, "api": site.api, "name": site.name, "adult": site.adult}
    if site.created_at is not None:
        doc["createdAt"] = site.created_at
    if site.updated_at is not None:
        doc["updatedAt"] = site.updated_at
    return doc


def fields_to_document(fields: dict[str, Any]) -> dict[str, Any]:
    """Rename entity attributes to document fields for a $set update."""
    try:
        return {_FIELD_NAMES[key]: value for key, value in fields.items()}
    except KeyError as e:
        raise ValueError(f"Cannot update field {e.args[0]!r}") from e
