"""Managed document-store backend (MongoDB Atlas Data API over HTTPS).

Connectionless: every operation is a single POST to
{base_url}/action/{action} carrying the data source, database and
collection alongside the action payload.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from customer_sites.models.domain import SiteEntity
from customer_sites.storage.base import SiteStorage, StorageError
from customer_sites.storage.documents import (
    document_to_entity,
    entity_to_document,
    fields_to_document,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class DataApiSiteStorage(SiteStorage):
    """Customer sites stored through the Atlas Data API."""

    def __init__(
        self,
        base_url: str | None,
        api_key: str | None,
        cluster_name: str,
        db_name: str,
        collection_name: str,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize the adapter.

        Args:
            base_url: Data API endpoint (without the /action suffix).
            api_key: Data API key, sent in the api-key header.
            cluster_name: Data source (cluster) name.
            db_name: Database name.
            collection_name: Collection name.
            client: Optional preconfigured httpx client (used by tests).
            timeout: Request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/") if base_url else None
        self.api_key = api_key
        self.cluster_name = cluster_name
        self.db_name = db_name
        self.collection_name = collection_name
        self._client = client
        self.timeout = timeout

    def _request(self, action: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        """POST one Data API action and return the decoded JSON body."""
        if not self.base_url or not self.api_key:
            raise StorageError(
                "Data API is not configured: set MONGODB_DATA_API_URL and MONGODB_API_KEY"
            )

        body = {
            "dataSource": self.cluster_name,
            "database": self.db_name,
            "collection": self.collection_name,
            **(payload or {}),
        }
        url = f"{self.base_url}/action/{action}"
        headers = {"Content-Type": "application/json", "api-key": self.api_key}

        try:
            if self._client is not None:
                response = self._client.post(url, json=body, headers=headers)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(url, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise StorageError(f"Data API request {action} failed: {e}") from e

        if response.is_error:
            raise StorageError(
                f"Data API request {action} failed: "
                f"{response.status_code} {response.reason_phrase} - {response.text}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise StorageError(f"Data API returned invalid JSON for {action}") from e

    def find_one(self, site_id: str) -> SiteEntity | None:
        result = self._request("findOne", {"filter": {"_id": site_id}})
        doc = result.get("document")
        return document_to_entity(doc) if doc else None

    def find_all(self) -> list[SiteEntity]:
        result = self._request("find", {"filter": {}})
        return [document_to_entity(doc) for doc in result.get("documents") or []]

    def insert(self, site: SiteEntity) -> None:
        self._request("insertOne", {"document": entity_to_document(site)})

    def update_fields(self, site_id: str, fields: dict[str, Any]) -> None:
        try:
            update = fields_to_document(fields)
        except ValueError as e:
            raise StorageError(str(e)) from e
        result = self._request("updateOne", {"filter": {"_id": site_id}, "update": {"$set": update}})
        if not result.get("matchedCount"):
            logger.warning(f"Update of missing site {site_id!r} matched no documents")

    def delete(self, site_id: str) -> None:
        self._request("deleteOne", {"filter": {"_id": site_id}})
