"""Direct document-store backend (pymongo).

Opens a client per operation and always closes it, so no connection
outlives a request.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Generator

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from customer_sites.models.domain import SiteEntity
from customer_sites.storage.base import SiteStorage, StorageError
from customer_sites.storage.documents import (
    document_to_entity,
    entity_to_document,
    fields_to_document,
)

DEFAULT_SERVER_SELECTION_TIMEOUT_MS = 5000


class MongoSiteStorage(SiteStorage):
    """Customer sites stored in MongoDB through the native driver."""

    def __init__(
        self,
        uri: str,
        db_name: str,
        collection_name: str,
        client_factory: Callable[..., MongoClient] = MongoClient,
    ):
        self.uri = uri
        self.db_name = db_name
        self.collection_name = collection_name
        self._client_factory = client_factory

    @contextmanager
    def _collection(self) -> Generator[Collection, None, None]:
        """Yield the sites collection on a fresh client, closing it afterwards."""
        client = None
        try:
            client = self._client_factory(
                self.uri, serverSelectionTimeoutMS=DEFAULT_SERVER_SELECTION_TIMEOUT_MS
            )
            yield client[self.db_name][self.collection_name]
        except PyMongoError as e:
            raise StorageError(f"MongoDB operation failed: {e}") from e
        finally:
            if client is not None:
                client.close()

    def find_one(self, site_id: str) -> SiteEntity | None:
        with self._collection() as collection:
            doc = collection.find_one({"_id": site_id})
        return document_to_entity(doc) if doc else None

    def find_all(self) -> list[SiteEntity]:
        with self._collection() as collection:
            docs = list(collection.find({}))
        return [document_to_entity(doc) for doc in docs]

    def insert(self, site: SiteEntity) -> None:
        with self._collection() as collection:
            collection.insert_one(entity_to_document(site))

    def update_fields(self, site_id: str, fields: dict[str, Any]) -> None:
        try:
            update = fields_to_document(fields)
        except ValueError as e:
            raise StorageError(str(e)) from e
        with self._collection() as collection:
            collection.update_one({"_id": site_id}, {"$set": update})

    def delete(self, site_id: str) -> None:
        with self._collection() as collection:
            collection.delete_one({"_id": site_id})
