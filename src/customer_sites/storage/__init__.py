"""Storage backends for customer sites.

One backend is active per deployment, chosen by SITES_STORAGE_BACKEND:
- sqlite:   relational store via SQLAlchemy (default)
- data_api: managed document store over the Atlas Data API
- mongo:    document store via the native driver
"""

from __future__ import annotations

from customer_sites.config import Settings
from customer_sites.storage.base import SiteStorage, StorageError


def build_storage(settings: Settings) -> SiteStorage:
    """Create the storage backend selected by settings.

    Raises:
        StorageError: Unknown backend name.
    """
    backend = settings.storage_backend

    if backend == "sqlite":
        from customer_sites.storage.relational import RelationalSiteStorage

        return RelationalSiteStorage.from_url(settings.database_url)

    if backend == "data_api":
        from customer_sites.storage.data_api import DataApiSiteStorage

        return DataApiSiteStorage(
            base_url=settings.data_api_url,
            api_key=settings.data_api_key_value(),
            cluster_name=settings.cluster_name,
            db_name=settings.db_name,
            collection_name=settings.collection_name,
        )

    if backend == "mongo":
        from customer_sites.storage.mongo import MongoSiteStorage

        return MongoSiteStorage(
            uri=settings.mongodb_uri,
            db_name=settings.db_name,
            collection_name=settings.collection_name,
        )

    raise StorageError(f"Unknown storage backend: {backend!r}")


__all__ = ["SiteStorage", "StorageError", "build_storage"]
