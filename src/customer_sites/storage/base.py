"""Base storage interface.

Every backend implements the same narrow capability set. The HTTP layer
depends only on this interface and never on which backend is active.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from customer_sites.models.domain import SiteEntity


class StorageError(Exception):
    """Backend unreachable, misconfigured, or a query failed."""


class SiteStorage(ABC):
    """Abstract base class for customer site storage backends.

    Adapters translate between their native representation (rows, documents)
    and SiteEntity, and wrap backend failures in StorageError.
    """

    @abstractmethod
    def find_one(self, site_id: str) -> SiteEntity | None:
        """Point lookup by id.

        Returns:
            The site, or None if no record has this id.
        """
        pass

    @abstractmethod
    def find_all(self) -> list[SiteEntity]:
        """Full scan of the collection."""
        pass

    @abstractmethod
    def insert(self, site: SiteEntity) -> None:
        """Insert a new record."""
        pass

    @abstractmethod
    def update_fields(self, site_id: str, fields: dict[str, Any]) -> None:
        """Overwrite the given fields of an existing record.

        Args:
            site_id: Record to update.
            fields: Field name (SiteEntity attribute) to new value.
        """
        pass

    @abstractmethod
    def delete(self, site_id: str) -> None:
        """Delete a record by id."""
        pass

    def ensure_schema(self) -> None:
        """Create the backing table/collection if absent.

        Idempotent. Schemaless backends leave this as a no-op.
        """
        return None
