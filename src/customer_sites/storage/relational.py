"""Relational (SQLAlchemy) storage backend.

Encapsulates all SQLAlchemy queries for the customer_sites table and
returns domain models (not SQLAlchemy rows) to callers. adult is stored
as 0/1 and translated to bool here.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from customer_sites.db.schema import Base, CustomerSite
from customer_sites.db.session import get_engine, session_scope
from customer_sites.models.domain import SiteEntity, utc_timestamp
from customer_sites.storage.base import SiteStorage, StorageError

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {"api", "name", "adult", "updated_at"}


# ============================================================================
# Converters: SQLAlchemy <-> Domain
# ============================================================================


def _row_to_entity(row: CustomerSite) -> SiteEntity:
    """Convert SQLAlchemy CustomerSite to domain entity."""
    return SiteEntity(
        id=row.id,
        api=row.api,
        name=row.name,
        adult=bool(row.adult),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _entity_to_row(site: SiteEntity) -> CustomerSite:
    """Convert domain entity to a new SQLAlchemy CustomerSite."""
    now = utc_timestamp()
    return CustomerSite(
        id=site.id,
        api=site.api,
        name=site.name,
        adult=1 if site.adult else 0,
        created_at=site.created_at or now,
        updated_at=site.updated_at or site.created_at or now,
    )


class RelationalSiteStorage(SiteStorage):
    """Customer sites stored in a relational database (SQLite by default)."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def from_url(cls, database_url: str | None = None) -> RelationalSiteStorage:
        """Build a storage bound to the cached engine for database_url."""
        try:
            return cls(get_engine(database_url))
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot open database: {e}") from e

    def ensure_schema(self) -> None:
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StorageError(f"Schema creation failed: {e}") from e

    def find_one(self, site_id: str) -> SiteEntity | None:
        try:
            with session_scope(self._session_factory) as session:
                row = session.get(CustomerSite, site_id)
                return _row_to_entity(row) if row is not None else None
        except SQLAlchemyError as e:
            raise StorageError(f"Lookup of {site_id!r} failed: {e}") from e

    def find_all(self) -> list[SiteEntity]:
        try:
            with session_scope(self._session_factory) as session:
                rows = session.scalars(select(CustomerSite).order_by(CustomerSite.created_at)).all()
                return [_row_to_entity(row) for row in rows]
        except SQLAlchemyError as e:
            raise StorageError(f"Listing sites failed: {e}") from e

    def insert(self, site: SiteEntity) -> None:
        try:
            with session_scope(self._session_factory) as session:
                session.add(_entity_to_row(site))
        except SQLAlchemyError as e:
            raise StorageError(f"Insert of {site.id!r} failed: {e}") from e

    def update_fields(self, site_id: str, fields: dict[str, Any]) -> None:
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise StorageError(f"Cannot update fields: {sorted(unknown)}")

        values = dict(fields)
        if "adult" in values:
            values["adult"] = 1 if values["adult"] else 0

        try:
            with session_scope(self._session_factory) as session:
                row = session.get(CustomerSite, site_id)
                if row is None:
                    logger.warning(f"Update of missing site {site_id!r} ignored")
                    return
                for key, value in values.items():
                    setattr(row, key, value)
        except SQLAlchemyError as e:
            raise StorageError(f"Update of {site_id!r} failed: {e}") from e

    def delete(self, site_id: str) -> None:
        try:
            with session_scope(self._session_factory) as session:
                row = session.get(CustomerSite, site_id)
                if row is not None:
                    session.delete(row)
        except SQLAlchemyError as e:
            raise StorageError(f"Delete of {site_id!r} failed: {e}") from e
