"""Database schema for the relational backend.

A single table keyed by the caller-supplied site id. adult is stored as
0/1 and timestamps as text, so the table stays readable by other SQLite
clients sharing the same database.
"""

from sqlalchemy import Integer, Text, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

SITES_TABLE = "customer_sites"


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class CustomerSite(Base):
    """Customer site row."""

    __tablename__ = SITES_TABLE

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    api: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    adult: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    created_at: Mapped[str] = mapped_column(
        Text, nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )
    updated_at: Mapped[str] = mapped_column(
        Text, nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )
