"""Pydantic models for the customer sites API.

Wire keys are camelCase to match what the browser front end sends and reads.
Request bodies keep every field optional so that missing fields surface as
400 envelopes from the handler rather than framework validation errors.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from customer_sites.models.domain import SiteEntity


class SiteCreate(BaseModel):
    """Body of POST /customer-sites."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    api: str | None = None
    name: str | None = None
    adult: bool | None = None


class SiteUpdate(BaseModel):
    """Body of PUT /customer-sites/{id}. The id itself is immutable."""

    model_config = ConfigDict(extra="ignore")

    api: str | None = None
    name: str | None = None
    adult: bool | None = None


class SiteRecord(BaseModel):
    """A stored site as returned to clients."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    api: str
    name: str
    adult: bool = False
    created_at: str | None = Field(None, alias="createdAt")
    updated_at: str | None = Field(None, alias="updatedAt")

    @classmethod
    def from_entity(cls, site: SiteEntity) -> "SiteRecord":
        return cls(
            id=site.id,
            api=site.api,
            name=site.name,
            adult=site.adult,
            created_at=site.created_at,
            updated_at=site.updated_at,
        )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def success(data: Any = None, message: str | None = None) -> dict[str, Any]:
    """Build a success envelope."""
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return body


def failure(error: str) -> dict[str, Any]:
    """Build an error envelope."""
    return {"success": False, "error": error}
