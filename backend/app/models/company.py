"""Company request/response models."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backend.app.models.common import CompanyStatus


class CompanyCreate(BaseModel):
    """Request body for POST /companies."""

    name: str = Field(..., min_length=1, max_length=255)
    website: str | None = Field(None, max_length=500)
    city: str | None = None
    state: str | None = Field(None, max_length=2)
    employee_count: int | None = Field(None, ge=0)
    status: CompanyStatus = CompanyStatus.prospect
    attributes: dict[str, Any] = Field(default_factory=dict)


class CompanyUpdate(BaseModel):
    """Request body for PATCH /companies/{id}.

    Only fields explicitly sent are applied.
    """

    name: str | None = Field(None, min_length=1, max_length=255)
    website: str | None = Field(None, max_length=500)
    city: str | None = None
    state: str | None = Field(None, max_length=2)
    employee_count: int | None = Field(None, ge=0)
    status: CompanyStatus | None = None
    attributes: dict[str, Any] | None = None

    @field_validator("name", "status", "attributes")
    @classmethod
    def validate_not_null(cls, v: Any) -> Any:
        """Omit the field to keep it; null is not a value for these columns."""
        if v is None:
            raise ValueError("field may be omitted but not set to null")
        return v


class CompanyOut(BaseModel):
    """Company row as returned by the API and recorded in the audit trail."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    name: str
    website: str | None
    domain: str | None
    city: str | None
    state: str | None
    employee_count: int | None
    status: CompanyStatus
    attributes: dict[str, Any]
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None

    def to_record(self) -> dict[str, Any]:
        """JSON-ready dict used as the audit before/after snapshot."""
        return self.model_dump(mode="json")
