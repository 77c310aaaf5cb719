from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # wire format is camelCase (mlsNumber, createdAt ...); python side stays snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ListingOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    mls_number: str
    address: str
    price: int
    status: str
    description: str | None
    latitude: float | None = None
    longitude: float | None = None
    created_at: datetime
    updated_at: datetime


class BulkUploadRequest(BaseModel):
    # raw export rows; keys are whatever column names the source used
    listings: list[dict[str, Any]] = Field(default_factory=list)


class RowErrorOut(CamelModel):
    row: int
    mls_number: str | None
    error: str


class BatchResultOut(CamelModel):
    total: int
    created: int
    updated: int
    errors: list[RowErrorOut] = Field(default_factory=list)
    incomplete: bool = False


class BulkUploadResponse(CamelModel):
    success: bool
    outcome: str
    message: str
    preview: bool = False
    data: BatchResultOut


class SingleListingResponse(CamelModel):
    success: bool
    action: str
    message: str
    listing: ListingOut
