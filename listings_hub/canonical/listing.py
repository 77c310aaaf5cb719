from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError


MLS_NUMBER_RE = re.compile(r"[A-Za-z0-9-]+")
MLS_NUMBER_MAX = 50
ADDRESS_MIN, ADDRESS_MAX = 5, 500
PRICE_MAX = 999_999_999
DESCRIPTION_MAX = 2000

ListingStatus = Literal["Active", "Pending", "Sold"]
_STATUSES = ("Active", "Pending", "Sold")


def _field_error(message: str) -> PydanticCustomError:
    # custom error type keeps the message verbatim in ValidationError.errors()
    return PydanticCustomError("listing_field", message)


class CandidateListing(BaseModel):
    """
    A listing that passed every field constraint and is ready for reconciliation.

    Fields are checked in declaration order, so the first reported violation is
    always the earliest failing field (mls_number, address, price, status, description).
    Required fields default to None so a missing value reaches the validators below
    and gets a readable message instead of pydantic's generic "Field required".
    """
    model_config = ConfigDict(extra="ignore", frozen=True)

    mls_number: str = Field(default=None, validate_default=True)
    address: str = Field(default=None, validate_default=True)
    price: int = Field(default=None, validate_default=True)
    status: ListingStatus = Field(default=None, validate_default=True)
    description: str | None = None

    @field_validator("mls_number", mode="before")
    @classmethod
    def check_mls_number(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            raise _field_error("MLS Number is required")
        v = v.strip()
        if len(v) > MLS_NUMBER_MAX:
            raise _field_error("MLS Number must be less than 50 characters")
        if not MLS_NUMBER_RE.fullmatch(v):
            raise _field_error("MLS Number can only contain letters, numbers, and hyphens")
        return v

    @field_validator("address", mode="before")
    @classmethod
    def check_address(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            raise _field_error("Address is required")
        v = v.strip()
        if len(v) < ADDRESS_MIN:
            raise _field_error("Address must be at least 5 characters")
        if len(v) > ADDRESS_MAX:
            raise _field_error("Address must be less than 500 characters")
        return v

    @field_validator("price", mode="before")
    @classmethod
    def check_price(cls, v: Any) -> int:
        # bool is an int subclass; True must not become a $1 listing
        if isinstance(v, bool) or not isinstance(v, int) or v == 0:
            raise _field_error("Valid price is required")
        if v < 0:
            raise _field_error("Price must be greater than 0")
        if v > PRICE_MAX:
            raise _field_error("Price must be less than $1 billion")
        return v

    @field_validator("status", mode="before")
    @classmethod
    def check_status(cls, v: Any) -> str:
        if v not in _STATUSES:
            raise _field_error("Status must be Active, Pending, or Sold")
        return v

    @field_validator("description", mode="before")
    @classmethod
    def check_description(cls, v: Any) -> str | None:
        if v is None:
            return None
        if not isinstance(v, str):
            raise _field_error("Description must be text")
        if len(v) > DESCRIPTION_MAX:
            raise _field_error("Description must be less than 2000 characters")
        return v

    def store_fields(self) -> dict[str, Any]:
        """Replaceable columns written on create and overwritten on update."""
        return {
            "address": self.address,
            "price": self.price,
            "status": self.status,
            "description": self.description,
        }
