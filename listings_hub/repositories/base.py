from __future__ import annotations

from typing import Protocol

from listings_hub.canonical.listing import CandidateListing
from listings_hub.models.listing import Listing


class RepositoryError(Exception):
    """Base class for store failures surfaced to the ingestion pipeline."""


class DuplicateKeyError(RepositoryError):
    """A create collided with an existing MLS number (usually a concurrent writer)."""

    def __init__(self, mls_number: str):
        super().__init__(f"listing {mls_number} already exists")
        self.mls_number = mls_number


class InvalidValueError(RepositoryError):
    """The store rejected a value (type, length, encoding) at write time."""


class ListingNotFoundError(RepositoryError):
    def __init__(self, mls_number: str):
        super().__init__(f"listing {mls_number} not found")
        self.mls_number = mls_number


class StoreUnavailableError(RepositoryError):
    """The store cannot be reached; further rows cannot be attempted."""


class ListingRepository(Protocol):
    """
    Key-addressed listing store. The MLS number is the only identity.

    Writes are individually durable: a failed write never undoes an earlier one.
    """

    async def find_by_key(self, mls_number: str) -> Listing | None:
        ...

    async def create(self, candidate: CandidateListing, *, actor: str) -> Listing:
        """Insert; raises DuplicateKeyError when the key already exists."""
        ...

    async def update(self, mls_number: str, candidate: CandidateListing, *, actor: str) -> Listing:
        """Overwrite address/price/status/description; mls_number and created_at stay."""
        ...

    async def upsert(self, candidate: CandidateListing, *, actor: str) -> tuple[Listing, bool]:
        """Atomic create-or-update. Returns (listing, created)."""
        ...
