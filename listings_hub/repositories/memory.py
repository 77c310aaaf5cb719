from __future__ import annotations

from listings_hub.canonical.listing import CandidateListing
from listings_hub.models.base import gen_id, utcnow
from listings_hub.models.listing import Listing
from listings_hub.repositories.base import DuplicateKeyError, ListingNotFoundError, ListingRepository


def _copy(listing: Listing) -> Listing:
    return Listing(
        id=listing.id,
        mls_number=listing.mls_number,
        address=listing.address,
        price=listing.price,
        status=listing.status,
        description=listing.description,
        latitude=listing.latitude,
        longitude=listing.longitude,
        created_at=listing.created_at,
        updated_at=listing.updated_at,
        created_by=listing.created_by,
        updated_by=listing.updated_by,
    )


class InMemoryListingRepository:
    """
    Dict-backed ListingRepository.

    With `base` set it acts as a write overlay: reads fall through to the base
    store, writes stay here. Batch previews use it so a dry run sees the real
    data and in-batch effects without touching the database.
    """

    def __init__(self, base: ListingRepository | None = None):
        self.base = base
        self.rows: dict[str, Listing] = {}

    async def find_by_key(self, mls_number: str) -> Listing | None:
        if mls_number in self.rows:
            return self.rows[mls_number]
        if self.base is not None:
            found = await self.base.find_by_key(mls_number)
            return _copy(found) if found is not None else None
        return None

    async def create(self, candidate: CandidateListing, *, actor: str) -> Listing:
        if await self.find_by_key(candidate.mls_number) is not None:
            raise DuplicateKeyError(candidate.mls_number)

        now = utcnow()
        listing = Listing(
            id=gen_id("lst"),
            mls_number=candidate.mls_number,
            **candidate.store_fields(),
            created_at=now,
            updated_at=now,
            created_by=actor,
            updated_by=actor,
        )
        self.rows[listing.mls_number] = listing
        return listing

    async def update(self, mls_number: str, candidate: CandidateListing, *, actor: str) -> Listing:
        listing = await self.find_by_key(mls_number)
        if listing is None:
            raise ListingNotFoundError(mls_number)

        for name, value in candidate.store_fields().items():
            setattr(listing, name, value)
        listing.updated_at = utcnow()
        listing.updated_by = actor
        self.rows[mls_number] = listing
        return listing

    async def upsert(self, candidate: CandidateListing, *, actor: str) -> tuple[Listing, bool]:
        if await self.find_by_key(candidate.mls_number) is None:
            return await self.create(candidate, actor=actor), True
        return await self.update(candidate.mls_number, candidate, actor=actor), False
