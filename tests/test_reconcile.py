import pytest

from listings_hub.canonical.listing import CandidateListing
from listings_hub.repositories.base import DuplicateKeyError, InvalidValueError, StoreUnavailableError
from listings_hub.repositories.memory import InMemoryListingRepository
from listings_hub.services.reconcile import ListingReconciler


def _candidate(mls="1929100", **overrides):
    fields = {
        "mls_number": mls,
        "address": "305 Theresa St, Watertown, WI 53094",
        "price": 324900,
        "status": "Active",
        "description": "original",
    }
    fields.update(overrides)
    return CandidateListing(**fields)


class RacingRepository(InMemoryListingRepository):
    """Another writer creates the key between our lookup and our insert."""

    async def create(self, candidate, *, actor):
        raise DuplicateKeyError(candidate.mls_number)


class RejectingRepository(InMemoryListingRepository):
    async def create(self, candidate, *, actor):
        raise InvalidValueError("value too long for type character varying(500)")


class DownRepository(InMemoryListingRepository):
    async def find_by_key(self, mls_number):
        raise StoreUnavailableError("connection refused")


class BrokenRepository(InMemoryListingRepository):
    async def create(self, candidate, *, actor):
        raise RuntimeError("disk quota exceeded")


@pytest.mark.asyncio
@pytest.mark.parametrize("strategy", ["check_then_act", "atomic_upsert"])
async def test_absent_key_is_created(strategy):
    repo = InMemoryListingRepository()
    outcome = await ListingReconciler(repo, strategy=strategy).reconcile(_candidate())

    assert outcome.action == "created"
    assert outcome.ok
    assert repo.rows["1929100"].created_by == "admin"


@pytest.mark.asyncio
@pytest.mark.parametrize("strategy", ["check_then_act", "atomic_upsert"])
async def test_present_key_is_overwritten(strategy):
    repo = InMemoryListingRepository()
    reconciler = ListingReconciler(repo, strategy=strategy)
    first = await reconciler.reconcile(_candidate())
    created_at = first.listing.created_at
    listing_id = first.listing.id

    outcome = await reconciler.reconcile(_candidate(price=299000, status="Pending", description=None))

    assert outcome.action == "updated"
    stored = repo.rows["1929100"]
    assert stored.id == listing_id
    assert stored.created_at == created_at
    assert stored.price == 299000
    assert stored.status == "Pending"
    # full overwrite: an absent description clears the stored one
    assert stored.description is None


@pytest.mark.asyncio
async def test_lost_create_race_is_reported_not_retried():
    repo = RacingRepository()
    outcome = await ListingReconciler(repo).reconcile(_candidate())

    assert outcome.action == "failed"
    assert outcome.reason == "MLS number already exists"
    assert repo.rows == {}


@pytest.mark.asyncio
async def test_store_value_rejection_maps_to_invalid_data_format():
    outcome = await ListingReconciler(RejectingRepository()).reconcile(_candidate())
    assert outcome.action == "failed"
    assert outcome.reason == "Invalid data format"


@pytest.mark.asyncio
async def test_unexpected_write_error_keeps_its_message():
    outcome = await ListingReconciler(BrokenRepository()).reconcile(_candidate())
    assert outcome.action == "failed"
    assert outcome.reason == "disk quota exceeded"


@pytest.mark.asyncio
async def test_unavailable_store_propagates():
    with pytest.raises(StoreUnavailableError):
        await ListingReconciler(DownRepository()).reconcile(_candidate())


@pytest.mark.asyncio
async def test_overlay_reads_through_without_touching_base():
    base = InMemoryListingRepository()
    await ListingReconciler(base).reconcile(_candidate())

    overlay = InMemoryListingRepository(base=base)
    outcome = await ListingReconciler(overlay, actor="preview").reconcile(_candidate(price=1))

    assert outcome.action == "updated"
    assert overlay.rows["1929100"].price == 1
    assert base.rows["1929100"].price == 324900
