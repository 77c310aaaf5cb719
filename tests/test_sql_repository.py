import pytest
from sqlalchemy import func, select

from listings_hub.canonical.listing import CandidateListing
from listings_hub.models.listing import Listing
from listings_hub.repositories.base import DuplicateKeyError, InvalidValueError, ListingNotFoundError
from listings_hub.repositories.sql import SqlListingRepository
from listings_hub.services.reconcile import ListingReconciler


def _candidate(mls="1929100", **overrides):
    fields = {
        "mls_number": mls,
        "address": "305 Theresa St, Watertown, WI 53094",
        "price": 324900,
        "status": "Active",
        "description": "hardwood floors",
    }
    fields.update(overrides)
    return CandidateListing(**fields)


async def _count(db_session) -> int:
    return (await db_session.execute(select(func.count()).select_from(Listing))).scalar_one()


@pytest.mark.asyncio
async def test_create_then_find(db_session):
    repo = SqlListingRepository(db_session)
    created = await repo.create(_candidate(), actor="admin")

    found = await repo.find_by_key("1929100")
    assert found is not None
    assert found.id == created.id
    assert found.id.startswith("lst_")
    assert found.created_by == "admin"
    assert await repo.find_by_key("nope") is None


@pytest.mark.asyncio
async def test_duplicate_create_raises_and_session_stays_usable(db_session):
    repo = SqlListingRepository(db_session)
    await repo.create(_candidate(), actor="admin")

    with pytest.raises(DuplicateKeyError):
        await repo.create(_candidate(price=1), actor="admin")

    await repo.create(_candidate("1934327"), actor="admin")
    assert await _count(db_session) == 2
    assert (await repo.find_by_key("1929100")).price == 324900


@pytest.mark.asyncio
async def test_update_overwrites_fields_and_keeps_identity(db_session):
    repo = SqlListingRepository(db_session)
    await repo.create(_candidate(), actor="admin")
    before = await repo.find_by_key("1929100")
    listing_id, created_at = before.id, before.created_at

    await repo.update("1929100", _candidate(price=299000, status="Sold", description=None), actor="import")

    after = await repo.find_by_key("1929100")
    assert after.id == listing_id
    assert after.created_at == created_at
    assert after.price == 299000
    assert after.status == "Sold"
    assert after.description is None
    assert after.updated_by == "import"


@pytest.mark.asyncio
async def test_update_missing_key_raises(db_session):
    with pytest.raises(ListingNotFoundError):
        await SqlListingRepository(db_session).update("nope", _candidate("nope"), actor="admin")


@pytest.mark.asyncio
async def test_upsert_reports_created_flag(db_session):
    repo = SqlListingRepository(db_session)

    listing, created = await repo.upsert(_candidate(), actor="admin")
    assert created
    first_id = listing.id

    listing, created = await repo.upsert(_candidate(price=250000), actor="admin")
    assert not created
    assert listing.id == first_id
    assert listing.price == 250000
    assert await _count(db_session) == 1


@pytest.mark.asyncio
async def test_search_filters_and_orders(db_session):
    repo = SqlListingRepository(db_session)
    await repo.create(_candidate("S-1", status="Sold", price=198500), actor="seed")
    await repo.create(_candidate("A-1", price=279900, description="fenced yard"), actor="seed")
    await repo.create(_candidate("A-2", price=365000, address="890 S 2nd St"), actor="seed")
    await repo.create(_candidate("P-1", status="Pending", price=425000), actor="seed")

    everything = await repo.search()
    assert [l.mls_number for l in everything] == ["A-2", "A-1", "P-1", "S-1"]

    active = await repo.search(status="Active", min_price=300000)
    assert [l.mls_number for l in active] == ["A-2"]

    cheap = await repo.search(max_price=280000)
    assert [l.mls_number for l in cheap] == ["A-1", "S-1"]

    yard = await repo.search(search="FENCED")
    assert [l.mls_number for l in yard] == ["A-1"]

    assert len(await repo.search(limit=2)) == 2


@pytest.mark.asyncio
async def test_delete_all(db_session):
    repo = SqlListingRepository(db_session)
    await repo.create(_candidate("A-1"), actor="seed")
    await repo.create(_candidate("A-2"), actor="seed")

    assert await repo.delete_all() == 2
    assert await _count(db_session) == 0


@pytest.mark.asyncio
async def test_non_key_integrity_error_is_not_reported_as_duplicate(db_session):
    repo = SqlListingRepository(db_session)
    # bypasses field validation so the NOT NULL constraint on address fires
    broken = CandidateListing.model_construct(
        mls_number="A-1", address=None, price=100000, status="Active", description=None
    )

    with pytest.raises(InvalidValueError):
        await repo.create(broken, actor="admin")

    outcome = await ListingReconciler(repo).reconcile(broken)
    assert outcome.action == "failed"
    assert outcome.reason == "Invalid data format"
    assert await _count(db_session) == 0
