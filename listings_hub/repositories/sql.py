from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import DataError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from listings_hub.canonical.listing import CandidateListing
from listings_hub.models.base import gen_id, utcnow
from listings_hub.models.listing import Listing
from listings_hub.repositories.base import (
    DuplicateKeyError,
    InvalidValueError,
    ListingNotFoundError,
    RepositoryError,
    StoreUnavailableError,
)


log = logging.getLogger(__name__)

# Connection-level failures: the store is gone, not the row.
_UNAVAILABLE = (OperationalError, InterfaceError, OSError, asyncio.TimeoutError)

# postgres names the constraint; sqlite names the column
_KEY_CONFLICT_MARKERS = ("uq_listing_mls_number", "listings.mls_number")


def _is_key_conflict(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return any(marker in message for marker in _KEY_CONFLICT_MARKERS)


class SqlListingRepository:
    """
    ListingRepository over an AsyncSession.

    Every write commits on its own, so each row of a batch is its own transaction;
    a failed write is rolled back without touching rows written before it.
    The session must be created with expire_on_commit=False.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _rollback(self) -> None:
        try:
            await self.db.rollback()
        except _UNAVAILABLE:
            log.warning("rollback failed: connection already lost", exc_info=True)

    @asynccontextmanager
    async def _reading(self) -> AsyncIterator[None]:
        try:
            yield
        except _UNAVAILABLE as e:
            await self._rollback()
            raise StoreUnavailableError(str(e)) from e
        except Exception:
            await self._rollback()
            raise

    @asynccontextmanager
    async def _writing(self, mls_number: str) -> AsyncIterator[None]:
        try:
            yield
            await self.db.commit()
        except IntegrityError as e:
            await self._rollback()
            if _is_key_conflict(e):
                raise DuplicateKeyError(mls_number) from e
            raise InvalidValueError(str(e.orig)) from e
        except DataError as e:
            await self._rollback()
            raise InvalidValueError(str(e.orig)) from e
        except _UNAVAILABLE as e:
            await self._rollback()
            raise StoreUnavailableError(str(e)) from e
        except Exception:
            # leave the session usable for the next row
            await self._rollback()
            raise

    async def find_by_key(self, mls_number: str) -> Listing | None:
        stmt = (
            select(Listing)
            .where(Listing.mls_number == mls_number)
            .execution_options(populate_existing=True)
        )
        async with self._reading():
            return (await self.db.execute(stmt)).scalar_one_or_none()

    async def create(self, candidate: CandidateListing, *, actor: str) -> Listing:
        now = utcnow()
        listing = Listing(
            mls_number=candidate.mls_number,
            **candidate.store_fields(),
            created_at=now,
            updated_at=now,
            created_by=actor,
            updated_by=actor,
        )
        async with self._writing(candidate.mls_number):
            self.db.add(listing)
            await self.db.flush()
        return listing

    async def update(self, mls_number: str, candidate: CandidateListing, *, actor: str) -> Listing:
        listing = await self.find_by_key(mls_number)
        if listing is None:
            raise ListingNotFoundError(mls_number)

        async with self._writing(mls_number):
            # full overwrite of the replaceable fields; no merge with stored values
            for name, value in candidate.store_fields().items():
                setattr(listing, name, value)
            listing.updated_at = utcnow()
            listing.updated_by = actor
            await self.db.flush()
        return listing

    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            raise RepositoryError(f"atomic upsert is not supported on {dialect}")
        return insert(Listing)

    async def upsert(self, candidate: CandidateListing, *, actor: str) -> tuple[Listing, bool]:
        """
        INSERT ... ON CONFLICT (mls_number) DO NOTHING, then UPDATE when nothing was inserted.
        The conflict check happens inside the store, so two writers can never both create.
        """
        now = utcnow()
        fields = candidate.store_fields()
        ins = (
            self._insert()
            .values(
                id=gen_id("lst"),
                mls_number=candidate.mls_number,
                **fields,
                created_at=now,
                updated_at=now,
                created_by=actor,
                updated_by=actor,
            )
            .on_conflict_do_nothing(index_elements=["mls_number"])
            .returning(Listing.id)
        )

        async with self._writing(candidate.mls_number):
            inserted_id = (await self.db.execute(ins)).scalar_one_or_none()
            if inserted_id is None:
                await self.db.execute(
                    update(Listing)
                    .where(Listing.mls_number == candidate.mls_number)
                    .values(**fields, updated_at=now, updated_by=actor)
                    .execution_options(synchronize_session=False)
                )

        listing = await self.find_by_key(candidate.mls_number)
        if listing is None:
            raise ListingNotFoundError(candidate.mls_number)
        return listing, inserted_id is not None

    async def search(
        self,
        *,
        status: str | None = None,
        min_price: int | None = None,
        max_price: int | None = None,
        search: str | None = None,
        limit: int | None = None,
    ) -> list[Listing]:
        stmt = select(Listing)

        if status:
            stmt = stmt.where(Listing.status == status)
        if min_price is not None:
            stmt = stmt.where(Listing.price >= min_price)
        if max_price is not None:
            stmt = stmt.where(Listing.price <= max_price)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(
                Listing.address.ilike(pattern),
                Listing.mls_number.ilike(pattern),
                Listing.description.ilike(pattern),
            ))

        stmt = stmt.order_by(Listing.status.asc(), Listing.price.desc())
        if limit:
            stmt = stmt.limit(limit)

        async with self._reading():
            return list((await self.db.execute(stmt)).scalars().all())

    async def delete_all(self) -> int:
        async with self._writing("*"):
            res = await self.db.execute(delete(Listing))
        return res.rowcount or 0
