from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from listings_hub.canonical.listing import CandidateListing
from listings_hub.models.listing import Listing
from listings_hub.repositories.base import (
    DuplicateKeyError,
    InvalidValueError,
    ListingRepository,
    StoreUnavailableError,
)


log = logging.getLogger(__name__)

DUPLICATE_KEY_MESSAGE = "MLS number already exists"
INVALID_DATA_MESSAGE = "Invalid data format"

# rejected: failed validation, never reached the store
# failed: reached the store and the write was refused
RowAction = Literal["created", "updated", "rejected", "failed"]
ReconcileStrategy = Literal["check_then_act", "atomic_upsert"]


@dataclass(frozen=True)
class RowOutcome:
    action: RowAction
    mls_number: str | None
    reason: str | None = None
    listing: Listing | None = None

    @property
    def ok(self) -> bool:
        return self.action in ("created", "updated")


class ListingReconciler:
    """
    Decides create vs update for one validated listing and performs exactly one write.

    check_then_act looks the key up right before writing. Two concurrent batches can
    both see "absent"; the store refuses the second create and that row is reported as
    a duplicate and is never retried as an update. atomic_upsert moves the decision
    into the store instead.
    """

    def __init__(
        self,
        repo: ListingRepository,
        *,
        strategy: ReconcileStrategy = "check_then_act",
        actor: str = "admin",
    ):
        self.repo = repo
        self.strategy = strategy
        self.actor = actor

    async def _write(self, candidate: CandidateListing) -> tuple[Listing, bool]:
        if self.strategy == "atomic_upsert":
            return await self.repo.upsert(candidate, actor=self.actor)

        existing = await self.repo.find_by_key(candidate.mls_number)
        if existing is None:
            return await self.repo.create(candidate, actor=self.actor), True
        return await self.repo.update(candidate.mls_number, candidate, actor=self.actor), False

    async def reconcile(self, candidate: CandidateListing) -> RowOutcome:
        """
        Store failures come back as a "failed" outcome so the batch can go on.
        StoreUnavailableError is the exception: it propagates and stops the batch.
        """
        mls = candidate.mls_number
        try:
            listing, created = await self._write(candidate)
        except StoreUnavailableError:
            raise
        except DuplicateKeyError:
            log.warning("listing %s: create lost to a concurrent writer", mls)
            return RowOutcome(action="failed", mls_number=mls, reason=DUPLICATE_KEY_MESSAGE)
        except InvalidValueError as e:
            log.warning("listing %s: store rejected value: %s", mls, e)
            return RowOutcome(action="failed", mls_number=mls, reason=INVALID_DATA_MESSAGE)
        except Exception as e:
            log.exception("listing %s: write failed", mls)
            return RowOutcome(action="failed", mls_number=mls, reason=str(e) or e.__class__.__name__)

        return RowOutcome(action="created" if created else "updated", mls_number=mls, listing=listing)
