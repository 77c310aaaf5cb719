from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Sequence

from opentelemetry import trace

from listings_hub.core.config import settings
from listings_hub.repositories.base import ListingRepository, StoreUnavailableError
from listings_hub.repositories.memory import InMemoryListingRepository
from listings_hub.services.listing_validate import validate_listing
from listings_hub.services.normalizer import normalize_row
from listings_hub.services.reconcile import ListingReconciler, ReconcileStrategy, RowOutcome


log = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

BatchOutcome = Literal["success", "partial", "failed"]


class BatchSizeError(Exception):
    """Batch rejected before any row was touched."""

    def __init__(self, size: int, max_rows: int):
        super().__init__(f"Bulk upload must contain 1-{max_rows} listings")
        self.size = size
        self.max_rows = max_rows


@dataclass(frozen=True)
class RowError:
    row: int
    mls_number: str | None
    error: str


@dataclass
class BatchResult:
    # rows in the request; total counts only rows actually attempted
    submitted: int
    total: int = 0
    created: int = 0
    updated: int = 0
    errors: list[RowError] = field(default_factory=list)
    incomplete: bool = False

    def record(self, row: int, outcome: RowOutcome) -> None:
        self.total += 1
        if outcome.action == "created":
            self.created += 1
        elif outcome.action == "updated":
            self.updated += 1
        else:
            self.errors.append(RowError(row=row, mls_number=outcome.mls_number, error=outcome.reason or "Unknown error"))

    @property
    def outcome(self) -> BatchOutcome:
        succeeded = self.created + self.updated
        if succeeded == 0:
            return "failed"
        if self.errors:
            # some rows landed: still a success for the caller, who must read `errors`
            return "partial"
        return "success"


class BatchAbortedError(Exception):
    """The store went away mid-batch. `result` holds the rows completed before the fault."""

    def __init__(self, result: BatchResult, cause: StoreUnavailableError):
        super().__init__(f"listing store unavailable after {result.total} of {result.submitted} rows: {cause}")
        self.result = result


async def process_row(
    raw: Mapping[str, Any],
    *,
    reconciler: ListingReconciler,
    headers: Sequence[str] | None = None,
) -> RowOutcome:
    fields = normalize_row(raw, headers)
    checked = validate_listing(fields)
    if not checked.ok:
        return RowOutcome(action="rejected", mls_number=fields.get("mls_number"), reason=checked.reason)
    return await reconciler.reconcile(checked.candidate)


async def run_batch(
    rows: Sequence[Mapping[str, Any]],
    *,
    reconciler: ListingReconciler,
    headers: Sequence[str] | None = None,
    max_rows: int | None = None,
) -> BatchResult:
    """
    Drive every row through normalize -> validate -> reconcile, strictly in order.

    Row n+1 is not started before row n's write has finished, so a repeated MLS
    number later in the batch updates what the earlier row created.
    Row numbers in errors are 1-based batch positions.
    """
    limit = max_rows or settings.bulk_max_rows
    if not 1 <= len(rows) <= limit:
        raise BatchSizeError(len(rows), limit)

    result = BatchResult(submitted=len(rows))

    with tracer.start_as_current_span("listings.bulk_import") as span:
        span.set_attribute("listings.batch.size", len(rows))
        span.set_attribute("listings.reconcile.strategy", reconciler.strategy)

        for index, raw in enumerate(rows):
            row_no = index + 1
            try:
                outcome = await process_row(raw, reconciler=reconciler, headers=headers)
            except StoreUnavailableError as e:
                result.incomplete = True
                span.set_attribute("listings.batch.incomplete", True)
                log.error("bulk import: store unavailable at row %d of %d, stopping", row_no, len(rows))
                raise BatchAbortedError(result, e) from e

            if not outcome.ok:
                log.info("bulk import: row %d (%s) %s: %s", row_no, outcome.mls_number, outcome.action, outcome.reason)
            result.record(row_no, outcome)

        span.set_attribute("listings.batch.created", result.created)
        span.set_attribute("listings.batch.updated", result.updated)
        span.set_attribute("listings.batch.errors", len(result.errors))

    log.info(
        "bulk import: total=%d created=%d updated=%d errors=%d",
        result.total, result.created, result.updated, len(result.errors),
    )
    return result


async def preview_batch(
    rows: Sequence[Mapping[str, Any]],
    *,
    base: ListingRepository,
    strategy: ReconcileStrategy = "check_then_act",
    headers: Sequence[str] | None = None,
    max_rows: int | None = None,
) -> BatchResult:
    """Dry run: reads come from `base`, writes land in an in-memory overlay only."""
    overlay = InMemoryListingRepository(base=base)
    reconciler = ListingReconciler(overlay, strategy=strategy, actor="preview")
    return await run_batch(rows, reconciler=reconciler, headers=headers, max_rows=max_rows)


async def submit_single(
    raw: Mapping[str, Any],
    *,
    reconciler: ListingReconciler,
) -> RowOutcome:
    """One-row batch without the aggregate tally. StoreUnavailableError propagates."""
    return await process_row(raw, reconciler=reconciler)
