import csv
import logging
from typing import Any, Sequence

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from listings_hub.core.config import settings
from listings_hub.core.db import get_db
from listings_hub.repositories.base import StoreUnavailableError
from listings_hub.repositories.sql import SqlListingRepository
from listings_hub.schemas.listing import (
    BatchResultOut,
    BulkUploadRequest,
    BulkUploadResponse,
    ListingOut,
    SingleListingResponse,
)
from listings_hub.services.admin_auth import require_admin
from listings_hub.services.audit import audit
from listings_hub.services.bulk_import import (
    BatchAbortedError,
    BatchSizeError,
    preview_batch,
    run_batch,
    submit_single,
)
from listings_hub.services.bulk_report import BulkReport, summarize
from listings_hub.services.csv_rows import decode_csv_body, parse_csv_export
from listings_hub.services.reconcile import DUPLICATE_KEY_MESSAGE, ListingReconciler


log = logging.getLogger(__name__)
router = APIRouter()

UNAVAILABLE_DETAIL = {"success": False, "message": "Database connection failed. Please try again later."}


def _reconciler(db: AsyncSession, actor: str) -> ListingReconciler:
    return ListingReconciler(SqlListingRepository(db), strategy=settings.reconcile_strategy, actor=actor)


def _bulk_response(report: BulkReport, *, preview: bool = False) -> BulkUploadResponse:
    return BulkUploadResponse(
        success=report.success,
        outcome=report.outcome,
        message=report.message,
        preview=preview,
        data=BatchResultOut.model_validate(report.data),
    )


async def _apply_batch(
    rows: Sequence[dict[str, Any]],
    headers: Sequence[str] | None,
    *,
    source: str,
    response: Response,
    actor: str,
    db: AsyncSession,
) -> BulkUploadResponse:
    try:
        result = await run_batch(rows, reconciler=_reconciler(db, actor), headers=headers)
    except BatchSizeError as e:
        raise HTTPException(status_code=400, detail={"success": False, "message": str(e)})
    except BatchAbortedError as e:
        log.error("bulk upload aborted: %s", e)
        response.status_code = 503
        return _bulk_response(summarize(e.result))

    report = summarize(result)
    await audit(
        db,
        actor=actor,
        action="listings.bulk_upload",
        target_type="listing_batch",
        target_id=None,
        detail={"source": source, "outcome": report.outcome, **report.data},
    )
    await db.commit()

    if not report.success:
        response.status_code = 400
    return _bulk_response(report)


@router.get("/listings", response_model=list[ListingOut])
async def list_listings(
    status: str | None = Query(default=None),
    min_price: int | None = Query(default=None, alias="minPrice"),
    max_price: int | None = Query(default=None, alias="maxPrice"),
    search: str | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
) -> list[ListingOut]:
    repo = SqlListingRepository(db)
    try:
        rows = await repo.search(
            status=status,
            min_price=min_price,
            max_price=max_price,
            search=search,
            limit=limit,
        )
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)
    return [ListingOut.model_validate(r) for r in rows]


@router.get("/listings/{mls_number}", response_model=ListingOut)
async def get_listing(mls_number: str, db: AsyncSession = Depends(get_db)) -> ListingOut:
    try:
        listing = await SqlListingRepository(db).find_by_key(mls_number)
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)
    if listing is None:
        raise HTTPException(status_code=404, detail="Listing not found")
    return ListingOut.model_validate(listing)


@router.post("/listings", response_model=SingleListingResponse)
async def submit_listing(
    body: dict[str, Any] = Body(...),
    actor: str = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> SingleListingResponse:
    try:
        outcome = await submit_single(body, reconciler=_reconciler(db, actor))
    except StoreUnavailableError:
        log.exception("single listing submit: store unavailable")
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)

    if not outcome.ok:
        if outcome.action == "rejected":
            status_code = 422
        elif outcome.reason == DUPLICATE_KEY_MESSAGE:
            status_code = 409
        else:
            status_code = 400
        raise HTTPException(
            status_code=status_code,
            detail={"success": False, "message": outcome.reason, "mlsNumber": outcome.mls_number},
        )

    listing = ListingOut.model_validate(outcome.listing)
    await audit(
        db,
        actor=actor,
        action=f"listing.{outcome.action}",
        target_type="listing",
        target_id=outcome.mls_number,
    )
    await db.commit()

    return SingleListingResponse(
        success=True,
        action=outcome.action,
        message=f"Listing {outcome.action} successfully",
        listing=listing,
    )


@router.post("/listings/bulk", response_model=BulkUploadResponse)
async def bulk_upload(
    body: BulkUploadRequest,
    response: Response,
    actor: str = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> BulkUploadResponse:
    return await _apply_batch(body.listings, None, source="json", response=response, actor=actor, db=db)


@router.post(
    "/listings/bulk:preview",
    response_model=BulkUploadResponse,
    dependencies=[Depends(require_admin)],
)
async def bulk_preview(
    body: BulkUploadRequest,
    db: AsyncSession = Depends(get_db),
) -> BulkUploadResponse:
    try:
        result = await preview_batch(
            body.listings,
            base=SqlListingRepository(db),
            strategy=settings.reconcile_strategy,
        )
    except BatchSizeError as e:
        raise HTTPException(status_code=400, detail={"success": False, "message": str(e)})
    except BatchAbortedError:
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)
    return _bulk_response(summarize(result), preview=True)


@router.post("/listings/bulk/csv", response_model=BulkUploadResponse)
async def bulk_upload_csv(
    request: Request,
    response: Response,
    actor: str = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> BulkUploadResponse:
    try:
        text = decode_csv_body(await request.body())
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail={"success": False, "message": "CSV body must be UTF-8 text"})

    try:
        export = parse_csv_export(text)
    except csv.Error as e:
        log.warning("bulk csv upload rejected: %s", e)
        raise HTTPException(status_code=400, detail={"success": False, "message": f"Malformed CSV: {e}"})

    return await _apply_batch(export.rows, export.headers, source="csv", response=response, actor=actor, db=db)
