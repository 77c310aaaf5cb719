from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from listings_hub.services.bulk_import import BatchResult


@dataclass(frozen=True)
class BulkReport:
    success: bool
    # "success" | "partial" | "failed" | "incomplete"
    outcome: str
    message: str
    data: dict[str, Any]


def result_payload(result: BatchResult) -> dict[str, Any]:
    return {
        "total": result.total,
        "created": result.created,
        "updated": result.updated,
        "errors": [
            {"row": e.row, "mls_number": e.mls_number, "error": e.error}
            for e in result.errors
        ],
        "incomplete": result.incomplete,
    }


def summarize(result: BatchResult) -> BulkReport:
    data = result_payload(result)

    if result.incomplete:
        return BulkReport(
            success=False,
            outcome="incomplete",
            message=(
                f"Listing store unavailable; processed {result.total} of "
                f"{result.submitted} listings before the failure"
            ),
            data=data,
        )

    outcome = result.outcome
    if outcome == "failed":
        message = "All listings failed to process"
    elif outcome == "partial":
        message = f"Bulk upload completed with {len(result.errors)} errors"
    else:
        message = f"Bulk upload completed successfully. {result.created} created, {result.updated} updated."

    return BulkReport(success=outcome != "failed", outcome=outcome, message=message, data=data)
