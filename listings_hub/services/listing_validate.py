from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from pydantic import ValidationError

from listings_hub.canonical.listing import CandidateListing


@dataclass(frozen=True)
class FieldViolation:
    field: str
    message: str


@dataclass(frozen=True)
class ListingValidationResult:
    ok: bool
    candidate: CandidateListing | None
    violations: list[FieldViolation] = field(default_factory=list)

    @property
    def reason(self) -> str | None:
        # Batch reports only the first blocking violation per row
        return self.violations[0].message if self.violations else None


def _violations(exc: ValidationError) -> list[FieldViolation]:
    out = []
    for err in exc.errors():
        loc = err.get("loc") or ("listing",)
        out.append(FieldViolation(field=str(loc[0]), message=err["msg"]))
    return out


def validate_listing(fields: Mapping[str, Any]) -> ListingValidationResult:
    """
    Check a normalized field mapping against the listing constraints.
    Never returns a partially valid candidate: either every field passed or none is handed on.
    """
    try:
        candidate = CandidateListing.model_validate(dict(fields))
    except ValidationError as e:
        return ListingValidationResult(ok=False, candidate=None, violations=_violations(e))

    return ListingValidationResult(ok=True, candidate=candidate)
