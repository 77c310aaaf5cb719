"""Header and value normalization for listing exports.

MLS exports arrive with whatever column names the source system picked
("MLS #", "List Price", "Remarks" ...). Everything here is a pure function:
nothing raises, bad values are left for the validator to reject.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, Mapping, Sequence

from listings_hub.canonical.listing import PRICE_MAX

CANONICAL_FIELDS = ("mls_number", "address", "price", "status", "description")

DEFAULT_STATUS = "Active"

PRICE_DIGITS_MAX = len(str(PRICE_MAX)) + 3

# Keys are lowercased, trimmed, whitespace-collapsed header labels.
FIELD_ALIASES: dict[str, str] = {
    # MLS number
    "mls_number": "mls_number",
    "mlsnumber": "mls_number",
    "mls number": "mls_number",
    "mls-number": "mls_number",
    "mls": "mls_number",
    "mls #": "mls_number",
    "mls#": "mls_number",
    "mls no": "mls_number",
    "mls id": "mls_number",
    # Address
    "address": "address",
    "street address": "address",
    "street_address": "address",
    "property address": "address",
    "full address": "address",
    # Price
    "price": "price",
    "list price": "price",
    "list_price": "price",
    "listprice": "price",
    "listing price": "price",
    "asking price": "price",
    # Status
    "status": "status",
    "listing status": "status",
    "listing_status": "status",
    # Description
    "description": "description",
    "remarks": "description",
    "public remarks": "description",
    "public_remarks": "description",
    "notes": "description",
}

_WS = re.compile(r"\s+")
_NON_DIGIT = re.compile(r"\D")


def header_key(label: str) -> str:
    return _WS.sub(" ", label.strip()).lower()


@lru_cache(maxsize=512)
def canonical_field(label: str) -> str:
    """Canonical field for a header label; unknown labels come back verbatim."""
    return FIELD_ALIASES.get(header_key(label), label)


def clean_text(value: Any) -> str | None:
    """Trim strings; blank → None. Non-string scalars are stringified."""
    if value is None:
        return None
    v = value if isinstance(value, str) else str(value)
    v = v.strip()
    return v if v else None


def coerce_price(value: Any) -> Any:
    """Strip every non-digit from string prices ("$324,900" → 324900); missing → 0.

    Numbers that are not plain integers are passed through untouched so the
    validator can reject them with a price message.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else value
    digits = _NON_DIGIT.sub("", str(value)).lstrip("0")
    if not digits:
        return 0
    if len(digits) > PRICE_DIGITS_MAX:
        # out of range either way; int() would also refuse past 4300 digits
        return PRICE_MAX + 1
    return int(digits)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def normalize_row(row: Mapping[str, Any], headers: Sequence[str] | None = None) -> dict[str, Any]:
    """
    Map one raw export row onto the canonical field set.

    `headers` gives the original column order (CSV header line); when omitted the
    row's own key order is used. If two columns resolve to the same field, the
    first non-blank one wins. Unrecognized columns are kept under their original label.
    """
    labels = list(headers) if headers is not None else list(row.keys())

    raw: dict[str, Any] = {}
    for label in labels:
        if label is None or label not in row:
            continue
        field = canonical_field(label)
        if field in raw and not _is_blank(raw[field]):
            continue
        raw[field] = row[label]

    out: dict[str, Any] = {k: v for k, v in raw.items() if k not in CANONICAL_FIELDS}
    out["mls_number"] = clean_text(raw.get("mls_number"))
    out["address"] = clean_text(raw.get("address"))
    out["price"] = coerce_price(raw.get("price"))
    out["status"] = clean_text(raw.get("status")) or DEFAULT_STATUS
    out["description"] = clean_text(raw.get("description"))
    return out
