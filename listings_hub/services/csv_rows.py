from __future__ import annotations

import csv
import io
from dataclasses import dataclass


@dataclass(frozen=True)
class CsvExport:
    headers: list[str]
    rows: list[dict[str, str]]


def parse_csv_export(text: str) -> CsvExport:
    """
    First line is the header row. Rows where every cell is blank are dropped;
    cells past the last header are ignored.
    """
    reader = csv.DictReader(io.StringIO(text))
    headers = list(reader.fieldnames or [])

    rows = []
    for row in reader:
        cells = {k: (v or "") for k, v in row.items() if k is not None}
        if any(v.strip() for v in cells.values()):
            rows.append(cells)

    return CsvExport(headers=headers, rows=rows)


def decode_csv_body(body: bytes) -> str:
    # Excel exports often carry a BOM
    return body.decode("utf-8-sig")
