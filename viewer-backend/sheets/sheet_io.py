from __future__ import annotations

import csv
import io
import logging
import os
import re
from typing import Dict, List, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

EXPORT_SUFFIX = "/export?format=csv"
_SHEET_ID_RE = re.compile(r"[-\w]{25,}")

FETCH_ERROR_MESSAGE = 'Failed to fetch Google Sheet. Ensure it is shared as "Anyone with the link can view".'
EMPTY_SHEET_MESSAGE = "Sheet appears to be empty."


class SheetFetchError(Exception):
    """Row source failure. The message is safe to show to the end user."""

    def __init__(self, message: str, *, empty: bool = False):
        super().__init__(message)
        self.empty = empty


def csv_export_url(url: str) -> str:
    """Rewrite a Google Sheets share/edit link into its CSV export link."""
    if "/edit" in url:
        return url.split("/edit")[0] + EXPORT_SUFFIX
    if url.endswith(EXPORT_SUFFIX):
        return url
    m = _SHEET_ID_RE.search(url)
    if m:
        return f"https://docs.google.com/spreadsheets/d/{m.group(0)}{EXPORT_SUFFIX}"
    return url


def _unique_headers(raw: List[str]) -> List[str]:
    seen: Dict[str, int] = {}
    out: List[str] = []
    for name in raw:
        if name not in seen:
            seen[name] = 1
            out.append(name)
            continue
        n = seen[name]
        candidate = name
        while candidate in seen:
            n += 1
            candidate = f"{name} ({n})"
        seen[name] = n
        seen[candidate] = 1
        out.append(candidate)
    return out


def parse_csv(text: str) -> Tuple[List[str], List[Dict[str, str]]]:
    """Parse exported CSV text into (headers, rows).

    Records whose cells are all blank are skipped (blank lines inside quoted
    cells survive), cells are trimmed, short rows are padded with "".
    Duplicate header names get a " (2)", " (3)" suffix so rows stay keyed uniquely.
    """
    records = [
        rec
        for rec in csv.reader(io.StringIO(text, newline=""), skipinitialspace=True)
        if any(cell.strip() for cell in rec)
    ]
    if not records:
        raise SheetFetchError(EMPTY_SHEET_MESSAGE, empty=True)
    headers = _unique_headers([h.strip() for h in records[0]])
    rows: List[Dict[str, str]] = []
    for values in records[1:]:
        cells = [v.strip() for v in values]
        rows.append({h: (cells[i] if i < len(cells) else "") for i, h in enumerate(headers)})
    return headers, rows


def _timeout_from_env() -> float:
    try:
        return float(os.getenv("SHEET_FETCH_TIMEOUT", "15"))
    except ValueError:
        return 15.0


async def fetch_sheet(
    url: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None,
) -> Tuple[List[str], List[Dict[str, str]]]:
    """Download a sheet as CSV and parse it. Single attempt; raises SheetFetchError."""
    csv_url = csv_export_url(url)
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(
            timeout=timeout if timeout is not None else _timeout_from_env(),
            follow_redirects=True,
        )
    try:
        resp = await client.get(csv_url)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("sheet fetch failed for %.200s: %s", csv_url, e)
        raise SheetFetchError(FETCH_ERROR_MESSAGE) from e
    finally:
        if owns_client:
            await client.aclose()
    if not resp.is_success:
        logger.warning("sheet fetch returned %s for %s", resp.status_code, csv_url)
        raise SheetFetchError(FETCH_ERROR_MESSAGE)
    headers, rows = parse_csv(resp.text)
    logger.info("fetched sheet: %d column(s), %d row(s)", len(headers), len(rows))
    return headers, rows


__all__ = [
    "SheetFetchError",
    "csv_export_url",
    "parse_csv",
    "fetch_sheet",
]
