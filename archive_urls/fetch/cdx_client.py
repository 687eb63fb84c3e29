"""
Client for the archive's CDX index endpoint.

The endpoint answers `output=json` queries with a table: a list of rows, the
first of which is a header such as
["urlkey", "timestamp", "original", "mimetype", "statuscode", "digest", "length"].
Only the timestamp (column 1) and original URL (column 2) are used here.
"""
import json
import logging
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

from archive_urls.core.config import settings
from archive_urls.exceptions import FetchError
from archive_urls.fetch.base import BaseStrategy
from archive_urls.fetch.utils import from_date
from archive_urls.schemas import ArchivedURL, FetchOptions

logger = logging.getLogger(__name__)

TIMESTAMP_COLUMN = 1
ORIGINAL_COLUMN = 2

def build_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """HTTP client shared by every query of one run"""
    return httpx.AsyncClient(
        timeout=settings.REQUEST_TIMEOUT,
        headers={"User-Agent": settings.USER_AGENT},
        follow_redirects=True,
        transport=transport,
    )

def build_domain_query(
    domain: str,
    exclude_subdomains: bool,
    days: int = 0,
    today: Optional[date] = None,
) -> Dict[str, str]:
    """
    Query parameters listing every archived URL under `domain`.

    Subdomains are matched with a '*.' host wildcard unless excluded.
    A positive `days` adds a `from` bound; no `to` bound is ever set.
    """
    wildcard = "" if exclude_subdomains else "*."
    params = {
        "url": f"{wildcard}{domain}/*",
        "output": "json",
        "collapse": "urlkey",
    }
    if days > 0:
        params["from"] = from_date(days, today)
    return params

def build_versions_query(url: str) -> Dict[str, str]:
    """Query parameters listing every capture of exactly `url`"""
    return {"url": url, "output": "json"}

async def fetch_rows(client: httpx.AsyncClient, params: Dict[str, str]) -> List[Any]:
    """
    Run one CDX query and return the decoded table, header row included.
    Raises FetchError on transport failure, non-2xx status or bad JSON.
    """
    target = params.get("url", "")
    try:
        response = await client.get(settings.CDX_ENDPOINT, params=params)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise FetchError(target, f"HTTP error {e.response.status_code}", e.response.status_code) from e
    except httpx.HTTPError as e:
        raise FetchError(target, f"{type(e).__name__}: {e}") from e

    # No captures: the service may answer with an empty body
    if not response.content.strip():
        return []

    try:
        rows = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise FetchError(target, f"invalid JSON: {e}") from e

    if not isinstance(rows, list):
        raise FetchError(target, f"expected a JSON array, got {type(rows).__name__}")
    return rows

def _valid_row(row: Any) -> bool:
    return (
        isinstance(row, list)
        and len(row) > ORIGINAL_COLUMN
        and isinstance(row[TIMESTAMP_COLUMN], str)
        and isinstance(row[ORIGINAL_COLUMN], str)
    )

def parse_rows(rows: List[Any]) -> List[ArchivedURL]:
    """Turn a CDX table into records, dropping the header and short rows"""
    out: List[ArchivedURL] = []
    for row in rows[1:]:
        if not _valid_row(row):
            logger.debug("Skipping malformed CDX row: %r", row)
            continue
        out.append(ArchivedURL(date=row[TIMESTAMP_COLUMN], url=row[ORIGINAL_COLUMN]))
    return out

async def fetch_archived_urls(
    client: httpx.AsyncClient,
    domain: str,
    exclude_subdomains: bool,
    days: int = 0,
) -> List[ArchivedURL]:
    """Archived URLs for a domain, optionally only those captured in the last `days` days"""
    params = build_domain_query(domain, exclude_subdomains, days)
    rows = await fetch_rows(client, params)
    records = parse_rows(rows)
    logger.debug("%s: %d rows, %d records", params["url"], len(rows), len(records))
    return records

class RecentURLsStrategy(BaseStrategy):
    """URLs captured within the last `days` days"""

    name = "recent"

    async def fetch(self, domain: str, exclude_subdomains: bool, days: int) -> List[ArchivedURL]:
        return await fetch_archived_urls(self.client, domain, exclude_subdomains, days)

class AllURLsStrategy(BaseStrategy):
    """Every URL ever captured, no date restriction"""

    name = "all"

    async def fetch(self, domain: str, exclude_subdomains: bool, days: int) -> List[ArchivedURL]:
        return await fetch_archived_urls(self.client, domain, exclude_subdomains, 0)

def select_strategies(options: FetchOptions, client: httpx.AsyncClient) -> List[BaseStrategy]:
    """Exactly one strategy is active: time-windowed when `days` is set, unbounded otherwise"""
    if options.days > 0:
        return [RecentURLsStrategy(client)]
    return [AllURLsStrategy(client)]
