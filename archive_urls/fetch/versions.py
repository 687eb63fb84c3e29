import logging
from typing import List

import httpx

from archive_urls.exceptions import FetchError, VersionResolveError
from archive_urls.fetch.cdx_client import build_versions_query, fetch_rows, parse_rows
from archive_urls.fetch.utils import snapshot_url

logger = logging.getLogger(__name__)

async def resolve_versions(client: httpx.AsyncClient, url: str) -> List[str]:
    """
    List direct snapshot URLs for every capture of exactly `url`.

    The URL is queried literally (no wildcard, no date bound); each capture
    becomes '<snapshot base>/<timestamp>/<original url>'.
    """
    try:
        rows = await fetch_rows(client, build_versions_query(url))
    except FetchError as e:
        raise VersionResolveError(url, e.message) from e

    versions = [snapshot_url(record.date, record.url) for record in parse_rows(rows)]
    logger.debug("%s: %d versions", url, len(versions))
    return versions
