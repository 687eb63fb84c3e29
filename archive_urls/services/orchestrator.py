import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Iterable, List, Optional

import httpx

from archive_urls.core.config import settings
from archive_urls.exceptions import FetchError, VersionResolveError
from archive_urls.fetch.base import BaseStrategy
from archive_urls.fetch.cdx_client import build_client, select_strategies
from archive_urls.fetch.utils import is_subdomain
from archive_urls.fetch.versions import resolve_versions
from archive_urls.schemas import ArchivedURL, DomainURLsResponse, FetchOptions, StrategyFailure

logger = logging.getLogger(__name__)

# Marks the end of a domain's merged stream
_END = object()

@asynccontextmanager
async def client_scope(client: Optional[httpx.AsyncClient] = None):
    """Use the given client, or open (and later close) a fresh one"""
    if client is not None:
        yield client
        return
    async with build_client() as owned:
        yield owned

def _task_timeout() -> Optional[float]:
    return settings.FETCH_TASK_TIMEOUT if settings.FETCH_TASK_TIMEOUT > 0 else None

async def stream_domain(
    domain: str,
    options: FetchOptions,
    strategies: List[BaseStrategy],
    failures: Optional[List[StrategyFailure]] = None,
) -> AsyncIterator[ArchivedURL]:
    """
    Run every strategy for one domain concurrently and yield each URL the
    first time it is seen.

    Producers hand records over through a one-slot queue, so a strategy
    only gets ahead of the consumer by a single record. A failed or timed
    out strategy contributes nothing; its failure is appended to `failures`.
    """
    queue: asyncio.Queue = asyncio.Queue(maxsize=1)

    async def produce(strategy: BaseStrategy):
        try:
            records = await asyncio.wait_for(
                strategy.fetch(domain, options.exclude_subdomains, options.days),
                timeout=_task_timeout(),
            )
        except (FetchError, asyncio.TimeoutError) as e:
            error = str(e) or f"timed out after {settings.FETCH_TASK_TIMEOUT}s"
            logger.info("Strategy %s failed for %s: %s", strategy.name, domain, error)
            if failures is not None:
                failures.append(StrategyFailure(domain=domain, strategy=strategy.name, error=error))
            return

        for record in records:
            # The query already excludes subdomains; this catches whatever the index lets through
            if options.exclude_subdomains and is_subdomain(record.url, domain):
                continue
            await queue.put(record)

    async def supervise():
        results = await asyncio.gather(
            *(produce(s) for s in strategies), return_exceptions=True
        )
        await queue.put(_END)
        # Anything other than FetchError/timeout is a bug; re-raise it to the consumer
        for result in results:
            if isinstance(result, BaseException):
                raise result

    supervisor = asyncio.create_task(supervise())
    seen = set()
    try:
        while True:
            item = await queue.get()
            if item is _END:
                break
            if item.url in seen:
                continue
            seen.add(item.url)
            yield item
        await supervisor
    finally:
        if not supervisor.done():
            supervisor.cancel()
            try:
                await supervisor
            except asyncio.CancelledError:
                pass

async def fetch_domains(
    domains: Iterable[str],
    options: FetchOptions,
    emit: Callable[[ArchivedURL], None],
    client: Optional[httpx.AsyncClient] = None,
) -> List[StrategyFailure]:
    """
    Stream unique archived URLs of each domain to `emit`, one domain at a time.
    Returns the strategy failures of all domains.
    """
    failures: List[StrategyFailure] = []
    async with client_scope(client) as http:
        strategies = select_strategies(options, http)
        for domain in domains:
            count = 0
            async for record in stream_domain(domain, options, strategies, failures):
                emit(record)
                count += 1
            logger.debug("%s: %d unique URLs", domain, count)
    return failures

async def collect_domain(
    domain: str,
    options: FetchOptions,
    client: Optional[httpx.AsyncClient] = None,
) -> DomainURLsResponse:
    """Unique archived URLs of one domain, gathered into a single response"""
    records: List[ArchivedURL] = []
    failures: List[StrategyFailure] = []
    async with client_scope(client) as http:
        strategies = select_strategies(options, http)
        async for record in stream_domain(domain, options, strategies, failures):
            records.append(record)
    return DomainURLsResponse(domain=domain, urls=records, failures=failures)

async def fetch_versions(
    urls: Iterable[str],
    emit: Callable[[str], None],
    client: Optional[httpx.AsyncClient] = None,
) -> List[str]:
    """
    Stream snapshot URLs of each input URL to `emit`.
    URLs whose versions cannot be resolved are skipped and returned.
    """
    skipped: List[str] = []
    async with client_scope(client) as http:
        for url in urls:
            try:
                versions = await resolve_versions(http, url)
            except VersionResolveError as e:
                logger.debug("Skipping %s: %s", url, e)
                skipped.append(url)
                continue
            for version in versions:
                emit(version)
    return skipped
