from datetime import date, datetime, timedelta
from typing import Optional
from urllib.parse import urlsplit

from archive_urls.core.config import settings

CDX_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
EARLIEST_CDX_DATE = "00010101"

def url_host(raw_url: str) -> str:
    """
    Host part of a URL, lowercased, without port or credentials.
    Scheme-less input such as 'foo.example.com/path' is accepted.
    """
    if not raw_url:
        return ""
    candidate = raw_url.strip()
    if "://" not in candidate:
        candidate = "//" + candidate
    try:
        return (urlsplit(candidate).hostname or "").rstrip(".")
    except ValueError:
        return ""

def is_subdomain(raw_url: str, domain: str) -> bool:
    """
    True when the URL's host is strictly below `domain`:
    'foo.example.com' is, 'example.com' and 'notexample.com' are not.
    """
    host = url_host(raw_url)
    root = domain.strip().lower().rstrip(".")
    if not host or not root:
        return False
    return host != root and host.endswith("." + root)

def from_date(days: int, today: Optional[date] = None) -> str:
    """
    Lower bound for a time-windowed query: today minus `days`, as YYYYMMDD.
    Windows reaching past year 1 start at '00010101'.
    """
    today = today or date.today()
    if days >= (today - date.min).days:
        return EARLIEST_CDX_DATE
    start = today - timedelta(days=days)
    # strftime does not zero-pad years below 1000 on every platform
    return f"{start.year:04d}{start.month:02d}{start.day:02d}"

def format_timestamp(timestamp: str) -> Optional[str]:
    """
    Convert a CDX timestamp to RFC 3339.
    Examples: '20200101000000' -> '2020-01-01T00:00:00Z', 'garbage' -> None
    """
    try:
        parsed = datetime.strptime(timestamp, CDX_TIMESTAMP_FORMAT)
    except (TypeError, ValueError):
        return None
    return parsed.strftime("%Y-%m-%dT%H:%M:%SZ")

def snapshot_url(timestamp: str, original_url: str) -> str:
    """Direct-access URL of one archived capture"""
    return f"{settings.SNAPSHOT_BASE.rstrip('/')}/{timestamp}/{original_url}"
