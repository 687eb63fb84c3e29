"""
Exceptions raised by the archive URL fetcher.
"""
from typing import List, Optional


class ArchiveURLsError(Exception):
    """Base exception for archive-urls"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class FetchError(ArchiveURLsError):
    """A single query against the archive index failed"""

    def __init__(self, target: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"fetch failed for {target}: {message}")
        self.target = target
        self.status_code = status_code


class VersionResolveError(ArchiveURLsError):
    """Snapshot versions of a URL could not be resolved"""

    def __init__(self, url: str, message: str):
        super().__init__(f"could not resolve versions of {url}: {message}")
        self.url = url


class InputReadError(ArchiveURLsError):
    """Reading input lines failed part-way; `lines` holds what was read"""

    def __init__(self, message: str, lines: Optional[List[str]] = None):
        super().__init__(f"failed to read input: {message}")
        self.lines = lines or []
