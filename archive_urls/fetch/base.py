from typing import List

import httpx

from archive_urls.schemas import ArchivedURL

class BaseStrategy:
    """One way of asking the archive index for a domain's URLs."""

    name: str = "base"

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def fetch(self, domain: str, exclude_subdomains: bool, days: int) -> List[ArchivedURL]:
        raise NotImplementedError
