import httpx
import pytest
from archive_urls.core import config

CDX_HEADER = ["urlkey", "timestamp", "original", "mimetype", "statuscode", "digest", "length"]

@pytest.fixture(autouse=True)
def setup_test_environment():
    """Point settings at a fake endpoint and restore them afterwards"""
    original_endpoint = config.settings.CDX_ENDPOINT
    original_snapshot_base = config.settings.SNAPSHOT_BASE
    original_task_timeout = config.settings.FETCH_TASK_TIMEOUT

    config.settings.CDX_ENDPOINT = "http://archive.test/cdx/search/cdx"
    config.settings.SNAPSHOT_BASE = "http://web.archive.org/web"
    config.settings.FETCH_TASK_TIMEOUT = 5

    yield

    config.settings.CDX_ENDPOINT = original_endpoint
    config.settings.SNAPSHOT_BASE = original_snapshot_base
    config.settings.FETCH_TASK_TIMEOUT = original_task_timeout

@pytest.fixture
def cdx_header():
    return list(CDX_HEADER)

@pytest.fixture
def cdx_row():
    """Build a full-width CDX row for a timestamp and original URL"""
    def make(timestamp: str, url: str):
        return ["key", timestamp, url, "text/html", "200", "DIGEST", "1234"]
    return make

@pytest.fixture
def mock_client():
    """AsyncClient whose requests are answered by `handler` instead of the network"""
    def factory(handler):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return factory
