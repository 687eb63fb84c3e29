from pydantic import BaseModel, ConfigDict, Field
from typing import List

class ArchivedURL(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str = Field(description="Capture timestamp, YYYYMMDDHHMMSS")
    url: str = Field(description="Original URL as recorded by the archive")

class FetchOptions(BaseModel):
    """Run configuration, built once from the command line or query string"""
    model_config = ConfigDict(frozen=True)

    days: int = Field(default=0, ge=0, description="Days back to fetch; 0 means unbounded")
    exclude_subdomains: bool = Field(default=False, description="Only the bare domain, no subdomains")
    get_versions: bool = Field(default=False, description="Resolve snapshot URLs of input URLs")
    show_dates: bool = Field(default=False, description="Prefix output with capture time")

class StrategyFailure(BaseModel):
    domain: str
    strategy: str
    error: str

class DomainURLsResponse(BaseModel):
    domain: str
    urls: List[ArchivedURL]
    failures: List[StrategyFailure] = Field(default_factory=list)

class VersionsResponse(BaseModel):
    url: str
    versions: List[str]
