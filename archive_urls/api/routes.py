from fastapi import APIRouter, HTTPException, Query, status
from pydantic import ValidationError
from archive_urls.exceptions import VersionResolveError
from archive_urls.fetch.versions import resolve_versions
from archive_urls.schemas import DomainURLsResponse, FetchOptions, VersionsResponse
from archive_urls.services.orchestrator import client_scope, collect_domain

router = APIRouter()

@router.get("/urls", response_model=DomainURLsResponse)
async def domain_urls(
    domain: str = Query(..., description="Domain to list archived URLs for"),
    days: int = Query(0, description="Days back to fetch; 0 means no limit"),
    no_subs: bool = Query(False, description="Exclude subdomains"),
):
    """
    List unique archived URLs of a domain.

    Strategies that fail are reported under `failures` instead of
    failing the request.
    """
    domain = domain.strip()
    if not domain:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Domain is required"
        )

    try:
        options = FetchOptions(days=days, exclude_subdomains=no_subs)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.errors()[0]["msg"]
        )

    return await collect_domain(domain, options)

@router.get("/versions", response_model=VersionsResponse)
async def url_versions(url: str = Query(..., description="Exact URL to resolve")):
    """List direct snapshot URLs of every capture of a URL"""
    url = url.strip()
    if not url:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="URL is required"
        )

    try:
        async with client_scope() as client:
            versions = await resolve_versions(client, url)
    except VersionResolveError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=e.message
        )
    return VersionsResponse(url=url, versions=versions)

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "Archive URLs"}
