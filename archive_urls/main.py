from fastapi import FastAPI
from archive_urls.api.routes import router

app = FastAPI(
    title="Archive URLs",
    description="API for listing archived URLs of domains from the web archive index",
    version="1.0.0",
)

# Include API routes
app.include_router(router)

@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "service": "Archive URLs",
        "version": "1.0.0",
        "endpoints": {
            "urls": "GET /urls?domain=<domain>&days=<n>&no_subs=<bool>",
            "versions": "GET /versions?url=<url>",
            "health": "GET /health"
        }
    }
