import os

class Settings:
    # Archive index service
    CDX_ENDPOINT: str = os.getenv("CDX_ENDPOINT", "http://web.archive.org/cdx/search/cdx")
    SNAPSHOT_BASE: str = os.getenv("SNAPSHOT_BASE", "http://web.archive.org/web")

    # HTTP
    REQUEST_TIMEOUT: int = int(os.getenv("REQUEST_TIMEOUT", "30"))
    USER_AGENT: str = os.getenv("USER_AGENT", "archive-urls/1.0")

    # Upper bound for one strategy task (0 disables)
    FETCH_TASK_TIMEOUT: int = int(os.getenv("FETCH_TASK_TIMEOUT", "120"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "WARNING").upper()

settings = Settings()
