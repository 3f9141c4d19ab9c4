"""CLI entry point for the dashboard backend."""

import uvicorn

from app.config.settings import get_settings


def main() -> None:
    """Run the HTTP service."""
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    main()
