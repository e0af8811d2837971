"""
press-cache - Main Entry Point

Configures logging, builds the FastAPI application with Redis-backed
caching and serves it with uvicorn.
"""
import uvicorn

from press_cache.config import Settings
from press_cache.server import SERVER_VERSION, create_app
from press_cache.utils.logger import get_logger, setup_logging

# Initialize logger (will be reconfigured in main())
logger = get_logger(__name__)


def main() -> None:
    """
    Main entry point.

    Initializes:
        1. Settings from the environment
        2. Structured logging
        3. FastAPI app (cache, upstream fetcher, revalidation scheduler)

    Shutdown is handled by uvicorn; the app lifespan closes Redis and
    the upstream HTTP client.
    """
    settings = Settings.from_env()
    setup_logging(level=settings.log_level, environment=settings.environment)

    logger.info(
        "server_starting",
        version=SERVER_VERSION,
        environment=settings.environment,
        log_level=settings.log_level,
    )

    app = create_app(settings)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
