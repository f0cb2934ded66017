"""Main entry point for the library finder service.

Startup sequence:
1. Initialize DI container (API client, location table, services)
2. Inject handler into router
3. Start HTTP server with FastAPI
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from app.config import Settings
from app.container import Container
from app.routers import library_router, set_library_handler
from app.middleware import PrometheusMiddleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Global container
container: Container = None


async def startup_sequence(settings: Settings):
    """Build the container and wire the HTTP layer."""
    global container

    logger.info("[Main] Starting startup sequence")
    logging.getLogger().setLevel(settings.log_level.upper())

    logger.info("[Main] Initializing DI container")
    container = Container(settings)

    logger.info("[Main] Injecting handler into router")
    set_library_handler(container.library_handler)

    logger.info("[Main] Startup sequence completed")


async def shutdown_sequence():
    """Clean up resources on shutdown."""
    global container

    logger.info("[Main] Starting shutdown sequence")

    if container:
        logger.info("[Main] Shutting down container")
        await container.shutdown()
        logger.info("[Main] Container shut down")

    logger.info("[Main] Shutdown sequence completed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan context manager for startup and shutdown."""
    await startup_sequence(Settings())
    yield
    await shutdown_sequence()


# Create FastAPI app
settings = Settings()
app = FastAPI(
    title="Campus Library Finder API",
    description="Nearby libraries with live occupancy, timetables and campus locations",
    version="1.0.0",
    lifespan=lifespan,
)

# Add Prometheus metrics middleware
app.add_middleware(PrometheusMiddleware)

# Register router at app creation time (before uvicorn starts)
app.include_router(library_router)


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/metrics", response_class=PlainTextResponse)
def metrics():
    """Prometheus metrics endpoint for scraping."""
    return PlainTextResponse(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


if __name__ == "__main__":
    import uvicorn

    logger.info("[Main] Starting library finder service")
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.server_port,
        log_level=settings.log_level.lower(),
    )
