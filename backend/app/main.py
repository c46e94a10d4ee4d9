"""Main application entry point."""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import timedelta

# Configure logging FIRST, before any other imports
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)

# Reduce noise from third-party libraries (must be set before importing them)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

# Try to use uvloop for better performance (Unix only)
try:
    import uvloop
    uvloop.install()
    _UVLOOP_ENABLED = True
except ImportError:
    _UVLOOP_ENABLED = False

from app.api import router
from app.clients import BinanceRestClient
from app.config import get_settings
from app.services import SignalPoller
from core.classifier import SignalClassifier
from core.models import ClassifierConfig, TrackerConfig
from core.signal_tracker import SignalTracker

logger = logging.getLogger(__name__)


def build_tracker() -> SignalTracker:
    """Create the process-wide signal tracker from settings."""
    settings = get_settings()
    config = TrackerConfig(
        active_ttl=timedelta(hours=settings.active_ttl_hours),
        hit_retention=timedelta(minutes=settings.hit_retention_minutes),
    )
    return SignalTracker(classifier=SignalClassifier(ClassifierConfig()), config=config)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Scalp Radar...")
    logger.info(f"Event loop: {'uvloop' if _UVLOOP_ENABLED else 'asyncio'}")

    settings = get_settings()
    client = BinanceRestClient(
        base_url=settings.binance_base_url,
        timeout=settings.binance_timeout,
    )
    tracker = build_tracker()
    poller = SignalPoller(client, tracker, settings)

    # Expose tracker to API routes via app.state
    app.state.tracker = tracker
    app.state.poller = poller

    poller.start()
    logger.info(
        "Polling %d symbols every %.0fs (%s candles)",
        settings.universe_size, settings.cycle_period, settings.interval,
    )

    yield

    # Shutdown
    logger.info("Shutting down...")
    app.state.poller = None

    try:
        await asyncio.wait_for(poller.stop(), timeout=10)
    except asyncio.TimeoutError:
        logger.warning("Poller did not stop within 10s")

    await client.close()
    logger.info("Shutdown complete")


# Create FastAPI app with orjson for faster JSON serialization
app = FastAPI(
    title="Scalp Radar",
    description="Crypto scalping signal scanner",
    version="0.1.0",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include REST routes
app.include_router(router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Scalp Radar",
        "version": "0.1.0",
        "docs": "/docs",
        "event_loop": "uvloop" if _UVLOOP_ENABLED else "asyncio",
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    poller = getattr(app.state, "poller", None)
    return {
        "status": "healthy",
        "polling": bool(poller and poller.is_running),
    }


def main():
    """Run the application."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
