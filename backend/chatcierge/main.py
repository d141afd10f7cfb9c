import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from chatcierge.config import warn_missing_credentials

logger = logging.getLogger(__name__)
from chatcierge.routes import health, hotels, recommendations, time
from chatcierge.providers.registry import provider_registry


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle events"""
    warn_missing_credentials()

    # Startup: create the shared provider clients
    await provider_registry.initialize()
    logger.info("ChatCierge providers initialized")

    yield

    # Shutdown: wait for open streams, then close clients
    await provider_registry.cleanup()


app = FastAPI(
    title="ChatCierge API",
    description="Hotel search with streamed AI recommendations",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware (useful for local frontend development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Wire-Framing"],
)

# Include routers
app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(hotels.router, prefix="/api", tags=["hotels"])
app.include_router(recommendations.router, prefix="/api", tags=["recommendations"])
app.include_router(time.router, prefix="/api", tags=["time"])
