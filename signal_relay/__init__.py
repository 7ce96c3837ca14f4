# Uvicorn application factory <https://www.uvicorn.org/#application-factories>
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware
from starlette.staticfiles import StaticFiles

from signal_relay.core.hub import SignalingHub
from signal_relay.logging import logger
from signal_relay.middlewares.cross_origin_isolation import (
    CrossOriginIsolationMiddleware,
)
from signal_relay.routing import collect_subrouters
from signal_relay.settings import app_settings

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager for startup and shutdown.

    Startup operations:
    - Creates the signaling hub (identity allocator, registry, router)
    - Initializes Prometheus metrics

    Shutdown operations:
    - Closes every live signaling session, which stops its dispatcher and
      liveness timers and notifies paired peers
    """
    logger.info("Application startup: initializing signaling hub")

    app.state.hub = SignalingHub(
        heartbeat_interval=app_settings.HEARTBEAT_INTERVAL_SECONDS,
        idle_timeout=app_settings.IDLE_TIMEOUT_SECONDS,
        idle_check_interval=app_settings.IDLE_CHECK_INTERVAL_SECONDS,
    )

    from signal_relay.utils.metrics import app_info

    app_info.labels(
        version=VERSION,
        python_version=f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        environment=app_settings.ENVIRONMENT,
    ).set(1)
    logger.info("Initialized Prometheus metrics")

    yield  # Application runs here

    logger.info("Application shutdown: closing signaling sessions")
    try:
        await app.state.hub.shutdown()
    except Exception as ex:
        logger.error(f"Error closing signaling sessions: {ex}")

    logger.info("Application shutdown complete")


def application() -> FastAPI:
    """
    Initializes and configures the FastAPI application.

    The lifespan context manager creates the signaling hub on startup and
    closes every live session on shutdown.

    Routers are collected with `signal_relay.routing.collect_subrouters()`
    (the `/ws` signaling endpoint, `/api/turn-credentials`, `/health` and
    `/metrics`), and the following middleware is added:
    - `CORSMiddleware`: origins from CORS_ALLOWED_ORIGINS.
    - `CrossOriginIsolationMiddleware`: COOP/COEP headers for the client.

    When STATIC_DIR is set, the browser client is served from it at "/".
    """
    app = FastAPI(
        title="WebRTC signaling relay",
        description="Relays WebRTC negotiation messages between paired peers",
        version=VERSION,
        lifespan=lifespan,
    )

    # Collect routers
    app.include_router(collect_subrouters())

    if app_settings.STATIC_DIR:
        app.mount(
            "/",
            StaticFiles(directory=app_settings.STATIC_DIR, html=True),
            name="static",
        )
        logger.info(f"Serving static files from {app_settings.STATIC_DIR}")

    # Middlewares (execute in REVERSE order of registration)
    # Execution flow: CORSMiddleware → CrossOriginIsolationMiddleware
    app.add_middleware(CrossOriginIsolationMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ALLOWED_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["content-type", "x-requested-with"],
    )

    return app


app = application()  # Need for fastapi cli
