"""
Host entry point for the reminder engine.

Architecture:
- One Python process, one asyncio event loop
- FastAPI serves the health check and the manual re-trigger endpoint
- The reminder orchestrator ticks alongside it in the same loop

FastAPI's lifespan owns the orchestrator: it starts on startup and is
stopped (in-flight tick allowed to finish) before the database engine
closes on shutdown.

Run with: python main.py [--port PORT] [--no-reminders]
"""

import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

# Load .env.local first (if exists), then .env as fallback
load_dotenv(project_root / ".env.local")
load_dotenv()

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campus.config import get_allowed_origins
from campus.database import check_connection, close_engine, is_configured
from campus.notifications.orchestrator import (
    get_orchestrator,
    init_orchestrator,
    shutdown_orchestrator,
)
from web_api.routes.reminders import router as reminders_router

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

if os.environ.get("SENTRY_DSN"):
    sentry_sdk.init(
        dsn=os.environ["SENTRY_DSN"],
        environment=os.environ.get("SENTRY_ENVIRONMENT", "local"),
        traces_sample_rate=0.0,
    )


def reminders_disabled() -> bool:
    return os.getenv("DISABLE_REMINDERS", "").lower() in ("true", "1", "yes")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager.

    Starts the reminder orchestrator as a peer of the HTTP server and
    tears it down deterministically on shutdown.
    """
    if reminders_disabled():
        print("Reminder orchestrator disabled (--no-reminders or DISABLE_REMINDERS=true)")
    else:
        # Ticks are skipped while the database is unreachable
        init_orchestrator(has_session=check_connection)

    yield

    print("Shutting down reminder orchestrator...")
    await shutdown_orchestrator()
    await close_engine()


app = FastAPI(
    title="Student Portal Reminder Engine",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(reminders_router)


@app.get("/health")
async def health():
    """Health check endpoint with orchestrator status."""
    orchestrator = get_orchestrator()
    return {
        "status": "healthy",
        "database_configured": is_configured(),
        "reminders_running": bool(orchestrator and orchestrator.running),
    }


if __name__ == "__main__":
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="Student Portal Reminder Engine")
    parser.add_argument(
        "--no-reminders",
        action="store_true",
        help="Serve the API without starting the reminder orchestrator",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to run the server on (default: 8000)",
    )
    args = parser.parse_args()

    # Set env var so it persists across uvicorn reloads
    if args.no_reminders:
        os.environ["DISABLE_REMINDERS"] = "true"

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=args.port,
    )
