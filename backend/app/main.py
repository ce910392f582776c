"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from app.config import get_settings
from app.db.session import SessionLocal
from app.logging_config import configure_logging
from app.messaging.delivery import ThreadingDeliveryScheduler
from app.routers import conversations, messages

logger = logging.getLogger(__name__)


def _warm_backend_state() -> None:
    """Prime the DB connection at process start."""

    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Backend warm-up failed; continuing without startup pre-warm.")


@asynccontextmanager
async def lifespan(application: FastAPI):
    configure_logging()
    _warm_backend_state()
    # One scheduler per lifespan; shutdown closes it for good.
    application.state.delivery_scheduler = ThreadingDeliveryScheduler()
    try:
        yield
    finally:
        application.state.delivery_scheduler.shutdown()


settings = get_settings()
app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(conversations.router, tags=["conversations"])
app.include_router(messages.router, tags=["messages"])


@app.get("/health")
def health() -> dict[str, str]:
    """Simple health check endpoint."""

    return {"status": "ok"}
