"""Engine and session factory."""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.config import get_settings


def _connect_args(database_url: str) -> dict[str, object]:
    # Delivery timers write from their own threads.
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


_settings = get_settings()

engine = create_engine(
    _settings.database_url,
    future=True,
    pool_pre_ping=True,
    connect_args=_connect_args(_settings.database_url),
)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
