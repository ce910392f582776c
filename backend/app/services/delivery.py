"""Guarded delivery-status transitions and their simulated acknowledgement jobs."""

from __future__ import annotations

import logging
from collections.abc import Callable

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.messaging.delivery import DeliveryScheduler, can_transition
from app.messaging.types import DeliveryStatus
from app.models.message import Message

logger = logging.getLogger(__name__)


def apply_status_transition(
    db: Session,
    message_id: int,
    *,
    expected: DeliveryStatus,
    target: DeliveryStatus,
) -> bool:
    """Compare-and-set one message's status.

    Returns ``False`` without raising when the message no longer exists or has
    already moved past ``expected``.
    """

    if not can_transition(expected, target):
        raise ValueError(f"Illegal delivery transition {expected.value} -> {target.value}")

    result = db.execute(
        update(Message)
        .where(Message.id == message_id, Message.status == expected.value)
        .values(status=target.value)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    applied = result.rowcount == 1
    if applied:
        logger.debug("messaging.delivery_transition message_id=%d status=%s", message_id, target.value)
    else:
        logger.debug(
            "messaging.delivery_stale message_id=%d expected=%s target=%s",
            message_id,
            expected.value,
            target.value,
        )
    return applied


def _run_transition(
    session_factory: Callable[[], Session],
    message_id: int,
    expected: DeliveryStatus,
    target: DeliveryStatus,
) -> bool:
    db = session_factory()
    try:
        return apply_status_transition(db, message_id, expected=expected, target=target)
    except Exception:
        db.rollback()
        logger.exception(
            "messaging.delivery_transition_failed message_id=%d target=%s",
            message_id,
            target.value,
        )
        raise
    finally:
        db.close()


def schedule_delivery_receipts(
    message_id: int,
    *,
    scheduler: DeliveryScheduler,
    session_factory: Callable[[], Session] | None = None,
    settings: Settings | None = None,
) -> None:
    """Queue SENT -> DELIVERED, then DELIVERED -> READ after a further delay."""

    settings = settings or get_settings()
    if session_factory is None:
        from app.db.session import SessionLocal

        session_factory = SessionLocal

    def _mark_read() -> None:
        # Retries a failed delivery step first; both steps are guarded no-ops otherwise.
        _run_transition(session_factory, message_id, DeliveryStatus.SENT, DeliveryStatus.DELIVERED)
        _run_transition(session_factory, message_id, DeliveryStatus.DELIVERED, DeliveryStatus.READ)

    def _mark_delivered() -> None:
        try:
            _run_transition(session_factory, message_id, DeliveryStatus.SENT, DeliveryStatus.DELIVERED)
        finally:
            scheduler.schedule(message_id, settings.read_ack_delay_seconds, _mark_read)

    scheduler.schedule(message_id, settings.delivery_ack_delay_seconds, _mark_delivered)

