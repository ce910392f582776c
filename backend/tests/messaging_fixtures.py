"""Shared test scaffolding: in-memory database and a virtual-clock scheduler."""

from __future__ import annotations

import heapq
import unittest
from collections.abc import Callable, Hashable
from datetime import datetime, timezone
from itertools import count

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.messaging.types import ParticipantRole, Viewer
from app.models import Conversation, Message, Participant
from app.models.base import Base
from app.services.demo_data import reset_demo_data

NOW = datetime(2026, 3, 4, 10, 0, tzinfo=timezone.utc)

JENKINS = Viewer(id="DOC-102", role=ParticipantRole.CLINICIAN, display_name="Dr. Sarah Jenkins")
VANCE = Viewer(id="DOC-105", role=ParticipantRole.CLINICIAN, display_name="Dr. Marcus Vance")
CHEN = Viewer(id="PAT-8041", role=ParticipantRole.PATIENT, display_name="Michael Chen")
RODRIGUEZ = Viewer(id="PAT-8042", role=ParticipantRole.PATIENT, display_name="Emily Rodriguez")


class ManualDeliveryScheduler:
    """Deterministic stand-in for the timer scheduler; time moves only via ``advance``."""

    def __init__(self) -> None:
        self.clock = 0.0
        self._queue: list[tuple[float, int, Hashable, Callable[[], None]]] = []
        self._seq = count()
        self.closed = False

    def schedule(self, key: Hashable, delay_seconds: float, callback: Callable[[], None]) -> None:
        if self.closed:
            return
        heapq.heappush(self._queue, (self.clock + delay_seconds, next(self._seq), key, callback))

    def cancel(self, key: Hashable) -> bool:
        before = len(self._queue)
        self._queue = [entry for entry in self._queue if entry[2] != key]
        heapq.heapify(self._queue)
        return len(self._queue) != before

    def shutdown(self) -> None:
        self.closed = True
        self._queue.clear()

    def pending(self) -> int:
        return len(self._queue)

    def advance(self, seconds: float) -> None:
        target = self.clock + seconds
        while self._queue and self._queue[0][0] <= target + 1e-9:
            due, _, _, callback = heapq.heappop(self._queue)
            self.clock = due
            callback()
        self.clock = target


class MessagingDbTestCase(unittest.TestCase):
    """Fresh in-memory schema per class and empty tables per test."""

    @classmethod
    def setUpClass(cls) -> None:
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autoflush=False, autocommit=False, future=True)
        Base.metadata.create_all(cls.engine)

    @classmethod
    def tearDownClass(cls) -> None:
        Base.metadata.drop_all(cls.engine)
        cls.engine.dispose()

    def setUp(self) -> None:
        self.db: Session = self.SessionLocal()
        reset_demo_data(self.db)
        self.scheduler = ManualDeliveryScheduler()

    def tearDown(self) -> None:
        self.db.close()

    def reload_message(self, message_id: int) -> Message | None:
        self.db.expire_all()
        return self.db.get(Message, message_id)

    def reload_conversation(self, conversation_id: str) -> Conversation:
        self.db.expire_all()
        conversation = self.db.get(Conversation, conversation_id)
        assert conversation is not None
        return conversation

    def add_participant(self, viewer: Viewer, **extra: object) -> Participant:
        participant = Participant(
            id=viewer.id,
            role=viewer.role.value,
            display_name=viewer.display_name,
            avatar=viewer.display_name[:1],
            **extra,
        )
        self.db.add(participant)
        self.db.commit()
        return participant

    def add_conversation(self, conversation_id: str, clinician: Viewer, patient: Viewer) -> Conversation:
        conversation = Conversation(id=conversation_id, clinician_id=clinician.id, patient_id=patient.id)
        self.db.add(conversation)
        self.db.commit()
        return conversation
