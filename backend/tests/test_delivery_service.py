"""Tests for guarded status transitions and simulated acknowledgements."""

from __future__ import annotations

import unittest
from datetime import timedelta

from sqlalchemy import delete

from app.config import Settings
from app.messaging.delivery import status_rank
from app.messaging.types import DeliveryStatus
from app.models.message import Message
from app.services.delivery import apply_status_transition, schedule_delivery_receipts
from app.services.messages import send_message
from app.services.read_receipts import on_conversation_opened

from messaging_fixtures import CHEN, JENKINS, NOW, MessagingDbTestCase


class DeliveryServiceTests(MessagingDbTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.add_participant(JENKINS, specialty="Nephrology Dept.")
        self.add_participant(CHEN, primary_condition="CKD Stage 3a")
        self.add_conversation("CONV-A", JENKINS, CHEN)

    def _send(self, viewer=JENKINS, text: str = "hello", offset_seconds: int = 0) -> int:
        message = send_message(
            self.db,
            viewer,
            "CONV-A",
            text=text,
            scheduler=self.scheduler,
            session_factory=self.SessionLocal,
            now=NOW + timedelta(seconds=offset_seconds),
        )
        return message.id

    def _status(self, message_id: int) -> str | None:
        message = self.reload_message(message_id)
        return None if message is None else message.status

    def test_acknowledgements_follow_configured_delays(self) -> None:
        message_id = self._send()
        observed = [self._status(message_id)]

        self.scheduler.advance(0.99)
        observed.append(self._status(message_id))
        self.scheduler.advance(0.01)
        observed.append(self._status(message_id))
        self.scheduler.advance(1.49)
        observed.append(self._status(message_id))
        self.scheduler.advance(0.01)
        observed.append(self._status(message_id))

        self.assertEqual(observed, ["SENT", "SENT", "DELIVERED", "DELIVERED", "READ"])
        self.assertEqual(self.scheduler.pending(), 0)

    def test_observed_statuses_never_regress(self) -> None:
        message_id = self._send()
        ranks = []
        for _ in range(30):
            ranks.append(status_rank(self._status(message_id)))
            self.scheduler.advance(0.1)
        self.assertEqual(ranks, sorted(ranks))
        self.assertEqual(ranks[-1], status_rank(DeliveryStatus.READ))
        self.assertIn(status_rank(DeliveryStatus.DELIVERED), ranks)

    def test_messages_progress_independently(self) -> None:
        first = self._send(text="first")
        self.scheduler.advance(0.5)
        second = self._send(text="second", offset_seconds=1)
        self.scheduler.advance(0.5)

        self.assertEqual(self._status(first), "DELIVERED")
        self.assertEqual(self._status(second), "SENT")

        self.scheduler.advance(1.5)
        self.assertEqual(self._status(first), "READ")
        self.assertEqual(self._status(second), "DELIVERED")

    def test_transition_for_removed_message_is_noop(self) -> None:
        message_id = self._send()
        self.db.execute(delete(Message).where(Message.id == message_id))
        self.db.commit()

        self.scheduler.advance(5.0)

        self.assertIsNone(self._status(message_id))
        self.assertFalse(
            apply_status_transition(
                self.db, message_id, expected=DeliveryStatus.SENT, target=DeliveryStatus.DELIVERED
            )
        )

    def test_guard_refuses_stale_expected_status(self) -> None:
        message_id = self._send()
        self.assertTrue(
            apply_status_transition(self.db, message_id, expected=DeliveryStatus.SENT, target=DeliveryStatus.DELIVERED)
        )
        self.assertFalse(
            apply_status_transition(self.db, message_id, expected=DeliveryStatus.SENT, target=DeliveryStatus.DELIVERED)
        )
        self.assertEqual(self._status(message_id), "DELIVERED")

    def test_illegal_transition_is_a_programming_error(self) -> None:
        message_id = self._send()
        with self.assertRaises(ValueError):
            apply_status_transition(self.db, message_id, expected=DeliveryStatus.SENT, target=DeliveryStatus.READ)
        with self.assertRaises(ValueError):
            apply_status_transition(self.db, message_id, expected=DeliveryStatus.READ, target=DeliveryStatus.SENT)

    def test_custom_delays(self) -> None:
        message_id = self._send()
        self.scheduler.cancel(message_id)
        schedule_delivery_receipts(
            message_id,
            scheduler=self.scheduler,
            session_factory=self.SessionLocal,
            settings=Settings(delivery_ack_delay_seconds=0.2, read_ack_delay_seconds=0.3),
        )

        self.scheduler.advance(0.2)
        self.assertEqual(self._status(message_id), "DELIVERED")
        self.scheduler.advance(0.3)
        self.assertEqual(self._status(message_id), "READ")

    def test_failed_delivery_step_is_retried_before_read(self) -> None:
        attempts = []

        def flaky_factory():
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("database unavailable")
            return self.SessionLocal()

        message = send_message(
            self.db, JENKINS, "CONV-A", text="hello", scheduler=self.scheduler, session_factory=flaky_factory, now=NOW
        )
        with self.assertRaises(RuntimeError):
            self.scheduler.advance(1.0)
        self.assertEqual(self._status(message.id), "SENT")
        self.assertEqual(self.scheduler.pending(), 1)

        self.scheduler.advance(1.5)
        self.assertEqual(self._status(message.id), "READ")
        self.assertEqual(len(attempts), 3)

    def test_open_only_reads_delivered_counterpart_messages(self) -> None:
        sent_only = self._send(viewer=CHEN, text="just sent")
        on_conversation_opened(self.db, JENKINS, "CONV-A")
        self.assertEqual(self._status(sent_only), "SENT")

        self.scheduler.advance(1.0)
        self.assertEqual(self._status(sent_only), "DELIVERED")
        result = on_conversation_opened(self.db, JENKINS, "CONV-A")
        self.assertEqual(result.messages_marked_read, 1)
        self.assertEqual(self._status(sent_only), "READ")

        # The pending READ acknowledgement now finds nothing to do.
        self.scheduler.advance(1.5)
        self.assertEqual(self._status(sent_only), "READ")


if __name__ == "__main__":
    unittest.main()
