"""Tests for message append, compose and serialization services."""

from __future__ import annotations

import unittest
from datetime import timedelta

from sqlalchemy import func, select

from app.config import Settings
from app.messaging.types import AttachmentKind, AttachmentMeta, DeliveryStatus, ParticipantRole, SenderSide
from app.models.message import Message
from app.services.errors import ConversationNotFoundError, MessageNotFoundError, MessageValidationError
from app.services.messages import (
    append_message,
    build_preview,
    get_message_for_viewer,
    last_message,
    list_messages,
    send_message,
    to_message_read,
)
from app.services.viewers import set_active_conversation

from messaging_fixtures import CHEN, JENKINS, NOW, RODRIGUEZ, VANCE, MessagingDbTestCase


class MessageServiceTests(MessagingDbTestCase):
    def setUp(self) -> None:
        super().setUp()
        for viewer in (JENKINS, VANCE):
            self.add_participant(viewer, specialty="Nephrology Dept.")
        for viewer in (CHEN, RODRIGUEZ):
            self.add_participant(viewer, primary_condition="CKD Stage 3a")
        self.conversation = self.add_conversation("CONV-A", JENKINS, CHEN)

    def _message_count(self, conversation_id: str) -> int:
        return int(self.db.scalar(select(func.count(Message.id)).where(Message.conversation_id == conversation_id)))

    def test_last_message_of_empty_conversation_is_none(self) -> None:
        self.assertIsNone(last_message(self.db, "CONV-A"))
        self.assertEqual(list_messages(self.db, "CONV-A"), [])

    def test_append_keeps_order_and_updates_rollups(self) -> None:
        first = append_message(
            self.db, self.conversation, sender_role=ParticipantRole.PATIENT, text="Hi", sent_at=NOW
        )
        second = append_message(
            self.db,
            self.conversation,
            sender_role=ParticipantRole.CLINICIAN,
            text="  Hello Michael  ",
            sent_at=NOW + timedelta(minutes=1),
        )

        ordered = list_messages(self.db, "CONV-A")
        self.assertEqual([m.id for m in ordered], [first.id, second.id])
        self.assertEqual(last_message(self.db, "CONV-A").id, second.id)
        self.assertEqual(second.text, "Hello Michael")
        self.assertEqual(second.status, DeliveryStatus.SENT.value)

        conversation = self.reload_conversation("CONV-A")
        self.assertEqual(conversation.last_message_preview, "Hello Michael")
        self.assertEqual(conversation.clinician_unread_count, 1)
        self.assertEqual(conversation.patient_unread_count, 1)

    def test_equal_timestamps_break_ties_by_insertion(self) -> None:
        ids = [
            append_message(
                self.db, self.conversation, sender_role=ParticipantRole.PATIENT, text=f"m{idx}", sent_at=NOW
            ).id
            for idx in range(3)
        ]
        self.assertEqual([m.id for m in list_messages(self.db, "CONV-A")], ids)

    def test_skewed_clock_never_reorders_sequence(self) -> None:
        append_message(self.db, self.conversation, sender_role=ParticipantRole.PATIENT, text="later", sent_at=NOW)
        skewed = append_message(
            self.db,
            self.conversation,
            sender_role=ParticipantRole.CLINICIAN,
            text="earlier clock",
            sent_at=NOW - timedelta(minutes=10),
        )

        ordered = list_messages(self.db, "CONV-A")
        self.assertEqual(ordered[-1].id, skewed.id)
        stamps = [m.sent_at for m in ordered]
        self.assertEqual(stamps, sorted(stamps))

    def test_recipient_unread_untouched_while_conversation_is_open(self) -> None:
        set_active_conversation(self.db, CHEN, "CONV-A")
        self.db.commit()

        append_message(self.db, self.conversation, sender_role=ParticipantRole.CLINICIAN, text="Results are in")

        conversation = self.reload_conversation("CONV-A")
        self.assertEqual(conversation.patient_unread_count, 0)

    def test_recipient_unread_grows_when_another_conversation_is_open(self) -> None:
        self.add_conversation("CONV-B", VANCE, CHEN)
        set_active_conversation(self.db, CHEN, "CONV-B")
        self.db.commit()

        append_message(self.db, self.conversation, sender_role=ParticipantRole.CLINICIAN, text="one")
        append_message(self.db, self.conversation, sender_role=ParticipantRole.CLINICIAN, text="two")

        self.assertEqual(self.reload_conversation("CONV-A").patient_unread_count, 2)

    def test_message_needs_text_or_attachment(self) -> None:
        with self.assertRaises(MessageValidationError):
            append_message(self.db, self.conversation, sender_role=ParticipantRole.PATIENT, text="   ")

        attachment = AttachmentMeta(AttachmentKind.IMAGE, "rash.jpg", "820 KB")
        message = append_message(
            self.db, self.conversation, sender_role=ParticipantRole.PATIENT, text=None, attachment=attachment
        )
        self.assertIsNone(message.text)
        self.assertEqual(message.attachment_kind, "IMAGE")
        self.assertEqual(self.reload_conversation("CONV-A").last_message_preview, "Attachment: rash.jpg")

    def test_build_preview_truncates_and_collapses_whitespace(self) -> None:
        self.assertEqual(build_preview("a   b\nc", None, limit=80), "a b c")
        self.assertEqual(build_preview("x" * 20, None, limit=10), "xxxxxxx...")
        self.assertEqual(build_preview(None, None, limit=10), "")

    def test_send_rejects_blank_text_silently(self) -> None:
        result = send_message(
            self.db, JENKINS, "CONV-A", text="   \n\t", scheduler=self.scheduler, session_factory=self.SessionLocal
        )

        self.assertIsNone(result)
        self.assertEqual(self._message_count("CONV-A"), 0)
        self.assertEqual(self.scheduler.pending(), 0)

    def test_send_appends_self_message_and_schedules_receipts(self) -> None:
        message = send_message(
            self.db,
            JENKINS,
            "CONV-A",
            text=" Please log your readings. ",
            scheduler=self.scheduler,
            session_factory=self.SessionLocal,
            now=NOW,
        )

        self.assertIsNotNone(message)
        self.assertEqual(message.sender_role, "CLINICIAN")
        self.assertEqual(message.status, "SENT")
        self.assertEqual(message.text, "Please log your readings.")
        self.assertEqual(self.scheduler.pending(), 1)

    def test_send_without_simulated_delivery_schedules_nothing(self) -> None:
        send_message(
            self.db,
            JENKINS,
            "CONV-A",
            text="hello",
            scheduler=self.scheduler,
            settings=Settings(simulate_delivery=False),
        )
        self.assertEqual(self.scheduler.pending(), 0)

    def test_send_requires_participation(self) -> None:
        with self.assertRaises(ConversationNotFoundError):
            send_message(self.db, VANCE, "CONV-A", text="not my patient")
        with self.assertRaises(ConversationNotFoundError):
            send_message(self.db, RODRIGUEZ, "CONV-A", text="not my doctor")

    def test_serialization_is_relative_to_viewer(self) -> None:
        message = send_message(self.db, CHEN, "CONV-A", text="Thanks doctor", now=NOW)

        as_author = to_message_read(message, CHEN, now=NOW)
        as_reader = to_message_read(message, JENKINS, now=NOW)

        self.assertIs(as_author.sender, SenderSide.SELF)
        self.assertIs(as_author.receipt, DeliveryStatus.SENT)
        self.assertIs(as_reader.sender, SenderSide.COUNTERPART)
        self.assertIsNone(as_reader.receipt)
        self.assertEqual(as_reader.time_label, "10:00 AM")

    def test_message_lookup_is_scoped_to_participants(self) -> None:
        message = send_message(self.db, CHEN, "CONV-A", text="private")

        self.assertEqual(get_message_for_viewer(self.db, JENKINS, message.id).id, message.id)
        with self.assertRaises(MessageNotFoundError):
            get_message_for_viewer(self.db, VANCE, message.id)
        with self.assertRaises(MessageNotFoundError):
            get_message_for_viewer(self.db, JENKINS, 999_999)


if __name__ == "__main__":
    unittest.main()
