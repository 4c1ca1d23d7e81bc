"""Tests for e-mail delivery, the queue fallback and newsletters."""

from __future__ import annotations

from datetime import datetime

import pytest

from naaz.backend import MemoryBackend
from naaz.errors import InvalidInput
from naaz.notifications import EmailMessage, EmailService

WELCOME = EmailMessage(subject="Welcome", html="<p>Salaam</p>", text="Salaam")


def _email(backend: MemoryBackend, now: datetime) -> EmailService:
    return EmailService(backend, now=lambda: now)


class TestSend:
    async def test_delivered(self, backend: MemoryBackend, now: datetime) -> None:
        assert await _email(backend, now).send("reader@example.com", WELCOME)
        assert backend.sent_emails[0]["to"] == "reader@example.com"
        assert backend.rows("email_queue") == []

    async def test_failure_is_queued(self, backend: MemoryBackend, now: datetime) -> None:
        backend.fail("invoke", "send-email")
        assert not await _email(backend, now).send("reader@example.com", WELCOME)

        [queued] = backend.rows("email_queue")
        assert queued["to_email"] == "reader@example.com"
        assert queued["status"] == "pending"
        assert queued["text_content"] == "Salaam"

    async def test_queue_failure_does_not_raise(self, backend: MemoryBackend, now: datetime) -> None:
        backend.fail("invoke", "send-email")
        backend.fail("insert", "email_queue")
        assert not await _email(backend, now).send("reader@example.com", WELCOME)

    async def test_order_notification_is_logged(self, backend: MemoryBackend, now: datetime) -> None:
        backend.fail("invoke", "send-email")
        await _email(backend, now).notify_order("o1", "shipped", "reader@example.com", WELCOME)

        [logged] = backend.rows("email_notifications")
        assert (logged["order_id"], logged["notification_type"], logged["status"]) == (
            "o1",
            "shipped",
            "failed",
        )


class TestNewsletter:
    async def test_subscribe_then_resubscribe(self, backend: MemoryBackend, now: datetime) -> None:
        email = _email(backend, now)
        await email.subscribe("reader@example.com", "Reader")
        await email.unsubscribe("reader@example.com")
        await email.subscribe("reader@example.com", "Reader", {"promotions": True})

        [row] = backend.rows("newsletter_subscribers")
        assert row["is_active"] is True
        assert row["preferences"] == {"promotions": True}

    async def test_invalid_address(self, backend: MemoryBackend, now: datetime) -> None:
        with pytest.raises(InvalidInput):
            await _email(backend, now).subscribe("not-an-email")

    async def test_unsubscribe_unknown(self, backend: MemoryBackend, now: datetime) -> None:
        assert not await _email(backend, now).unsubscribe("nobody@example.com")

    async def test_campaign_segments_and_record(
        self, backend: MemoryBackend, now: datetime
    ) -> None:
        backend.seed("newsletter_subscribers", [
            {"email": "a@example.com", "is_active": True, "preferences": {"promotions": True}},
            {"email": "b@example.com", "is_active": True, "preferences": {}},
            {"email": "c@example.com", "is_active": False, "preferences": {"promotions": True}},
        ])
        result = await _email(backend, now).send_campaign("Eid sale", "<p>20% off</p>", "promotions")

        assert (result.sent, result.failed) == (1, 0)
        assert [m["to"] for m in backend.sent_emails] == ["a@example.com"]
        [campaign] = backend.rows("marketing_campaigns")
        assert campaign["target_segment"] == "promotions"
        assert campaign["sent_count"] == 1
