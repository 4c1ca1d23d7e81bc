"""
E-mail delivery through the `send-email` function, with a queue fallback.

A message that cannot be sent is written to `email_queue` for manual
processing. Neither path raises.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import structlog

from naaz._types import Row
from naaz.backend import Backend, eq
from naaz.errors import AppError, InvalidInput
from naaz.validation import Newsletter, validate

log = structlog.get_logger(__name__)

SEND_FUNCTION = "send-email"

# ═══════════════════════════════════════════════════════════════════════════════
# Message
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class EmailMessage:
    """Already rendered message."""

    subject: str
    html: str
    text: str = ""


@dataclass(frozen=True, slots=True)
class CampaignResult:
    sent: int
    failed: int


# ═══════════════════════════════════════════════════════════════════════════════
# E-mail Service
# ═══════════════════════════════════════════════════════════════════════════════


class EmailService:
    """
    Example:
        email = EmailService(backend)
        delivered = await email.send("a@example.com", EmailMessage("Hi", "<p>Hi</p>", "Hi"))
    """

    def __init__(
        self,
        backend: Backend,
        *,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.backend = backend
        self.now = now or (lambda: datetime.now(UTC))

    async def send(self, to: str, message: EmailMessage) -> bool:
        """True when delivered, False when queued (or dropped) instead."""
        try:
            await self.backend.invoke(SEND_FUNCTION, {
                "to": to,
                "subject": message.subject,
                "html": message.html,
                "text": message.text,
            })
        except AppError as e:
            log.warning("email.send_failed", to=to, subject=message.subject, error=str(e))
            await self._enqueue(to, message)
            return False
        log.debug("email.sent", to=to, subject=message.subject)
        return True

    async def _enqueue(self, to: str, message: EmailMessage) -> None:
        try:
            await self.backend.insert("email_queue", {
                "to_email": to,
                "subject": message.subject,
                "html_content": message.html,
                "text_content": message.text,
                "status": "pending",
                "created_at": self.now().isoformat(),
            })
        except AppError as e:
            log.error("email.queue_failed", to=to, subject=message.subject, error=str(e))

    # ─── Order notifications ───

    async def notify_order(
        self,
        order_id: str,
        kind: str,
        to: str,
        message: EmailMessage,
    ) -> bool:
        delivered = await self.send(to, message)
        try:
            await self.backend.insert("email_notifications", {
                "order_id": order_id,
                "notification_type": kind,
                "status": "sent" if delivered else "failed",
                "sent_at": self.now().isoformat(),
            })
        except AppError as e:
            log.warning("email.notification_log_failed", order_id=order_id, error=str(e))
        return delivered

    # ─── Newsletter ───

    async def subscribe(
        self,
        email: str,
        name: str | None = None,
        preferences: dict[str, bool] | None = None,
    ) -> Row:
        """Raises InvalidInput for a malformed address."""
        checked = validate(Newsletter, {"email": email, "name": name})
        if not checked.ok:
            raise InvalidInput(checked.errors)

        values: Row = {"name": name, "is_active": True}
        if preferences is not None:
            values["preferences"] = preferences
        existing = await self.backend.update("newsletter_subscribers", values, eq("email", email))
        if existing:
            return existing[0]
        rows = await self.backend.insert(
            "newsletter_subscribers",
            {"email": email, "preferences": preferences or {}, **values},
        )
        return rows[0]

    async def unsubscribe(self, email: str) -> bool:
        rows = await self.backend.update(
            "newsletter_subscribers", {"is_active": False}, eq("email", email)
        )
        return bool(rows)

    # ─── Campaigns ───

    async def send_campaign(
        self,
        subject: str,
        content: str,
        segment: str = "all",
    ) -> CampaignResult:
        """Send to every active subscriber of the segment, then record the campaign."""
        try:
            subscribers = await self.backend.select(
                "newsletter_subscribers", eq("is_active", True)
            )
        except AppError as e:
            log.error("email.subscribers_failed", error=str(e))
            return CampaignResult(sent=0, failed=1)

        if segment != "all":
            subscribers = [
                s for s in subscribers if (s.get("preferences") or {}).get(segment)
            ]

        sent = failed = 0
        for subscriber in subscribers:
            message = EmailMessage(subject=subject, html=content, text=content)
            if await self.send(subscriber["email"], message):
                sent += 1
            else:
                failed += 1

        result = CampaignResult(sent=sent, failed=failed)
        await self.record_campaign(subject, content, segment, result)
        return result

    async def record_campaign(
        self,
        subject: str,
        content: str,
        segment: str,
        result: CampaignResult,
    ) -> None:
        row: dict[str, Any] = {
            "subject": subject,
            "content": content,
            "target_segment": segment,
            "sent_count": result.sent,
            "failed_count": result.failed,
            "sent_at": self.now().isoformat(),
        }
        try:
            await self.backend.insert("marketing_campaigns", row)
        except AppError as e:
            log.warning("email.campaign_log_failed", subject=subject, error=str(e))


__all__ = ("SEND_FUNCTION", "EmailMessage", "CampaignResult", "EmailService")
