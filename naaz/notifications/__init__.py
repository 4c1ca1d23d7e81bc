"""
Notifications — transactional and newsletter e-mail.

    from naaz import notifications as N

    await N.EmailService(backend).send(to, N.EmailMessage(subject, html, text))
"""

from __future__ import annotations

from naaz.notifications._email import (
    SEND_FUNCTION,
    EmailMessage,
    CampaignResult,
    EmailService,
)

__all__ = (
    "SEND_FUNCTION",
    "EmailMessage",
    "CampaignResult",
    "EmailService",
)
