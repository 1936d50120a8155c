"""Outgoing account emails (verification and password reset links)."""
import logging
from typing import List, NamedTuple

logger = logging.getLogger(__name__)


class OutgoingEmail(NamedTuple):
    to: str
    subject: str
    link: str


class EmailSender:
    """
    Dispatches account links.

    Delivery belongs to an external mail service; this sender logs the
    dispatch and keeps the messages in ``outbox``.
    """

    def __init__(self):
        self.outbox: List[OutgoingEmail] = []

    def send(self, to: str, subject: str, link: str) -> None:
        self.outbox.append(OutgoingEmail(to=to, subject=subject, link=link))
        logger.info("Email dispatched", extra={"to": to, "subject": subject})

    def send_verification(self, to: str, name: str, link: str) -> None:
        self.send(to, f"Verify your RupeeFlow account, {name}", link)

    def send_password_reset(self, to: str, link: str) -> None:
        self.send(to, "Reset your RupeeFlow password", link)
