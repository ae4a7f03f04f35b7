"""Email adapter that writes messages to the application log instead of sending them."""

from uuid import uuid4

import structlog

from notifications.channel.email_port import EmailPort

logger = structlog.get_logger(__name__)


class LogEmailAdapter(EmailPort):
    channel_name = "log"

    def send(self, *, to: str, subject: str, body: str, html_body: str | None = None) -> dict:
        message_id = f"email-{uuid4().hex[:12]}"
        logger.info(
            "Email sent to log", channel=self.channel_name, message_id=message_id, to=to, subject=subject, body=body
        )
        return {"message_id": message_id, "status": "sent"}
