"""In-memory email adapter for tests and local development."""

from uuid import uuid4

from notifications.channel.email_port import EmailPort


class FakeEmailAdapter(EmailPort):
    """Records delivered messages in ``sent_emails``.

    ``configure(should_succeed=False)`` makes every send fail;
    ``fail_next(n)`` fails only the next ``n`` sends, which is how the
    notification retry path is exercised.
    """

    channel_name = "fake"

    def __init__(self):
        self.sent_emails: list[dict] = []
        self.attempts = 0
        self._reset_behaviour()

    def _reset_behaviour(self):
        self.should_succeed = True
        self.failures_remaining = 0
        self.failure_reason = "Email delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Email delivery failed"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def fail_next(self, times: int, failure_reason: str = "Email delivery failed"):
        self.failures_remaining = times
        self.failure_reason = failure_reason

    def send(self, *, to: str, subject: str, body: str, html_body: str | None = None) -> dict:
        self.attempts += 1
        if not self.should_succeed or self.failures_remaining > 0:
            self.failures_remaining = max(0, self.failures_remaining - 1)
            return {"message_id": None, "status": "failed", "error": self.failure_reason}

        message_id = f"email-{uuid4().hex[:12]}"
        self.sent_emails.append(
            {
                "message_id": message_id,
                "to": to,
                "subject": subject,
                "body": body,
                "html_body": html_body,
            }
        )
        return {"message_id": message_id, "status": "sent"}

    def reset(self):
        self.sent_emails.clear()
        self.attempts = 0
        self._reset_behaviour()
