"""Notification aggregate: one email to one recipient.

State machine:
    PENDING → SENT
    PENDING → FAILED → (retry) → PENDING

A failed notification can be retried until ``retry_count`` reaches
``max_retries``; after that it stays FAILED.
"""

from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from shared import config
from shared.db import utcnow
from storefront.domain import storefront


class NotificationStatus(Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class NotificationType(Enum):
    ADMIN_ORDER_ALERT = "admin_order_alert"


_VALID_TRANSITIONS = {
    NotificationStatus.PENDING: {NotificationStatus.SENT, NotificationStatus.FAILED},
    NotificationStatus.FAILED: {NotificationStatus.PENDING},  # Via retry
    NotificationStatus.SENT: set(),  # Terminal
}


@storefront.aggregate
class Notification:
    recipient: String(required=True, max_length=254)
    notification_type: String(choices=NotificationType, required=True)
    channel: String(required=True, max_length=50)
    subject: String(max_length=500)
    body: Text(required=True)

    # Source event correlation
    order_id: Identifier()
    source_event_type: String(max_length=200)

    status: String(choices=NotificationStatus, default=NotificationStatus.PENDING.value)
    message_id: String(max_length=100)
    failure_reason: String(max_length=500)
    sent_at: DateTime()

    retry_count: Integer(default=0)
    max_retries: Integer(default=3)

    created_at: DateTime(default=utcnow)
    updated_at: DateTime(default=utcnow)

    @classmethod
    def create(
        cls,
        recipient,
        notification_type,
        subject,
        body,
        order_id=None,
        source_event_type=None,
        channel=None,
        max_retries=None,
    ):
        """Create a PENDING notification and announce it for dispatch."""
        from notifications.notification.events import NotificationCreated

        now = utcnow()
        notification = cls(
            recipient=recipient,
            notification_type=notification_type,
            channel=channel or config.EMAIL_CHANNEL,
            subject=subject,
            body=body,
            order_id=order_id,
            source_event_type=source_event_type,
            status=NotificationStatus.PENDING.value,
            retry_count=0,
            max_retries=config.NOTIFICATION_MAX_RETRIES if max_retries is None else max_retries,
            created_at=now,
            updated_at=now,
        )
        notification.raise_(
            NotificationCreated(
                notification_id=notification.id,
                recipient=recipient,
                notification_type=notification_type,
                channel=notification.channel,
                order_id=order_id,
                created_at=now,
            )
        )
        return notification

    def _assert_can_transition(self, target: NotificationStatus) -> None:
        current = NotificationStatus(self.status)
        if target not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target.value}"]})

    @property
    def retries_exhausted(self) -> bool:
        return self.retry_count >= self.max_retries

    def mark_sent(self, message_id: str | None = None) -> None:
        from notifications.notification.events import NotificationSent

        self._assert_can_transition(NotificationStatus.SENT)
        now = utcnow()
        self.status = NotificationStatus.SENT.value
        self.message_id = message_id
        self.sent_at = now
        self.updated_at = now
        self.raise_(
            NotificationSent(notification_id=self.id, channel=self.channel, message_id=message_id, sent_at=now)
        )

    def mark_failed(self, reason: str) -> None:
        from notifications.notification.events import NotificationFailed

        self._assert_can_transition(NotificationStatus.FAILED)
        now = utcnow()
        self.status = NotificationStatus.FAILED.value
        self.failure_reason = reason[:500]
        self.retry_count = self.retry_count + 1
        self.updated_at = now
        self.raise_(
            NotificationFailed(
                notification_id=self.id,
                channel=self.channel,
                reason=self.failure_reason,
                retry_count=self.retry_count,
                max_retries=self.max_retries,
                failed_at=now,
            )
        )

    def retry(self) -> None:
        from notifications.notification.events import NotificationRetried

        if NotificationStatus(self.status) != NotificationStatus.FAILED:
            raise ValidationError({"status": ["Only failed notifications can be retried"]})
        if self.retries_exhausted:
            raise ValidationError({"retry_count": ["Maximum retry attempts exceeded"]})

        now = utcnow()
        self.status = NotificationStatus.PENDING.value
        self.failure_reason = None
        self.updated_at = now
        self.raise_(NotificationRetried(notification_id=self.id, retry_count=self.retry_count, retried_at=now))
