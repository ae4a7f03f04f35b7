"""RetryNotification command and handler, plus the sweep used by ``manage.py retry-notifications``."""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from notifications.notification.notification import Notification, NotificationStatus
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Notification")
class RetryNotification:
    notification_id: Identifier(required=True)


@storefront.command_handler(part_of=Notification)
class RetryNotificationHandler:
    @handle(RetryNotification)
    def retry_notification(self, command: RetryNotification) -> None:
        repo = current_domain.repository_for(Notification)
        notification = repo.get(command.notification_id)
        notification.retry()
        repo.add(notification)


def retryable_notifications() -> list[Notification]:
    """Failed notifications that still have attempts left."""
    failed = (
        current_domain.repository_for(Notification)
        .query.filter(status=NotificationStatus.FAILED.value)
        .order_by("created_at")
        .all()
        .items
    )
    return [notification for notification in failed if not notification.retries_exhausted]


def retry_failed_notifications() -> int:
    """Retry every retryable notification. Returns how many were retried."""
    notifications = retryable_notifications()
    for notification in notifications:
        current_domain.process(RetryNotification(notification_id=notification.id), asynchronous=False)

    logger.info("Failed notifications retried", count=len(notifications))
    return len(notifications)
