"""Domain events for the Notification aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Notification")
class NotificationCreated:
    """A notification was created and queued for dispatch."""

    __version__ = 1

    notification_id: Identifier(required=True)
    recipient: String(required=True, max_length=254)
    notification_type: String(required=True)
    channel: String(required=True)
    order_id: Identifier()
    created_at: DateTime(required=True)


@storefront.event(part_of="Notification")
class NotificationSent:
    __version__ = 1

    notification_id: Identifier(required=True)
    channel: String(required=True)
    message_id: String(max_length=100)
    sent_at: DateTime(required=True)


@storefront.event(part_of="Notification")
class NotificationFailed:
    __version__ = 1

    notification_id: Identifier(required=True)
    channel: String(required=True)
    reason: String(required=True, max_length=500)
    retry_count: Integer(required=True)
    max_retries: Integer(required=True)
    failed_at: DateTime(required=True)


@storefront.event(part_of="Notification")
class NotificationRetried:
    """A failed notification was put back to PENDING for another attempt."""

    __version__ = 1

    notification_id: Identifier(required=True)
    retry_count: Integer(required=True)
    retried_at: DateTime(required=True)
