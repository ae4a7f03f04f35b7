"""Domain events for user accounts."""

from protean.fields import DateTime, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="User")
class UserRegistered:
    """A customer account was created."""

    __version__ = 1

    user_id: Identifier(required=True)
    name: String(required=True, max_length=255)
    email: String(required=True, max_length=254)
    registered_at: DateTime(required=True)
