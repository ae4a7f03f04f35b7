"""Application wiring.

The domain lives in ``storefront/`` while its elements live in the bounded
context packages beside it, so they are imported explicitly and the domain
is initialized without traversal. ``init()`` runs once. Entry points
(``app.py``, ``server.py``, ``manage.py``) and the test suite call it before
doing anything else.
"""

from storefront.domain import storefront

_initialized = False


def load_elements():
    import catalog.product.events  # noqa: F401
    import catalog.product.handlers  # noqa: F401
    import catalog.product.management  # noqa: F401
    import catalog.product.product  # noqa: F401
    import catalog.product.repository  # noqa: F401
    import catalog.projections.product_search  # noqa: F401
    import identity.account  # noqa: F401
    import identity.events  # noqa: F401
    import identity.user  # noqa: F401
    import notifications.notification.dispatch  # noqa: F401
    import notifications.notification.events  # noqa: F401
    import notifications.notification.notification  # noqa: F401
    import notifications.notification.ordering_events  # noqa: F401
    import notifications.notification.retry  # noqa: F401
    import ordering.order.events  # noqa: F401
    import ordering.order.handlers  # noqa: F401
    import ordering.order.lifecycle  # noqa: F401
    import ordering.order.order  # noqa: F401
    import ordering.order.placement  # noqa: F401
    import ordering.order.repository  # noqa: F401


def init():
    global _initialized
    if _initialized:
        return storefront

    load_elements()
    storefront.init(traverse=False)
    _initialized = True
    return storefront
