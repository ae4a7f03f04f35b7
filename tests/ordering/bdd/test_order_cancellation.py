"""BDD tests for order cancellation."""

from protean import current_domain
from protean.exceptions import InvalidOperationError
from pytest_bdd import given, parsers, scenarios, then, when

from ordering.order.lifecycle import CancelOrder, CompleteOrder

scenarios("features/order_cancellation.feature")


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("the order has been completed")
def _(order_id, customer_id):
    current_domain.process(
        CompleteOrder(order_id=order_id, actor_id=customer_id, actor_is_admin=True), asynchronous=False
    )


@given("the order has been cancelled")
def _(order_id, customer_id):
    current_domain.process(
        CancelOrder(order_id=order_id, actor_id=customer_id, reason="Ordered by mistake"), asynchronous=False
    )


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the customer cancels the order with reason "{reason}"'))
def _(order_id, customer_id, error, reason):
    try:
        current_domain.process(CancelOrder(order_id=order_id, actor_id=customer_id, reason=reason), asynchronous=False)
    except InvalidOperationError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the request is refused with "{message}"'))
def _(error, message):
    assert isinstance(error["exc"], InvalidOperationError)
    assert message in str(error["exc"])
