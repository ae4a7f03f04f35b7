"""BDD tests for order totals."""

from decimal import Decimal

from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import parsers, scenarios, when

from ordering.order.lifecycle import UpdateOrder
from ordering.order.order import Order

scenarios("features/order_totals.feature")


def table_rows(datatable) -> list[tuple[str, int]]:
    header, *rows = datatable
    product, quantity = header.index("product"), header.index("quantity")
    return [(row[product], int(row[quantity])) for row in rows]


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the customer orders:", target_fixture="order_id")
def _(customer_id, place, datatable):
    return place(customer_id, table_rows(datatable))


@when("the customer replaces the lines with:")
def _(customer_id, catalog, order_id, datatable):
    lines = [{"product_id": catalog[name], "quantity": quantity} for name, quantity in table_rows(datatable)]
    command = UpdateOrder(
        order_id=order_id,
        actor_id=customer_id,
        status="pending",
        products=lines,
        replace_products=True,
    )
    current_domain.process(command, asynchronous=False)


@when(parsers.cfparse("the order total is overwritten with {total}"))
def _(order_id, error, total):
    order = current_domain.repository_for(Order).get(order_id)
    try:
        order.total_amount = Decimal(total)
    except ValidationError as exc:
        error["exc"] = exc
