"""Admin order alert — sent to the shop admin when a customer places an order."""


class AdminOrderAlertTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        lines = context.get("products", [])
        product_lines = "\n".join(
            f"  - {line['name']} x {line['quantity']} @ {line['price']:.2f} = {line['total']:.2f}" for line in lines
        )
        return {
            "subject": f"New Order Placed - Order #{order_id}",
            "body": (
                f"A new order #{order_id} has been placed.\n\n"
                f"Customer: {context.get('customer_name', 'N/A')} <{context.get('customer_email', 'N/A')}>\n"
                f"Order date: {context.get('order_date', 'N/A')}\n"
                f"Status: {context.get('status', 'pending')}\n\n"
                f"Products:\n{product_lines}\n\n"
                f"Total: {context.get('total_amount', 0):.2f}"
            ),
        }
