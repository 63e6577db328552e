"""New order alert — sent to staff as soon as an order is persisted."""

from notifications.types import Audience, NotificationType


class NewOrderAlertTemplate:
    notification_type = NotificationType.NEW_ORDER_ALERT.value
    audience = Audience.STAFF.value

    @staticmethod
    def render(context: dict) -> dict:
        order_ref = context.get("order_ref", "N/A")
        lines = "\n".join(
            f"  - {line['product_name']} x {line['quantity']}: {context.get('currency', 'SAR')} "
            f"{line['after_item_discount']:.2f}"
            for line in context.get("lines", [])
        )
        return {
            "subject": f"New Order #{order_ref}",
            "body": (
                f"A new order #{order_ref} was placed by {context.get('customer_name', 'a guest')}.\n\n"
                f"Items:\n{lines}\n\n"
                f"Subtotal: {context.get('currency', 'SAR')} {context.get('subtotal', '0.00')}\n"
                f"Savings: {context.get('currency', 'SAR')} {context.get('total_savings', '0.00')}\n"
                f"Total: {context.get('currency', 'SAR')} {context.get('total_amount', '0.00')}\n"
                f"Payment method: {context.get('payment_method', 'N/A')}\n\n"
                f"Ship to: {context.get('ship_to', 'N/A')}\n"
                f"Phone: {context.get('phone', 'N/A')}"
            ),
        }
