"""Order cancellation template — sent when an order is cancelled."""

from notifications.types import Audience, NotificationType


class OrderCancellationTemplate:
    notification_type = NotificationType.ORDER_CANCELLATION.value
    audience = Audience.CUSTOMER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_ref = context.get("order_ref", "N/A")
        reason = context.get("reason") or "as requested"
        return {
            "subject": f"Order #{order_ref} Cancelled",
            "body": (
                f"Your order #{order_ref} has been cancelled.\n\n"
                f"Reason: {reason}\n\n"
                "If you already paid for this order, please contact our support "
                "team to arrange a refund."
            ),
        }
