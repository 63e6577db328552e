"""Delivery confirmation template — sent when order is delivered."""

from notifications.types import Audience, NotificationType


class DeliveryConfirmationTemplate:
    notification_type = NotificationType.DELIVERY_CONFIRMATION.value
    audience = Audience.CUSTOMER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_ref = context.get("order_ref", "N/A")
        return {
            "subject": f"Order #{order_ref} Delivered",
            "body": (
                f"Your order #{order_ref} has been delivered.\n\n"
                "If anything is wrong with your products, "
                "please reach out to our support team."
            ),
        }
