"""Order confirmation template — sent when payment is confirmed."""

from notifications.types import Audience, NotificationType


class OrderConfirmationTemplate:
    notification_type = NotificationType.ORDER_CONFIRMATION.value
    audience = Audience.CUSTOMER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_ref = context.get("order_ref", "N/A")
        total_amount = context.get("total_amount", "0.00")
        currency = context.get("currency", "SAR")
        return {
            "subject": f"Order Confirmation #{order_ref}",
            "body": (
                f"Hello {context.get('customer_name', 'Customer')},\n\n"
                f"Your order #{order_ref} has been confirmed.\n\n"
                f"Order Total: {currency} {total_amount}\n\n"
                "We'll notify you once your order ships."
            ),
        }
