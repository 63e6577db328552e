"""Shipping update template — sent when order is handed off to carrier."""

from notifications.types import Audience, NotificationType


class ShippingUpdateTemplate:
    notification_type = NotificationType.SHIPPING_UPDATE.value
    audience = Audience.CUSTOMER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_ref = context.get("order_ref", "N/A")
        carrier = context.get("carrier") or "the carrier"
        tracking_number = context.get("tracking_number") or "N/A"
        tracking_url = context.get("tracking_url")
        if tracking_url:
            how_to_track = f"Track your package here: {tracking_url}"
        else:
            how_to_track = "You can track your package using the tracking number above."
        return {
            "subject": f"Order #{order_ref} Shipped!",
            "body": (
                f"Great news! Your order #{order_ref} has shipped.\n\n"
                f"Carrier: {carrier}\n"
                f"Tracking Number: {tracking_number}\n\n"
                f"{how_to_track}"
            ),
        }
