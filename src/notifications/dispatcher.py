"""Order notification dispatcher — best-effort email around an order's lifecycle.

Staff hear about every new order; customers hear about confirmation,
shipment, delivery and cancellation when a contact email is known. Sending
never fails the operation that triggered it: adapter failures are logged
and dropped.
"""

from urllib.parse import quote

import structlog

from notifications.channel import get_email_channel
from notifications.channel.email_port import SENT
from notifications.settings import NotificationSettings
from notifications.templates import get_template
from notifications.types import NotificationType

logger = structlog.get_logger(__name__)

# Order status → customer notification
STATUS_NOTIFICATIONS = {
    "confirmed": NotificationType.ORDER_CONFIRMATION,
    "shipped": NotificationType.SHIPPING_UPDATE,
    "delivered": NotificationType.DELIVERY_CONFIRMATION,
    "cancelled": NotificationType.ORDER_CANCELLATION,
}

# Public tracking pages, keyed by carrier name
TRACKING_URLS = {
    "jt_express": "https://www.jtexpress.com/track?billcode={tracking_number}",
}


def order_ref(order) -> str:
    """Short human-friendly order reference used in subjects."""
    return str(order.id)[-8:].upper()


def _money(value) -> str:
    return f"{float(value or 0):.2f}"


def tracking_url(order) -> str | None:
    template = TRACKING_URLS.get(order.carrier or "")
    if not template or not order.tracking_number:
        return None
    return template.format(tracking_number=quote(str(order.tracking_number), safe=""))


def build_context(order, customer_name: str | None = None) -> dict:
    address = order.shipping_address
    return {
        "order_id": str(order.id),
        "order_ref": order_ref(order),
        "customer_name": customer_name or (address.full_name if address else None) or "Customer",
        "currency": order.currency,
        "subtotal": _money(order.subtotal),
        "total_savings": _money(order.total_savings),
        "total_amount": _money(order.total_amount),
        "payment_method": order.payment_method,
        "lines": [
            {
                "product_name": line.product_name,
                "quantity": line.quantity,
                "after_item_discount": float(line.after_item_discount),
            }
            for line in order.lines
        ],
        "ship_to": (
            ", ".join(part for part in (address.street, address.city, address.region) if part) if address else None
        ),
        "phone": address.phone if address else None,
        "carrier": order.carrier,
        "tracking_number": order.tracking_number,
        "tracking_url": tracking_url(order),
        "reason": order.cancellation_reason,
    }


class OrderNotifier:
    def __init__(self, channel=None, settings: NotificationSettings | None = None):
        self._channel = channel
        self.settings = settings or NotificationSettings.from_env()

    @property
    def channel(self):
        return self._channel or get_email_channel()

    def _send(self, notification_type: NotificationType, to: str, context: dict) -> bool:
        try:
            content = get_template(notification_type.value).render(context)
            result = self.channel.send(to=to, subject=content["subject"], body=content["body"])
        except Exception as exc:
            logger.error(
                "Notification dispatch failed",
                notification_type=notification_type.value,
                order_id=context["order_id"],
                error=str(exc),
            )
            return False

        if result.get("status") != SENT:
            logger.warning(
                "Notification not delivered",
                notification_type=notification_type.value,
                order_id=context["order_id"],
                error=result.get("error", "Unknown dispatch error"),
            )
            return False

        logger.info(
            "Notification sent",
            notification_type=notification_type.value,
            order_id=context["order_id"],
            message_id=result.get("message_id"),
        )
        return True

    def notify_created(self, order, customer_name: str | None = None) -> bool:
        """Alert staff that an order needs attention."""
        if not self.settings.admin_email:
            logger.warning("ADMIN_EMAIL not configured, skipping new order alert", order_id=str(order.id))
            return False
        return self._send(
            NotificationType.NEW_ORDER_ALERT,
            self.settings.admin_email,
            build_context(order, customer_name),
        )

    def notify_status_changed(self, order, customer_name: str | None = None) -> bool:
        """Tell the customer about a status they care about."""
        notification_type = STATUS_NOTIFICATIONS.get(order.status)
        if notification_type is None:
            return False

        email = order.contact_email
        if not email:
            logger.info(
                "No contact email on order, skipping notification",
                order_id=str(order.id),
                status=order.status,
            )
            return False
        return self._send(notification_type, email, build_context(order, customer_name))
