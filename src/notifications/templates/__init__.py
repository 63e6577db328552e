"""Template registry — maps NotificationType to template classes.

Each template knows who it is addressed to and how to render content
from the order context built by the dispatcher.
"""

from notifications.templates.delivery_confirmation import (
    DeliveryConfirmationTemplate,
)
from notifications.templates.new_order_alert import NewOrderAlertTemplate
from notifications.templates.order_cancellation import OrderCancellationTemplate
from notifications.templates.order_confirmation import OrderConfirmationTemplate
from notifications.templates.shipping_update import ShippingUpdateTemplate
from notifications.types import NotificationType

TEMPLATE_REGISTRY: dict[str, type] = {
    NotificationType.NEW_ORDER_ALERT.value: NewOrderAlertTemplate,
    NotificationType.ORDER_CONFIRMATION.value: OrderConfirmationTemplate,
    NotificationType.SHIPPING_UPDATE.value: ShippingUpdateTemplate,
    NotificationType.DELIVERY_CONFIRMATION.value: DeliveryConfirmationTemplate,
    NotificationType.ORDER_CANCELLATION.value: OrderCancellationTemplate,
}


def get_template(notification_type: str):
    """Look up a template class by notification type string."""
    template_cls = TEMPLATE_REGISTRY.get(notification_type)
    if template_cls is None:
        raise ValueError(f"No template registered for notification type: {notification_type}")
    return template_cls
