"""Notification types sent around an order's lifecycle."""

from enum import Enum


class NotificationType(Enum):
    NEW_ORDER_ALERT = "NewOrderAlert"
    ORDER_CONFIRMATION = "OrderConfirmation"
    SHIPPING_UPDATE = "ShippingUpdate"
    DELIVERY_CONFIRMATION = "DeliveryConfirmation"
    ORDER_CANCELLATION = "OrderCancellation"


class Audience(Enum):
    STAFF = "staff"
    CUSTOMER = "customer"
