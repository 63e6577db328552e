"""J&T Express carrier adapter.

Requests are form-encoded with the JSON body in ``logistics_interface`` and
its signature in ``data_digest``. Responses come back either flat or wrapped
under ``data`` (an object or a one-element list); ``_unwrap`` folds both
into one shape before anything else reads them.
"""

import requests
import structlog
from shared.errors import ShipmentDataIncomplete, ShipmentRejected, ShippingUnavailable
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from fulfillment.carrier.port import (
    CarrierPort,
    Recipient,
    ShipmentResult,
    TrackingEvent,
    TrackingResult,
    TrackingState,
)
from fulfillment.carrier.settings import CarrierSettings
from fulfillment.carrier.signing import canonical_json, sign, verify

logger = structlog.get_logger(__name__)

ORDER_CREATE = "ORDER_CREATE"
TRACK_QUERY = "TRACK_QUERY"

_DELIVERED_SCANS = frozenset({"sign", "signed", "delivered", "signature"})
_EXCEPTION_MARKERS = ("problem", "exception", "return", "reject", "fail")


def _unwrap(body: dict) -> dict:
    data = body.get("data", body)
    if isinstance(data, list):
        data = data[0] if data else {}
    if not isinstance(data, dict):
        return {}
    return data


def _is_success(body: dict) -> bool:
    return str(body.get("code", "")) == "1"


def _scan_state(scan_type: str) -> TrackingState:
    # "Out for delivery" and "Delivering" are still in transit
    scan = " ".join((scan_type or "").lower().split())
    if scan in _DELIVERED_SCANS:
        return TrackingState.DELIVERED
    if any(marker in scan for marker in _EXCEPTION_MARKERS):
        return TrackingState.EXCEPTION
    return TrackingState.IN_TRANSIT


def _log_retry(retry_state) -> None:
    logger.warning(
        "Retrying carrier tracking query",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()),
    )


class JTExpressCarrier(CarrierPort):
    """Carrier adapter for the J&T Express open API."""

    name = "jt_express"

    def __init__(
        self,
        settings: CarrierSettings | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings or CarrierSettings.from_env()
        self.session = session or requests.Session()

    def _send(self, path: str, msg_type: str, content: dict) -> dict:
        payload = canonical_json(content)
        form = {
            "logistics_interface": payload,
            "data_digest": sign(payload, self.settings.private_key),
            "msg_type": msg_type,
            "eccompanyid": self.settings.customer_code,
        }
        url = f"{self.settings.base_url.rstrip('/')}{path}"
        logger.debug("Sending carrier request", path=path, msg_type=msg_type)

        try:
            response = self.session.post(
                url,
                data=form,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.settings.timeout,
            )
        except requests.RequestException as exc:
            raise ShippingUnavailable(f"Shipping service unreachable: {exc}") from exc

        if response.status_code >= 500:
            raise ShippingUnavailable(
                f"Shipping service error {response.status_code}",
                raw={"text": (response.text or "")[:500]},
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise ShippingUnavailable(
                "Shipping service returned an unreadable response",
                raw={"text": (response.text or "")[:500]},
            ) from exc

        if not isinstance(body, dict):
            body = {"data": body}
        if response.status_code >= 400 or not _is_success(body):
            message = body.get("msg") or body.get("reason") or f"Carrier error code {body.get('code')}"
            raise ShipmentRejected(f"J&T Error: {message}", raw=body)
        return body

    def _shipment_content(self, order, recipient: Recipient) -> dict:
        sender = self.settings.sender
        return {
            "customerCode": self.settings.customer_code,
            "digest": "",
            "txlogisticid": str(order.id),
            "expressType": self.settings.express_type,
            "sender": {
                "name": sender.name,
                "mobile": sender.mobile,
                "prov": sender.province,
                "city": sender.city,
                "area": sender.area,
                "address": sender.address,
            },
            "receiver": {
                "name": recipient.full_name,
                "mobile": recipient.phone,
                "prov": recipient.region,
                "city": recipient.city,
                "area": recipient.city,
                "address": recipient.one_line,
            },
            "items": [
                {
                    "itemName": line.product_name,
                    "number": line.quantity,
                    "itemValue": line.after_item_discount,
                }
                for line in order.lines
            ],
            "weight": self.settings.default_weight_kg,
            "goodsType": self.settings.goods_type,
            "orderType": self.settings.order_type,
            "serviceType": self.settings.service_type,
        }

    def create_shipment(self, order, recipient: Recipient) -> ShipmentResult:
        body = self._send("/order/add", ORDER_CREATE, self._shipment_content(order, recipient))
        data = _unwrap(body)

        tracking_number = data.get("billCode") or data.get("logisticId") or body.get("billCode")
        if not tracking_number:
            logger.error("Carrier response has no tracking number", order_id=str(order.id), response=body)
            raise ShipmentDataIncomplete(
                f"Carrier accepted order {order.id} but returned no tracking number",
                raw=body,
            )

        label_url = data.get("waybillURL") or data.get("labelUrl")
        logger.info("Carrier shipment created", order_id=str(order.id), tracking_number=tracking_number)
        return ShipmentResult(tracking_number=str(tracking_number), label_url=label_url, raw=body)

    def _query_tracking(self, tracking_number: str) -> TrackingResult:
        body = self._send("/logistics/trace/query", TRACK_QUERY, {"billCodes": tracking_number})
        data = _unwrap(body)

        details = data.get("details") or data.get("traces") or []
        events = tuple(
            TrackingEvent(
                scan_type=str(item.get("scanType", "")),
                description=str(item.get("desc", "")),
                occurred_at=item.get("scanTime"),
                location=item.get("scanNetworkName") or item.get("scanCity"),
            )
            for item in details
            if isinstance(item, dict)
        )
        if not events:
            return TrackingResult(status=TrackingState.UNKNOWN, raw=body)

        events = tuple(sorted(events, key=lambda event: event.occurred_at or ""))
        return TrackingResult(status=_scan_state(events[-1].scan_type), events=events, raw=body)

    def track_shipment(self, tracking_number: str) -> TrackingResult:
        retrying = Retrying(
            retry=retry_if_exception_type(ShippingUnavailable),
            stop=stop_after_attempt(self.settings.max_attempts),
            wait=wait_exponential(multiplier=self.settings.backoff_seconds, max=10),
            before_sleep=_log_retry,
            reraise=True,
        )
        return retrying(self._query_tracking, tracking_number)

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        return verify(payload, signature, self.settings.private_key)
