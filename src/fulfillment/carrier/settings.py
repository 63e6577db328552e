"""Carrier configuration, read from the environment.

The carrier needs a parcel weight but the catalogue does not track one, so
every shipment is declared at ``default_weight_kg``. Override it through
``JT_DEFAULT_WEIGHT`` until products carry real weights.
"""

import os
from dataclasses import dataclass, field

DEFAULT_BASE_URL = "https://api.jtexpress.me/jts-mgt-core-data/api"


@dataclass(frozen=True)
class SenderAddress:
    name: str = "Bariqe El Tamioz"
    mobile: str = "0500000000"
    province: str = "Riyadh"
    city: str = "Riyadh"
    area: str = "Riyadh"
    address: str = "Riyadh, Saudi Arabia"


@dataclass(frozen=True)
class CarrierSettings:
    base_url: str = DEFAULT_BASE_URL
    api_account: str = ""
    private_key: str = ""
    customer_code: str = ""
    timeout: float = 20.0
    sender: SenderAddress = field(default_factory=SenderAddress)
    default_weight_kg: float = 1.0
    goods_type: str = "ITN1"
    express_type: str = "EZ"
    order_type: str = "1"
    service_type: str = "1"
    # Tracking queries only
    max_attempts: int = 3
    backoff_seconds: float = 0.5

    @classmethod
    def from_env(cls) -> "CarrierSettings":
        sender = SenderAddress(
            name=os.environ.get("JT_SENDER_NAME", SenderAddress.name),
            mobile=os.environ.get("CONTACT_PHONE", SenderAddress.mobile),
            province=os.environ.get("JT_SENDER_PROVINCE", SenderAddress.province),
            city=os.environ.get("JT_SENDER_CITY", SenderAddress.city),
            area=os.environ.get("JT_SENDER_AREA", SenderAddress.area),
            address=os.environ.get("JT_SENDER_ADDRESS", SenderAddress.address),
        )
        return cls(
            base_url=os.environ.get("JT_BASE_URL", DEFAULT_BASE_URL),
            api_account=os.environ.get("JT_API_ACCOUNT", ""),
            private_key=os.environ.get("JT_PRIVATE_KEY", ""),
            customer_code=os.environ.get("JT_CUSTOMER_CODE", ""),
            timeout=float(os.environ.get("JT_TIMEOUT", "20")),
            sender=sender,
            default_weight_kg=float(os.environ.get("JT_DEFAULT_WEIGHT", "1")),
        )
