"""Payment gateway configuration, read from the environment."""

import os
from dataclasses import dataclass

SANDBOX_BASE_URL = "https://restpilot.paylink.sa"


@dataclass(frozen=True)
class PaymentGatewaySettings:
    base_url: str = SANDBOX_BASE_URL
    app_id: str = ""
    secret_key: str = ""
    timeout: float = 15.0
    frontend_url: str = "http://localhost:3000"
    currency: str = "SAR"
    # Read-only calls (auth, getInvoice) only
    max_attempts: int = 3
    backoff_seconds: float = 0.5

    @property
    def cancel_url(self) -> str:
        return f"{self.frontend_url.rstrip('/')}/checkout/cancelled"

    def callback_url_for(self, order_id) -> str:
        return f"{self.frontend_url.rstrip('/')}/orders/{order_id}/status"

    @classmethod
    def from_env(cls) -> "PaymentGatewaySettings":
        return cls(
            base_url=os.environ.get("PAYLINK_BASE_URL", SANDBOX_BASE_URL),
            app_id=os.environ.get("PAYLINK_APP_ID", ""),
            secret_key=os.environ.get("PAYLINK_SECRET_KEY", ""),
            timeout=float(os.environ.get("PAYLINK_TIMEOUT", "15")),
            frontend_url=os.environ.get("FRONTEND_URL", "http://localhost:3000"),
            currency=os.environ.get("PAYLINK_CURRENCY", "SAR"),
        )
