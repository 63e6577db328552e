"""Notification configuration, read from the environment."""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class NotificationSettings:
    admin_email: str = ""
    email_from: str = "orders@localhost"
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    smtp_timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "NotificationSettings":
        return cls(
            admin_email=os.environ.get("ADMIN_EMAIL", ""),
            email_from=os.environ.get("EMAIL_FROM", os.environ.get("SMTP_USERNAME", "orders@localhost")),
            smtp_host=os.environ.get("SMTP_HOST", "localhost"),
            smtp_port=int(os.environ.get("SMTP_PORT", "587")),
            smtp_username=os.environ.get("SMTP_USERNAME", ""),
            smtp_password=os.environ.get("SMTP_PASSWORD", ""),
            smtp_use_tls=os.environ.get("SMTP_USE_TLS", "true").lower() != "false",
        )
