"""Email channel registry — pluggable email dispatch.

Provides singleton access to the email adapter. Uses the fake adapter by
default; set EMAIL_ADAPTER=smtp to deliver through an SMTP relay.
"""

import os

_email_instance = None


def get_email_channel():
    """Return the configured email adapter (singleton)."""
    global _email_instance
    if _email_instance is None:
        adapter = os.environ.get("EMAIL_ADAPTER", "fake")
        if adapter == "fake":
            from notifications.channel.fake_email import FakeEmailAdapter

            _email_instance = FakeEmailAdapter()
        elif adapter == "smtp":
            from notifications.channel.smtp_email import SMTPEmailAdapter

            _email_instance = SMTPEmailAdapter()
        else:
            raise ValueError(f"Unknown email adapter: {adapter}")
    return _email_instance


def set_email_channel(channel):
    """Override the active email adapter (useful for tests)."""
    global _email_instance
    _email_instance = channel


def reset_channels():
    """Reset the email singleton (useful for testing)."""
    global _email_instance
    _email_instance = None
