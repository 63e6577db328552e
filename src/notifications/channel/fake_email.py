"""In-memory mailbox used in development and tests."""

from uuid import uuid4

from notifications.channel.email_port import EmailPort, delivered, undelivered


class FakeEmailAdapter(EmailPort):
    """Keeps every delivered message in ``sent_emails``.

    ``configure(should_succeed=False)`` makes ``send`` report a failed
    delivery; nothing is recorded while it is switched off.
    """

    def __init__(self):
        self.sent_emails: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Mail relay refused the message"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Mail relay refused the message"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def send(self, to: str, subject: str, body: str, html_body: str | None = None) -> dict:
        if not self.should_succeed:
            return undelivered(self.failure_reason)

        message_id = f"<{uuid4().hex}@fake-mailbox>"
        self.sent_emails.append(
            {"message_id": message_id, "to": to, "subject": subject, "body": body, "html_body": html_body}
        )
        return delivered(message_id)

    def sent_to(self, address: str) -> list[dict]:
        return [email for email in self.sent_emails if email["to"] == address]

    @property
    def subjects(self) -> list[str]:
        return [email["subject"] for email in self.sent_emails]

    def reset(self):
        self.sent_emails.clear()
        self.configure()
