"""Fake customer notifier — records dispatch notices for testing."""

from uuid import uuid4

from dispatch.notifier.port import CustomerNotifier


class FakeCustomerNotifier(CustomerNotifier):
    def __init__(self):
        self.sent_notices: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Notification delivery failed"):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def send_dispatch_notice(self, order_id: str, recipient: str | None, context: dict) -> dict:
        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "error": self.failure_reason}

        message_id = f"notice-{uuid4().hex[:12]}"
        self.sent_notices.append(
            {
                "message_id": message_id,
                "order_id": order_id,
                "recipient": recipient,
                "context": dict(context),
            }
        )
        return {"message_id": message_id, "status": "sent"}

    def reset(self):
        """Clear sent notices (useful between tests)."""
        self.sent_notices.clear()
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"
