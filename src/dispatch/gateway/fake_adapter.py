"""Configurable fake order gateway for development and testing.

Records every call and can be configured at runtime to fail, which is how
tests exercise the workflow's "stay on the current step" behavior.
"""

from uuid import uuid4

from dispatch.gateway.port import DocumentsResult, OrderGateway, StatusUpdateResult


class FakeOrderGateway(OrderGateway):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Order service unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Order service unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def update_order_status(self, order_id: str, status: str, data: dict | None = None) -> StatusUpdateResult:
        self.calls.append(
            {
                "method": "update_order_status",
                "order_id": order_id,
                "status": status,
                "data": dict(data or {}),
            }
        )
        if not self.should_succeed:
            return StatusUpdateResult(success=False, failure_reason=self.failure_reason)
        return StatusUpdateResult(success=True, order_status=status)

    def render_documents(self, order_id: str, kinds: list[str]) -> DocumentsResult:
        self.calls.append({"method": "render_documents", "order_id": order_id, "kinds": list(kinds)})
        if not self.should_succeed:
            return DocumentsResult(success=False, failure_reason=self.failure_reason)

        batch = uuid4().hex[:8]
        return DocumentsResult(
            success=True,
            documents={kind: f"https://documents.example.com/{order_id}/{batch}/{kind}.pdf" for kind in kinds},
        )

    def status_updates(self, order_id: str | None = None) -> list[dict]:
        """Recorded status pushes, optionally for one order."""
        return [
            call
            for call in self.calls
            if call["method"] == "update_order_status" and (order_id is None or call["order_id"] == order_id)
        ]

    def reset(self) -> None:
        self.calls.clear()
        self.should_succeed = True
        self.failure_reason = "Order service unavailable"
