"""Order gateway port (abstract interface).

The marketplace order service owns the Order record. The processing workflow
pushes each step's order status through this port, and asks it to render the
invoice, packing slip and shipping label. Adapters are swapped via
configuration; domain code programs against the port only.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class GatewayUnavailable(Exception):
    """A call to the order service failed; the caller may retry."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")


@dataclass(frozen=True)
class StatusUpdateResult:
    """Result of pushing an order status to the order service."""

    success: bool
    order_status: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class DocumentsResult:
    """Result of a document rendering request."""

    success: bool
    documents: dict[str, str] = field(default_factory=dict)
    failure_reason: str | None = None


class OrderGateway(ABC):
    """Abstract order service interface."""

    @abstractmethod
    def update_order_status(self, order_id: str, status: str, data: dict | None = None) -> StatusUpdateResult:
        """Set the order's status, attaching step-specific data (courier, tracking number, ...)."""
        ...

    @abstractmethod
    def render_documents(self, order_id: str, kinds: list[str]) -> DocumentsResult:
        """Render order documents.

        Returns:
            DocumentsResult whose ``documents`` maps each kind to a document URL.
        """
        ...
