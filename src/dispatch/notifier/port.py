"""Customer notifier port — tells the buyer their order is on its way."""

from abc import ABC, abstractmethod


class CustomerNotifier(ABC):
    """Abstract interface for customer notification adapters."""

    @abstractmethod
    def send_dispatch_notice(self, order_id: str, recipient: str | None, context: dict) -> dict:
        """Send the "out for delivery" notice.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
