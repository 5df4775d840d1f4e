"""Customer notifier registry.

Uses FakeCustomerNotifier by default. Other adapters are selected via the
NOTIFIER_ADAPTER environment variable.
"""

import os

_notifier_instance = None


def get_notifier():
    """Return the configured customer notifier (singleton)."""
    global _notifier_instance
    if _notifier_instance is None:
        adapter = os.environ.get("NOTIFIER_ADAPTER", "fake")
        if adapter == "fake":
            from dispatch.notifier.fake_adapter import FakeCustomerNotifier

            _notifier_instance = FakeCustomerNotifier()
        else:
            raise ValueError(f"Unknown notifier adapter: {adapter}")
    return _notifier_instance


def reset_notifier():
    """Reset the notifier singleton (useful for testing)."""
    global _notifier_instance
    _notifier_instance = None
