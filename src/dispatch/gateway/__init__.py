"""Order gateway factory.

Provides get_order_gateway() / set_order_gateway() to swap implementations.
FakeOrderGateway is the only built-in adapter; ORDER_GATEWAY_ADAPTER selects
it explicitly.
"""

import os

from dispatch.gateway.port import OrderGateway

_current_gateway: OrderGateway | None = None


def get_order_gateway() -> OrderGateway:
    """Return the configured order gateway (singleton)."""
    global _current_gateway
    if _current_gateway is None:
        adapter = os.environ.get("ORDER_GATEWAY_ADAPTER", "fake")
        if adapter == "fake":
            from dispatch.gateway.fake_adapter import FakeOrderGateway

            _current_gateway = FakeOrderGateway()
        else:
            raise ValueError(f"Unknown order gateway adapter: {adapter}")
    return _current_gateway


def set_order_gateway(gateway: OrderGateway) -> None:
    """Override the active order gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_order_gateway() -> None:
    """Reset to the configured default gateway."""
    global _current_gateway
    _current_gateway = None
