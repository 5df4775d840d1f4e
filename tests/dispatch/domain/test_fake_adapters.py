"""Tests for the fake order gateway and customer notifier."""

from dispatch.gateway import get_order_gateway, reset_order_gateway, set_order_gateway
from dispatch.gateway.fake_adapter import FakeOrderGateway
from dispatch.notifier import get_notifier, reset_notifier
from dispatch.notifier.fake_adapter import FakeCustomerNotifier


class TestFakeOrderGateway:
    def test_default_gateway_is_fake(self):
        assert isinstance(get_order_gateway(), FakeOrderGateway)

    def test_gateway_is_a_singleton(self):
        assert get_order_gateway() is get_order_gateway()

    def test_set_and_reset_gateway(self):
        custom = FakeOrderGateway()
        set_order_gateway(custom)
        assert get_order_gateway() is custom
        reset_order_gateway()
        assert get_order_gateway() is not custom

    def test_status_update_is_recorded(self):
        gateway = FakeOrderGateway()
        result = gateway.update_order_status("ord-1", "SHIPPED", {"courier": "g4s"})
        assert result.success is True
        assert result.order_status == "SHIPPED"
        assert gateway.status_updates("ord-1")[0]["data"] == {"courier": "g4s"}

    def test_configured_failure(self):
        gateway = FakeOrderGateway()
        gateway.configure(should_succeed=False, failure_reason="Timeout")
        result = gateway.update_order_status("ord-1", "SHIPPED")
        assert result.success is False
        assert result.failure_reason == "Timeout"

    def test_render_documents(self):
        gateway = FakeOrderGateway()
        result = gateway.render_documents("ord-1", ["invoice", "packing_slip"])
        assert result.success is True
        assert set(result.documents) == {"invoice", "packing_slip"}

    def test_reset_clears_calls_and_failure(self):
        gateway = FakeOrderGateway()
        gateway.configure(should_succeed=False)
        gateway.update_order_status("ord-1", "SHIPPED")
        gateway.reset()
        assert gateway.calls == []
        assert gateway.should_succeed is True


class TestFakeCustomerNotifier:
    def test_default_notifier_is_fake(self):
        reset_notifier()
        assert isinstance(get_notifier(), FakeCustomerNotifier)

    def test_notice_is_recorded(self):
        notifier = FakeCustomerNotifier()
        result = notifier.send_dispatch_notice("ord-1", "buyer@example.com", {"courier": "g4s"})
        assert result["status"] == "sent"
        assert notifier.sent_notices[0]["recipient"] == "buyer@example.com"

    def test_configured_failure(self):
        notifier = FakeCustomerNotifier()
        notifier.configure(should_succeed=False, failure_reason="SMTP down")
        result = notifier.send_dispatch_notice("ord-1", "buyer@example.com", {})
        assert result == {"message_id": None, "status": "failed", "error": "SMTP down"}
        assert notifier.sent_notices == []
