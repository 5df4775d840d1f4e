"""Application tests for the order processing workflow via domain.process()."""

import json

import pytest
from dispatch.gateway.port import GatewayUnavailable
from dispatch.processing.confirmation import ConfirmAvailability
from dispatch.processing.documents import PrepareDocuments
from dispatch.processing.handover import ConfirmHandover
from dispatch.processing.opening import OpenOrderProcessing
from dispatch.processing.processing import OrderProcessing, ProcessingStep, WorkflowPreconditionUnmet
from dispatch.processing.readiness import MarkItemReady
from dispatch.processing.shipping import CaptureShipping
from dispatch.processing.tracking import GenerateShipmentTracking
from dispatch.shipment.shipment import Shipment
from protean import current_domain
from protean.exceptions import ValidationError

_ITEMS = [
    {"order_item_id": "oi-1", "name": "Brake pads", "quantity": 2, "unit_price": 2500.0},
    {"order_item_id": "oi-2", "name": "Oil filter", "quantity": 1, "unit_price": 5000.0},
]


def _open(order_id="ord-001"):
    return current_domain.process(
        OpenOrderProcessing(
            order_id=order_id,
            order_number="ORD-1001",
            customer_email="buyer@example.com",
            order_status="PENDING",
            items=json.dumps(_ITEMS),
        ),
        asynchronous=False,
    )


def _confirmed():
    proc_id = _open()
    for item in _ITEMS:
        current_domain.process(
            MarkItemReady(processing_id=proc_id, order_item_id=item["order_item_id"]),
            asynchronous=False,
        )
    current_domain.process(ConfirmAvailability(processing_id=proc_id), asynchronous=False)
    return proc_id


def _at_shipping():
    proc_id = _confirmed()
    current_domain.process(PrepareDocuments(processing_id=proc_id), asynchronous=False)
    return proc_id


def _at_handover():
    proc_id = _at_shipping()
    current_domain.process(
        CaptureShipping(processing_id=proc_id, tracking_number="G4S-123456", courier="g4s"),
        asynchronous=False,
    )
    return proc_id


def _load(proc_id):
    return current_domain.repository_for(OrderProcessing).get(proc_id)


class TestOpenOrderProcessing:
    def test_open_persists_workflow(self):
        proc = _load(_open())
        assert proc.current_step == ProcessingStep.CONFIRM.value
        assert proc.subtotal == 10000.0

    def test_reopening_resumes_unfinished_workflow(self):
        first = _confirmed()
        second = _open()
        assert first == second
        assert _load(second).current_step == ProcessingStep.DOCUMENTS.value


class TestConfirmAvailability:
    def test_mark_item_ready_returns_confirmed_items(self):
        proc_id = _open()
        confirmed = current_domain.process(
            MarkItemReady(processing_id=proc_id, order_item_id="oi-2"),
            asynchronous=False,
        )
        assert confirmed == ["oi-2"]

    def test_confirm_with_unready_items_is_rejected(self, gateway):
        proc_id = _open()
        with pytest.raises(WorkflowPreconditionUnmet):
            current_domain.process(ConfirmAvailability(processing_id=proc_id), asynchronous=False)
        assert _load(proc_id).current_step == ProcessingStep.CONFIRM.value
        assert gateway.calls == []

    def test_confirm_pushes_order_status(self, gateway):
        proc_id = _confirmed()
        proc = _load(proc_id)
        assert proc.current_step == ProcessingStep.DOCUMENTS.value
        assert proc.earnings.vendor_payout == 9072
        assert [c["status"] for c in gateway.status_updates("ord-001")] == ["CONFIRMED"]


class TestPrepareDocuments:
    def test_documents_are_rendered(self, gateway):
        proc_id = _confirmed()
        current_domain.process(
            PrepareDocuments(processing_id=proc_id, kinds=json.dumps(["invoice", "shipping_label"])),
            asynchronous=False,
        )
        proc = _load(proc_id)
        assert proc.current_step == ProcessingStep.SHIPPING.value
        assert set(json.loads(proc.documents)) == {"invoice", "shipping_label"}
        assert [c["status"] for c in gateway.status_updates()] == ["CONFIRMED", "PROCESSING"]

    def test_unknown_document_kind_is_rejected(self):
        proc_id = _confirmed()
        with pytest.raises(ValidationError) as exc_info:
            current_domain.process(
                PrepareDocuments(processing_id=proc_id, kinds=json.dumps(["receipt"])),
                asynchronous=False,
            )
        assert "kinds" in exc_info.value.messages

    def test_resubmitted_documents_do_not_render_again(self, gateway):
        proc_id = _confirmed()
        kinds = json.dumps(["invoice"])
        current_domain.process(PrepareDocuments(processing_id=proc_id, kinds=kinds), asynchronous=False)
        call_count = len(gateway.calls)

        current_domain.process(PrepareDocuments(processing_id=proc_id, kinds=kinds), asynchronous=False)
        assert len(gateway.calls) == call_count


class TestCaptureShipping:
    def test_empty_tracking_number_keeps_step(self, gateway):
        proc_id = _at_shipping()
        with pytest.raises(WorkflowPreconditionUnmet):
            current_domain.process(
                CaptureShipping(processing_id=proc_id, tracking_number="", courier="g4s"),
                asynchronous=False,
            )
        assert _load(proc_id).current_step == ProcessingStep.SHIPPING.value
        assert [c["status"] for c in gateway.status_updates()] == ["CONFIRMED", "PROCESSING"]

    def test_shipping_sends_courier_and_tracking_number(self, gateway):
        proc_id = _at_handover()
        update = gateway.status_updates()[-1]
        assert update["status"] == "SHIPPED"
        assert update["data"] == {"trackingNumber": "G4S-123456", "courier": "g4s"}
        assert _load(proc_id).current_step == ProcessingStep.HANDOVER.value


class TestConfirmHandover:
    def test_handover_completes_workflow(self, gateway):
        proc_id = _at_handover()
        completed = current_domain.process(
            ConfirmHandover(processing_id=proc_id, dispatch_proof_reference="photo-ref-001"),
            asynchronous=False,
        )
        assert completed is True
        proc = _load(proc_id)
        assert proc.completed is True
        assert proc.order_status == "OUT_FOR_DELIVERY"
        update = gateway.status_updates()[-1]
        assert update["status"] == "OUT_FOR_DELIVERY"
        assert update["data"]["dispatchNote"] == "photo-ref-001"

    def test_handover_retry_is_idempotent(self, gateway):
        proc_id = _at_handover()
        current_domain.process(ConfirmHandover(processing_id=proc_id), asynchronous=False)
        call_count = len(gateway.calls)

        current_domain.process(ConfirmHandover(processing_id=proc_id), asynchronous=False)
        assert len(gateway.calls) == call_count


class TestGatewayFailure:
    def test_failed_status_push_keeps_current_step(self, gateway):
        proc_id = _open()
        for item in _ITEMS:
            current_domain.process(
                MarkItemReady(processing_id=proc_id, order_item_id=item["order_item_id"]),
                asynchronous=False,
            )
        gateway.configure(should_succeed=False, failure_reason="Order service timeout")

        with pytest.raises(GatewayUnavailable) as exc_info:
            current_domain.process(ConfirmAvailability(processing_id=proc_id), asynchronous=False)
        assert exc_info.value.reason == "Order service timeout"

        proc = _load(proc_id)
        assert proc.current_step == ProcessingStep.CONFIRM.value
        assert proc.earnings is None

    def test_retry_after_outage_succeeds(self, gateway):
        proc_id = _at_shipping()
        gateway.configure(should_succeed=False)
        with pytest.raises(GatewayUnavailable):
            current_domain.process(
                CaptureShipping(processing_id=proc_id, tracking_number="SND-1", courier="sendy"),
                asynchronous=False,
            )
        assert _load(proc_id).current_step == ProcessingStep.SHIPPING.value

        gateway.configure(should_succeed=True)
        current_domain.process(
            CaptureShipping(processing_id=proc_id, tracking_number="SND-1", courier="sendy"),
            asynchronous=False,
        )
        assert _load(proc_id).current_step == ProcessingStep.HANDOVER.value

    def test_failed_document_rendering_keeps_step(self, gateway):
        proc_id = _confirmed()
        gateway.configure(should_succeed=False)
        with pytest.raises(GatewayUnavailable):
            current_domain.process(
                PrepareDocuments(processing_id=proc_id, kinds=json.dumps(["invoice"])),
                asynchronous=False,
            )
        assert _load(proc_id).current_step == ProcessingStep.DOCUMENTS.value


class TestShipmentTracking:
    def test_tracking_is_minted_and_attached(self):
        proc_id = _confirmed()
        tracking_id = current_domain.process(GenerateShipmentTracking(processing_id=proc_id), asynchronous=False)
        proc = _load(proc_id)
        assert proc.tracking_id == tracking_id
        assert proc.suggested_tracking_number == tracking_id

        shipment = current_domain.repository_for(Shipment).get(tracking_id)
        assert str(shipment.order_id) == "ord-001"
        assert shipment.order_number == "ORD-1001"

    def test_tracking_request_is_idempotent(self):
        proc_id = _open()
        first = current_domain.process(GenerateShipmentTracking(processing_id=proc_id), asynchronous=False)
        second = current_domain.process(GenerateShipmentTracking(processing_id=proc_id), asynchronous=False)
        assert first == second

    def test_tracking_after_shipping_is_rejected(self):
        proc_id = _at_handover()
        with pytest.raises(WorkflowPreconditionUnmet):
            current_domain.process(GenerateShipmentTracking(processing_id=proc_id), asynchronous=False)
        assert _load(proc_id).tracking_id is None
