"""Processing status — vendor dashboard view of orders being dispatched."""

from protean.core.projector import on
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.processing.events import (
    AvailabilityConfirmed,
    DocumentsPrepared,
    HandoverConfirmed,
    ProcessingOpened,
    ShippingCaptured,
    TrackingAttached,
)
from dispatch.processing.processing import OrderProcessing, OrderStatus, ProcessingStep


@dispatch.projection
class ProcessingStatusView:
    processing_id = Identifier(identifier=True, required=True)
    order_id = Identifier(required=True)
    order_number = String()
    order_status = String(required=True)
    current_step = String(required=True)
    completed = Boolean(default=False)
    item_count = Integer(default=0)
    subtotal = Float(default=0.0)
    vendor_payout = Float()
    tracking_id = String()
    tracking_number = String()
    courier = String()
    opened_at = DateTime()
    updated_at = DateTime()


@dispatch.projector(projector_for=ProcessingStatusView, aggregates=[OrderProcessing])
class ProcessingStatusProjector:
    @on(ProcessingOpened)
    def on_processing_opened(self, event):
        current_domain.repository_for(ProcessingStatusView).add(
            ProcessingStatusView(
                processing_id=event.processing_id,
                order_id=event.order_id,
                order_number=event.order_number,
                order_status=event.order_status,
                current_step=ProcessingStep.CONFIRM.value,
                item_count=event.item_count,
                subtotal=event.subtotal,
                opened_at=event.opened_at,
                updated_at=event.opened_at,
            )
        )

    @on(AvailabilityConfirmed)
    def on_availability_confirmed(self, event):
        repo = current_domain.repository_for(ProcessingStatusView)
        view = repo.get(event.processing_id)
        view.order_status = OrderStatus.CONFIRMED.value
        view.current_step = ProcessingStep.DOCUMENTS.value
        view.vendor_payout = event.vendor_payout
        view.updated_at = event.confirmed_at
        repo.add(view)

    @on(DocumentsPrepared)
    def on_documents_prepared(self, event):
        repo = current_domain.repository_for(ProcessingStatusView)
        view = repo.get(event.processing_id)
        view.order_status = OrderStatus.PROCESSING.value
        view.current_step = ProcessingStep.SHIPPING.value
        view.updated_at = event.prepared_at
        repo.add(view)

    @on(TrackingAttached)
    def on_tracking_attached(self, event):
        repo = current_domain.repository_for(ProcessingStatusView)
        view = repo.get(event.processing_id)
        view.tracking_id = event.tracking_id
        view.updated_at = event.attached_at
        repo.add(view)

    @on(ShippingCaptured)
    def on_shipping_captured(self, event):
        repo = current_domain.repository_for(ProcessingStatusView)
        view = repo.get(event.processing_id)
        view.order_status = OrderStatus.SHIPPED.value
        view.current_step = ProcessingStep.HANDOVER.value
        view.tracking_number = event.tracking_number
        view.courier = event.courier
        view.updated_at = event.shipped_at
        repo.add(view)

    @on(HandoverConfirmed)
    def on_handover_confirmed(self, event):
        repo = current_domain.repository_for(ProcessingStatusView)
        view = repo.get(event.processing_id)
        view.order_status = OrderStatus.OUT_FOR_DELIVERY.value
        view.completed = True
        view.updated_at = event.handed_over_at
        repo.add(view)
