"""Tracking page — customer-facing view of a shipment's journey."""

import json

from protean.core.projector import on
from protean.fields import DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.shipment.events import ShipmentScanned, TrackingGenerated
from dispatch.shipment.identifier import tracking_url_for
from dispatch.shipment.shipment import Shipment
from dispatch.shipment.status import ShipmentStatus, describe, progress, timeline_step


@dispatch.projection
class TrackingPageView:
    tracking_id = String(identifier=True, required=True, max_length=100)
    order_id = Identifier()
    order_number = String()
    tracking_url = String()
    current_status = String(required=True)
    status_description = String()
    progress = Integer(default=0)
    timeline_step = Integer(default=0)
    scans_json = Text()  # JSON list of scans, oldest first
    last_scanned_at = DateTime()


def _get_or_create(tracking_id: str) -> TrackingPageView:
    repo = current_domain.repository_for(TrackingPageView)
    results = repo._dao.query.filter(tracking_id=tracking_id).all()
    if results and results.items:
        return results.first
    status = ShipmentStatus.PENDING
    return TrackingPageView(
        tracking_id=tracking_id,
        tracking_url=tracking_url_for(tracking_id),
        current_status=status.value,
        status_description=describe(status),
        progress=progress(status),
        timeline_step=timeline_step(status),
        scans_json=json.dumps([]),
    )


@dispatch.projector(projector_for=TrackingPageView, aggregates=[Shipment])
class TrackingPageProjector:
    @on(TrackingGenerated)
    def on_tracking_generated(self, event):
        view = _get_or_create(event.tracking_id)
        view.order_id = event.order_id
        view.order_number = event.order_number
        view.tracking_url = event.tracking_url or view.tracking_url
        current_domain.repository_for(TrackingPageView).add(view)

    @on(ShipmentScanned)
    def on_shipment_scanned(self, event):
        view = _get_or_create(event.tracking_id)
        status = ShipmentStatus(event.status)
        view.current_status = status.value
        view.status_description = describe(status)
        view.progress = progress(status)
        view.timeline_step = timeline_step(status)
        view.last_scanned_at = event.scanned_at
        if event.order_id and not view.order_id:
            view.order_id = event.order_id

        scans = json.loads(view.scans_json) if view.scans_json else []
        scans.append(
            {
                "sequence": event.sequence,
                "status": status.value,
                "description": describe(status),
                "latitude": event.latitude,
                "longitude": event.longitude,
                "notes": event.notes,
                "scanned_at": event.scanned_at.isoformat() if event.scanned_at else None,
            }
        )
        view.scans_json = json.dumps(sorted(scans, key=lambda s: s["sequence"]))
        current_domain.repository_for(TrackingPageView).add(view)
