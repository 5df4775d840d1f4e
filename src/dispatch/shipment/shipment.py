"""Shipment aggregate (CQRS) — the scan history of one tracking identifier.

A Shipment is created in PENDING when a tracking identifier is minted, and is
mutated only by accepted scans. Scans are appended, never edited or removed;
each one is validated against the status of the scan before it.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from dispatch.domain import dispatch
from dispatch.shipment.events import ShipmentScanned, TrackingGenerated
from dispatch.shipment.identifier import tracking_url_for
from dispatch.shipment.status import ShipmentStatus, assert_can_transition


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@dispatch.value_object(part_of="Shipment")
class GeoLocation:
    """Latitude/longitude where a scan happened. Partial pairs are rejected."""

    latitude = Float(min_value=-90.0, max_value=90.0)
    longitude = Float(min_value=-180.0, max_value=180.0)

    @invariant.post
    def both_coordinates_required(self):
        if self.latitude is None or self.longitude is None:
            raise ValidationError({"location": ["Both latitude and longitude are required"]})


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@dispatch.entity(part_of="Shipment")
class ScanEvent:
    """One accepted status observation."""

    sequence = Integer(required=True, min_value=1)
    status = String(required=True, max_length=50, choices=ShipmentStatus)
    location = ValueObject(GeoLocation)
    notes = String(max_length=1000)
    occurred_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@dispatch.aggregate
class Shipment:
    tracking_id = String(identifier=True, max_length=100)
    order_id = Identifier()
    order_number = String(max_length=50)
    tracking_url = String(max_length=500)
    current_status = String(
        max_length=50,
        choices=ShipmentStatus,
        default=ShipmentStatus.PENDING.value,
    )
    scan_events = HasMany(ScanEvent)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory methods
    # -------------------------------------------------------------------
    @classmethod
    def mint(cls, tracking_id: str, order_id: str | None = None, order_number: str | None = None):
        """Create the shipment for a freshly minted identifier, seeded with a PENDING scan."""
        now = datetime.now(UTC)
        shipment = cls(
            tracking_id=tracking_id,
            order_id=order_id,
            order_number=order_number,
            tracking_url=tracking_url_for(tracking_id),
            current_status=ShipmentStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        shipment.raise_(
            TrackingGenerated(
                tracking_id=tracking_id,
                order_id=order_id,
                order_number=order_number,
                tracking_url=shipment.tracking_url,
                generated_at=now,
            )
        )
        shipment.record_scan(ShipmentStatus.PENDING, notes="Tracking generated")
        return shipment

    @classmethod
    def open(cls, tracking_id: str):
        """Start an empty history for an identifier seen for the first time at a scanner."""
        now = datetime.now(UTC)
        return cls(
            tracking_id=tracking_id,
            tracking_url=tracking_url_for(tracking_id),
            current_status=ShipmentStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def history(self) -> tuple:
        """Scan events in the order they were accepted."""
        return tuple(sorted(self.scan_events or [], key=lambda e: e.sequence))

    @property
    def last_status(self) -> ShipmentStatus | None:
        events = self.history()
        return ShipmentStatus(events[-1].status) if events else None

    # -------------------------------------------------------------------
    # Scanning
    # -------------------------------------------------------------------
    def record_scan(
        self,
        status: ShipmentStatus | str,
        latitude: float | None = None,
        longitude: float | None = None,
        notes: str | None = None,
    ) -> ScanEvent:
        """Append a scan after checking it against the previous one."""
        try:
            target = ShipmentStatus(status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown shipment status: {status}"]}) from None

        events = self.history()
        last = events[-1] if events else None
        previous = ShipmentStatus(last.status) if last else None
        assert_can_transition(previous, target)

        location = None
        if latitude is not None or longitude is not None:
            location = GeoLocation(latitude=latitude, longitude=longitude)

        # Timestamps never go backwards within one history
        now = datetime.now(UTC)
        if last is not None and last.occurred_at and now < last.occurred_at:
            now = last.occurred_at

        scan = ScanEvent(
            sequence=len(events) + 1,
            status=target.value,
            location=location,
            notes=notes or None,
            occurred_at=now,
        )
        self.add_scan_events(scan)
        self.current_status = target.value
        self.updated_at = now
        self.raise_(
            ShipmentScanned(
                tracking_id=self.tracking_id,
                order_id=self.order_id,
                sequence=scan.sequence,
                previous_status=previous.value if previous else None,
                status=target.value,
                latitude=latitude,
                longitude=longitude,
                notes=notes or None,
                scanned_at=now,
            )
        )
        return scan
