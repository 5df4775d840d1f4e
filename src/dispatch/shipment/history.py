"""Scan history log — the single entry point for shipment state changes.

Wraps the Shipment repository of a domain. ``record`` is serialized per
tracking identifier so that validating against the last scan and appending
the new one happen as one step, including the commit of the unit of work.
"""

import structlog
from protean.domain import Domain
from protean.exceptions import ObjectNotFoundError

from dispatch.shipment.locks import KeyedLock
from dispatch.shipment.scanning import RecordScan
from dispatch.shipment.shipment import ScanEvent, Shipment
from dispatch.shipment.status import IllegalTransition, ShipmentStatus

logger = structlog.get_logger(__name__)


class ScanHistoryLog:
    def __init__(self, domain: Domain, locks: KeyedLock | None = None) -> None:
        self.domain = domain
        self._locks = locks or KeyedLock()

    def _load(self, tracking_id: str) -> Shipment | None:
        try:
            return self.domain.repository_for(Shipment).get(tracking_id)
        except ObjectNotFoundError:
            return None

    def record(
        self,
        tracking_id: str,
        status: ShipmentStatus | str,
        latitude: float | None = None,
        longitude: float | None = None,
        notes: str | None = None,
    ) -> ScanEvent:
        """Append a scan, or raise IllegalTransition without writing anything."""
        status = ShipmentStatus(status)
        with self._locks.hold(tracking_id):
            try:
                self.domain.process(
                    RecordScan(
                        tracking_id=tracking_id,
                        status=status.value,
                        latitude=latitude,
                        longitude=longitude,
                        notes=notes,
                    ),
                    asynchronous=False,
                )
            except IllegalTransition as exc:
                logger.info(
                    "Scan rejected",
                    tracking_id=tracking_id,
                    current_status=exc.current.value if exc.current else None,
                    attempted_status=exc.attempted.value,
                )
                raise

            scan = self._load(tracking_id).history()[-1]

        logger.info(
            "Scan recorded",
            tracking_id=tracking_id,
            status=scan.status,
            sequence=scan.sequence,
        )
        return scan

    def current_status(self, tracking_id: str) -> ShipmentStatus:
        """Status of the latest scan, or PENDING when nothing has been recorded."""
        shipment = self._load(tracking_id)
        if shipment is None or shipment.last_status is None:
            return ShipmentStatus.PENDING
        return shipment.last_status

    def history(self, tracking_id: str) -> tuple[ScanEvent, ...]:
        shipment = self._load(tracking_id)
        return shipment.history() if shipment is not None else ()

    def shipment(self, tracking_id: str) -> Shipment:
        """Load a shipment, raising ObjectNotFoundError for unknown identifiers."""
        return self.domain.repository_for(Shipment).get(tracking_id)
