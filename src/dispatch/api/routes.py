"""FastAPI routes for the dispatch service."""

import json
import os

from fastapi import APIRouter, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers
from protean.utils.globals import current_domain

from dispatch.api.schemas import (
    AdvanceStepRequest,
    ConfigureGatewayRequest,
    ConfirmedItemsResponse,
    EarningsResponse,
    GatewayConfigResponse,
    GenerateTrackingRequest,
    ItemReadinessRequest,
    OpenProcessingRequest,
    ParsedScanResponse,
    ParseScanRequest,
    ProcessingIdResponse,
    ProcessingItemResponse,
    ProcessingResponse,
    RecordScanRequest,
    ScanEventResponse,
    ScanRecordedResponse,
    TrackingInfoResponse,
    TrackingResponse,
)
from dispatch.domain import dispatch
from dispatch.earnings.calculator import EarningsBreakdown, breakdown
from dispatch.gateway import get_order_gateway
from dispatch.gateway.fake_adapter import FakeOrderGateway
from dispatch.gateway.port import GatewayUnavailable
from dispatch.processing.confirmation import ConfirmAvailability
from dispatch.processing.documents import PrepareDocuments
from dispatch.processing.handover import ConfirmHandover
from dispatch.processing.opening import OpenOrderProcessing
from dispatch.processing.processing import OrderProcessing, ProcessingStep
from dispatch.processing.readiness import MarkItemReady
from dispatch.processing.shipping import CaptureShipping
from dispatch.processing.tracking import GenerateShipmentTracking
from dispatch.shipment.generation import GenerateTracking
from dispatch.shipment.history import ScanHistoryLog
from dispatch.shipment.identifier import StructuredScan, parse_scan, qr_payload
from dispatch.shipment.shipment import ScanEvent, Shipment
from dispatch.shipment.status import ShipmentStatus, allowed_next, describe, is_terminal, progress, timeline_step

scan_log = ScanHistoryLog(dispatch)


def register_dispatch_exception_handlers(app: FastAPI) -> None:
    """Protean exceptions plus order-service outages (503)."""
    register_exception_handlers(app)

    @app.exception_handler(GatewayUnavailable)
    async def gateway_unavailable_handler(request: Request, exc: GatewayUnavailable) -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content={"error": {"gateway": [exc.reason]}, "operation": exc.operation},
        )


def _scan_response(scan: ScanEvent) -> dict:
    location = scan.location
    return {
        "sequence": scan.sequence,
        "status": scan.status,
        "description": describe(scan.status),
        "latitude": location.latitude if location else None,
        "longitude": location.longitude if location else None,
        "notes": scan.notes,
        "occurred_at": scan.occurred_at.isoformat(),
    }


def _earnings_response(earnings: EarningsBreakdown, fixed: bool) -> EarningsResponse:
    return EarningsResponse(
        order_subtotal=earnings.order_subtotal,
        commission_rate=earnings.commission_rate,
        vat_rate=earnings.vat_rate,
        base_commission=earnings.base_commission,
        marketplace_fee=earnings.marketplace_fee,
        vat_amount=earnings.vat_amount,
        total_deductions=earnings.total_deductions,
        vendor_payout=earnings.vendor_payout,
        rule_type=earnings.rule_type,
        fixed=fixed,
    )


# ---------------------------------------------------------------------------
# Scan Router
# ---------------------------------------------------------------------------
scan_router = APIRouter(prefix="/api/scan", tags=["scan"])


@scan_router.post("/generate/{order_id}", status_code=201, response_model=TrackingResponse)
async def generate_tracking(order_id: str, body: GenerateTrackingRequest | None = None) -> TrackingResponse:
    """Mint a tracking identifier for an order (or return the one it has)."""
    order_number = body.order_number if body else None
    tracking_id = current_domain.process(
        GenerateTracking(order_id=order_id, order_number=order_number),
        asynchronous=False,
    )
    shipment = current_domain.repository_for(Shipment).get(tracking_id)
    return TrackingResponse(
        tracking_id=tracking_id,
        tracking_url=shipment.tracking_url,
        qr_payload=qr_payload(tracking_id, shipment.order_number),
    )


@scan_router.post("/parse", response_model=ParsedScanResponse)
async def parse_scanned_code(body: ParseScanRequest) -> ParsedScanResponse:
    """Resolve raw scanner output into a tracking identifier."""
    payload = parse_scan(body.raw)
    return ParsedScanResponse(
        format="structured" if isinstance(payload, StructuredScan) else "canonical",
        tracking_id=str(payload.tracking_id),
        tracking_url=payload.tracking_url,
        order_number=payload.order_number,
    )


@scan_router.post("", status_code=201, response_model=ScanRecordedResponse)
async def record_scan(body: RecordScanRequest) -> ScanRecordedResponse:
    """Record a status update from a scanner."""
    tracking_id = body.tracking_id
    if not tracking_id:
        if not body.raw:
            raise ValidationError({"tracking_id": ["Either tracking_id or raw scan is required"]})
        # Structured payloads keep their trackingId as sent, which may be a number
        tracking_id = str(parse_scan(body.raw).tracking_id)
    try:
        status = ShipmentStatus(body.status)
    except ValueError:
        raise ValidationError({"status": [f"Unknown shipment status: {body.status}"]}) from None

    scan = scan_log.record(
        tracking_id,
        status,
        latitude=body.latitude,
        longitude=body.longitude,
        notes=body.notes,
    )
    return ScanRecordedResponse(tracking_id=tracking_id, **_scan_response(scan))


@scan_router.get("/{tracking_id}", response_model=TrackingInfoResponse)
async def get_tracking_info(tracking_id: str) -> TrackingInfoResponse:
    """Current status, allowed next statuses and scan history."""
    try:
        shipment = scan_log.shipment(tracking_id)
    except ObjectNotFoundError:
        raise HTTPException(status_code=404, detail=f"Unknown tracking identifier: {tracking_id}") from None

    status = scan_log.current_status(tracking_id)
    return TrackingInfoResponse(
        tracking_id=tracking_id,
        order_number=shipment.order_number,
        tracking_url=shipment.tracking_url,
        current_status=status.value,
        description=describe(status),
        progress=progress(status),
        timeline_step=timeline_step(status),
        is_terminal=is_terminal(status),
        allowed_next=sorted(s.value for s in allowed_next(status)),
        history=[ScanEventResponse(**_scan_response(scan)) for scan in shipment.history()],
    )


# ---------------------------------------------------------------------------
# Processing Router
# ---------------------------------------------------------------------------
processing_router = APIRouter(prefix="/processing", tags=["processing"])


def _load_processing(processing_id: str) -> OrderProcessing:
    try:
        return current_domain.repository_for(OrderProcessing).get(processing_id)
    except ObjectNotFoundError:
        raise HTTPException(status_code=404, detail=f"Unknown processing session: {processing_id}") from None


def _processing_response(proc: OrderProcessing) -> ProcessingResponse:
    return ProcessingResponse(
        processing_id=str(proc.id),
        order_id=str(proc.order_id),
        order_number=proc.order_number,
        order_status=proc.order_status,
        current_step=proc.current_step,
        completed=bool(proc.completed),
        items=[
            ProcessingItemResponse(
                order_item_id=str(i.order_item_id),
                name=i.name,
                quantity=i.quantity,
                unit_price=i.unit_price,
                ready=bool(i.ready),
            )
            for i in proc.items
        ],
        subtotal=proc.subtotal or 0.0,
        documents=json.loads(proc.documents) if proc.documents else {},
        tracking_id=proc.tracking_id,
        tracking_url=proc.tracking_url,
        suggested_tracking_number=proc.suggested_tracking_number,
        tracking_number=proc.tracking_number,
        courier=proc.courier,
        dispatch_proof_reference=proc.dispatch_proof_reference,
    )


@processing_router.post("", status_code=201, response_model=ProcessingIdResponse)
async def open_processing(body: OpenProcessingRequest) -> ProcessingIdResponse:
    """Open (or resume) the processing workflow for an order."""
    command = OpenOrderProcessing(
        order_id=body.order_id,
        order_number=body.order_number,
        customer_email=body.customer_email,
        order_status=body.order_status,
        items=json.dumps([item.model_dump() for item in body.items]),
    )
    result = current_domain.process(command, asynchronous=False)
    return ProcessingIdResponse(processing_id=result)


@processing_router.put("/{processing_id}/items/{item_id}/ready", response_model=ConfirmedItemsResponse)
async def mark_item_ready(processing_id: str, item_id: str, body: ItemReadinessRequest) -> ConfirmedItemsResponse:
    """Tick or untick a line item during the confirm step."""
    _load_processing(processing_id)
    result = current_domain.process(
        MarkItemReady(processing_id=processing_id, order_item_id=item_id, ready=body.ready),
        asynchronous=False,
    )
    return ConfirmedItemsResponse(confirmed_items=result)


@processing_router.post("/{processing_id}/tracking", response_model=TrackingResponse)
async def generate_processing_tracking(processing_id: str) -> TrackingResponse:
    """Generate (or return) the tracking identifier for the order."""
    _load_processing(processing_id)
    tracking_id = current_domain.process(
        GenerateShipmentTracking(processing_id=processing_id),
        asynchronous=False,
    )
    proc = _load_processing(processing_id)
    return TrackingResponse(
        tracking_id=tracking_id,
        tracking_url=proc.tracking_url,
        qr_payload=qr_payload(tracking_id, proc.order_number),
    )


@processing_router.put("/{processing_id}/steps/{step}", response_model=ProcessingResponse)
async def advance_step(processing_id: str, step: str, body: AdvanceStepRequest | None = None) -> ProcessingResponse:
    """Perform a workflow step. Re-submitting a completed step changes nothing."""
    try:
        step = ProcessingStep(step)
    except ValueError:
        raise ValidationError({"step": [f"Unknown processing step: {step}"]}) from None

    body = body or AdvanceStepRequest()
    _load_processing(processing_id)

    if step == ProcessingStep.CONFIRM:
        command = ConfirmAvailability(processing_id=processing_id)
    elif step == ProcessingStep.DOCUMENTS:
        command = PrepareDocuments(processing_id=processing_id, kinds=json.dumps(body.document_kinds))
    elif step == ProcessingStep.SHIPPING:
        command = CaptureShipping(
            processing_id=processing_id,
            tracking_number=body.tracking_number,
            courier=body.courier,
        )
    else:
        command = ConfirmHandover(
            processing_id=processing_id,
            dispatch_proof_reference=body.dispatch_proof_reference,
        )
    current_domain.process(command, asynchronous=False)
    return _processing_response(_load_processing(processing_id))


@processing_router.get("/{processing_id}", response_model=ProcessingResponse)
async def get_processing(processing_id: str) -> ProcessingResponse:
    return _processing_response(_load_processing(processing_id))


@processing_router.get("/{processing_id}/earnings", response_model=EarningsResponse)
async def get_processing_earnings(processing_id: str) -> EarningsResponse:
    """Fixed payout once availability is confirmed, otherwise a preview at current rates."""
    proc = _load_processing(processing_id)
    if proc.earnings is not None:
        return _earnings_response(proc.earnings, fixed=True)
    return _earnings_response(breakdown(proc.subtotal or 0.0), fixed=False)


@processing_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeOrderGateway behavior (non-production only)."""
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_order_gateway()
    if not isinstance(gateway, FakeOrderGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeOrderGateway")

    gateway.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
    )
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
    )


# ---------------------------------------------------------------------------
# Earnings Router
# ---------------------------------------------------------------------------
earnings_router = APIRouter(prefix="/earnings", tags=["earnings"])


@earnings_router.get("/preview", response_model=EarningsResponse)
async def preview_earnings(
    subtotal: float = Query(...),
    commission_rate: float | None = Query(default=None),
    vat_rate: float | None = Query(default=None),
    min_fee: float | None = Query(default=None),
    max_fee: float | None = Query(default=None),
) -> EarningsResponse:
    """Fee and payout preview for a subtotal."""
    return _earnings_response(
        breakdown(subtotal, commission_rate, vat_rate, min_fee=min_fee, max_fee=max_fee),
        fixed=False,
    )
