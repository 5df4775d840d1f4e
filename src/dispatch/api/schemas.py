"""Pydantic API schemas for the dispatch service.

These are the external API contracts — separate from domain commands.
Scanner and step payloads accept the camelCase keys the mobile scanner and
vendor dashboard send, as well as snake_case.
"""

from pydantic import BaseModel, ConfigDict, Field


class _CamelCaseRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class GenerateTrackingRequest(BaseModel):
    order_number: str | None = None


class ParseScanRequest(BaseModel):
    raw: str


class RecordScanRequest(_CamelCaseRequest):
    """Either ``tracking_id`` or the ``raw`` scanner output must be given."""

    tracking_id: str | None = Field(default=None, alias="trackingId")
    raw: str | None = None
    status: str
    latitude: float | None = Field(default=None, alias="lat")
    longitude: float | None = Field(default=None, alias="lng")
    notes: str | None = None


class ProcessingItemRequest(BaseModel):
    order_item_id: str
    name: str | None = None
    quantity: int
    unit_price: float


class OpenProcessingRequest(BaseModel):
    order_id: str
    order_number: str | None = None
    customer_email: str | None = None
    order_status: str
    items: list[ProcessingItemRequest]


class ItemReadinessRequest(BaseModel):
    ready: bool = True


class AdvanceStepRequest(_CamelCaseRequest):
    document_kinds: list[str] = Field(default_factory=list, alias="documentKinds")
    tracking_number: str | None = Field(default=None, alias="trackingNumber")
    courier: str | None = None
    dispatch_proof_reference: str | None = Field(default=None, alias="dispatchProofReference")


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Order service unavailable"


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class TrackingResponse(BaseModel):
    tracking_id: str
    tracking_url: str | None = None
    qr_payload: str


class ParsedScanResponse(BaseModel):
    format: str  # "canonical" or "structured"
    tracking_id: str
    tracking_url: str | None = None
    order_number: str | None = None


class ScanEventResponse(BaseModel):
    sequence: int
    status: str
    description: str
    latitude: float | None = None
    longitude: float | None = None
    notes: str | None = None
    occurred_at: str


class ScanRecordedResponse(ScanEventResponse):
    tracking_id: str


class TrackingInfoResponse(BaseModel):
    tracking_id: str
    order_number: str | None = None
    tracking_url: str | None = None
    current_status: str
    description: str
    progress: int
    timeline_step: int
    is_terminal: bool
    allowed_next: list[str]
    history: list[ScanEventResponse]


class ProcessingIdResponse(BaseModel):
    processing_id: str


class ConfirmedItemsResponse(BaseModel):
    confirmed_items: list[str]


class ProcessingItemResponse(BaseModel):
    order_item_id: str
    name: str | None = None
    quantity: int
    unit_price: float
    ready: bool


class ProcessingResponse(BaseModel):
    processing_id: str
    order_id: str
    order_number: str | None = None
    order_status: str
    current_step: str
    completed: bool
    items: list[ProcessingItemResponse]
    subtotal: float
    documents: dict[str, str]
    tracking_id: str | None = None
    tracking_url: str | None = None
    suggested_tracking_number: str | None = None
    tracking_number: str | None = None
    courier: str | None = None
    dispatch_proof_reference: str | None = None


class EarningsResponse(BaseModel):
    order_subtotal: float
    commission_rate: float
    vat_rate: float
    base_commission: float
    marketplace_fee: float
    vat_amount: float
    total_deductions: float
    vendor_payout: float
    rule_type: str
    fixed: bool = False


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str
