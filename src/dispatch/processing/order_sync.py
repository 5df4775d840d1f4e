"""Pushes processing progress to the marketplace order service."""

import structlog

from dispatch.gateway import get_order_gateway
from dispatch.gateway.port import GatewayUnavailable
from dispatch.processing.processing import STEP_ORDER_STATUS, OrderProcessing, ProcessingStep

logger = structlog.get_logger(__name__)


def push_order_status(proc: OrderProcessing, step: ProcessingStep) -> None:
    """Send the order status a completed step leaves behind.

    Raises GatewayUnavailable when the order service rejects the update, so
    the caller's unit of work is discarded and the step stays where it was.
    """
    status = STEP_ORDER_STATUS[step].value
    result = get_order_gateway().update_order_status(str(proc.order_id), status, proc.step_data(step))
    if not result.success:
        logger.warning(
            "Order status update failed",
            order_id=str(proc.order_id),
            step=step.value,
            status=status,
            reason=result.failure_reason,
        )
        raise GatewayUnavailable("update_order_status", result.failure_reason or "unknown")

    logger.info("Order status updated", order_id=str(proc.order_id), step=step.value, status=status)


def render_documents(proc: OrderProcessing, kinds: list[str]) -> dict[str, str]:
    """Render order documents, raising GatewayUnavailable on failure."""
    if not kinds:
        return {}
    result = get_order_gateway().render_documents(str(proc.order_id), kinds)
    if not result.success:
        logger.warning(
            "Document rendering failed",
            order_id=str(proc.order_id),
            kinds=kinds,
            reason=result.failure_reason,
        )
        raise GatewayUnavailable("render_documents", result.failure_reason or "unknown")
    return dict(result.documents)
