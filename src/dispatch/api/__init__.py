"""Dispatch API package."""

from dispatch.api.routes import (
    earnings_router,
    processing_router,
    register_dispatch_exception_handlers,
    scan_router,
)

__all__ = ["scan_router", "processing_router", "earnings_router", "register_dispatch_exception_handlers"]
