"""Protean Engine runner for the dispatch domain.

Processes events asynchronously when PROTEAN_ENV selects async event
processing (production): projectors keep TrackingPageView and
ProcessingStatusView current, and the dispatch notice handler runs.

Usage:
    python src/server.py
"""

import asyncio

from protean.server.engine import Engine

from dispatch.utils.logging import configure_logging


def _get_domain():
    """Import and initialize the dispatch domain."""
    from dispatch.domain import dispatch

    dispatch.init()
    return dispatch


async def run():
    engine = Engine(_get_domain())
    await engine.run()


def main():
    configure_logging()
    asyncio.run(run())


if __name__ == "__main__":
    main()
