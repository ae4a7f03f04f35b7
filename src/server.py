"""Protean Engine runner for the storefront domain.

Needed when ``event_processing`` is ``async`` (the production overlay): the
Engine runs the outbox processor, which publishes committed events to the
broker, and the stream subscriptions that invoke projectors and event
handlers (search index, cache invalidation, admin notifications).

Usage:
    python src/server.py                 # Run until interrupted
    python src/server.py --test-mode     # Process pending messages and exit
    python src/server.py --debug         # Verbose engine logging
"""

import argparse

import structlog
from protean.server.engine import Engine

import bootstrap

logger = structlog.get_logger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Storefront Engine runner")
    parser.add_argument("--test-mode", action="store_true", help="Drain pending messages and exit")
    parser.add_argument("--debug", action="store_true", help="Enable engine debug logging")
    args = parser.parse_args()

    storefront = bootstrap.init()
    logger.info("Engine starting", domain=storefront.name, event_processing=storefront.config["event_processing"])

    engine = Engine(storefront, test_mode=args.test_mode, debug=args.debug)
    engine.run()


if __name__ == "__main__":
    main()
