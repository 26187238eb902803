from __future__ import annotations

import argparse
import json
import logging
import time

from app.config import load_config, setup_logging
from app.services.container import ServiceContainer

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Run the reminder scheduler loop without starting the web server."""
    parser = argparse.ArgumentParser(prog="aquawise-scheduler")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single reminder scan, print its summary as JSON and exit",
    )
    args = parser.parse_args(argv)

    config = load_config()
    setup_logging(debug=config.DEBUG, level=config.log_level, log_file=config.log_file)

    if args.once:
        container = ServiceContainer.build(config, start_scheduler=False)
        try:
            result = container.irrigation_reminder_service.scan()
            print(json.dumps(result.to_dict(), indent=2))
            return 0 if result.ok else 1
        finally:
            container.shutdown()

    container = ServiceContainer.build(config, start_scheduler=True)
    logger.info("Scheduler running (press Ctrl+C to stop)")
    try:
        while container.scheduler.is_running():
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Stopping scheduler...")
    finally:
        try:
            container.shutdown()
        except (RuntimeError, OSError):
            logger.exception("Failed to shut down scheduler cleanly")
            return 1
    return 0


if __name__ == "__main__":
    import sys

    raise SystemExit(main(sys.argv[1:]))
