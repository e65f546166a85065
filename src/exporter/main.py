"""
Premier League metrics exporter.

Usage:
    python -m src.exporter.main              # serve /metrics and scrape hourly
    python -m src.exporter.main --once       # one scrape, print exposition, exit
    python -m src.exporter.main --port 9200  # override EXPORTER_PORT
"""
import argparse
import logging
import sys
import threading
from typing import List, Optional

from src.config import get_settings
from src.exporter.publisher import MetricPublisher
from src.exporter.scheduler import ScrapeScheduler
from src.exporter.server import PortInUseError, ensure_port_available, start_metrics_server
from src.ingestion.fbref_fetcher import FBrefFetcher

logger = logging.getLogger("fbref_exporter")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="FBref Premier League Prometheus exporter")
    parser.add_argument("--once", action="store_true",
                        help="Run a single scrape, print the metrics and exit")
    parser.add_argument("--port", type=int, default=None,
                        help="Port for the /metrics endpoint (overrides EXPORTER_PORT)")
    return parser.parse_args(argv)


def run_once(scheduler: ScrapeScheduler) -> int:
    result = scheduler.run_once()
    sys.stdout.write(scheduler.publisher.render().decode('utf-8'))
    return 0 if result.success else 1


def serve(scheduler: ScrapeScheduler, port: int, addr: str) -> int:
    try:
        ensure_port_available(port, addr)
    except (PortInUseError, ValueError) as e:
        logger.critical(str(e))
        return 1

    logger.info(f"Starting Premier League metrics exporter on {addr}:{port}")
    try:
        start_metrics_server(scheduler.publisher, port, addr)
    except PortInUseError as e:
        logger.critical(str(e))
        return 1
    scheduler.start()

    try:
        # Runs until the process is killed
        threading.Event().wait()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        scheduler.stop(timeout=5)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        settings = get_settings(port=args.port)
    except ValueError as e:
        configure_logging("INFO")
        logger.critical(f"Invalid configuration: {e}")
        return 1

    configure_logging(settings.log_level)

    publisher = MetricPublisher()
    scheduler = ScrapeScheduler(
        fetcher=FBrefFetcher(settings),
        publisher=publisher,
        interval=settings.scrape_interval,
        url=settings.fbref_url,
    )

    if args.once:
        return run_once(scheduler)
    return serve(scheduler, settings.port, settings.addr)


if __name__ == "__main__":
    sys.exit(main())
