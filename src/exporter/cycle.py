"""One scrape cycle: fetch -> locate tables -> extract rows -> publish."""

import logging
import time
from typing import Optional

from src.exporter.publisher import MetricPublisher
from src.ingestion.fbref_fetcher import FBrefFetcher, FetchError
from src.ingestion.fbref_scraper import classify_and_extract
from src.ingestion.models import CycleResult
from src.ingestion.table_locator import ParseError, locate_tables

logger = logging.getLogger(__name__)


def run_cycle(fetcher: FBrefFetcher, publisher: MetricPublisher,
              url: Optional[str] = None) -> CycleResult:
    """
    Run one full cycle and fold the outcome into the health gauges.

    Fetch and document-parse failures are reported through the result and
    the success gauge; they never propagate. Previously published stats are
    left in place when the cycle fails.
    """
    start = time.perf_counter()
    logger.info("Starting FBref Premier League scrape...")

    try:
        page = fetcher.fetch(url)
        candidates = locate_tables(page.html)
    except (FetchError, ParseError) as e:
        duration = time.perf_counter() - start
        logger.error(f"Scrape failed after {duration:.2f}s: {e}")
        publisher.end_cycle(success=False, duration=duration)
        return CycleResult(success=False, duration=duration, error=str(e))

    extraction = classify_and_extract(candidates)

    publisher.begin_cycle()
    for record in extraction.records:
        publisher.publish(record)
    duration = time.perf_counter() - start
    publisher.end_cycle(success=True, duration=duration)

    logger.info(
        f"Scraped {extraction.players} players, {extraction.teams} teams, "
        f"{extraction.goalkeepers} goalkeepers in {duration:.2f}s"
    )
    return CycleResult(
        success=True,
        duration=duration,
        players=extraction.players,
        teams=extraction.teams,
        goalkeepers=extraction.goalkeepers,
    )
