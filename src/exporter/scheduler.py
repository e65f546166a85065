"""
Scrape Scheduler
================

Runs one cycle as soon as it starts, then one per interval, forever.
Cycles never overlap: the next one is only considered after the previous
one has returned. An overrunning cycle pushes the next one back; missed
ticks are not made up.
"""

import logging
import threading
import time
from typing import Optional

from src.exporter.cycle import run_cycle
from src.exporter.publisher import MetricPublisher
from src.ingestion.fbref_fetcher import FBrefFetcher
from src.ingestion.models import CycleResult

logger = logging.getLogger(__name__)


class ScrapeScheduler:
    """Background driver for the fetch/extract/publish cycle."""

    def __init__(self, fetcher: FBrefFetcher, publisher: MetricPublisher,
                 interval: float = 3600.0, url: Optional[str] = None):
        self.fetcher = fetcher
        self.publisher = publisher
        self.interval = interval
        self.url = url
        self.cycles_run = 0
        self._stop = threading.Event()
        self._cycle_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> CycleResult:
        """Run a single cycle synchronously on the calling thread."""
        with self._cycle_lock:
            self.cycles_run += 1
            start = time.perf_counter()
            try:
                return run_cycle(self.fetcher, self.publisher, self.url)
            except Exception as e:
                duration = time.perf_counter() - start
                logger.error(f"[Cycle {self.cycles_run}] Unexpected scrape error: {e}", exc_info=True)
                self.publisher.end_cycle(success=False, duration=duration)
                return CycleResult(success=False, duration=duration, error=str(e))

    def _loop(self) -> None:
        while not self._stop.is_set():
            started = time.monotonic()
            result = self.run_once()
            logger.info(
                f"[Cycle {self.cycles_run}] {'succeeded' if result.success else 'failed'} "
                f"in {result.duration:.2f}s"
            )

            delay = max(0.0, self.interval - (time.monotonic() - started))
            if delay == 0.0:
                logger.warning(f"[Cycle {self.cycles_run}] overran the {self.interval:.0f}s interval")
            logger.info(f"Next scrape in {delay:.0f}s")
            if self._stop.wait(delay):
                break
        logger.info("Scheduler stopped")

    def start(self) -> None:
        """Start the background thread. The first cycle runs immediately."""
        if self.running:
            raise RuntimeError("Scheduler is already running")
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="fbref-scheduler", daemon=True)
        self._thread.start()
        logger.info(f"Scheduler started (interval {self.interval:.0f}s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Ask the loop to exit and wait for the current cycle to finish."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
