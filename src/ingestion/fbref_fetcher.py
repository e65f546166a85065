"""
FBref page fetcher with browser impersonation and linear retry backoff.
"""
import logging
import time
from typing import Optional

from curl_cffi import requests

from src.config import Settings, get_settings
from src.ingestion.models import RawPage

logger = logging.getLogger(__name__)


# FBref answers 403 to clients that do not look like a browser
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/142.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Referer": "https://fbref.com/en/",
}


class FetchError(Exception):
    """Raised when every fetch attempt for a page has failed"""

    def __init__(self, url: str, attempts: int,
                 status_code: Optional[int] = None,
                 cause: Optional[BaseException] = None):
        self.url = url
        self.attempts = attempts
        self.status_code = status_code
        self.cause = cause
        detail = f"status {status_code}" if status_code is not None else repr(cause)
        super().__init__(f"Failed to fetch {url} after {attempts} attempts ({detail})")


class FBrefFetcher:
    """
    Fetches the upstream stats page.

    Retries on network errors and on any non-200 status, sleeping
    ``attempt * retry_backoff`` seconds between attempts.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.session = requests.Session(impersonate=self.settings.impersonate)
        self.session.headers.update(BROWSER_HEADERS)

    def fetch(self, url: Optional[str] = None) -> RawPage:
        """
        GET ``url`` (defaults to the configured FBref page).

        Raises:
            FetchError: once ``max_retries`` attempts have failed.
        """
        url = url or self.settings.fbref_url
        max_retries = self.settings.max_retries
        last_error: Optional[BaseException] = None
        last_status: Optional[int] = None

        for attempt in range(1, max_retries + 1):
            try:
                logger.info(f"Fetching: {url} (attempt {attempt}/{max_retries})")
                response = self.session.get(url, timeout=self.settings.request_timeout)

                if response.status_code == 200:
                    return RawPage(url=url, html=response.text, status_code=response.status_code)

                last_status = response.status_code
                last_error = None
                logger.warning(f"Attempt {attempt} got HTTP {response.status_code} for {url}")

            except Exception as e:
                last_error = e
                last_status = None
                logger.warning(f"Attempt {attempt} failed for {url}: {e}")

            if attempt < max_retries:
                wait_time = attempt * self.settings.retry_backoff
                logger.debug(f"Retrying in {wait_time:.1f}s")
                time.sleep(wait_time)

        error = FetchError(url, max_retries, status_code=last_status, cause=last_error)
        logger.error(str(error))
        raise error from last_error
