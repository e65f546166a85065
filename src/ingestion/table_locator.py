"""
Table discovery for FBref pages.

FBref ships most of its secondary tables inside HTML comments so that a
plain DOM walk only sees the league table. We collect the visible tables
first and then re-parse every comment that contains table markup.
"""
import logging
import re
from typing import List

from bs4 import BeautifulSoup

from src.ingestion.models import TableCandidate, SOURCE_VISIBLE, SOURCE_COMMENT

logger = logging.getLogger(__name__)

COMMENT_PATTERN = re.compile(r'<!--(.*?)-->', re.DOTALL)
TABLE_MARKER = re.compile(r'<table', re.IGNORECASE)


class ParseError(Exception):
    """Raised when the page as a whole cannot be parsed"""


def _parse(html_text: str) -> BeautifulSoup:
    return BeautifulSoup(html_text, 'html.parser')


def extract_commented_tables(html_text: str) -> List[str]:
    """Return the inner text of every comment block that holds a <table"""
    return [
        m.group(1)
        for m in COMMENT_PATTERN.finditer(html_text)
        if TABLE_MARKER.search(m.group(1))
    ]


def locate_tables(html_text: str) -> List[TableCandidate]:
    """
    Find every table worth scanning in ``html_text``.

    Visible tables come first in document order, followed by tables
    recovered from comments in the order the comments appear.

    Raises:
        ParseError: if the document itself cannot be parsed.
    """
    try:
        soup = _parse(html_text)
    except Exception as e:
        raise ParseError(f"Parsing HTML failed: {e}") from e

    candidates = [TableCandidate(table, SOURCE_VISIBLE) for table in soup.find_all('table')]
    visible_count = len(candidates)

    for index, fragment in enumerate(extract_commented_tables(html_text)):
        try:
            fragment_soup = _parse(fragment)
        except Exception as e:
            logger.debug(f"Skipping unparseable comment fragment #{index}: {e}")
            continue
        candidates.extend(
            TableCandidate(table, SOURCE_COMMENT) for table in fragment_soup.find_all('table')
        )

    logger.debug(
        f"Located {len(candidates)} tables "
        f"({visible_count} visible, {len(candidates) - visible_count} from comments)"
    )
    return candidates
