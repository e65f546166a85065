"""
Data models for the FBref scrape pipeline.

Every object here is transient: it is rebuilt on each scrape cycle and
discarded once the metrics have been published.
"""
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from bs4.element import Tag


SOURCE_VISIBLE = "visible"
SOURCE_COMMENT = "comment"


@dataclass
class RawPage:
    """Raw HTML for one fetch of the upstream page"""
    url: str
    html: str
    status_code: int
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class TableCandidate:
    """A parsed <table> plus where it was found"""
    table: Tag
    source: str = SOURCE_VISIBLE

    @property
    def table_id(self) -> Optional[str]:
        # Only used for log lines, never for matching
        return self.table.get('id')


@dataclass
class PlayerRecord:
    """Goals and assists for one player of one team"""
    player: str
    team: str
    goals: Optional[float] = None
    assists: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding None values"""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class GoalkeeperRecord:
    """Clean sheets for one goalkeeper"""
    player: str
    team: str
    clean_sheets: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TeamRecord:
    """One row of the league table"""
    team: str
    points: Optional[float] = None
    goals_for: Optional[float] = None
    goals_against: Optional[float] = None
    wins: Optional[float] = None
    draws: Optional[float] = None
    losses: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding None values"""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class CycleResult:
    """Outcome of one fetch -> extract -> publish cycle"""
    success: bool
    duration: float
    players: int = 0
    teams: int = 0
    goalkeepers: int = 0
    error: Optional[str] = None
