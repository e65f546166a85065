"""
FBref Stats Extractor
Classifies tables by their data-stat column signature and turns body rows
into player, goalkeeper and team records.

The data-stat attribute names below are the contract with FBref's markup.
Table ids change between seasons and competitions; column identifiers have
been stable far longer, so tables are matched on those and never on id.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional, List, Iterable, Union

from bs4.element import Tag

from src.ingestion.models import (
    TableCandidate,
    PlayerRecord,
    GoalkeeperRecord,
    TeamRecord,
)

logger = logging.getLogger(__name__)

# Bump when the data-stat names below are changed to follow upstream markup
MARKUP_CONTRACT_VERSION = 1

PLAYER_STAT = 'player'
TEAM_STAT = 'team'

PLAYER_FIELDS = {
    'goals': 'goals',
    'assists': 'assists',
}
GOALKEEPER_FIELDS = {
    'clean_sheets': 'clean_sheets',
}
TEAM_FIELDS = {
    'points': 'points',
    'goals_for': 'goals_for',
    'goals_against': 'goals_against',
    'wins': 'wins',
    'draws': 'draws',
    'losses': 'losses',
}

StatRecord = Union[PlayerRecord, GoalkeeperRecord, TeamRecord]


@dataclass
class ExtractionResult:
    """Records from one page plus per-schema row counts"""
    records: List[StatRecord] = field(default_factory=list)
    players: int = 0
    teams: int = 0
    goalkeepers: int = 0


def _has_cell(table: Tag, tags, data_stat: str) -> bool:
    return table.find(tags, attrs={'data-stat': data_stat}) is not None


def is_player_table(table: Tag) -> bool:
    return _has_cell(table, ['th', 'td'], PLAYER_STAT) and _has_cell(table, 'td', 'goals')


def is_goalkeeper_table(table: Tag) -> bool:
    return _has_cell(table, ['th', 'td'], PLAYER_STAT) and _has_cell(table, 'td', 'clean_sheets')


def is_team_table(table: Tag) -> bool:
    return _has_cell(table, 'th', TEAM_STAT) and _has_cell(table, 'td', 'points')


def _body_rows(table: Tag) -> List[Tag]:
    """
    Rows under <tbody>. html.parser does not synthesise a tbody, so for bare
    tables fall back to every row outside thead/tfoot.
    """
    if table.find('tbody') is not None:
        rows = table.select('tbody tr')
    else:
        rows = [
            tr for tr in table.find_all('tr')
            if tr.parent is not None and tr.parent.name not in ('thead', 'tfoot')
        ]
    # FBref repeats the header every 25 rows or so as <tr class="thead">
    return [tr for tr in rows if 'thead' not in (tr.get('class') or [])]


def _parse_table_cell(cell) -> Optional[str]:
    """Safely extract text from table cell"""
    if cell is None:
        return None
    # Inner whitespace between child nodes is part of the name
    text = cell.get_text().strip()
    return text if text else None


def _cell_text(row: Tag, data_stat: str) -> Optional[str]:
    return _parse_table_cell(row.find(['th', 'td'], attrs={'data-stat': data_stat}))


def _parse_number(text: Optional[str]) -> Optional[float]:
    # float() also takes digit separators such as "1_000"; cells never carry them
    if text is None or "_" in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _numeric_fields(row: Tag, fields: dict) -> dict:
    values = {}
    for attr, data_stat in fields.items():
        raw = _cell_text(row, data_stat)
        value = _parse_number(raw)
        if value is None and raw is not None:
            logger.debug(f"Could not convert {data_stat}={raw!r}")
        values[attr] = value
    return values


def extract_player_rows(table: Tag) -> List[PlayerRecord]:
    """Player rows missing a name or a team are dropped"""
    records = []
    for row in _body_rows(table):
        player = _cell_text(row, PLAYER_STAT)
        team = _cell_text(row, TEAM_STAT)
        if not player or not team:
            continue
        records.append(PlayerRecord(player=player, team=team, **_numeric_fields(row, PLAYER_FIELDS)))
    return records


def extract_goalkeeper_rows(table: Tag) -> List[GoalkeeperRecord]:
    records = []
    for row in _body_rows(table):
        player = _cell_text(row, PLAYER_STAT)
        team = _cell_text(row, TEAM_STAT)
        if not player or not team:
            continue
        clean_sheets = _numeric_fields(row, GOALKEEPER_FIELDS)['clean_sheets']
        # Clean sheets are the only value a goalkeeper row carries
        if clean_sheets is None:
            continue
        records.append(GoalkeeperRecord(player=player, team=team, clean_sheets=clean_sheets))
    return records


def extract_team_rows(table: Tag) -> List[TeamRecord]:
    records = []
    for row in _body_rows(table):
        team = _cell_text(row, TEAM_STAT)
        if not team:
            continue
        records.append(TeamRecord(team=team, **_numeric_fields(row, TEAM_FIELDS)))
    return records


def classify_and_extract(candidates: Iterable[TableCandidate]) -> ExtractionResult:
    """
    Run every candidate table through all three schema checks.

    A table may match more than one schema; each match is extracted
    independently. Output order follows table order, then row order.
    """
    result = ExtractionResult()

    for candidate in candidates:
        table = candidate.table

        if is_player_table(table):
            players = extract_player_rows(table)
            logger.debug(
                f"Player table {candidate.table_id!r} ({candidate.source}): {len(players)} rows"
            )
            result.records.extend(players)
            result.players += len(players)

        if is_team_table(table):
            teams = extract_team_rows(table)
            logger.debug(
                f"Team table {candidate.table_id!r} ({candidate.source}): {len(teams)} rows"
            )
            result.records.extend(teams)
            result.teams += len(teams)

        if is_goalkeeper_table(table):
            keepers = extract_goalkeeper_rows(table)
            logger.debug(
                f"Goalkeeper table {candidate.table_id!r} ({candidate.source}): {len(keepers)} rows"
            )
            result.records.extend(keepers)
            result.goalkeepers += len(keepers)

    return result
