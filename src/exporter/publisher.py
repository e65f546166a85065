"""
Prometheus publisher for scraped FBref stats.

The nine stats families are served from an immutable snapshot that is
swapped in whole at the end of a successful cycle, so a concurrent
``/metrics`` read sees either the previous cycle or the new one. The two
health gauges are ordinary prometheus_client Gauges updated every cycle.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple, Type

from prometheus_client import CollectorRegistry, Gauge, generate_latest
from prometheus_client.core import GaugeMetricFamily

from src.ingestion.models import PlayerRecord, GoalkeeperRecord, TeamRecord

logger = logging.getLogger(__name__)

PLAYER_LABELS = ('player', 'team')
TEAM_LABELS = ('team',)

Snapshot = Dict[str, Dict[Tuple[str, ...], float]]


@dataclass(frozen=True)
class StatFamily:
    """A labeled gauge family fed by one attribute of one record type"""
    name: str
    documentation: str
    labels: Tuple[str, ...]
    record_type: Type
    attribute: str


STAT_FAMILIES: List[StatFamily] = [
    StatFamily('premier_league_player_goals',
               'Goals scored by each Premier League player',
               PLAYER_LABELS, PlayerRecord, 'goals'),
    StatFamily('premier_league_player_assists',
               'Assists made by each Premier League player',
               PLAYER_LABELS, PlayerRecord, 'assists'),
    StatFamily('premier_league_goalkeeper_clean_sheets',
               'Number of clean sheets by each goalkeeper',
               PLAYER_LABELS, GoalkeeperRecord, 'clean_sheets'),
    StatFamily('premier_league_team_points',
               'Current Premier League points per team',
               TEAM_LABELS, TeamRecord, 'points'),
    StatFamily('premier_league_team_goals_for',
               'Total goals scored per team',
               TEAM_LABELS, TeamRecord, 'goals_for'),
    StatFamily('premier_league_team_goals_against',
               'Total goals conceded per team',
               TEAM_LABELS, TeamRecord, 'goals_against'),
    StatFamily('premier_league_team_wins',
               'Total wins per team',
               TEAM_LABELS, TeamRecord, 'wins'),
    StatFamily('premier_league_team_draws',
               'Total draws per team',
               TEAM_LABELS, TeamRecord, 'draws'),
    StatFamily('premier_league_team_losses',
               'Total losses per team',
               TEAM_LABELS, TeamRecord, 'losses'),
]


def _empty_snapshot() -> Snapshot:
    return {family.name: {} for family in STAT_FAMILIES}


class MetricPublisher:
    """
    Owns every gauge the exporter exposes.

    Usage per cycle::

        publisher.begin_cycle()
        for record in records:
            publisher.publish(record)
        publisher.end_cycle(success=True, duration=elapsed)

    A failed cycle calls only ``end_cycle(False, ...)``; the stats from the
    last successful cycle stay exposed.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        self._lock = threading.Lock()
        self._live: Snapshot = _empty_snapshot()
        self._staging: Optional[Snapshot] = None

        self.scrape_success = Gauge(
            'fbref_scrape_success',
            'Whether the last scrape succeeded (1=success, 0=failure)',
            registry=self.registry
        )
        self.scrape_duration = Gauge(
            'fbref_scrape_duration_seconds',
            'Time taken for the last fbref scrape in seconds',
            registry=self.registry
        )
        self.registry.register(self)

    # -- prometheus_client collector protocol --

    def describe(self) -> Iterator[GaugeMetricFamily]:
        for family in STAT_FAMILIES:
            yield GaugeMetricFamily(family.name, family.documentation, labels=family.labels)

    def collect(self) -> Iterator[GaugeMetricFamily]:
        with self._lock:
            snapshot = self._live
        for family in STAT_FAMILIES:
            metric = GaugeMetricFamily(family.name, family.documentation, labels=family.labels)
            for label_values, value in snapshot[family.name].items():
                metric.add_metric(list(label_values), value)
            yield metric

    # -- cycle API --

    def begin_cycle(self) -> None:
        """Start a fresh, empty set of stats values. Health gauges are untouched."""
        if self._staging is not None:
            logger.warning("begin_cycle called with an open cycle; discarding staged values")
        self._staging = _empty_snapshot()

    def publish(self, record) -> None:
        """
        Stage the values of ``record``. The same label tuple set twice in one
        cycle keeps the last value. Fields that are None are not emitted.
        """
        if self._staging is None:
            raise RuntimeError("publish() called outside of a cycle; call begin_cycle() first")

        matched = False
        for family in STAT_FAMILIES:
            if not isinstance(record, family.record_type):
                continue
            matched = True
            value = getattr(record, family.attribute)
            if value is None:
                continue
            label_values = tuple(getattr(record, label) for label in family.labels)
            self._staging[family.name][label_values] = float(value)

        if not matched:
            raise TypeError(f"Unsupported record type: {type(record).__name__}")

    def end_cycle(self, success: bool, duration: float) -> None:
        """Commit or discard staged values and record the health gauges."""
        staged, self._staging = self._staging, None

        if success and staged is not None:
            with self._lock:
                self._live = staged
        elif staged is not None:
            logger.debug("Discarding staged values from a failed cycle")

        self.scrape_duration.set(duration)
        self.scrape_success.set(1 if success else 0)

    # -- reads --

    def snapshot(self) -> Snapshot:
        """Copy of the currently exposed stats values"""
        with self._lock:
            live = self._live
        return {name: dict(values) for name, values in live.items()}

    def render(self) -> bytes:
        """Exposition text for the whole registry"""
        return generate_latest(self.registry)
