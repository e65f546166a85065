"""Tests for the Prometheus metric publisher."""

import pytest

from src.exporter.publisher import MetricPublisher, STAT_FAMILIES
from src.ingestion.models import PlayerRecord, GoalkeeperRecord, TeamRecord


HAALAND = {'player': 'Erling Haaland', 'team': 'Manchester City'}


@pytest.fixture
def publisher():
    return MetricPublisher()


def value(publisher, name, labels=None):
    return publisher.registry.get_sample_value(name, labels or {})


def publish_cycle(publisher, records, duration=1.0):
    publisher.begin_cycle()
    for record in records:
        publisher.publish(record)
    publisher.end_cycle(success=True, duration=duration)


class TestMetricPublisher:

    def test_family_names(self):
        assert [f.name for f in STAT_FAMILIES] == [
            'premier_league_player_goals',
            'premier_league_player_assists',
            'premier_league_goalkeeper_clean_sheets',
            'premier_league_team_points',
            'premier_league_team_goals_for',
            'premier_league_team_goals_against',
            'premier_league_team_wins',
            'premier_league_team_draws',
            'premier_league_team_losses',
        ]

    def test_publish_player(self, publisher):
        publish_cycle(publisher, [
            PlayerRecord(player='Erling Haaland', team='Manchester City', goals=27, assists=5)
        ])

        assert value(publisher, 'premier_league_player_goals', HAALAND) == 27.0
        assert value(publisher, 'premier_league_player_assists', HAALAND) == 5.0

    def test_publish_goalkeeper_and_team(self, publisher):
        publish_cycle(publisher, [
            GoalkeeperRecord(player='David Raya', team='Arsenal', clean_sheets=6),
            TeamRecord(team='Arsenal', points=22, goals_for=20, goals_against=11,
                       wins=6, draws=4, losses=2),
        ])

        assert value(publisher, 'premier_league_goalkeeper_clean_sheets',
                     {'player': 'David Raya', 'team': 'Arsenal'}) == 6.0
        arsenal = {'team': 'Arsenal'}
        assert value(publisher, 'premier_league_team_points', arsenal) == 22.0
        assert value(publisher, 'premier_league_team_goals_for', arsenal) == 20.0
        assert value(publisher, 'premier_league_team_goals_against', arsenal) == 11.0
        assert value(publisher, 'premier_league_team_wins', arsenal) == 6.0
        assert value(publisher, 'premier_league_team_draws', arsenal) == 4.0
        assert value(publisher, 'premier_league_team_losses', arsenal) == 2.0

    def test_missing_value_is_omitted_not_zero(self, publisher):
        publish_cycle(publisher, [
            TeamRecord(team='Liverpool', points=28, goals_for=26, goals_against=None,
                       wins=9, draws=1, losses=2)
        ])

        output = publisher.render().decode('utf-8')
        assert 'premier_league_team_points{team="Liverpool"} 28.0' in output
        assert 'premier_league_team_goals_against{team="Liverpool"}' not in output
        assert value(publisher, 'premier_league_team_goals_against', {'team': 'Liverpool'}) is None

    def test_last_write_wins(self, publisher):
        publish_cycle(publisher, [
            PlayerRecord(player='Erling Haaland', team='Manchester City', goals=26),
            PlayerRecord(player='Erling Haaland', team='Manchester City', goals=27),
        ])

        assert value(publisher, 'premier_league_player_goals', HAALAND) == 27.0
        assert len(publisher.snapshot()['premier_league_player_goals']) == 1

    def test_new_cycle_drops_stale_labels(self, publisher):
        publish_cycle(publisher, [
            PlayerRecord(player='Erling Haaland', team='Manchester City', goals=27),
            TeamRecord(team='Luton Town', points=26),
        ])
        publish_cycle(publisher, [TeamRecord(team='Ipswich Town', points=9)])

        assert value(publisher, 'premier_league_player_goals', HAALAND) is None
        assert value(publisher, 'premier_league_team_points', {'team': 'Luton Town'}) is None
        assert value(publisher, 'premier_league_team_points', {'team': 'Ipswich Town'}) == 9.0

    def test_failed_cycle_keeps_previous_stats(self, publisher):
        publish_cycle(publisher, [TeamRecord(team='Liverpool', points=28)])

        publisher.end_cycle(success=False, duration=30.5)

        assert value(publisher, 'premier_league_team_points', {'team': 'Liverpool'}) == 28.0
        assert value(publisher, 'fbref_scrape_success') == 0.0
        assert value(publisher, 'fbref_scrape_duration_seconds') == 30.5

    def test_health_gauges(self, publisher):
        publish_cycle(publisher, [], duration=2.25)

        assert value(publisher, 'fbref_scrape_success') == 1.0
        assert value(publisher, 'fbref_scrape_duration_seconds') == 2.25

    def test_begin_cycle_leaves_health_gauges(self, publisher):
        publish_cycle(publisher, [], duration=2.25)
        publisher.begin_cycle()

        assert value(publisher, 'fbref_scrape_success') == 1.0
        assert value(publisher, 'fbref_scrape_duration_seconds') == 2.25

    def test_readers_see_previous_snapshot_until_cycle_ends(self, publisher):
        publish_cycle(publisher, [TeamRecord(team='Liverpool', points=25)])

        publisher.begin_cycle()
        publisher.publish(TeamRecord(team='Liverpool', points=28))
        assert value(publisher, 'premier_league_team_points', {'team': 'Liverpool'}) == 25.0

        publisher.end_cycle(success=True, duration=1.0)
        assert value(publisher, 'premier_league_team_points', {'team': 'Liverpool'}) == 28.0

    def test_publish_outside_cycle_raises(self, publisher):
        with pytest.raises(RuntimeError):
            publisher.publish(TeamRecord(team='Liverpool', points=28))

    def test_unknown_record_type_raises(self, publisher):
        publisher.begin_cycle()
        with pytest.raises(TypeError):
            publisher.publish({'team': 'Liverpool'})

    def test_exposition_format(self, publisher):
        publish_cycle(publisher, [
            PlayerRecord(player='Erling Haaland', team='Manchester City', goals=27)
        ])

        output = publisher.render().decode('utf-8')

        assert '# HELP premier_league_player_goals Goals scored by each Premier League player' in output
        assert '# TYPE premier_league_player_goals gauge' in output
        assert 'premier_league_player_goals{player="Erling Haaland",team="Manchester City"} 27.0' in output
        assert '# TYPE fbref_scrape_success gauge' in output
        assert 'fbref_scrape_success 1.0' in output

    def test_separate_publishers_do_not_share_state(self):
        first, second = MetricPublisher(), MetricPublisher()
        publish_cycle(first, [TeamRecord(team='Liverpool', points=28)])

        assert value(second, 'premier_league_team_points', {'team': 'Liverpool'}) is None
