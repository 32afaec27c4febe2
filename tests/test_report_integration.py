"""
End-to-end tests for the player-season report and team season summary.

Sample data (league 10 = England, league 20 = Spain):
- Matches 1-8, 2012/2013: Arsenal (100) 2-1 Chelsea (200); players 1, 3 home, 2 away
- Matches 9-11, 2012/2013: Chelsea (200) 0-0 Arsenal (100); player 1 home, 4 away
- Match 12, 2013: Barcelona (300) 1-1 unknown team 999; player 1 home, 5 away

Player 1 therefore plays 8 times for Arsenal and 3 times for Chelsea in 2012/2013.
Players 4 and 5 have no player row; player 3 has no attribute snapshots.
"""

from datetime import datetime

import duckdb
import polars as pl
import pytest

from eurosoccer.config import config

from eurosoccer.errors import SeasonLabelError
from tests.fixtures import insert_match, insert_snapshot


@pytest.fixture
def sample_data(test_db):
    conn = duckdb.connect(test_db)

    conn.execute("INSERT INTO country (id, name) VALUES (1, 'England'), (2, 'Spain')")
    conn.execute("""
        INSERT INTO league (id, country_id, name) VALUES
            (10, 1, 'England Premier League'),
            (20, 2, 'Spain LIGA BBVA')
    """)
    conn.execute("""
        INSERT INTO team (team_api_id, team_long_name, team_short_name) VALUES
            (100, 'Arsenal', 'ARS'),
            (200, 'Chelsea', 'CHE'),
            (300, 'FC Barcelona', 'BAR')
    """)
    conn.execute("""
        INSERT INTO player (player_api_id, player_name) VALUES
            (1, 'Player One'),
            (2, 'Player Two'),
            (3, 'Player Three')
    """)

    for match_id in range(1, 9):
        insert_match(
            conn, match_id, "2012/2013", 10, 100, 200,
            home_players=[1, 3], away_players=[2], home_goal=2, away_goal=1,
        )
    for match_id in range(9, 12):
        insert_match(
            conn, match_id, "2012/2013", 10, 200, 100,
            home_players=[1], away_players=[4], home_goal=0, away_goal=0,
        )
    insert_match(conn, 12, "2013", 20, 300, 999, home_players=[1], away_players=[5], home_goal=1, away_goal=1)

    for month, rating in zip([2, 5, 8, 11], [70, 72, 74, 76]):
        insert_snapshot(conn, 1, datetime(2012, month, 1), rating=rating, finishing=60)
    insert_snapshot(conn, 1, datetime(2013, 3, 1), rating=90)
    insert_snapshot(conn, 2, datetime(2012, 7, 1), rating=80)
    insert_snapshot(conn, 4, datetime(2011, 7, 1), rating=65)

    conn.close()
    return test_db


class TestPlayerSeasonReport:

    def test_primary_club_and_yearly_average(self, make_pipeline, sample_data):
        pipeline = make_pipeline(sample_data)
        report = pipeline.run_full_pipeline()

        row = report.filter(
            (pl.col("player_id") == 1) & (pl.col("season") == "2012/2013")
        ).row(0, named=True)

        assert row["team_name"] == "Arsenal"
        assert row["player_name"] == "Player One"
        assert row["league_name"] == "England Premier League"
        assert row["country_name"] == "England"
        assert row["avg_rating"] == pytest.approx(73.00)
        assert row["avg_finishing"] == pytest.approx(60.00)
        assert row["avg_stamina"] is None

    def test_bare_year_season_aligns_with_that_year(self, make_pipeline, sample_data):
        pipeline = make_pipeline(sample_data)
        report = pipeline.run_full_pipeline()

        row = report.filter(
            (pl.col("player_id") == 1) & (pl.col("season") == "2013")
        ).row(0, named=True)

        assert row["team_name"] == "FC Barcelona"
        assert row["country_name"] == "Spain"
        assert row["avg_rating"] == pytest.approx(90.0)

    def test_every_primary_club_appears_exactly_once(self, make_pipeline, sample_data):
        pipeline = make_pipeline(sample_data)
        appearances = pipeline.normalize_appearances()
        primary = pipeline.resolve_primary_clubs(appearances)
        report = pipeline.build_player_season_report(
            primary, pipeline.aggregate_player_attributes()
        )

        assert report.height == primary.height == 6
        assert sorted(report.select(["player_id", "season"]).rows()) == sorted(
            primary.select(["player_id", "season"]).rows()
        )

    def test_missing_attributes_and_lookups_are_null(self, make_pipeline, sample_data):
        pipeline = make_pipeline(sample_data)
        report = pipeline.run_full_pipeline()

        # Player 3 has no snapshots; player 4 only has a 2011 snapshot
        for player_id in (3, 4):
            row = report.filter(pl.col("player_id") == player_id).row(0, named=True)
            assert row["team_name"] == "Arsenal"
            assert row["avg_rating"] is None

        # Player 5 has neither a player row nor a known team
        row = report.filter(pl.col("player_id") == 5).row(0, named=True)
        assert row["player_name"] is None
        assert row["team_name"] is None
        assert row["league_name"] == "Spain LIGA BBVA"

    def test_column_order(self, make_pipeline, sample_data):
        pipeline = make_pipeline(sample_data)
        report = pipeline.run_full_pipeline()

        assert report.columns == config.report_columns()
        assert report.columns[:6] == [
            "player_id", "player_name", "team_name", "league_name", "country_name", "season"
        ]

    def test_sorted_by_league_season_then_rating(self, make_pipeline, sample_data):
        pipeline = make_pipeline(sample_data)
        report = pipeline.run_full_pipeline()

        assert report.select(["player_id", "season"]).rows() == [
            (2, "2012/2013"),
            (1, "2012/2013"),
            (3, "2012/2013"),
            (4, "2012/2013"),
            (1, "2013"),
            (5, "2013"),
        ]

    def test_export_is_byte_identical_across_runs(self, make_pipeline, sample_data, tmp_path):
        first_path = tmp_path / "out" / "first.csv"
        second_path = tmp_path / "out" / "second.csv"

        make_pipeline(sample_data).run_full_pipeline(output_path=first_path)
        make_pipeline(sample_data).run_full_pipeline(output_path=second_path)

        assert first_path.read_bytes() == second_path.read_bytes()

        lines = first_path.read_text().splitlines()
        assert lines[0] == ",".join(config.report_columns())
        assert len(lines) == 7
        assert "73.00" in lines[2]

    def test_parquet_export(self, make_pipeline, sample_data, tmp_path):
        path = tmp_path / "report.parquet"

        pipeline = make_pipeline(sample_data)
        report = pipeline.run_full_pipeline(output_path=path)

        assert pl.read_parquet(path).equals(report)

    def test_parquet_suffix_is_case_insensitive(self, make_pipeline, sample_data, tmp_path):
        path = tmp_path / "REPORT.PARQUET"

        pipeline = make_pipeline(sample_data)
        report = pipeline.run_full_pipeline(output_path=path)

        assert path.read_bytes()[:4] == b"PAR1"
        assert pl.read_parquet(path).equals(report)

    def test_bad_season_label_aborts_without_output(self, make_pipeline, sample_data, tmp_path):
        conn = duckdb.connect(sample_data)
        insert_match(conn, 13, "2013-14", 20, 300, 100, home_players=[1])
        conn.close()

        path = tmp_path / "report.csv"
        pipeline = make_pipeline(sample_data)

        with pytest.raises(SeasonLabelError):
            pipeline.run_full_pipeline(output_path=path)

        assert not path.exists()

    def test_missing_source_tables_raise(self, make_pipeline, test_db_path):
        pipeline = make_pipeline(test_db_path)

        with pytest.raises(ValueError, match="Missing required tables"):
            pipeline.run_full_pipeline()


class TestTeamSeasonSummary:

    def test_goals_games_and_win_rate(self, make_pipeline, sample_data):
        pipeline = make_pipeline(sample_data)
        summary = pipeline.build_team_season_summary()

        arsenal = summary.filter(pl.col("team_id") == 100).row(0, named=True)
        assert arsenal["league_name"] == "England Premier League"
        assert arsenal["country_name"] == "England"
        assert arsenal["team_name"] == "Arsenal"
        assert arsenal["games_played"] == 11
        assert arsenal["goals_scored"] == 16
        assert arsenal["goals_against"] == 8
        assert arsenal["avg_goals_scored"] == pytest.approx(1.45)
        assert arsenal["avg_goals_against"] == pytest.approx(0.73)
        assert arsenal["win_rate"] == pytest.approx(72.73)

        chelsea = summary.filter(pl.col("team_id") == 200).row(0, named=True)
        assert chelsea["goals_scored"] == 8
        assert chelsea["goals_against"] == 16
        assert chelsea["win_rate"] == pytest.approx(0.0)

    def test_ordering_and_unknown_team(self, make_pipeline, sample_data):
        pipeline = make_pipeline(sample_data)
        summary = pipeline.build_team_season_summary()

        assert summary["team_id"].to_list() == [100, 200, 300, 999]
        unknown = summary.filter(pl.col("team_id") == 999).row(0, named=True)
        assert unknown["team_name"] is None
        assert unknown["league_name"] == "Spain LIGA BBVA"

    def test_exported_alongside_report(self, make_pipeline, sample_data, tmp_path):
        report_path = tmp_path / "players.csv"
        summary_path = tmp_path / "teams.csv"

        pipeline = make_pipeline(sample_data)
        pipeline.run_full_pipeline(output_path=report_path, team_summary_path=summary_path)

        assert report_path.exists()
        assert pl.read_csv(summary_path).height == 4
