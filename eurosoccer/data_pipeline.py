"""
European Soccer Player-Season Pipeline
Resolves each player's primary club per season and joins yearly attribute averages
"""

import polars as pl
import logging
from pathlib import Path
from typing import List, Optional, Dict, Any, Union

from .database import SoccerDatabase, LookupManager, DataQualityManager
from .config import config
from .errors import PipelineInvariantError
from .seasons import map_season_years
from .stage_tracker import StageTracker, ReportHasher


logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

APPEARANCE_KEYS = ["player_id", "team_id", "season"]
PLAYER_SEASON_KEYS = ["player_id", "season"]

STAGE_NORMALIZE = "Appearance Normalizer"
STAGE_RESOLVE = "Primary-Club Resolver"
STAGE_ATTRIBUTES = "Attribute Aggregator"
STAGE_REPORT = "Season-Year Aligner & Joiner"
STAGE_TEAM_SUMMARY = "Team Season Summary"


class PlayerSeasonPipeline:
    """
    Batch pipeline over the European Soccer tables.

    Stages run leaves first; each consumes the previous stage's frame:
    1. normalize_appearances: wide match rosters -> one row per filled slot
    2. resolve_primary_clubs: per (player, season) club with most appearances
    3. aggregate_player_attributes: per (player, calendar year) metric means
    4. build_player_season_report: season -> year alignment, left joins, ordering
    """

    def __init__(self, db_file: str = None):
        self.db = SoccerDatabase(db_file or str(config.db_file))
        self.lookups = LookupManager(self.db)
        self.quality = DataQualityManager(self.db)
        self.tracker = StageTracker()
        self.hasher = ReportHasher()

        self.metrics = config.attribute_metrics
        self.decimals = config.pipeline_config["rounding_decimals"]
        self.source_tables = config.pipeline_config["source_tables"]
        self.float_precision = config.export_config["float_precision"]

        logger.info(f"Pipeline initialized for database: {self.db.db_file}")
        logger.info(f"Attribute metrics: {len(self.metrics)} | Roster slots: {len(config.roster_slots)}")

    def close(self):
        self.db.close()

    def validate_source_tables(self):
        """Raise ValueError if any source table is missing"""
        missing = self.db.missing_tables(self.source_tables)
        if missing:
            raise ValueError(
                f"Missing required tables: {missing}. Load the source data first."
            )

    def run_full_pipeline(
        self,
        output_path: Optional[Union[str, Path]] = None,
        team_summary_path: Optional[Union[str, Path]] = None,
    ) -> pl.DataFrame:
        """
        Run every stage and optionally export the reports.

        Any stage failure aborts the run before anything is written.

        Returns:
            pl.DataFrame: the player-season report
        """
        logger.info("🚀 Starting player-season pipeline")

        self.validate_source_tables()
        self._log_data_quality(self.quality.check_data_completeness())

        appearances = self.normalize_appearances()
        primary_clubs = self.resolve_primary_clubs(appearances)
        attribute_averages = self.aggregate_player_attributes()
        report = self.build_player_season_report(primary_clubs, attribute_averages)

        team_summary = None
        if team_summary_path:
            team_summary = self.build_team_season_summary()

        if output_path:
            self.export_report(report, output_path)
        if team_summary is not None:
            self.export_report(team_summary, team_summary_path)

        self.tracker.log_summary("Player-Season Pipeline")
        logger.info("🎉 Pipeline completed!")
        return report

    # ------------------------------------------------------------------
    # Stage 1: Appearance Normalizer
    # ------------------------------------------------------------------

    def normalize_appearances(self) -> pl.DataFrame:
        """
        Flatten the 22 roster-slot columns of every match into appearance rows.

        One row per filled slot, no deduplication: a player named in N matches
        for a club yields N rows. A filled slot whose side has no team id is
        skipped and counted as a data-quality warning.

        Returns:
            pl.DataFrame: match_id, player_id, team_id, league_id, season,
            side, slot_index

        Raises:
            SeasonLabelError: if a season label cannot be mapped to a year
        """
        logger.info("👟 Normalizing match rosters into appearances...")
        started = self.tracker.start_stage()

        try:
            slot_columns = [
                config.slot_column(side, slot) for side, slot in config.roster_slots
            ]
            matches = self.db.query_frame(f"""
                SELECT
                    id AS match_id,
                    season,
                    league_id,
                    {config.team_column("home")},
                    {config.team_column("away")},
                    {", ".join(slot_columns)}
                FROM "match"
                ORDER BY id
            """)
            logger.info(f"  📊 Processing {matches.height:,} matches")

            filled = self._unpivot_roster_slots(matches)

            orphaned = filled.filter(pl.col("team_id").is_null())
            if not orphaned.is_empty():
                logger.warning(
                    f"  ⚠️  Skipped {orphaned.height:,} filled slots without a team id "
                    f"in {orphaned['match_id'].n_unique():,} matches"
                )

            appearances = filled.filter(pl.col("team_id").is_not_null())

            # Labels are checked here so a bad one aborts before any grouping
            map_season_years(appearances["season"].unique().to_list())

            self.tracker.add_result(
                STAGE_NORMALIZE, started, matches.height, appearances.height, orphaned.height
            )
            return appearances

        except Exception as e:
            logger.error(f"❌ Failed to normalize appearances: {e}")
            raise

    def _unpivot_roster_slots(self, matches: pl.DataFrame) -> pl.DataFrame:
        """One frame per (side, slot) pair, stacked and stripped of empty slots"""
        frames = []
        for side, slot in config.roster_slots:
            frames.append(
                matches.select(
                    pl.col("match_id"),
                    pl.col(config.slot_column(side, slot)).alias("player_id"),
                    pl.col(config.team_column(side)).alias("team_id"),
                    pl.col("league_id"),
                    pl.col("season"),
                    pl.lit(side).alias("side"),
                    pl.lit(slot, dtype=pl.Int8).alias("slot_index"),
                ).filter(pl.col("player_id").is_not_null())
            )

        return pl.concat(frames).sort(["match_id", "side", "slot_index"])

    # ------------------------------------------------------------------
    # Stage 2: Primary-Club Resolver
    # ------------------------------------------------------------------

    def resolve_primary_clubs(self, appearances: pl.DataFrame) -> pl.DataFrame:
        """
        Pick the club each player appeared for most in each season.

        Two passes: count appearances per (player, team, season), then keep the
        teams reaching the per-(player, season) maximum. When several teams
        tie, the lowest team id wins; ``tied_teams`` records how many tied.

        Returns:
            pl.DataFrame: player_id, season, team_id, league_id,
            appearance_count, tied_teams (one row per player-season)

        Raises:
            PipelineInvariantError: if the assignment does not match the counts
        """
        logger.info("🏟️  Resolving primary clubs...")
        started = self.tracker.start_stage()

        try:
            counts = self.count_team_seasons(appearances)
            logger.info(f"  📊 {counts.height:,} player-team-season counts")

            primary_clubs = self._select_primary_clubs(counts)
            self._validate_primary_clubs(counts, primary_clubs)

            tied = primary_clubs.filter(pl.col("tied_teams") > 1).height
            if tied:
                logger.info(
                    f"  ⚖️  {tied:,} player-seasons tied on appearances, resolved to lowest team id"
                )

            self.tracker.add_result(
                STAGE_RESOLVE, started, appearances.height, primary_clubs.height
            )
            return primary_clubs

        except Exception as e:
            logger.error(f"❌ Failed to resolve primary clubs: {e}")
            raise

    def count_team_seasons(self, appearances: pl.DataFrame) -> pl.DataFrame:
        """
        Appearances per (player, team, season).

        league_id is the lowest league the player appeared in for that club
        that season; clubs play a single league per season in the source data.
        """
        return (
            appearances.group_by(APPEARANCE_KEYS)
            .agg(
                pl.len().alias("appearance_count"),
                pl.col("league_id").min().alias("league_id"),
            )
            .sort(APPEARANCE_KEYS)
        )

    def _select_primary_clubs(self, counts: pl.DataFrame) -> pl.DataFrame:
        max_counts = counts.group_by(PLAYER_SEASON_KEYS).agg(
            pl.col("appearance_count").max().alias("max_count")
        )

        leaders = counts.join(max_counts, on=PLAYER_SEASON_KEYS, how="inner").filter(
            pl.col("appearance_count") == pl.col("max_count")
        )

        return (
            leaders.sort(PLAYER_SEASON_KEYS + ["team_id"])
            .group_by(PLAYER_SEASON_KEYS, maintain_order=True)
            .agg(
                pl.col("team_id").first(),
                pl.col("league_id").first(),
                pl.col("appearance_count").first(),
                pl.len().alias("tied_teams"),
            )
            .sort(PLAYER_SEASON_KEYS)
        )

    def _validate_primary_clubs(self, counts: pl.DataFrame, primary_clubs: pl.DataFrame):
        expected = counts.select(PLAYER_SEASON_KEYS).unique().height

        if primary_clubs.select(PLAYER_SEASON_KEYS).is_duplicated().any():
            raise PipelineInvariantError("Player-season resolved to more than one club")

        if primary_clubs.height != expected:
            raise PipelineInvariantError(
                f"Resolved {primary_clubs.height:,} primary clubs for {expected:,} player-seasons"
            )

        unbacked = primary_clubs.join(
            counts.select(APPEARANCE_KEYS + ["appearance_count"]),
            on=APPEARANCE_KEYS + ["appearance_count"],
            how="anti",
        )
        if not unbacked.is_empty():
            raise PipelineInvariantError(
                f"{unbacked.height:,} primary-club assignments have no backing appearance count"
            )

    # ------------------------------------------------------------------
    # Stage 3: Attribute Aggregator
    # ------------------------------------------------------------------

    def aggregate_player_attributes(self) -> pl.DataFrame:
        """
        Average each attribute metric per (player, calendar year).

        SUM and COUNT skip nulls per metric, so a snapshot missing one metric still
        counts towards the others; a metric with no values in a year stays
        null. The mean is scaled by 10**decimals from the integer SUM and
        COUNT before ROUND, so decimal ties round half away from zero
        (40.175 -> 40.18) instead of following the nearest double.
        Snapshots without a player id or date are skipped with a warning.

        Returns:
            pl.DataFrame: player_id, year, snapshot_count, avg_<metric>...
        """
        logger.info("📈 Aggregating player attributes by year...")
        started = self.tracker.start_stage()

        try:
            total, skipped = self.db.execute_one("""
                SELECT
                    COUNT(*),
                    COUNT(*) FILTER (WHERE player_api_id IS NULL OR date IS NULL)
                FROM player_attributes
            """)

            if skipped:
                logger.warning(f"  ⚠️  Skipped {skipped:,} snapshots without player id or date")

            scale = 10 ** self.decimals
            metric_calcs = ",\n                    ".join(
                f"ROUND(CAST(SUM({column}) AS DOUBLE) * {scale} / COUNT({column})) / {scale} AS avg_{metric}"
                for metric, column in self.metrics.items()
            )

            averages = self.db.query_frame(f"""
                SELECT
                    player_api_id AS player_id,
                    CAST(YEAR(CAST(date AS TIMESTAMP)) AS INTEGER) AS year,
                    COUNT(*) AS snapshot_count,
                    {metric_calcs}
                FROM player_attributes
                WHERE player_api_id IS NOT NULL
                    AND date IS NOT NULL
                GROUP BY 1, 2
                ORDER BY 1, 2
            """)

            self.tracker.add_result(STAGE_ATTRIBUTES, started, total, averages.height, skipped)
            return averages

        except Exception as e:
            logger.error(f"❌ Failed to aggregate player attributes: {e}")
            raise

    # ------------------------------------------------------------------
    # Stage 4: Season-Year Aligner & Joiner
    # ------------------------------------------------------------------

    def build_player_season_report(
        self, primary_clubs: pl.DataFrame, attribute_averages: pl.DataFrame
    ) -> pl.DataFrame:
        """
        Attach yearly attribute averages and names to each primary club.

        Every player-season is kept: missing averages and missing lookups
        surface as nulls. Sorted by league name, season, then average rating
        descending (nulls last) with player_id as the final key.

        Raises:
            SeasonLabelError: if a season label cannot be mapped to a year
            PipelineInvariantError: if the join lost or duplicated player-seasons
        """
        logger.info("🔗 Aligning seasons with attribute years...")
        started = self.tracker.start_stage()

        try:
            season_years = map_season_years(primary_clubs["season"].to_list())
            year_lookup = pl.DataFrame(
                {"season": list(season_years.keys()), "year": list(season_years.values())},
                schema={"season": pl.Utf8, "year": pl.Int64},
            )

            aligned = self._cast_ids(
                primary_clubs.join(year_lookup, on="season", how="left"),
                ["player_id", "team_id", "league_id", "year"],
            )
            averages = self._cast_ids(
                attribute_averages.drop("snapshot_count", strict=False),
                ["player_id", "year"],
            )

            report = (
                aligned.join(averages, on=["player_id", "year"], how="left")
                .join(self._cast_ids(self.lookups.player_names(), ["player_id"]), on="player_id", how="left")
                .join(self._cast_ids(self.lookups.team_names(), ["team_id"]), on="team_id", how="left")
                .join(self._cast_ids(self.lookups.league_context(), ["league_id"]), on="league_id", how="left")
                .sort(
                    ["league_name", "season", "avg_rating", "player_id"],
                    descending=[False, False, True, False],
                    nulls_last=True,
                )
                .select(config.report_columns())
            )

            self._validate_report(primary_clubs, report)

            without_attributes = report.filter(pl.col("avg_rating").is_null()).height
            if without_attributes:
                logger.info(f"  ℹ️  {without_attributes:,} player-seasons have no rating for their year")

            self.tracker.add_result(STAGE_REPORT, started, primary_clubs.height, report.height)
            return report

        except Exception as e:
            logger.error(f"❌ Failed to build player-season report: {e}")
            raise

    def _cast_ids(self, df: pl.DataFrame, columns: List[str]) -> pl.DataFrame:
        return df.with_columns([pl.col(c).cast(pl.Int64) for c in columns])

    def _validate_report(self, primary_clubs: pl.DataFrame, report: pl.DataFrame):
        if report.height != primary_clubs.height:
            raise PipelineInvariantError(
                f"Report has {report.height:,} rows for {primary_clubs.height:,} primary clubs"
            )
        if report.select(PLAYER_SEASON_KEYS).is_duplicated().any():
            raise PipelineInvariantError("Report contains duplicate player-seasons")

    # ------------------------------------------------------------------
    # Team season summary
    # ------------------------------------------------------------------

    def build_team_season_summary(self) -> pl.DataFrame:
        """
        Goals, games and win rate per team, season and league.

        Each match counts once for the home team and once for the away team.
        Matches missing a team id or a score are left out. Averages and win
        rate (%) are rounded to 2 decimals.
        """
        logger.info("🏆 Building team season summary...")
        started = self.tracker.start_stage()

        try:
            summary = self.db.query_frame(f"""
                WITH team_matches AS (
                    SELECT
                        league_id,
                        season,
                        home_team_api_id AS team_id,
                        home_team_goal AS goals_scored,
                        away_team_goal AS goals_against,
                        CASE WHEN home_team_goal > away_team_goal THEN 1 ELSE 0 END AS win
                    FROM "match"
                    WHERE home_team_api_id IS NOT NULL
                        AND home_team_goal IS NOT NULL
                        AND away_team_goal IS NOT NULL

                    UNION ALL

                    SELECT
                        league_id,
                        season,
                        away_team_api_id AS team_id,
                        away_team_goal AS goals_scored,
                        home_team_goal AS goals_against,
                        CASE WHEN away_team_goal > home_team_goal THEN 1 ELSE 0 END AS win
                    FROM "match"
                    WHERE away_team_api_id IS NOT NULL
                        AND home_team_goal IS NOT NULL
                        AND away_team_goal IS NOT NULL
                ),

                base AS (
                    SELECT
                        league_id,
                        season,
                        team_id,
                        COUNT(*) AS games_played,
                        SUM(goals_scored) AS goals_scored,
                        SUM(goals_against) AS goals_against,
                        SUM(win) AS wins
                    FROM team_matches
                    GROUP BY league_id, season, team_id
                ),

                teams AS (
                    SELECT team_api_id, MIN(team_long_name) AS team_name
                    FROM team
                    GROUP BY team_api_id
                ),

                leagues AS (
                    SELECT id, MIN(name) AS league_name, MIN(country_id) AS country_id
                    FROM league
                    GROUP BY id
                ),

                countries AS (
                    SELECT id, MIN(name) AS country_name
                    FROM country
                    GROUP BY id
                )

                SELECT
                    l.league_name,
                    c.country_name,
                    b.team_id,
                    t.team_name,
                    b.season,
                    b.games_played,
                    b.goals_scored,
                    b.goals_against,
                    ROUND(CAST(b.goals_scored AS DOUBLE) / b.games_played, {self.decimals}) AS avg_goals_scored,
                    ROUND(CAST(b.goals_against AS DOUBLE) / b.games_played, {self.decimals}) AS avg_goals_against,
                    ROUND(100.0 * CAST(b.wins AS DOUBLE) / b.games_played, {self.decimals}) AS win_rate
                FROM base b
                LEFT JOIN teams t ON b.team_id = t.team_api_id
                LEFT JOIN leagues l ON b.league_id = l.id
                LEFT JOIN countries c ON l.country_id = c.id
                ORDER BY l.league_name NULLS LAST, b.season, win_rate DESC, b.team_id
            """)

            self.tracker.add_result(STAGE_TEAM_SUMMARY, started, summary.height, summary.height)
            return summary

        except Exception as e:
            logger.error(f"❌ Failed to build team season summary: {e}")
            raise

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_report(self, df: pl.DataFrame, path: Union[str, Path]) -> str:
        """
        Write a report to CSV (or Parquet for a .parquet path).

        Returns:
            str: fingerprint of the written file
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        if path.suffix.lower() == ".parquet":
            df.write_parquet(path)
        else:
            df.write_csv(path, float_precision=self.float_precision)

        fingerprint = self.hasher.hash_file(path)
        logger.info(f"💾 Wrote {df.height:,} rows to {path} (sha256 {fingerprint})")
        return fingerprint

    def _log_data_quality(self, quality: Dict[str, Any]):
        matches = quality["matches"]
        snapshots = quality["player_attributes"]
        logger.info(
            f"  🔍 Matches: {matches['total_matches']:,} across {matches['seasons_covered']} seasons "
            f"and {matches['leagues_covered']} leagues"
        )
        logger.info(
            f"  🔍 Filled slots: {matches['filled_slots']:,} | Missing team id: {matches['slots_missing_team']:,}"
        )
        logger.info(
            f"  🔍 Snapshots: {snapshots['total_snapshots']:,} for {snapshots['unique_players']:,} players "
            f"| Unusable: {snapshots['unusable_snapshots']:,}"
        )
