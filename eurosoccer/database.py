"""
Database utilities for the European Soccer season pipeline.
Provides connection management and common operations for DuckDB.
"""

import duckdb
import polars as pl
from typing import Optional, List, Dict, Any

from .config import config


class SoccerDatabase:
    """Main database connection and utilities class"""

    def __init__(self, db_file: str = "european_soccer.duckdb"):
        self.db_file = db_file
        self.conn = None

    def connect(self) -> duckdb.DuckDBPyConnection:
        """Connect to the database"""
        if self.conn is None:
            self.conn = duckdb.connect(self.db_file)
        return self.conn

    def close(self):
        """Close database connection"""
        if self.conn:
            self.conn.close()
            self.conn = None

    def __enter__(self):
        """Context manager entry"""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.close()

    def execute(self, query: str, params: Optional[List[Any]] = None) -> List[tuple]:
        """Execute query and return results"""
        return self.connect().execute(query, params or []).fetchall()

    def execute_one(self, query: str, params: Optional[List[Any]] = None) -> Optional[tuple]:
        """Execute query and return first result"""
        return self.connect().execute(query, params or []).fetchone()

    def query_frame(self, query: str, params: Optional[List[Any]] = None) -> pl.DataFrame:
        """Execute query and return a Polars DataFrame"""
        return self.connect().execute(query, params or []).pl()

    def list_tables(self) -> List[str]:
        """List all tables in the database"""
        tables = self.execute("SHOW TABLES")
        return [table[0] for table in tables]

    def missing_tables(self, required: List[str]) -> List[str]:
        """Return the required tables that do not exist"""
        tables = set(self.list_tables())
        return [t for t in required if t not in tables]


class LookupManager:
    """Descriptive lookups (player, team, league, country names) by identifier"""

    def __init__(self, db: SoccerDatabase):
        self.db = db

    def team_names(self) -> pl.DataFrame:
        """team_id -> team_name, one row per id"""
        return self.db.query_frame("""
            SELECT team_api_id AS team_id, MIN(team_long_name) AS team_name
            FROM team
            WHERE team_api_id IS NOT NULL
            GROUP BY team_api_id
            ORDER BY team_api_id
        """)

    def player_names(self) -> pl.DataFrame:
        """player_id -> player_name, one row per id"""
        return self.db.query_frame("""
            SELECT player_api_id AS player_id, MIN(player_name) AS player_name
            FROM player
            WHERE player_api_id IS NOT NULL
            GROUP BY player_api_id
            ORDER BY player_api_id
        """)

    def league_context(self) -> pl.DataFrame:
        """league_id -> league_name, country_name, one row per id"""
        return self.db.query_frame("""
            WITH leagues AS (
                SELECT id, MIN(name) AS league_name, MIN(country_id) AS country_id
                FROM league
                WHERE id IS NOT NULL
                GROUP BY id
            ),
            countries AS (
                SELECT id, MIN(name) AS country_name
                FROM country
                WHERE id IS NOT NULL
                GROUP BY id
            )
            SELECT
                l.id AS league_id,
                l.league_name,
                c.country_name
            FROM leagues l
            LEFT JOIN countries c ON l.country_id = c.id
            ORDER BY l.id
        """)


class DataQualityManager:
    """Manager for data quality operations"""

    def __init__(self, db: SoccerDatabase):
        self.db = db

    def check_data_completeness(self) -> Dict[str, Any]:
        """Count filled roster slots, orphaned slots and undated snapshots"""
        results = {}

        filled = " + ".join(
            f"COUNT({config.slot_column(side, slot)})" for side, slot in config.roster_slots
        )
        orphaned = " + ".join(
            f"COUNT({config.slot_column(side, slot)}) FILTER (WHERE {config.team_column(side)} IS NULL)"
            for side, slot in config.roster_slots
        )

        match_check = self.db.execute_one(f"""
            SELECT
                COUNT(*) as total_matches,
                COUNT(DISTINCT season) as seasons_covered,
                COUNT(DISTINCT league_id) as leagues_covered,
                {filled} as filled_slots,
                {orphaned} as slots_missing_team
            FROM "match"
        """)

        results['matches'] = {
            "total_matches": match_check[0],
            "seasons_covered": match_check[1],
            "leagues_covered": match_check[2],
            "filled_slots": match_check[3],
            "slots_missing_team": match_check[4]
        }

        attribute_check = self.db.execute_one("""
            SELECT
                COUNT(*) as total_snapshots,
                COUNT(DISTINCT player_api_id) as unique_players,
                COUNT(*) FILTER (WHERE date IS NULL OR player_api_id IS NULL) as unusable_snapshots
            FROM player_attributes
        """)

        results['player_attributes'] = {
            "total_snapshots": attribute_check[0],
            "unique_players": attribute_check[1],
            "unusable_snapshots": attribute_check[2]
        }

        return results
