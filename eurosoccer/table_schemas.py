"""
European Soccer Schema Definitions
Source tables follow the column layout of the public European Soccer dump
"""

import duckdb

from .config import config


def create_country_table(conn: duckdb.DuckDBPyConnection):
    """Create country lookup table"""
    conn.execute("""
        CREATE TABLE IF NOT EXISTS country (
            id INTEGER,
            name VARCHAR
        )
    """)


def create_league_table(conn: duckdb.DuckDBPyConnection):
    """Create league lookup table"""
    conn.execute("""
        CREATE TABLE IF NOT EXISTS league (
            id INTEGER,
            country_id INTEGER,
            name VARCHAR
        )
    """)


def create_team_table(conn: duckdb.DuckDBPyConnection):
    """Create team lookup table"""
    conn.execute("""
        CREATE TABLE IF NOT EXISTS team (
            id INTEGER,
            team_api_id INTEGER,
            team_fifa_api_id INTEGER,
            team_long_name VARCHAR,
            team_short_name VARCHAR
        )
    """)


def create_player_table(conn: duckdb.DuckDBPyConnection):
    """Create player lookup table"""
    conn.execute("""
        CREATE TABLE IF NOT EXISTS player (
            id INTEGER,
            player_api_id INTEGER,
            player_name VARCHAR,
            player_fifa_api_id INTEGER,
            birthday TIMESTAMP,
            height DOUBLE,
            weight INTEGER
        )
    """)


def create_player_attributes_table(conn: duckdb.DuckDBPyConnection):
    """Create player attribute snapshot table (one row per rating update)"""
    metric_columns = ",\n            ".join(
        f"{column} INTEGER" for column in config.attribute_metrics.values()
    )
    conn.execute(f"""
        CREATE TABLE IF NOT EXISTS player_attributes (
            id INTEGER,
            player_fifa_api_id INTEGER,
            player_api_id INTEGER,
            date TIMESTAMP,
            potential INTEGER,
            preferred_foot VARCHAR,
            {metric_columns}
        )
    """)


def create_match_table(conn: duckdb.DuckDBPyConnection):
    """Create match table with one player column per roster slot (22 total)"""
    slot_columns = ",\n            ".join(
        f"{config.slot_column(side, slot)} INTEGER"
        for side, slot in config.roster_slots
    )
    conn.execute(f"""
        CREATE TABLE IF NOT EXISTS "match" (
            id INTEGER,
            country_id INTEGER,
            league_id INTEGER,
            season VARCHAR,
            stage INTEGER,
            date TIMESTAMP,
            match_api_id INTEGER,
            home_team_api_id INTEGER,
            away_team_api_id INTEGER,
            home_team_goal INTEGER,
            away_team_goal INTEGER,
            {slot_columns}
        )
    """)


def create_all_source_tables(conn: duckdb.DuckDBPyConnection):
    """Create all source tables consumed by the pipeline"""

    print("📊 Creating source tables...")

    create_country_table(conn)
    print("✅ country table created")

    create_league_table(conn)
    print("✅ league table created")

    create_team_table(conn)
    print("✅ team table created")

    create_player_table(conn)
    print("✅ player table created")

    create_player_attributes_table(conn)
    print("✅ player_attributes table created")

    create_match_table(conn)
    print("✅ match table created")


def create_indexes_for_source_tables(conn: duckdb.DuckDBPyConnection):
    """Create lookup indexes for the source tables"""

    indexes = [
        'CREATE INDEX IF NOT EXISTS idx_match_season_league ON "match"(season, league_id)',
        'CREATE INDEX IF NOT EXISTS idx_match_home_team ON "match"(home_team_api_id, season)',
        'CREATE INDEX IF NOT EXISTS idx_match_away_team ON "match"(away_team_api_id, season)',
        "CREATE INDEX IF NOT EXISTS idx_player_attributes_player_date ON player_attributes(player_api_id, date)",
        "CREATE INDEX IF NOT EXISTS idx_player_api_id ON player(player_api_id)",
        "CREATE INDEX IF NOT EXISTS idx_team_api_id ON team(team_api_id)",
        "CREATE INDEX IF NOT EXISTS idx_league_country ON league(country_id)",
    ]

    for idx_sql in indexes:
        conn.execute(idx_sql)

    print(f"✅ Created {len(indexes)} lookup indexes")


if __name__ == "__main__":
    print("🧪 Testing source schema creation...")
    conn = duckdb.connect(":memory:")

    try:
        create_all_source_tables(conn)
        create_indexes_for_source_tables(conn)
        print("✅ All schemas created successfully!")

        tables = conn.execute("SHOW TABLES").fetchall()
        print(f"📊 Created {len(tables)} tables total")

    finally:
        conn.close()
