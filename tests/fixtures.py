"""
Row builders shared by the test modules.
"""

from datetime import datetime
from typing import Iterable, Optional

import duckdb
import polars as pl

from eurosoccer.config import config


def insert_match(
    conn: duckdb.DuckDBPyConnection,
    match_id: int,
    season: Optional[str],
    league_id: Optional[int],
    home_team: Optional[int],
    away_team: Optional[int],
    home_players: Iterable[Optional[int]] = (),
    away_players: Iterable[Optional[int]] = (),
    home_goal: Optional[int] = 0,
    away_goal: Optional[int] = 0,
):
    """Insert one match; players fill slots 1..n of each side in order"""
    columns = [
        "id", "match_api_id", "season", "league_id",
        "home_team_api_id", "away_team_api_id", "home_team_goal", "away_team_goal",
    ]
    values = [match_id, match_id, season, league_id, home_team, away_team, home_goal, away_goal]

    for side, players in (("home", home_players), ("away", away_players)):
        for slot, player_id in enumerate(players, start=1):
            columns.append(config.slot_column(side, slot))
            values.append(player_id)

    placeholders = ", ".join("?" for _ in values)
    conn.execute(
        f'INSERT INTO "match" ({", ".join(columns)}) VALUES ({placeholders})', values
    )


def insert_snapshot(
    conn: duckdb.DuckDBPyConnection,
    player_id: Optional[int],
    date: Optional[datetime],
    **metrics,
):
    """Insert one attribute snapshot; metrics use report names (rating, passing, ...)"""
    columns = ["player_api_id", "date"]
    values = [player_id, date]

    for metric, value in metrics.items():
        columns.append(config.attribute_metrics[metric])
        values.append(value)

    placeholders = ", ".join("?" for _ in values)
    conn.execute(
        f"INSERT INTO player_attributes ({', '.join(columns)}) VALUES ({placeholders})", values
    )


def appearance_frame(rows):
    """
    Build an appearance stream from (player_id, team_id, season, matches) tuples,
    one appearance row per match.
    """
    records = []
    match_id = 0
    for player_id, team_id, season, matches in rows:
        for _ in range(matches):
            match_id += 1
            records.append(
                {
                    "match_id": match_id,
                    "player_id": player_id,
                    "team_id": team_id,
                    "league_id": 1,
                    "season": season,
                    "side": "home",
                    "slot_index": 1,
                }
            )

    return pl.DataFrame(
        records,
        schema={
            "match_id": pl.Int64,
            "player_id": pl.Int64,
            "team_id": pl.Int64,
            "league_id": pl.Int64,
            "season": pl.Utf8,
            "side": pl.Utf8,
            "slot_index": pl.Int8,
        },
    )
