#!/usr/bin/env python3
"""
Run the player-season pipeline against a European Soccer DuckDB database.

Usage:
    # Default database and report locations
    python run_pipeline.py

    # Custom database and outputs
    python run_pipeline.py --db-path soccer.duckdb --output reports/players.csv \
        --team-summary-output reports/teams.csv
"""

import argparse
import sys
from pathlib import Path

from eurosoccer.config import config
from eurosoccer.data_pipeline import PlayerSeasonPipeline


def main():
    """Main entry point for the pipeline CLI"""
    parser = argparse.ArgumentParser(
        description="Build the player-season primary-club report",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--db-path",
        type=str,
        default=str(config.db_file),
        help=f"Path to DuckDB database (default: {config.db_file})",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=config.export_config["player_season_report"],
        help="Player-season report path, .csv or .parquet",
    )
    parser.add_argument(
        "--team-summary-output",
        type=str,
        default=config.export_config["team_season_summary"],
        help="Team season summary path, .csv or .parquet (empty string to skip)",
    )

    args = parser.parse_args()

    if not Path(args.db_path).exists():
        print(f"Error: Database not found at {args.db_path}")
        print("\nTo create the schema run: python setup_database.py --db-path <path>")
        sys.exit(1)

    print("=" * 70)
    print("EUROPEAN SOCCER PLAYER-SEASON PIPELINE")
    print("=" * 70)
    print(f"Database: {args.db_path}")
    print(f"Report: {args.output}")
    if args.team_summary_output:
        print(f"Team summary: {args.team_summary_output}")
    print("=" * 70)

    pipeline = PlayerSeasonPipeline(args.db_path)
    try:
        report = pipeline.run_full_pipeline(
            output_path=args.output,
            team_summary_path=args.team_summary_output,
        )
    finally:
        pipeline.close()

    print(f"\n✅ Pipeline complete! {report.height:,} player-seasons written to {args.output}")


if __name__ == "__main__":
    main()
