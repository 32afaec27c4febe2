"""
Configuration management for the European Soccer season pipeline.
"""

from pathlib import Path
from typing import Dict, Any, List, Tuple


class SoccerConfig:
    """Configuration manager for the player-season pipeline"""

    def __init__(self):
        self.project_root = Path(__file__).parent.parent
        self.db_file = self.project_root / "european_soccer.duckdb"
        self.output_dir = self.project_root / "reports"

    @property
    def pipeline_config(self) -> Dict[str, Any]:
        """Stage configuration"""
        return {
            "sides": ["home", "away"],
            "slots_per_side": 11,
            "rounding_decimals": 2,
            "source_tables": [
                "country", "league", "team", "player", "player_attributes", "match"
            ]
        }

    @property
    def export_config(self) -> Dict[str, Any]:
        """Report export configuration"""
        return {
            "player_season_report": str(self.output_dir / "player_season_report.csv"),
            "team_season_summary": str(self.output_dir / "team_season_summary.csv"),
            "float_precision": 2
        }

    @property
    def attribute_metrics(self) -> Dict[str, str]:
        """Report metric name -> player_attributes column"""
        return {
            "rating": "overall_rating",
            "finishing": "finishing",
            "passing": "short_passing",
            "shot_power": "shot_power",
            "positioning": "positioning",
            "stamina": "stamina",
            "strength": "strength",
            "interceptions": "interceptions",
            "marking": "marking",
            "standing_tackle": "standing_tackle",
            "sliding_tackle": "sliding_tackle"
        }

    @property
    def roster_slots(self) -> List[Tuple[str, int]]:
        """All (side, slot_index) pairs of a match-day roster"""
        settings = self.pipeline_config
        return [
            (side, slot)
            for side in settings["sides"]
            for slot in range(1, settings["slots_per_side"] + 1)
        ]

    def slot_column(self, side: str, slot: int) -> str:
        """Match column holding the player id for a roster slot"""
        return f"{side}_player_{slot}"

    def team_column(self, side: str) -> str:
        """Match column holding the team id for a side"""
        return f"{side}_team_api_id"

    def report_columns(self) -> List[str]:
        """Ordered column list of the player-season report"""
        columns = [
            "player_id", "player_name", "team_name",
            "league_name", "country_name", "season"
        ]
        columns.extend(f"avg_{metric}" for metric in self.attribute_metrics)
        return columns


config = SoccerConfig()


def main():
    """Print the active configuration"""
    print("⚽ European Soccer Pipeline Configuration")
    print("=" * 45)

    print(f"📁 Project root: {config.project_root}")
    print(f"💾 Database file: {config.db_file}")
    print(f"📄 Report output: {config.export_config['player_season_report']}")
    print(f"👥 Roster slots per match: {len(config.roster_slots)}")
    print(f"📊 Attribute metrics: {', '.join(config.attribute_metrics)}")

    print("✅ Configuration loaded successfully")


if __name__ == "__main__":
    main()
