"""
European Soccer Season Pipeline

Player-season primary-club resolution and attribute aggregation over the
European Soccer relational dataset, backed by DuckDB and Polars.
"""

from eurosoccer.data_pipeline import PlayerSeasonPipeline
from eurosoccer.database import SoccerDatabase
from eurosoccer.errors import PipelineInvariantError, SeasonLabelError
from eurosoccer.seasons import season_to_year

__all__ = [
    "PlayerSeasonPipeline",
    "SoccerDatabase",
    "PipelineInvariantError",
    "SeasonLabelError",
    "season_to_year",
]

__version__ = "1.0.0"
