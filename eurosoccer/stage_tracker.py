"""
Stage bookkeeping for the season pipeline
Tracks rows in/out and data-quality warnings per stage, and fingerprints reports
"""

import hashlib
import logging
from typing import Dict, List, Any, Union
from pathlib import Path
from datetime import datetime
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class StageResult:
    """Result of a single pipeline stage"""
    stage_name: str
    input_rows: int
    output_rows: int
    warnings: int
    processing_time: float


class ReportHasher:
    """Fingerprints report output so re-runs can be compared byte for byte"""

    @staticmethod
    def hash_file(path: Union[str, Path]) -> str:
        """Hash the bytes of an exported file"""
        digest = hashlib.sha256()
        with open(path, "rb") as fh:
            for chunk in iter(lambda: fh.read(65536), b""):
                digest.update(chunk)
        return digest.hexdigest()[:16]


class StageTracker:
    """Tracks progress across pipeline stages"""

    def __init__(self):
        self.stages: List[StageResult] = []
        self.start_time = datetime.now()

    def start_stage(self) -> datetime:
        return datetime.now()

    def add_result(self, stage_name: str, started: datetime, input_rows: int,
                   output_rows: int, warnings: int = 0) -> StageResult:
        """Record a finished stage and log it"""
        result = StageResult(
            stage_name=stage_name,
            input_rows=input_rows,
            output_rows=output_rows,
            warnings=warnings,
            processing_time=(datetime.now() - started).total_seconds()
        )
        self.stages.append(result)
        self._log_stage_result(result)
        return result

    def get_result(self, stage_name: str) -> StageResult:
        """Most recent result for a stage"""
        for result in reversed(self.stages):
            if result.stage_name == stage_name:
                return result
        raise KeyError(f"No result recorded for stage {stage_name!r}")

    def _log_stage_result(self, result: StageResult):
        logger.info(f"✅ {result.stage_name} completed:")
        logger.info(
            f"  📊 In: {result.input_rows:,} | Out: {result.output_rows:,} | "
            f"Warnings: {result.warnings:,} | Time: {result.processing_time:.2f}s"
        )

    def get_summary(self) -> Dict[str, Any]:
        """Get overall run summary"""
        if not self.stages:
            return {'status': 'no_stages'}

        total_time = (datetime.now() - self.start_time).total_seconds()

        return {
            'total_stages': len(self.stages),
            'total_warnings': sum(stage.warnings for stage in self.stages),
            'total_processing_time': total_time,
            'stages_completed': [stage.stage_name for stage in self.stages],
            'final_rows': self.stages[-1].output_rows
        }

    def log_summary(self, operation_name: str = "Pipeline"):
        """Log overall run summary"""
        summary = self.get_summary()

        if summary.get('status') == 'no_stages':
            logger.info(f"📋 {operation_name}: No stages completed")
            return

        logger.info(f"📋 {operation_name} Summary:")
        logger.info(f"  🎯 Stages: {summary['total_stages']}")
        logger.info(f"  ⚠️  Data-quality warnings: {summary['total_warnings']:,}")
        logger.info(f"  ⚡ Time: {summary['total_processing_time']:.2f}s")
        logger.info(f"  📋 Stages: {', '.join(summary['stages_completed'])}")
