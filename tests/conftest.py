import duckdb
import pytest

from eurosoccer.data_pipeline import PlayerSeasonPipeline
from eurosoccer.table_schemas import create_all_source_tables


@pytest.fixture
def test_db_path(tmp_path):
    """Create temporary test database path."""
    db_path = tmp_path / "test_soccer.duckdb"
    yield str(db_path)
    if db_path.exists():
        db_path.unlink()


@pytest.fixture
def test_db(test_db_path):
    """Create database with the empty source schema."""
    conn = duckdb.connect(test_db_path)
    create_all_source_tables(conn)
    conn.close()
    yield test_db_path


@pytest.fixture
def make_pipeline():
    """Build pipelines against a database file and close them on teardown."""
    pipelines = []

    def _make(db_file):
        pipeline = PlayerSeasonPipeline(db_file)
        pipelines.append(pipeline)
        return pipeline

    yield _make

    for pipeline in pipelines:
        pipeline.close()
