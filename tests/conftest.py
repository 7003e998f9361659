from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable

import pytest

from emissions_pipeline.database import PartitionRegistry
from emissions_pipeline.database.sqlite_connection import SQLiteManager
from emissions_pipeline.ingestion.worker import IngestionPipeline
from emissions_pipeline.analytics.queries import QueryEngine

from factories import snapshot

YEARS = ("2010", "2014", "2018", "2022")


@pytest.fixture
def store(tmp_path: Path):
    manager = SQLiteManager(str(tmp_path / "emissions.db"))
    with manager:
        yield manager


@pytest.fixture
def registry() -> PartitionRegistry:
    return PartitionRegistry(YEARS)


@pytest.fixture
def pipeline(store, registry) -> IngestionPipeline:
    return IngestionPipeline(store, registry, correlation_id="test-run")


@pytest.fixture
def engine(store, registry) -> QueryEngine:
    return QueryEngine(store, registry, correlation_id="test-run")


@pytest.fixture
def load(pipeline) -> Callable[[str, Iterable[str]], int]:
    """Create a year's partition and load the given data lines into it."""
    def _load(year: str, lines: Iterable[str]) -> int:
        pipeline.create_partition(year)
        result = pipeline.load_partition(year, snapshot(lines))
        assert result.ok, result.error
        return result.rows_inserted
    return _load


@pytest.fixture
def write_snapshot(tmp_path: Path) -> Callable[..., Path]:
    """Write a snapshot file (header + lines) as <year>_cleaned.tsv under tmp_path/data."""
    def _write(year: str, lines: Iterable[str]) -> Path:
        path = tmp_path / "data" / f"{year}_cleaned.tsv"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("".join(snapshot(lines)), encoding="utf-8")
        return path
    return _write
