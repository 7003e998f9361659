from __future__ import annotations

from emissions_pipeline.config import Settings
from emissions_pipeline.database import PartitionRegistry
from emissions_pipeline.ingestion.database_operations import DatabaseOperations
from emissions_pipeline.ingestion.worker import IngestionPipeline

from factories import facility_line, numbered_facilities, snapshot


def _count(store, table: str) -> int:
    return store.execute_query(f'SELECT COUNT(*) AS n FROM "{table}"')[0]["n"]


def _settings(tmp_path, years) -> Settings:
    return Settings(
        backend="sqlite",
        database_url=None,
        sqlite_db_path=str(tmp_path / "emissions.db"),
        years=tuple(years),
        table_prefix="emissions_data_",
        data_dir=tmp_path / "data",
        file_suffix="_cleaned.tsv",
    )


def test_create_partition_is_not_destructive(pipeline, store) -> None:
    assert pipeline.create_partition("2010") is True
    pipeline.load_partition("2010", snapshot(numbered_facilities(3)))

    # Second creation fails, is logged, and leaves the data alone.
    assert pipeline.create_partition("2010") is False
    assert _count(store, "emissions_data_2010") == 3


def test_well_formed_file_loads_every_data_line(pipeline, store) -> None:
    pipeline.create_partition("2014")
    result = pipeline.load_partition("2014", snapshot(numbered_facilities(25)))

    assert result.status == "COMPLETED"
    assert result.rows_inserted == 25
    assert _count(store, "emissions_data_2014") == 25


def test_malformed_line_keeps_rows_before_it(pipeline, store) -> None:
    lines = numbered_facilities(10)
    lines[6] = lines[6].replace("1000.0", "n/a")  # data line 7

    pipeline.create_partition("2018")
    result = pipeline.load_partition("2018", snapshot(lines))

    assert result.status == "FAILED"
    assert result.rows_inserted == 6
    assert "Line 8" in result.error
    assert _count(store, "emissions_data_2018") == 6


def test_short_line_is_malformed(pipeline, store) -> None:
    lines = numbered_facilities(3) + ["4\ttruncated\n"] + numbered_facilities(2, start=5)

    pipeline.create_partition("2010")
    result = pipeline.load_partition("2010", snapshot(lines))

    assert not result.ok
    assert _count(store, "emissions_data_2010") == 3


def test_empty_metrics_are_stored_as_null(pipeline, store) -> None:
    pipeline.create_partition("2010")
    pipeline.load_partition("2010", snapshot([facility_line(7, total=None, latitude=None)]))

    row = store.execute_query('SELECT * FROM "emissions_data_2010"')[0]
    assert row["facility_id"] == 7
    assert row["tr_direct_emissions"] is None
    assert row["latitude"] is None
    assert row["methane_emissions"] == 10.0


def test_values_with_quotes_are_bound_not_interpolated(pipeline, store) -> None:
    pipeline.create_partition("2010")
    name = "O'Brien \"Peaker\"); DROP TABLE emissions_data_2010; --"
    result = pipeline.load_partition("2010", snapshot([facility_line(1, name=name)]))

    assert result.ok
    assert store.execute_query('SELECT facility_name FROM "emissions_data_2010"')[0]["facility_name"] == name


def test_reloading_appends_duplicates(pipeline, store) -> None:
    pipeline.create_partition("2022")
    pipeline.load_partition("2022", snapshot(numbered_facilities(4)))
    pipeline.load_partition("2022", snapshot(numbered_facilities(4)))

    assert _count(store, "emissions_data_2022") == 8


def test_run_continues_after_missing_and_malformed_files(tmp_path, store, registry, write_snapshot) -> None:
    settings = _settings(tmp_path, registry.years)
    write_snapshot("2010", numbered_facilities(5))
    bad = numbered_facilities(5)
    bad[2] = "x\tbroken\n"
    write_snapshot("2014", bad)
    # no file for 2018
    write_snapshot("2022", numbered_facilities(7))

    results = IngestionPipeline(store, registry, settings).run()

    assert [(r.year, r.status, r.rows_inserted) for r in results] == [
        ("2010", "COMPLETED", 5),
        ("2014", "FAILED", 2),
        ("2018", "FAILED", 0),
        ("2022", "COMPLETED", 7),
    ]
    # The 2018 partition was still created before the file read failed.
    assert DatabaseOperations(store, registry).partition_exists("2018")


def test_skip_populated_leaves_loaded_years_alone(tmp_path, store, write_snapshot) -> None:
    settings = _settings(tmp_path, ["2010", "2014"])
    registry_2 = PartitionRegistry(settings.years)
    write_snapshot("2010", numbered_facilities(5))
    write_snapshot("2014", numbered_facilities(6))

    pipeline = IngestionPipeline(store, registry_2, settings)
    pipeline.run()
    results = pipeline.run(skip_populated=True)

    assert [r.status for r in results] == ["SKIPPED", "SKIPPED"]
    assert _count(store, "emissions_data_2010") == 5
    assert _count(store, "emissions_data_2014") == 6


def test_unknown_year_is_a_failed_result(pipeline) -> None:
    result = pipeline.ingest_year("1999")
    assert result.status == "FAILED"
    assert "1999" in result.error


def test_initialize_creates_every_partition(pipeline, store, registry) -> None:
    assert pipeline.initialize() == list(registry.years)
    assert all(store.table_exists(p.table) for p in registry)
    assert pipeline.initialize() == []


def test_invalid_utf8_line_keeps_every_line_before_it(tmp_path, store, registry) -> None:
    settings = _settings(tmp_path, registry.years)
    path = settings.source_path("2010")
    path.parent.mkdir(parents=True)
    good = "".join(snapshot(numbered_facilities(2000))).encode("utf-8")
    # Spans several 8 KB read buffers.
    assert len(good) > 8192
    path.write_bytes(good + b"2001\t\xff\xfe bad\n" + facility_line(2002).encode("utf-8"))

    result = IngestionPipeline(store, registry, settings).ingest_year("2010")

    assert result.status == "FAILED"
    assert result.rows_inserted == 2000
    assert "Line 2002" in result.error
    assert _count(store, "emissions_data_2010") == 2000


def test_crlf_file_loads_from_disk(tmp_path, store, registry) -> None:
    settings = _settings(tmp_path, registry.years)
    path = settings.source_path("2014")
    path.parent.mkdir(parents=True)
    path.write_bytes("".join(snapshot(numbered_facilities(3))).replace("\n", "\r\n").encode("utf-8"))

    result = IngestionPipeline(store, registry, settings).ingest_year("2014")

    assert (result.status, result.rows_inserted) == ("COMPLETED", 3)
    assert store.execute_query('SELECT electricity_generation FROM "emissions_data_2014"')[0][
        "electricity_generation"] == 500.0
