from __future__ import annotations

import pytest

from emissions_pipeline.exceptions import MalformedRow
from emissions_pipeline.ingestion.tsv_processor import TSVProcessor

from factories import facility_line, snapshot


def test_parses_well_formed_line() -> None:
    line = "42\t  Acme Plant \tTUCSON\tAZ\t85701\t1 Main St\t32.5\t-110.25\t1500.5\t1400\t\t2.5\t \t7\n"
    record = TSVProcessor().parse_line(line, 2)

    assert record.facility_id == 42
    assert record.facility_name == "Acme Plant"
    assert record.latitude == 32.5
    assert record.longitude == -110.25
    assert record.tr_direct_emissions == 1500.5
    assert record.co2_emissions_non_biogenic == 1400.0
    assert record.methane_emissions is None
    assert record.stationary_combustion is None
    assert record.electricity_generation == 7.0
    assert record.as_row()[:2] == (42, "Acme Plant")
    assert len(record.as_row()) == 14


def test_wrong_field_count_is_malformed() -> None:
    with pytest.raises(MalformedRow) as excinfo:
        TSVProcessor().parse_line("1\tonly\tthree\n", 5)
    assert excinfo.value.line_number == 5
    assert "14" in str(excinfo.value)


def test_non_numeric_metric_is_malformed() -> None:
    line = facility_line(1, total=None).replace("\t\t", "\tabc\t", 1)
    with pytest.raises(MalformedRow):
        TSVProcessor().parse_line(line, 3)


def test_non_integer_facility_id_is_malformed() -> None:
    with pytest.raises(MalformedRow):
        TSVProcessor().parse_line(facility_line(1).replace("1", "x1", 1), 2)


def test_iter_records_skips_header_and_numbers_file_lines() -> None:
    lines = snapshot([facility_line(1), facility_line(2)])
    numbered = list(TSVProcessor().iter_records(lines))
    assert [n for n, _ in numbered] == [2, 3]
    assert [r.facility_id for _, r in numbered] == [1, 2]


def test_empty_source_yields_nothing() -> None:
    assert TSVProcessor().parse_lines([]) == []
    assert TSVProcessor().parse_lines(snapshot([])) == []


@pytest.mark.parametrize("column, value", [(0, "1_000"), (6, "3_2.5"), (8, "1_0"), (8, "١٢"), (8, "0x10")])
def test_numbers_must_be_plain_decimals(column, value) -> None:
    fields = facility_line(1).rstrip("\n").split("\t")
    fields[column] = value
    with pytest.raises(MalformedRow):
        TSVProcessor().parse_line("\t".join(fields), 2)


@pytest.mark.parametrize("value, expected", [("+7", 7.0), ("-1.5e3", -1500.0), (".5", 0.5), ("5.", 5.0)])
def test_signed_and_exponent_numbers_parse(value, expected) -> None:
    fields = facility_line(1).rstrip("\n").split("\t")
    fields[8] = value
    assert TSVProcessor().parse_line("\t".join(fields), 2).tr_direct_emissions == expected


def test_byte_lines_are_decoded_per_line() -> None:
    good = facility_line(1, name="Peña Blanca").encode("utf-8")
    bad = facility_line(2).encode("utf-8").replace(b"TUCSON", b"TUC\xff\xfeSON")
    records = TSVProcessor().iter_records([b"header\n", good, bad])

    line_number, record = next(records)
    assert (line_number, record.facility_name) == (2, "Peña Blanca")
    with pytest.raises(MalformedRow) as excinfo:
        next(records)
    assert excinfo.value.line_number == 3
    assert "UTF-8" in str(excinfo.value)
