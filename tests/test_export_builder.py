"""Tests for fixed-column export rows and CSV output."""

import csv

import pytest

from visit_ledger.aggregation.engine import AggregationEngine
from visit_ledger.errors import IOFailure
from visit_ledger.export.csv_writer import write_export_csv
from visit_ledger.export.export_builder import EMPTY, EXPORT_COLUMNS, ExportRecordBuilder
from visit_ledger.schemas.record_schema import AppointmentStatus, VisitOutcome
from tests.conftest import make_classified


def _build(records, months=None):
    result = AggregationEngine().aggregate(records)
    return ExportRecordBuilder().build(result, records, months=months)


@pytest.fixture
def scenario_records():
    return [
        make_classified("F1", "2025-03-01"),
        make_classified("F2", "2025-03-02"),
        make_classified("F3", "2025-03-03", AppointmentStatus.CANCELLED, VisitOutcome.NOT_VISITED),
    ]


class TestExportRows:
    def test_total_row_values(self, scenario_records):
        total = _build(scenario_records)[-1]
        assert total.label == "TTL"
        assert total.values == (3, 100.0, 2, 66.7, 0, 0.0, 0, 0.0)

    def test_every_row_has_eight_values(self, scenario_records):
        for row in _build(scenario_records):
            assert len(row.values) == len(EXPORT_COLUMNS) == 8

    def test_one_row_per_month_then_total(self):
        records = [
            make_classified("F1", "2025-04-02"),
            make_classified("F2", "2025-03-01", prior_visits=1),
        ]
        rows = _build(records)
        assert [r.label for r in rows] == ["2025-03", "2025-04", "TTL"]
        assert rows[0].as_dict()["repeat_completions"] == 1
        assert rows[0].as_dict()["repeat_completion_rate_pct"] == 100.0

    def test_month_without_data_is_all_empty(self, scenario_records):
        rows = _build(scenario_records, months=["2025-02", "2025-03"])
        assert rows[0].label == "2025-02"
        assert rows[0].values == (EMPTY,) * 8
        assert rows[1].values[0] == 3

    def test_zero_denominators_export_zero_not_empty(self):
        rows = _build([make_classified("F1", "2025-03-01")])
        repeat_rate = rows[-1].as_dict()["repeat_completion_rate_pct"]
        assert repeat_rate == 0.0
        assert repeat_rate != EMPTY


class TestWriteExportCsv:
    def test_writes_header_and_rows(self, tmp_path, scenario_records):
        path = write_export_csv(_build(scenario_records), tmp_path / "export.csv")
        with open(path, encoding="utf-8-sig", newline="") as f:
            rows = list(csv.reader(f))
        assert rows[0] == ["label", *EXPORT_COLUMNS]
        assert rows[-1] == ["TTL", "3", "100.0", "2", "66.7", "0", "0.0", "0", "0.0"]

    def test_unwritable_path_raises_io_failure(self, tmp_path, scenario_records):
        with pytest.raises(IOFailure):
            write_export_csv(_build(scenario_records), tmp_path / "missing" / "export.csv")


class TestRateRounding:
    def test_exact_half_rounds_up(self):
        records = [make_classified("F0", "2025-03-01", prior_visits=0)]
        records += [make_classified(f"F{i}", "2025-03-01", prior_visits=1) for i in range(1, 16)]
        total = _build(records)[-1].as_dict()
        assert total["first_time_applications"] == 1
        assert total["first_time_application_rate_pct"] == 6.3
        assert total["repeat_application_rate_pct"] == 93.8

    def test_non_tie_rounds_to_nearest(self, scenario_records):
        total = _build(scenario_records)[-1].as_dict()
        assert total["first_time_completion_rate_pct"] == 66.7
