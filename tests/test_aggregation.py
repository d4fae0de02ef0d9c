"""Tests for the aggregation engine rollups."""

from datetime import date

import pytest

from visit_ledger.aggregation.engine import AggregationEngine
from visit_ledger.schemas.record_schema import AppointmentStatus, VisitOutcome
from tests.conftest import make_classified, make_completed

S = AppointmentStatus
O = VisitOutcome


@pytest.fixture
def engine():
    return AggregationEngine()


class TestSummary:
    def test_two_completed_one_cancelled(self, engine):
        records = [
            make_classified("F1", "2025-03-01"),
            make_classified("F2", "2025-03-02"),
            make_classified("F3", "2025-03-03", S.CANCELLED, O.NOT_VISITED),
        ]
        summary = engine.summarize(records)
        assert summary.applications == 3
        assert summary.completions == 2
        assert summary.cancellations == 1
        assert summary.completion_rate == pytest.approx(2 / 3)

    def test_empty_batch_rate_is_zero(self, engine):
        summary = engine.summarize([])
        assert summary.applications == 0
        assert summary.completion_rate == 0.0

    def test_inconsistent_record_is_not_completed(self, engine):
        summary = engine.summarize([make_classified(status=S.CANCELLED, outcome=O.VISITED)])
        assert summary.completions == 0
        assert summary.cancellations == 1

    def test_rate_stays_within_bounds(self, engine):
        records = [make_classified(f"F{i}", "2025-03-01") for i in range(5)]
        rate = engine.summarize(records).completion_rate
        assert 0.0 <= rate <= 1.0
        assert rate == 1.0

    def test_first_time_and_repeat_split(self, engine):
        records = [
            make_classified("F1", "2025-03-01", prior_visits=0),
            make_classified("F2", "2025-03-01", prior_visits=2),
            make_classified("F3", "2025-03-01", S.CANCELLED, O.NOT_VISITED, prior_visits=0),
            make_classified("F4", "2025-03-01", S.CANCELLED, O.NOT_VISITED, prior_visits=1),
        ]
        summary = engine.summarize(records)
        assert summary.first_time_applications == 2
        assert summary.first_time_completions == 1
        assert summary.repeat_applications == 2
        assert summary.repeat_completions == 1
        assert summary.first_time_completion_rate == pytest.approx(0.5)


class TestStaffRollup:
    def _records(self):
        return [
            make_classified("F1", "2025-03-01", staff="Sato"),
            make_classified("F2", "2025-03-01", staff="Sato"),
            make_classified("F3", "2025-03-01", staff="Ito"),
            make_classified("F4", "2025-03-02", staff="Ito", prior_visits=1),
            make_classified("F5", "2025-03-02", S.CANCELLED, O.NOT_VISITED, staff="Ito"),
            make_classified("F6", "2025-03-02", staff="Abe"),
            make_classified("F7", "2025-03-02", staff="おまかせ", auto_assigned=True),
            make_classified("F8", "2025-03-03", S.CANCELLED, O.NOT_VISITED),
        ]

    def test_sorted_by_completions_then_name(self, engine):
        rows = engine.by_staff(self._records())
        assert [r.staff_name for r in rows] == ["Ito", "Sato", "Abe", "unassigned"]

    def test_auto_assigned_excluded_from_staff_rows(self, engine):
        result = engine.aggregate(self._records())
        assert result.auto_assigned.applications == 1
        assert result.auto_assigned.completions == 1
        assert sum(r.applications for r in result.staff) == 7

    def test_staff_metrics(self, engine):
        ito = next(r for r in engine.by_staff(self._records()) if r.staff_name == "Ito")
        assert ito.applications == 3
        assert ito.completions == 2
        assert ito.cancellations == 1
        assert ito.completion_rate == pytest.approx(2 / 3)
        assert ito.first_visits == 1
        assert ito.second_visits == 1
        assert ito.unique_callers == 3


class TestDailyRollup:
    def test_grouped_and_sorted_by_date(self, engine):
        records = [
            make_classified("F1", "2025-03-05"),
            make_classified("F2", "2025-03-01", S.CANCELLED, O.NOT_VISITED),
            make_classified("F3", "2025-03-05", S.SCHEDULED, O.NOT_VISITED),
        ]
        rows = engine.by_day(records)
        assert [r.day for r in rows] == [date(2025, 3, 1), date(2025, 3, 5)]
        assert rows[1].applications == 2
        assert rows[1].completion_rate == pytest.approx(0.5)
        assert rows[0].completion_rate == 0.0


class TestMonthlyRollup:
    def test_month_over_month_change(self, engine):
        records = [
            make_classified("F1", "2025-04-02"),
            make_classified("F2", "2025-03-01"),
            make_classified("F3", "2025-03-15", S.CANCELLED, O.NOT_VISITED),
        ]
        march, april = engine.by_month(records)
        assert march.month == "2025-03"
        assert march.previous_completion_rate is None
        assert march.completion_rate_change is None
        assert april.month == "2025-04"
        assert april.previous_completion_rate == pytest.approx(0.5)
        assert april.completion_rate_change == pytest.approx(0.5)


class TestReport:
    def test_report_contains_sections(self, engine):
        result = engine.aggregate([make_classified(staff="Sato")])
        text = engine.format_report(result)
        assert "VISIT AGGREGATION REPORT" in text
        assert "Sato" in text
        assert "2025-03" in text


class TestRemarkLabels:
    def test_remark_labels_fall_into_unassigned(self, classifier, engine):
        records = classifier.classify(
            [
                make_completed("F1", "2025-03-01", staff_label="※時間変更あり"),
                make_completed("F2", "2025-03-01", staff_label="Sato"),
            ]
        )
        rows = engine.by_staff(records)
        assert [r.staff_name for r in rows] == ["Sato", "unassigned"]
        assert rows[1].completions == 1
