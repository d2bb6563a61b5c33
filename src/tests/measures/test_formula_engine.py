"""Unit tests for FormulaEngine.

Tests write routing to the current and leak slots, leak formula skipping,
execution order and failure wrapping.
"""

from datetime import datetime

import pytest

from src.measures.base import FormulaComputationError
from src.measures.debt_rating_grid import DebtRatingGrid
from src.measures.formula import IssueMetricFormula
from src.measures.formula_engine import FormulaEngine
from src.measures.issue_counter import IssueCounter
from src.measures.measure_matrix import MeasureMatrix
from src.models.measure_models import (
    Component,
    IssueGroup,
    IssueSeverity,
    IssueStatus,
    IssueType,
    Metric,
    ProjectConfiguration,
    Qualifier,
    Rating,
)

PROJECT = Component(uuid="p", key="proj", qualifier=Qualifier.PROJECT, project_uuid="p")
FILE = Component(
    uuid="f", key="proj:a.py", qualifier=Qualifier.FILE, uuid_path=["p"], project_uuid="p"
)
METRICS = [Metric(id=1, key="bugs"), Metric(id=2, key="doubled"), Metric(id=3, key="rating")]

BUG_GROUPS = [
    IssueGroup(type=IssueType.BUG, severity=IssueSeverity.MAJOR, status=IssueStatus.OPEN, count=1),
    IssueGroup(type=IssueType.BUG, severity=IssueSeverity.MAJOR, status=IssueStatus.OPEN, count=1, in_leak=True),
]

count_bugs = IssueMetricFormula(
    "bugs", lambda context, counter: counter.count_unresolved_by_type(IssueType.BUG)
)
count_new_bugs = IssueMetricFormula(
    "bugs",
    lambda context, counter: counter.count_unresolved_by_type(IssueType.BUG, on_leak=True),
    on_leak=True,
)


def run(engine, matrix, leak_period_start=None, components=(FILE, PROJECT)):
    engine.run(
        matrix=matrix,
        components=list(components),
        load_issue_counter=lambda c: IssueCounter(BUG_GROUPS),
        debt_rating_grid=DebtRatingGrid([0.05, 0.1, 0.2, 0.5]),
        configuration=ProjectConfiguration(),
        leak_period_start=leak_period_start,
    )


class TestWriteRouting:
    """Test where formula results are written."""

    def test_current_and_leak_slots(self):
        """Test leak formulas write the leak slot, others the current slot."""
        matrix = MeasureMatrix([FILE, PROJECT], METRICS)

        run(FormulaEngine([count_bugs, count_new_bugs]), matrix, leak_period_start=datetime(2024, 1, 1))

        for component in (FILE, PROJECT):
            assert matrix.value(component, "bugs") == 2
            assert matrix.leak_value(component, "bugs") == 1

    def test_leak_formulas_skipped_without_leak_period(self):
        """Test leak formulas never run and leak slots stay empty without leak period."""
        calls = []

        def compute(context, counter):
            calls.append(context.component.uuid)
            return 1

        matrix = MeasureMatrix([FILE, PROJECT], METRICS)
        engine = FormulaEngine([count_bugs, IssueMetricFormula("bugs", compute, on_leak=True)])

        run(engine, matrix)

        assert calls == []
        assert matrix.leak_value(FILE, "bugs") is None
        assert matrix.changed_keys() == {("f", "bugs", "value"), ("p", "bugs", "value")}

    def test_rating_result(self):
        """Test rating results are stored as ordinals."""
        matrix = MeasureMatrix([FILE], METRICS)

        run(FormulaEngine([IssueMetricFormula("rating", lambda c, i: Rating.D)]), matrix, components=[FILE])

        assert matrix.value(FILE, "rating") == 4

    def test_none_result_leaves_measure_untouched(self):
        """Test a formula returning None does not write."""
        matrix = MeasureMatrix([FILE], METRICS)

        run(FormulaEngine([IssueMetricFormula("bugs", lambda c, i: None)]), matrix, components=[FILE])

        assert matrix.changed_entries() == []

    def test_formula_of_unknown_metric_skipped(self):
        """Test formulas whose metric is not defined are skipped."""
        matrix = MeasureMatrix([FILE], METRICS)

        run(FormulaEngine([IssueMetricFormula("unknown", lambda c, i: 1), count_bugs]), matrix, components=[FILE])

        assert matrix.value(FILE, "bugs") == 2


class TestOrdering:
    """Test execution order."""

    def test_components_then_registration_order(self):
        """Test each component runs all formulas in registration order."""
        calls = []

        def tracking(key):
            def compute(context, counter):
                calls.append((context.component.uuid, key))
                return 0
            return compute

        engine = FormulaEngine([
            IssueMetricFormula("bugs", tracking("bugs")),
            IssueMetricFormula("doubled", tracking("doubled")),
        ])

        run(engine, MeasureMatrix([FILE, PROJECT], METRICS))

        assert calls == [("f", "bugs"), ("f", "doubled"), ("p", "bugs"), ("p", "doubled")]

    def test_later_formula_reads_earlier_result(self):
        """Test a formula sees values written earlier on the same component."""
        doubled = IssueMetricFormula(
            "doubled", lambda context, counter: 2 * context.value("bugs"), dependent_metric_keys=["bugs"]
        )
        matrix = MeasureMatrix([FILE], METRICS)

        run(FormulaEngine([count_bugs, doubled]), matrix, components=[FILE])

        assert matrix.value(FILE, "doubled") == 4

    def test_metric_keys_include_dependencies(self):
        """Test metric keys cover written and read metrics."""
        engine = FormulaEngine([
            count_bugs,
            IssueMetricFormula("doubled", lambda c, i: 0, dependent_metric_keys=["ncloc"]),
        ])

        assert engine.metric_keys() == {"bugs", "doubled", "ncloc"}


class TestFailures:
    """Test formula failures."""

    def test_failure_wrapped_with_metric_and_component(self):
        """Test errors identify the failing metric and component."""
        def boom(context, counter):
            raise ZeroDivisionError("division by zero")

        matrix = MeasureMatrix([FILE, PROJECT], METRICS)

        with pytest.raises(FormulaComputationError, match="Fail to compute doubled on proj:a.py") as exc_info:
            run(FormulaEngine([count_bugs, IssueMetricFormula("doubled", boom)]), matrix)

        assert exc_info.value.metric_key == "doubled"
        assert exc_info.value.component_key == "proj:a.py"
        assert isinstance(exc_info.value.__cause__, ZeroDivisionError)
