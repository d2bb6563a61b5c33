"""Unit tests for the default issue metric formulas."""

from datetime import datetime

import pytest

from src.measures import core_metrics as cm
from src.measures.core_metrics import core_metrics
from src.measures.debt_rating_grid import DebtRatingGrid
from src.measures.formula_engine import FormulaEngine
from src.measures.formulas import IssueMetricFormulaFactory, rating_of_severity
from src.measures.issue_counter import IssueCounter
from src.measures.measure_matrix import MeasureMatrix
from src.models.measure_models import (
    Component,
    IssueGroup,
    IssueResolution,
    IssueSeverity,
    IssueStatus,
    IssueType,
    LiveMeasure,
    ProjectConfiguration,
    Qualifier,
    Rating,
)

PROJECT = Component(uuid="p", key="proj", qualifier=Qualifier.PROJECT, project_uuid="p")
METRICS = core_metrics()
METRIC_IDS = {m.key: m.id for m in METRICS}


def compute(groups, ncloc=None, leak=True, configuration=None):
    measures = []
    if ncloc is not None:
        measures.append(
            LiveMeasure(component_uuid="p", project_uuid="p", metric_id=METRIC_IDS[cm.NCLOC], value=ncloc)
        )
    configuration = configuration or ProjectConfiguration()
    matrix = MeasureMatrix([PROJECT], METRICS, measures)
    FormulaEngine(IssueMetricFormulaFactory().get_formulas()).run(
        matrix=matrix,
        components=[PROJECT],
        load_issue_counter=lambda c: IssueCounter(groups),
        debt_rating_grid=DebtRatingGrid(configuration),
        configuration=configuration,
        leak_period_start=datetime(2024, 1, 1) if leak else None,
    )
    return matrix


def group(issue_type=IssueType.CODE_SMELL, severity=IssueSeverity.MAJOR, **kwargs):
    kwargs.setdefault("status", IssueStatus.OPEN)
    kwargs.setdefault("count", 1)
    return IssueGroup(type=issue_type, severity=severity, **kwargs)


class TestCountFormulas:
    """Test issue count metrics."""

    def test_counts_by_type_severity_status_resolution(self):
        """Test count metrics on a mix of issues."""
        matrix = compute([
            group(IssueType.BUG, IssueSeverity.BLOCKER, count=2),
            group(IssueType.VULNERABILITY, IssueSeverity.CRITICAL, status=IssueStatus.REOPENED),
            group(IssueType.CODE_SMELL, IssueSeverity.MINOR, status=IssueStatus.CONFIRMED, count=3),
            group(status=IssueStatus.RESOLVED, resolution=IssueResolution.FALSE_POSITIVE, count=4),
            group(status=IssueStatus.RESOLVED, resolution=IssueResolution.WONT_FIX),
        ])

        assert matrix.value(PROJECT, cm.BUGS) == 2
        assert matrix.value(PROJECT, cm.VULNERABILITIES) == 1
        assert matrix.value(PROJECT, cm.CODE_SMELLS) == 3
        assert matrix.value(PROJECT, cm.VIOLATIONS) == 6
        assert matrix.value(PROJECT, cm.BLOCKER_VIOLATIONS) == 2
        assert matrix.value(PROJECT, cm.CRITICAL_VIOLATIONS) == 1
        assert matrix.value(PROJECT, cm.MINOR_VIOLATIONS) == 3
        assert matrix.value(PROJECT, cm.INFO_VIOLATIONS) == 0
        assert matrix.value(PROJECT, cm.OPEN_ISSUES) == 2
        assert matrix.value(PROJECT, cm.REOPENED_ISSUES) == 1
        assert matrix.value(PROJECT, cm.CONFIRMED_ISSUES) == 3
        assert matrix.value(PROJECT, cm.FALSE_POSITIVE_ISSUES) == 4
        assert matrix.value(PROJECT, cm.WONT_FIX_ISSUES) == 1

    def test_new_counts_written_to_leak_slot(self):
        """Test leak metrics count leak issues in the leak slot."""
        matrix = compute([
            group(IssueType.BUG, count=2),
            group(IssueType.BUG, in_leak=True),
        ])

        assert matrix.leak_value(PROJECT, cm.NEW_BUGS) == 1
        assert matrix.value(PROJECT, cm.NEW_BUGS) is None
        assert matrix.leak_value(PROJECT, cm.NEW_VIOLATIONS) == 1

    def test_new_metrics_absent_without_leak_period(self):
        """Test leak metrics are not computed without leak period."""
        matrix = compute([group(IssueType.BUG, in_leak=False)], leak=False)

        assert matrix.leak_value(PROJECT, cm.NEW_BUGS) is None
        assert all(slot != "leak" for _, _, slot in matrix.changed_keys())


class TestDebtFormulas:
    """Test effort, debt ratio and maintainability rating."""

    def test_efforts(self):
        """Test remediation efforts per type."""
        matrix = compute([
            group(IssueType.CODE_SMELL, effort=30),
            group(IssueType.CODE_SMELL, effort=20, in_leak=True),
            group(IssueType.BUG, effort=10),
            group(IssueType.VULNERABILITY, effort=5, in_leak=True),
        ])

        assert matrix.value(PROJECT, cm.TECHNICAL_DEBT) == 50
        assert matrix.leak_value(PROJECT, cm.NEW_TECHNICAL_DEBT) == 20
        assert matrix.value(PROJECT, cm.RELIABILITY_REMEDIATION_EFFORT) == 10
        assert matrix.value(PROJECT, cm.SECURITY_REMEDIATION_EFFORT) == 5
        assert matrix.leak_value(PROJECT, cm.NEW_SECURITY_REMEDIATION_EFFORT) == 5

    def test_debt_ratio_and_rating(self):
        """Test debt ratio against 100 lines at 30 minutes per line."""
        # 3000 minutes of development, 450 minutes of debt: 15%
        matrix = compute([group(effort=450)], ncloc=100)

        assert matrix.value(PROJECT, cm.SQALE_DEBT_RATIO) == pytest.approx(15.0)
        assert matrix.value(PROJECT, cm.SQALE_RATING) == Rating.C.value
        # rating A allows 5% of 3000 minutes
        assert matrix.value(PROJECT, cm.EFFORT_TO_REACH_MAINTAINABILITY_RATING_A) == pytest.approx(300.0)

    def test_debt_ratio_uses_configured_cost(self):
        """Test development cost per line comes from the project settings."""
        matrix = compute(
            [group(effort=450)],
            ncloc=100,
            configuration=ProjectConfiguration(development_cost_per_line=90),
        )

        assert matrix.value(PROJECT, cm.SQALE_DEBT_RATIO) == pytest.approx(5.0)
        assert matrix.value(PROJECT, cm.SQALE_RATING) == Rating.A.value

    def test_no_code_means_zero_ratio(self):
        """Test components without lines of code have no debt ratio."""
        matrix = compute([group(effort=450)])

        assert matrix.value(PROJECT, cm.SQALE_DEBT_RATIO) == 0
        assert matrix.value(PROJECT, cm.SQALE_RATING) == Rating.A.value


class TestRatingFormulas:
    """Test reliability and security ratings."""

    @pytest.mark.parametrize(
        "severity,expected",
        [
            (None, Rating.A),
            (IssueSeverity.INFO, Rating.A),
            (IssueSeverity.MINOR, Rating.B),
            (IssueSeverity.MAJOR, Rating.C),
            (IssueSeverity.CRITICAL, Rating.D),
            (IssueSeverity.BLOCKER, Rating.E),
        ],
    )
    def test_rating_of_severity(self, severity, expected):
        """Test worst severity to rating mapping."""
        assert rating_of_severity(severity) == expected

    def test_reliability_and_security_ratings(self):
        """Test ratings follow the worst unresolved bug and vulnerability."""
        matrix = compute([
            group(IssueType.BUG, IssueSeverity.CRITICAL),
            group(IssueType.BUG, IssueSeverity.MINOR, in_leak=True),
            group(IssueType.VULNERABILITY, IssueSeverity.BLOCKER, resolution=IssueResolution.FIXED),
        ])

        assert matrix.value(PROJECT, cm.RELIABILITY_RATING) == Rating.D.value
        assert matrix.leak_value(PROJECT, cm.NEW_RELIABILITY_RATING) == Rating.B.value
        assert matrix.value(PROJECT, cm.SECURITY_RATING) == Rating.A.value
        assert matrix.leak_value(PROJECT, cm.NEW_SECURITY_RATING) == Rating.A.value
