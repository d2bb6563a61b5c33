"""Default issue metric formulas."""

from typing import List, Optional

from ..models.measure_models import (
    IssueResolution,
    IssueSeverity,
    IssueStatus,
    IssueType,
    Rating,
)
from . import core_metrics as cm
from .formula import FormulaContext, IssueMetricFormula
from .issue_counter import IssueCounter

_RATING_BY_SEVERITY = {
    IssueSeverity.INFO: Rating.A,
    IssueSeverity.MINOR: Rating.B,
    IssueSeverity.MAJOR: Rating.C,
    IssueSeverity.CRITICAL: Rating.D,
    IssueSeverity.BLOCKER: Rating.E,
}


def rating_of_severity(severity: Optional[IssueSeverity]) -> Rating:
    """Rating given by the worst unresolved issue, A when there is none."""
    if severity is None:
        return Rating.A
    return _RATING_BY_SEVERITY[severity]


def development_cost(context: FormulaContext) -> float:
    """Minutes needed to develop the component, from its lines of code."""
    ncloc = context.value(cm.NCLOC) or 0.0
    return ncloc * context.configuration.development_cost_per_line


def debt_ratio(context: FormulaContext, counter: IssueCounter) -> float:
    """Technical debt as a fraction of the development cost."""
    cost = development_cost(context)
    if cost <= 0:
        return 0.0
    return counter.sum_effort_of_unresolved(IssueType.CODE_SMELL) / cost


def _count_type(issue_type: IssueType, on_leak: bool = False):
    return lambda context, counter: counter.count_unresolved_by_type(issue_type, on_leak)


def _count_severity(severity: IssueSeverity):
    return lambda context, counter: counter.count_unresolved_by_severity(severity)


def _count_status(status: IssueStatus):
    return lambda context, counter: counter.count_by_status(status)


def _count_resolution(resolution: IssueResolution):
    return lambda context, counter: counter.count_by_resolution(resolution)


def _effort(issue_type: IssueType, on_leak: bool = False):
    return lambda context, counter: counter.sum_effort_of_unresolved(issue_type, on_leak)


def _rating(issue_type: IssueType, on_leak: bool = False):
    return lambda context, counter: rating_of_severity(
        counter.highest_severity_of_unresolved(issue_type, on_leak)
    )


def _effort_to_rating_a(context: FormulaContext, counter: IssueCounter) -> float:
    effort = counter.sum_effort_of_unresolved(IssueType.CODE_SMELL)
    allowed = context.debt_rating_grid.bound_of(Rating.A) * development_cost(context)
    return max(0.0, effort - allowed)


class IssueMetricFormulaFactory:
    """
    Builds the formulas recomputed when the issues of a project change.

    The order of get_formulas() is the execution order on each component.
    GOTCHA: A formula reading a metric of the same component must come after
    the formula computing it; nothing reorders them.
    """

    def __init__(self, formulas: Optional[List[IssueMetricFormula]] = None):
        self._formulas = formulas if formulas is not None else self._default_formulas()

    def get_formulas(self) -> List[IssueMetricFormula]:
        return list(self._formulas)

    @staticmethod
    def _default_formulas() -> List[IssueMetricFormula]:
        return [
            IssueMetricFormula(cm.CODE_SMELLS, _count_type(IssueType.CODE_SMELL)),
            IssueMetricFormula(cm.BUGS, _count_type(IssueType.BUG)),
            IssueMetricFormula(cm.VULNERABILITIES, _count_type(IssueType.VULNERABILITY)),
            IssueMetricFormula(cm.VIOLATIONS, lambda context, counter: counter.count_unresolved()),
            IssueMetricFormula(cm.BLOCKER_VIOLATIONS, _count_severity(IssueSeverity.BLOCKER)),
            IssueMetricFormula(cm.CRITICAL_VIOLATIONS, _count_severity(IssueSeverity.CRITICAL)),
            IssueMetricFormula(cm.MAJOR_VIOLATIONS, _count_severity(IssueSeverity.MAJOR)),
            IssueMetricFormula(cm.MINOR_VIOLATIONS, _count_severity(IssueSeverity.MINOR)),
            IssueMetricFormula(cm.INFO_VIOLATIONS, _count_severity(IssueSeverity.INFO)),
            IssueMetricFormula(cm.OPEN_ISSUES, _count_status(IssueStatus.OPEN)),
            IssueMetricFormula(cm.REOPENED_ISSUES, _count_status(IssueStatus.REOPENED)),
            IssueMetricFormula(cm.CONFIRMED_ISSUES, _count_status(IssueStatus.CONFIRMED)),
            IssueMetricFormula(cm.FALSE_POSITIVE_ISSUES, _count_resolution(IssueResolution.FALSE_POSITIVE)),
            IssueMetricFormula(cm.WONT_FIX_ISSUES, _count_resolution(IssueResolution.WONT_FIX)),
            IssueMetricFormula(cm.TECHNICAL_DEBT, _effort(IssueType.CODE_SMELL)),
            IssueMetricFormula(cm.RELIABILITY_REMEDIATION_EFFORT, _effort(IssueType.BUG)),
            IssueMetricFormula(cm.SECURITY_REMEDIATION_EFFORT, _effort(IssueType.VULNERABILITY)),
            IssueMetricFormula(
                cm.SQALE_DEBT_RATIO,
                lambda context, counter: 100.0 * debt_ratio(context, counter),
                dependent_metric_keys=[cm.NCLOC],
            ),
            IssueMetricFormula(
                cm.SQALE_RATING,
                lambda context, counter: context.debt_rating_grid.rating_for(debt_ratio(context, counter)),
                dependent_metric_keys=[cm.NCLOC],
            ),
            IssueMetricFormula(
                cm.EFFORT_TO_REACH_MAINTAINABILITY_RATING_A,
                _effort_to_rating_a,
                dependent_metric_keys=[cm.NCLOC],
            ),
            IssueMetricFormula(cm.RELIABILITY_RATING, _rating(IssueType.BUG)),
            IssueMetricFormula(cm.SECURITY_RATING, _rating(IssueType.VULNERABILITY)),
            IssueMetricFormula(cm.NEW_CODE_SMELLS, _count_type(IssueType.CODE_SMELL, True), on_leak=True),
            IssueMetricFormula(cm.NEW_BUGS, _count_type(IssueType.BUG, True), on_leak=True),
            IssueMetricFormula(cm.NEW_VULNERABILITIES, _count_type(IssueType.VULNERABILITY, True), on_leak=True),
            IssueMetricFormula(
                cm.NEW_VIOLATIONS,
                lambda context, counter: counter.count_unresolved(on_leak=True),
                on_leak=True,
            ),
            IssueMetricFormula(cm.NEW_TECHNICAL_DEBT, _effort(IssueType.CODE_SMELL, True), on_leak=True),
            IssueMetricFormula(
                cm.NEW_RELIABILITY_REMEDIATION_EFFORT, _effort(IssueType.BUG, True), on_leak=True
            ),
            IssueMetricFormula(
                cm.NEW_SECURITY_REMEDIATION_EFFORT, _effort(IssueType.VULNERABILITY, True), on_leak=True
            ),
            IssueMetricFormula(cm.NEW_RELIABILITY_RATING, _rating(IssueType.BUG, True), on_leak=True),
            IssueMetricFormula(cm.NEW_SECURITY_RATING, _rating(IssueType.VULNERABILITY, True), on_leak=True),
        ]
