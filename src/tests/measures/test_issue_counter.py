"""Unit tests for IssueCounter."""

from src.measures.issue_counter import IssueCounter
from src.models.measure_models import (
    IssueGroup,
    IssueResolution,
    IssueSeverity,
    IssueStatus,
    IssueType,
)


def group(**kwargs) -> IssueGroup:
    kwargs.setdefault("type", IssueType.BUG)
    kwargs.setdefault("severity", IssueSeverity.MAJOR)
    kwargs.setdefault("status", IssueStatus.OPEN)
    kwargs.setdefault("count", 1)
    return IssueGroup(**kwargs)


class TestCounts:
    """Test counts of unresolved issues."""

    def test_empty_counter(self):
        """Test an empty counter returns zeros."""
        counter = IssueCounter.empty()

        assert counter.count_unresolved() == 0
        assert counter.count_unresolved_by_type(IssueType.BUG, on_leak=True) == 0
        assert counter.sum_effort_of_unresolved(IssueType.CODE_SMELL) == 0
        assert counter.highest_severity_of_unresolved(IssueType.BUG) is None

    def test_count_by_type_and_leak(self):
        """Test leak counts only include leak groups, totals include all."""
        counter = IssueCounter([
            group(count=3, in_leak=False),
            group(count=2, in_leak=True),
            group(type=IssueType.CODE_SMELL, count=5, in_leak=True),
        ])

        assert counter.count_unresolved_by_type(IssueType.BUG) == 5
        assert counter.count_unresolved_by_type(IssueType.BUG, on_leak=True) == 2
        assert counter.count_unresolved_by_type(IssueType.CODE_SMELL) == 5
        assert counter.count_unresolved() == 10
        assert counter.count_unresolved(on_leak=True) == 7

    def test_resolved_issues_excluded_from_unresolved_counts(self):
        """Test resolved groups only count by resolution."""
        counter = IssueCounter([
            group(count=2),
            group(count=4, status=IssueStatus.RESOLVED, resolution=IssueResolution.FALSE_POSITIVE),
            group(count=1, status=IssueStatus.RESOLVED, resolution=IssueResolution.WONT_FIX, in_leak=True),
        ])

        assert counter.count_unresolved_by_type(IssueType.BUG) == 2
        assert counter.count_by_resolution(IssueResolution.FALSE_POSITIVE) == 4
        assert counter.count_by_resolution(IssueResolution.WONT_FIX, on_leak=True) == 1
        assert counter.count_by_status(IssueStatus.RESOLVED) == 0

    def test_count_by_type_includes_resolved(self):
        """Test counts by type include resolved issues, split by leak period."""
        counter = IssueCounter([
            group(count=2),
            group(count=4, status=IssueStatus.RESOLVED, resolution=IssueResolution.FIXED),
            group(count=1, status=IssueStatus.CLOSED, resolution=IssueResolution.REMOVED, in_leak=True),
            group(type=IssueType.VULNERABILITY, count=3, in_leak=True),
        ])

        assert counter.count_by_type(IssueType.BUG) == 7
        assert counter.count_by_type(IssueType.BUG, on_leak=True) == 1
        assert counter.count_unresolved_by_type(IssueType.BUG) == 2
        assert counter.count_by_type(IssueType.VULNERABILITY, on_leak=True) == 3
        assert counter.count_by_type(IssueType.CODE_SMELL) == 0

    def test_count_by_severity_and_status(self):
        """Test severity and status dimensions."""
        counter = IssueCounter([
            group(severity=IssueSeverity.BLOCKER, count=1),
            group(severity=IssueSeverity.MINOR, status=IssueStatus.REOPENED, count=2),
            group(severity=IssueSeverity.MINOR, status=IssueStatus.CONFIRMED, count=3),
        ])

        assert counter.count_unresolved_by_severity(IssueSeverity.BLOCKER) == 1
        assert counter.count_unresolved_by_severity(IssueSeverity.MINOR) == 5
        assert counter.count_by_status(IssueStatus.OPEN) == 1
        assert counter.count_by_status(IssueStatus.REOPENED) == 2
        assert counter.count_by_status(IssueStatus.CONFIRMED) == 3


class TestEffortAndSeverity:
    """Test effort sums and highest severities."""

    def test_sum_effort(self):
        """Test remediation effort is summed per type and bucket."""
        counter = IssueCounter([
            group(type=IssueType.CODE_SMELL, effort=10, in_leak=False),
            group(type=IssueType.CODE_SMELL, effort=15, in_leak=True),
            group(type=IssueType.CODE_SMELL, effort=100, resolution=IssueResolution.FIXED),
        ])

        assert counter.sum_effort_of_unresolved(IssueType.CODE_SMELL) == 25
        assert counter.sum_effort_of_unresolved(IssueType.CODE_SMELL, on_leak=True) == 15

    def test_highest_severity(self):
        """Test highest severity is tracked separately for the leak period."""
        counter = IssueCounter([
            group(severity=IssueSeverity.CRITICAL, in_leak=False),
            group(severity=IssueSeverity.MINOR, in_leak=True),
            group(severity=IssueSeverity.BLOCKER, resolution=IssueResolution.FIXED),
        ])

        assert counter.highest_severity_of_unresolved(IssueType.BUG) == IssueSeverity.CRITICAL
        assert counter.highest_severity_of_unresolved(IssueType.BUG, on_leak=True) == IssueSeverity.MINOR
        assert counter.highest_severity_of_unresolved(IssueType.VULNERABILITY) is None
