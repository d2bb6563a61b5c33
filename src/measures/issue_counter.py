"""Issue statistics of a component, split by leak period membership."""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from ..models.measure_models import (
    IssueGroup,
    IssueResolution,
    IssueSeverity,
    IssueStatus,
    IssueType,
)

logger = logging.getLogger(__name__)


class _Count:
    __slots__ = ("total", "leak")

    def __init__(self):
        self.total = 0
        self.leak = 0

    def add(self, amount, in_leak: bool) -> None:
        self.total += amount
        if in_leak:
            self.leak += amount

    def get(self, on_leak: bool):
        return self.leak if on_leak else self.total


class IssueCounter:
    """
    Read-only counts and efforts of the issues under a component.

    PATTERN: Precomputed aggregation, built once per component
    CRITICAL: "on_leak" reads only the issues created during the leak period,
    otherwise all issues are counted

    Unresolved issues are the ones without resolution. Counts by type,
    severity and effort only consider unresolved issues, as resolved ones
    no longer weigh on the code.
    """

    def __init__(self, groups: Iterable[IssueGroup]):
        """
        Initialize counter.

        Args:
            groups: Issue groups of the component and its descendants
        """
        self._by_type: Dict[IssueType, _Count] = defaultdict(_Count)
        self._unresolved_by_type: Dict[IssueType, _Count] = defaultdict(_Count)
        self._effort_by_type: Dict[IssueType, _Count] = defaultdict(_Count)
        self._unresolved_by_severity: Dict[IssueSeverity, _Count] = defaultdict(_Count)
        self._by_status: Dict[IssueStatus, _Count] = defaultdict(_Count)
        self._by_resolution: Dict[IssueResolution, _Count] = defaultdict(_Count)
        self._unresolved = _Count()
        self._highest_severity: Dict[Tuple[IssueType, bool], IssueSeverity] = {}

        for group in groups:
            self._by_type[group.type].add(group.count, group.in_leak)
            if group.resolution is None:
                self._unresolved.add(group.count, group.in_leak)
                self._unresolved_by_type[group.type].add(group.count, group.in_leak)
                self._effort_by_type[group.type].add(group.effort, group.in_leak)
                self._unresolved_by_severity[group.severity].add(group.count, group.in_leak)
                self._by_status[group.status].add(group.count, group.in_leak)
                if group.count > 0:
                    self._track_severity(group.type, group.severity, False)
                    if group.in_leak:
                        self._track_severity(group.type, group.severity, True)
            else:
                self._by_resolution[group.resolution].add(group.count, group.in_leak)

    def _track_severity(self, issue_type: IssueType, severity: IssueSeverity, on_leak: bool) -> None:
        current = self._highest_severity.get((issue_type, on_leak))
        if current is None or severity.rank > current.rank:
            self._highest_severity[(issue_type, on_leak)] = severity

    def count_by_type(self, issue_type: IssueType, on_leak: bool = False) -> int:
        """All issues of a type, resolved ones included."""
        return self._by_type[issue_type].get(on_leak)

    def count_unresolved_by_type(self, issue_type: IssueType, on_leak: bool = False) -> int:
        return self._unresolved_by_type[issue_type].get(on_leak)

    def count_unresolved_by_severity(self, severity: IssueSeverity, on_leak: bool = False) -> int:
        return self._unresolved_by_severity[severity].get(on_leak)

    def count_by_status(self, status: IssueStatus, on_leak: bool = False) -> int:
        """Unresolved issues in a given status."""
        return self._by_status[status].get(on_leak)

    def count_by_resolution(self, resolution: IssueResolution, on_leak: bool = False) -> int:
        return self._by_resolution[resolution].get(on_leak)

    def count_unresolved(self, on_leak: bool = False) -> int:
        return self._unresolved.get(on_leak)

    def sum_effort_of_unresolved(self, issue_type: IssueType, on_leak: bool = False) -> float:
        """Remediation effort, in minutes, of the unresolved issues of a type."""
        return self._effort_by_type[issue_type].get(on_leak)

    def highest_severity_of_unresolved(
        self,
        issue_type: IssueType,
        on_leak: bool = False,
    ) -> Optional[IssueSeverity]:
        return self._highest_severity.get((issue_type, on_leak))

    @classmethod
    def empty(cls) -> "IssueCounter":
        return cls([])

    def as_groups_summary(self) -> List[Tuple[str, int, int]]:
        """(type, total, leak) triples, for debug logging."""
        return [
            (issue_type.value, count.total, count.leak)
            for issue_type, count in sorted(self._unresolved_by_type.items())
        ]
