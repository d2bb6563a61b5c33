"""In-memory storage of components, issues and live measures.

PATTERN: Dict-based storage implementing all the collaborator interfaces
CRITICAL: persist() applies all the measures of a project or none of them
GOTCHA: Shared by concurrent refreshes, every access goes through a lock
"""

import logging
import threading
from collections import defaultdict
from datetime import datetime
from typing import Collection, Dict, Iterable, List, Optional, Tuple

from ..models.measure_models import (
    Branch,
    Component,
    Issue,
    IssueGroup,
    LiveMeasure,
    Metric,
    Organization,
    Snapshot,
)
from .base import ComponentSource, IssueSource, MeasureStore

logger = logging.getLogger(__name__)


class InMemoryMeasureDatabase(ComponentSource, MeasureStore, IssueSource):
    """
    Dict-based database for tests, demos and embedding.

    Measures are keyed by (component uuid, metric id).
    """

    def __init__(self, metrics: Iterable[Metric] = ()):
        """
        Initialize database.

        Args:
            metrics: Metric definitions known to the database
        """
        self.logger = logger
        self._lock = threading.RLock()

        self.metrics: Dict[str, Metric] = {m.key: m for m in metrics}
        self.components: Dict[str, Component] = {}
        self.analyses: Dict[str, List[Snapshot]] = defaultdict(list)
        self.branches: Dict[str, Branch] = {}
        self.organizations: Dict[str, Organization] = {}
        self.issues: Dict[str, Issue] = {}
        self.measures: Dict[Tuple[str, int], LiveMeasure] = {}

        # Statistics
        self.commits = 0

    # Setup

    def add_metric(self, metric: Metric) -> None:
        with self._lock:
            self.metrics[metric.key] = metric

    def add_organization(self, organization: Organization) -> None:
        with self._lock:
            self.organizations[organization.uuid] = organization

    def add_components(self, *components: Component) -> None:
        with self._lock:
            for component in components:
                self.components[component.uuid] = component

    def add_branch(self, branch: Branch) -> None:
        with self._lock:
            self.branches[branch.uuid] = branch

    def add_analysis(self, analysis: Snapshot) -> None:
        with self._lock:
            self.analyses[analysis.component_uuid].append(analysis)

    def add_issues(self, *issues: Issue) -> None:
        with self._lock:
            for issue in issues:
                self.issues[issue.key] = issue

    def add_measure(self, measure: LiveMeasure) -> None:
        with self._lock:
            self.measures[(measure.component_uuid, measure.metric_id)] = measure

    def get_measure(self, component_uuid: str, metric_key: str) -> Optional[LiveMeasure]:
        """Persisted measure of a metric on a component, if any."""
        with self._lock:
            metric = self.metrics.get(metric_key)
            if metric is None:
                return None
            return self.measures.get((component_uuid, metric.id))

    # ComponentSource

    def select_by_uuids(self, uuids: Collection[str]) -> List[Component]:
        with self._lock:
            return [self.components[u] for u in uuids if u in self.components]

    def select_last_analysis(self, project_uuid: str) -> Optional[Snapshot]:
        with self._lock:
            analyses = self.analyses.get(project_uuid)
            if not analyses:
                return None
            return max(analyses, key=lambda a: a.created_at)

    def select_branch(self, project_uuid: str) -> Optional[Branch]:
        with self._lock:
            return self.branches.get(project_uuid)

    def select_organization(self, organization_uuid: str) -> Optional[Organization]:
        with self._lock:
            return self.organizations.get(organization_uuid)

    # MeasureStore

    def select_metrics_by_keys(self, keys: Collection[str]) -> List[Metric]:
        with self._lock:
            return [self.metrics[k] for k in keys if k in self.metrics]

    def select_measures(
        self,
        component_uuids: Collection[str],
        metric_ids: Collection[int],
    ) -> List[LiveMeasure]:
        wanted_components = set(component_uuids)
        wanted_metrics = set(metric_ids)
        with self._lock:
            return [
                measure.model_copy()
                for (component_uuid, metric_id), measure in self.measures.items()
                if component_uuid in wanted_components and metric_id in wanted_metrics
            ]

    def persist(self, project_uuid: str, measures: List[LiveMeasure]) -> None:
        """
        Insert or update the measures of a project in one step.

        Raises:
            ValueError: If a measure belongs to another project or to an
                unknown metric; nothing is stored in that case
        """
        known_metric_ids = {m.id for m in self.metrics.values()}
        for measure in measures:
            if measure.project_uuid != project_uuid:
                raise ValueError(
                    f"Measure of {measure.component_uuid} belongs to project "
                    f"{measure.project_uuid}, not {project_uuid}"
                )
            if measure.metric_id not in known_metric_ids:
                raise ValueError(f"Unknown metric id: {measure.metric_id}")

        with self._lock:
            for measure in measures:
                self.measures[(measure.component_uuid, measure.metric_id)] = measure.model_copy()
            self.commits += 1

        self.logger.debug(f"Persisted {len(measures)} measures of project {project_uuid}")

    # IssueSource

    def select_issue_groups(
        self,
        component: Component,
        leak_period_start: datetime,
    ) -> List[IssueGroup]:
        groups: Dict[tuple, List[Issue]] = defaultdict(list)
        with self._lock:
            for issue in self.issues.values():
                if not self._is_under(issue.component_uuid, component.uuid):
                    continue
                in_leak = issue.created_at >= leak_period_start
                key = (issue.type, issue.severity, issue.status, issue.resolution, in_leak)
                groups[key].append(issue)

        return [
            IssueGroup(
                type=issue_type,
                severity=severity,
                status=status,
                resolution=resolution,
                in_leak=in_leak,
                count=len(issues),
                effort=sum(i.effort for i in issues),
            )
            for (issue_type, severity, status, resolution, in_leak), issues in groups.items()
        ]

    def _is_under(self, component_uuid: str, base_uuid: str) -> bool:
        if component_uuid == base_uuid:
            return True
        component = self.components.get(component_uuid)
        return component is not None and base_uuid in component.uuid_path
