"""Collaborator interfaces and errors of the live measure computation."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Collection, List, Optional

from ..models.measure_models import (
    Branch,
    Component,
    IssueGroup,
    LiveMeasure,
    Metric,
    Organization,
    ProjectConfiguration,
    QualityGate,
    Snapshot,
)

logger = logging.getLogger(__name__)


class ComponentSource(ABC):
    """
    Read access to project trees and their analyses.

    PATTERN: Abstract interface over the component storage
    CRITICAL: Lookups by uuid must silently ignore unknown identifiers
    """

    @abstractmethod
    def select_by_uuids(self, uuids: Collection[str]) -> List[Component]:
        """
        Load components by identifier.

        Args:
            uuids: Component identifiers

        Returns:
            Known components, in no particular order
        """
        pass

    @abstractmethod
    def select_last_analysis(self, project_uuid: str) -> Optional[Snapshot]:
        """Return the most recent analysis of a project, if any."""
        pass

    @abstractmethod
    def select_branch(self, project_uuid: str) -> Optional[Branch]:
        """Return the branch backing a project tree, if any."""
        pass

    @abstractmethod
    def select_organization(self, organization_uuid: str) -> Optional[Organization]:
        """Return an organization, if any."""
        pass


class MeasureStore(ABC):
    """
    Metric definitions and persisted live measures.

    PATTERN: Abstract interface over the measure storage
    CRITICAL: persist() is atomic for one project
    """

    @abstractmethod
    def select_metrics_by_keys(self, keys: Collection[str]) -> List[Metric]:
        """Return the definitions of the known metrics among keys."""
        pass

    @abstractmethod
    def select_measures(
        self,
        component_uuids: Collection[str],
        metric_ids: Collection[int],
    ) -> List[LiveMeasure]:
        """Return the measures persisted for components and metrics."""
        pass

    @abstractmethod
    def persist(self, project_uuid: str, measures: List[LiveMeasure]) -> None:
        """
        Insert or update measures of one project.

        Either all measures are stored or none is.

        Args:
            project_uuid: Project the measures belong to
            measures: Created or updated measures
        """
        pass


class IssueSource(ABC):
    """Issue statistics of components."""

    @abstractmethod
    def select_issue_groups(
        self,
        component: Component,
        leak_period_start: datetime,
    ) -> List[IssueGroup]:
        """
        Group the issues of a component and its descendants.

        Issues created at or after leak_period_start are flagged in_leak.

        Args:
            component: Base component
            leak_period_start: Beginning of the leak period

        Returns:
            Issue groups
        """
        pass


class QualityGateSource(ABC):
    """Effective quality gate and settings of projects."""

    @abstractmethod
    def load_quality_gate(
        self,
        organization: Optional[Organization],
        project: Component,
        branch: Branch,
    ) -> QualityGate:
        """Return the quality gate applying to a project branch."""
        pass

    @abstractmethod
    def load_project_configuration(self, project: Component) -> ProjectConfiguration:
        """Return the effective settings of a project."""
        pass


class LiveMeasureError(Exception):
    """Base class of live measure failures."""

    pass


class MissingProjectError(LiveMeasureError):
    """Raised when a batch of components has no root project."""

    pass


class MissingReferenceDataError(LiveMeasureError):
    """Raised when the branch or organization of a project cannot be found."""

    pass


class MeasureMatrixError(LiveMeasureError, KeyError):
    """Raised on access to a component or metric the matrix was not loaded with."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class FormulaComputationError(LiveMeasureError):
    """Raised when a formula fails on a component."""

    def __init__(self, metric_key: str, component_key: str):
        super().__init__(f"Fail to compute {metric_key} on {component_key}")
        self.metric_key = metric_key
        self.component_key = component_key
