"""Live measure refresh service.

This service recomputes the issue-based measures of the components touched by
an issue change, together with all their ancestors, re-evaluates the quality
gate of each impacted project and persists the measures that changed.
"""

import asyncio
import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..config.measure_config import MeasureConfig
from ..models.measure_models import (
    Branch,
    Component,
    Organization,
    QGChangeEvent,
    RefreshOutcome,
)
from ..measures.base import (
    ComponentSource,
    IssueSource,
    MeasureStore,
    MissingProjectError,
    MissingReferenceDataError,
    QualityGateSource,
)
from ..measures.debt_rating_grid import DebtRatingGrid
from ..measures.formula_engine import FormulaEngine
from ..measures.formulas import IssueMetricFormulaFactory
from ..measures.gate_evaluator import QualityGateEvaluator
from ..measures.gate_registry import QualityGateRegistry
from ..measures.issue_counter import IssueCounter
from ..measures.measure_matrix import MeasureMatrix

logger = logging.getLogger(__name__)

# Touched components of a project, with the loaded tree sorted bottom-up
_ProjectTree = Tuple[Component, List[Component]]


class LiveMeasureService:
    """
    Refreshes live measures and quality gate status of projects.

    PATTERN: Service facade over the formula engine and gate evaluator
    CRITICAL: Each project is refreshed sequentially: formulas bottom-up,
    then quality gate, then one atomic persistence of the changed measures
    GOTCHA: Projects are independent, a failure on one never leaves partial
    measures behind

    This service is the entry point called after issues are changed. It
    groups the touched components by project, and for each project:
    - loads the touched components and their ancestors, sorted bottom-up
    - skips the project if it was never analyzed
    - runs the formulas, with leak formulas only when a leak period exists
    - evaluates the quality gate and persists the changed measures
    - emits one QGChangeEvent
    """

    def __init__(
        self,
        component_source: ComponentSource,
        measure_store: MeasureStore,
        issue_source: IssueSource,
        gate_source: Optional[QualityGateSource] = None,
        formula_factory: Optional[IssueMetricFormulaFactory] = None,
        gate_evaluator: Optional[QualityGateEvaluator] = None,
        config: Optional[MeasureConfig] = None,
    ):
        """
        Initialize live measure service.

        Args:
            component_source: Component trees and analyses
            measure_store: Metric definitions and persisted measures
            issue_source: Issue statistics
            gate_source: Quality gates and project settings
            formula_factory: Formulas to compute
            gate_evaluator: Quality gate evaluator
            config: Service configuration
        """
        self.logger = logger
        self.config = config or MeasureConfig()

        self.component_source = component_source
        self.measure_store = measure_store
        self.issue_source = issue_source
        self.gate_source = gate_source or QualityGateRegistry(config=self.config)
        self.formula_factory = formula_factory or IssueMetricFormulaFactory()
        self.gate_evaluator = gate_evaluator or QualityGateEvaluator()
        self.engine = FormulaEngine(self.formula_factory.get_formulas())

        self.logger.info(
            f"LiveMeasureService initialized with {len(self.engine.formulas)} formulas"
        )

    def refresh(self, components: Iterable[Component]) -> List[QGChangeEvent]:
        """
        Refresh the measures of touched components and their ancestors.

        Projects are processed one after the other. The root project of
        every group is resolved before anything is computed, so a batch
        without root project fails without any write. A failing project
        stops the call; projects refreshed before it stay committed.

        Args:
            components: Touched components, possibly from several projects

        Returns:
            One event per refreshed project, in no guaranteed order

        Raises:
            MissingProjectError: If a group of components has no root project
            MissingReferenceDataError: If a branch or organization is missing
            FormulaComputationError: If a formula fails
        """
        groups = self.group_by_project(components)
        if not groups:
            return []

        self.logger.info(
            f"Refreshing live measures of {sum(len(g) for g in groups.values())} "
            f"components in {len(groups)} projects"
        )
        trees = [self.load_tree(touched) for touched in groups.values()]

        events = []
        for project, tree in trees:
            event = self._refresh_tree(project, tree)
            if event:
                events.append(event)
        return events

    def refresh_component(self, component: Component) -> Optional[QGChangeEvent]:
        """Refresh a single component, returning the event of its project if any."""
        events = self.refresh([component])
        return events[0] if events else None

    async def refresh_concurrently(
        self,
        components: Iterable[Component],
        max_parallelism: Optional[int] = None,
    ) -> RefreshOutcome:
        """
        Refresh projects in parallel, isolating failures per project.

        PATTERN: Bounded parallel execution with error handling
        CRITICAL: A failing project does not abort its siblings

        Args:
            components: Touched components, possibly from several projects
            max_parallelism: Override configured max parallelism

        Returns:
            Events of the refreshed projects and errors of the failed ones
        """
        groups = self.group_by_project(components)
        outcome = RefreshOutcome()
        if not groups:
            return outcome

        max_parallel = max_parallelism or self.config.max_parallelism
        semaphore = asyncio.Semaphore(max_parallel)
        loop = asyncio.get_running_loop()

        self.logger.info(
            f"Refreshing {len(groups)} projects in parallel (max_parallelism={max_parallel})"
        )

        async def bounded_refresh(project_uuid: str, touched: List[Component]) -> None:
            """Refresh one project with semaphore to limit concurrency."""
            async with semaphore:
                try:
                    event = await loop.run_in_executor(None, self._refresh_group, touched)
                except Exception as e:
                    self.logger.error(f"Failed to refresh project {project_uuid}: {e}")
                    outcome.failures[project_uuid] = str(e)
                    return
                if event:
                    outcome.events.append(event)

        start_time = datetime.now()
        await asyncio.gather(
            *[bounded_refresh(project_uuid, touched) for project_uuid, touched in groups.items()]
        )
        total_time_ms = int((datetime.now() - start_time).total_seconds() * 1000)

        self.logger.info(
            f"Parallel refresh complete: {len(outcome.events)} events, "
            f"{len(outcome.failures)} failures in {total_time_ms}ms"
        )
        return outcome

    @staticmethod
    def group_by_project(components: Iterable[Component]) -> Dict[str, List[Component]]:
        """Group components by owning project uuid."""
        groups: Dict[str, List[Component]] = defaultdict(list)
        for component in components:
            groups[component.project_uuid].append(component)
        return dict(groups)

    @staticmethod
    def sort_bottom_up(components: Iterable[Component]) -> List[Component]:
        """Sort components leaves first, project last."""
        return sorted(components, key=lambda c: c.rank)

    def load_tree(self, touched: List[Component]) -> _ProjectTree:
        """
        Load touched components and their ancestors.

        Args:
            touched: Touched components of the same project

        Returns:
            Root project and bottom-up sorted components

        Raises:
            MissingProjectError: If the loaded tree has no root project
        """
        uuids: Set[str] = set()
        for component in touched:
            uuids.add(component.uuid)
            # ancestors, excluding self
            uuids.update(component.uuid_path)

        tree = self.sort_bottom_up(self.component_source.select_by_uuids(uuids))
        project = next((c for c in tree if c.is_root_project), None)
        if project is None:
            raise MissingProjectError(
                f"No project found in {sorted(c.key for c in tree) or sorted(uuids)}"
            )
        return project, tree

    def _refresh_group(self, touched: List[Component]) -> Optional[QGChangeEvent]:
        project, tree = self.load_tree(touched)
        return self._refresh_tree(project, tree)

    def _refresh_tree(self, project: Component, tree: List[Component]) -> Optional[QGChangeEvent]:
        organization = self._load_organization(project)
        branch = self._load_branch(project)

        analysis = self.component_source.select_last_analysis(project.uuid)
        if analysis is None:
            self.logger.warning(f"Project {project.key} has never been analyzed, skipping refresh")
            return None
        leak_period_start = analysis.period_date

        gate = self.gate_source.load_quality_gate(organization, project, branch)
        metric_keys = self.engine.metric_keys() | self.gate_evaluator.metrics_related_to(gate)
        metrics = self.measure_store.select_metrics_by_keys(metric_keys)
        db_measures = self.measure_store.select_measures(
            [c.uuid for c in tree], [m.id for m in metrics]
        )

        configuration = self.gate_source.load_project_configuration(project)
        debt_rating_grid = DebtRatingGrid(configuration)

        matrix = MeasureMatrix(tree, metrics, db_measures)
        issue_cutoff = leak_period_start or datetime.max
        self.engine.run(
            matrix=matrix,
            components=tree,
            load_issue_counter=lambda c: IssueCounter(
                self.issue_source.select_issue_groups(c, issue_cutoff)
            ),
            debt_rating_grid=debt_rating_grid,
            configuration=configuration,
            leak_period_start=leak_period_start,
        )

        evaluated_gate = self.gate_evaluator.refresh_gate_status(project, gate, matrix)

        # persist the measures that have been created or updated
        changed = matrix.changed_entries()
        if changed:
            self.measure_store.persist(project.uuid, changed)
        self.logger.info(
            f"Refreshed {len(tree)} components of {project.key}: "
            f"{len(changed)} measures changed, quality gate {evaluated_gate.status.value}"
        )

        return QGChangeEvent(
            project=project,
            branch=branch,
            analysis=analysis,
            configuration=configuration,
            quality_gate_supplier=lambda: evaluated_gate,
        )

    def _load_branch(self, project: Component) -> Branch:
        branch = self.component_source.select_branch(project.uuid)
        if branch is None:
            raise MissingReferenceDataError(f"Branch not found: {project.uuid}")
        return branch

    def _load_organization(self, project: Component) -> Organization:
        organization = None
        if project.organization_uuid is not None:
            organization = self.component_source.select_organization(project.organization_uuid)
        if organization is None:
            raise MissingReferenceDataError(
                f"No organization with UUID {project.organization_uuid}"
            )
        return organization
