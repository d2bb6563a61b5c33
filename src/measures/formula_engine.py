"""Bottom-up execution of issue metric formulas.

PATTERN: For each component (leaves first), for each formula in registration order
CRITICAL: Leak formulas are skipped when the project has no leak period
GOTCHA: Formulas reading another metric of the same component depend on
registration order, not on declared dependencies
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence, Set

from ..models.measure_models import Component, ProjectConfiguration
from .base import FormulaComputationError
from .debt_rating_grid import DebtRatingGrid
from .formula import FormulaContext, IssueMetricFormula
from .issue_counter import IssueCounter
from .measure_matrix import MeasureMatrix

logger = logging.getLogger(__name__)

IssueCounterLoader = Callable[[Component], IssueCounter]


class FormulaEngine:
    """
    Runs registered formulas over the components of a refresh.

    The engine writes the result of each formula to the matrix: to the
    leak slot for leak formulas, to the current slot otherwise.
    """

    def __init__(self, formulas: Sequence[IssueMetricFormula]):
        """
        Initialize engine.

        Args:
            formulas: Formulas, in execution order
        """
        self.formulas: List[IssueMetricFormula] = list(formulas)
        self.logger = logger

    def metric_keys(self) -> Set[str]:
        """Metrics written or read by the formulas."""
        keys: Set[str] = set()
        for formula in self.formulas:
            keys.add(formula.metric_key)
            keys.update(formula.dependent_metric_keys)
        return keys

    def applicable_formulas(self, has_leak_period: bool) -> List[IssueMetricFormula]:
        return [f for f in self.formulas if has_leak_period or not f.on_leak]

    def run(
        self,
        matrix: MeasureMatrix,
        components: Iterable[Component],
        load_issue_counter: IssueCounterLoader,
        debt_rating_grid: DebtRatingGrid,
        configuration: ProjectConfiguration,
        leak_period_start: Optional[datetime] = None,
    ) -> None:
        """
        Compute all formulas on all components.

        Args:
            matrix: Matrix read and written by the formulas
            components: Components, already sorted bottom-up
            load_issue_counter: Builds the issue counter of a component
            debt_rating_grid: Maintainability rating thresholds
            configuration: Project settings
            leak_period_start: Beginning of the leak period, if any

        Raises:
            FormulaComputationError: If a formula fails
        """
        formulas = self.applicable_formulas(leak_period_start is not None)
        skipped = len(self.formulas) - len(formulas)
        if skipped:
            self.logger.debug(f"Skipping {skipped} leak formulas, no leak period")

        unknown = [f.metric_key for f in formulas if not matrix.has_metric(f.metric_key)]
        if unknown:
            self.logger.warning(f"Skipping formulas of undefined metrics: {sorted(set(unknown))}")
            formulas = [f for f in formulas if matrix.has_metric(f.metric_key)]

        for component in components:
            counter = load_issue_counter(component)
            self.logger.debug(
                f"Computing {len(formulas)} formulas on {component.key} "
                f"(issues: {counter.as_groups_summary()})"
            )
            for formula in formulas:
                context = FormulaContext(
                    component=component,
                    matrix=matrix,
                    debt_rating_grid=debt_rating_grid,
                    configuration=configuration,
                    on_leak=formula.on_leak,
                )
                try:
                    result = formula.compute(context, counter)
                except Exception as e:
                    raise FormulaComputationError(formula.metric_key, component.key) from e

                if result is None:
                    continue
                if formula.on_leak:
                    matrix.set_leak_value(component, formula.metric_key, result)
                else:
                    matrix.set_value(component, formula.metric_key, result)
