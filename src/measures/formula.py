"""Formulas computing a metric of a component from its issues.

PATTERN: Immutable context value passed to each formula invocation
CRITICAL: A formula never writes to the matrix itself; the engine routes
its result to the current or leak slot
"""

from typing import Callable, Optional, Sequence, Union

from ..models.measure_models import Component, ProjectConfiguration, Rating
from .debt_rating_grid import DebtRatingGrid
from .issue_counter import IssueCounter
from .measure_matrix import MeasureMatrix

FormulaResult = Optional[Union[float, Rating]]


class FormulaContext:
    """
    What a formula can see while computing a value on a component.

    Built by the engine for each (component, formula) pair.
    """

    __slots__ = ("component", "debt_rating_grid", "configuration", "on_leak", "_matrix")

    def __init__(
        self,
        component: Component,
        matrix: MeasureMatrix,
        debt_rating_grid: DebtRatingGrid,
        configuration: ProjectConfiguration,
        on_leak: bool = False,
    ):
        self.component = component
        self.debt_rating_grid = debt_rating_grid
        self.configuration = configuration
        self.on_leak = on_leak
        self._matrix = matrix

    def value(self, metric_key: str) -> Optional[float]:
        """
        Current value of a metric on the component.

        Returns None when the metric is not loaded or has no value.
        """
        if not self._matrix.has_metric(metric_key):
            return None
        return self._matrix.value(self.component, metric_key)

    def leak_value(self, metric_key: str) -> Optional[float]:
        if not self._matrix.has_metric(metric_key):
            return None
        return self._matrix.leak_value(self.component, metric_key)


class IssueMetricFormula:
    """
    Computes one metric from the issues of a component.

    Args:
        metric_key: Metric the formula writes
        compute: Function of (context, counter) returning the value to
            write, or None to leave the measure untouched
        on_leak: Write the leak value instead of the current value; such
            formulas only run when the project has a leak period
        dependent_metric_keys: Metrics the formula reads through the context
    """

    def __init__(
        self,
        metric_key: str,
        compute: Callable[[FormulaContext, IssueCounter], FormulaResult],
        on_leak: bool = False,
        dependent_metric_keys: Sequence[str] = (),
    ):
        self.metric_key = metric_key
        self.on_leak = on_leak
        self.dependent_metric_keys = tuple(dependent_metric_keys)
        self._compute = compute

    def compute(self, context: FormulaContext, counter: IssueCounter) -> FormulaResult:
        return self._compute(context, counter)

    def __repr__(self) -> str:
        return f"IssueMetricFormula({self.metric_key!r}, on_leak={self.on_leak})"
