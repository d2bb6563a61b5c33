"""Sparse, change-tracked store of the measures of one project refresh.

PATTERN: In-memory matrix keyed by (component, metric) with explicit dirty set
CRITICAL: Only values that differ from the loaded ones are reported as changed
GOTCHA: Numbers are rounded half-up to the metric's scale when written,
so the stored value is the one persisted and compared
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

from ..models.measure_models import (
    Component,
    LiveMeasure,
    Metric,
    Rating,
)
from .base import MeasureMatrixError

logger = logging.getLogger(__name__)

VALUE = "value"
LEAK = "leak"
TEXT = "text"

ChangeKey = Tuple[str, str, str]


class _Entry:
    """Loaded and current values of one (component, metric) cell."""

    __slots__ = ("component", "metric", "initial", "current")

    def __init__(self, component: Component, metric: Metric, measure: Optional[LiveMeasure]):
        self.component = component
        self.metric = metric
        self.initial: Dict[str, Optional[Union[float, str]]] = {
            VALUE: measure.value if measure else None,
            LEAK: measure.variation if measure else None,
            TEXT: measure.text_value if measure else None,
        }
        self.current = dict(self.initial)

    def to_live_measure(self) -> LiveMeasure:
        return LiveMeasure(
            component_uuid=self.component.uuid,
            project_uuid=self.component.project_uuid,
            metric_id=self.metric.id,
            value=self.current[VALUE],
            variation=self.current[LEAK],
            text_value=self.current[TEXT],
        )


class MeasureMatrix:
    """
    Measures of a fixed set of components and metrics.

    Owned by a single refresh. Values are written with set_value(),
    set_leak_value() and set_text_value(), and the cells whose value
    differs from the loaded one are returned by changed_entries().
    """

    def __init__(
        self,
        components: Iterable[Component],
        metrics: Iterable[Metric],
        measures: Iterable[LiveMeasure] = (),
    ):
        """
        Initialize matrix.

        Args:
            components: Components of the refresh
            metrics: Metrics the matrix holds
            measures: Persisted measures of these components and metrics
        """
        self.components: Dict[str, Component] = {c.uuid: c for c in components}
        self.metrics_by_key: Dict[str, Metric] = {m.key: m for m in metrics}
        metrics_by_id = {m.id: m for m in self.metrics_by_key.values()}

        loaded: Dict[Tuple[str, str], LiveMeasure] = {}
        for measure in measures:
            metric = metrics_by_id.get(measure.metric_id)
            if metric is None or measure.component_uuid not in self.components:
                continue
            loaded[(measure.component_uuid, metric.key)] = measure

        self._entries: Dict[Tuple[str, str], _Entry] = {}
        for component in self.components.values():
            for metric in self.metrics_by_key.values():
                self._entries[(component.uuid, metric.key)] = _Entry(
                    component, metric, loaded.get((component.uuid, metric.key))
                )

        self._changed: Set[ChangeKey] = set()
        logger.debug(
            f"MeasureMatrix loaded {len(self.components)} components x "
            f"{len(self.metrics_by_key)} metrics ({len(loaded)} persisted measures)"
        )

    def metric(self, metric_key: str) -> Metric:
        """Return the definition of a loaded metric."""
        try:
            return self.metrics_by_key[metric_key]
        except KeyError:
            raise MeasureMatrixError(f"Metric is not loaded: {metric_key}") from None

    def has_metric(self, metric_key: str) -> bool:
        return metric_key in self.metrics_by_key

    def _entry(self, component: Union[Component, str], metric_key: str) -> _Entry:
        uuid = component if isinstance(component, str) else component.uuid
        if uuid not in self.components:
            raise MeasureMatrixError(f"Component is not loaded: {uuid}")
        self.metric(metric_key)
        return self._entries[(uuid, metric_key)]

    def value(self, component: Union[Component, str], metric_key: str) -> Optional[float]:
        """Current value of a metric on a component."""
        return self._entry(component, metric_key).current[VALUE]

    def leak_value(self, component: Union[Component, str], metric_key: str) -> Optional[float]:
        """Leak period value of a metric on a component."""
        return self._entry(component, metric_key).current[LEAK]

    def text_value(self, component: Union[Component, str], metric_key: str) -> Optional[str]:
        return self._entry(component, metric_key).current[TEXT]

    def get_measure(self, component: Union[Component, str], metric_key: str) -> LiveMeasure:
        """Snapshot of all the slots of a cell."""
        return self._entry(component, metric_key).to_live_measure()

    def set_value(
        self,
        component: Union[Component, str],
        metric_key: str,
        value: Union[float, Rating],
    ) -> None:
        """Write the current value of a metric on a component."""
        entry = self._entry(component, metric_key)
        self._write(entry, VALUE, self._scale(entry.metric, value))

    def set_leak_value(
        self,
        component: Union[Component, str],
        metric_key: str,
        value: Union[float, Rating],
    ) -> None:
        """Write the leak period value of a metric on a component."""
        entry = self._entry(component, metric_key)
        self._write(entry, LEAK, self._scale(entry.metric, value))

    def set_text_value(
        self,
        component: Union[Component, str],
        metric_key: str,
        value: str,
    ) -> None:
        """Write the text value of a LEVEL or DATA metric."""
        self._write(self._entry(component, metric_key), TEXT, value)

    def changed_entries(self) -> List[LiveMeasure]:
        """
        Measures that differ from the loaded ones.

        Returns:
            One measure per changed (component, metric), carrying all slots
        """
        cells = sorted({(uuid, key) for uuid, key, _ in self._changed})
        return [self._entries[cell].to_live_measure() for cell in cells]

    def changed_keys(self) -> Set[ChangeKey]:
        """Changed (component uuid, metric key, slot) triples."""
        return set(self._changed)

    def _write(self, entry: _Entry, slot: str, value: Optional[Union[float, str]]) -> None:
        entry.current[slot] = value
        key = (entry.component.uuid, entry.metric.key, slot)
        if entry.initial[slot] == value:
            self._changed.discard(key)
        else:
            self._changed.add(key)

    @staticmethod
    def _scale(metric: Metric, value: Union[float, Rating]) -> float:
        """Round half-up to the decimal scale of the metric."""
        if isinstance(value, Rating):
            value = value.value
        exponent = Decimal(1).scaleb(-metric.decimal_scale)
        return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP))
