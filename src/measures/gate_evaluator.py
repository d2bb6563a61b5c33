"""Quality gate evaluation over a refreshed measure matrix.

PATTERN: Each condition checked against error then warning threshold
CRITICAL: Overall status is the worst condition status (OK < WARN < ERROR)
GOTCHA: A condition whose metric has no value follows the gate's missing value policy
"""

import json
import logging
from typing import Optional, Set

from ..models.measure_models import (
    Component,
    ConditionOperator,
    EvaluatedCondition,
    EvaluatedQualityGate,
    GateCondition,
    GateStatus,
    MissingValuePolicy,
    QualityGate,
)
from . import core_metrics as cm
from .measure_matrix import MeasureMatrix

logger = logging.getLogger(__name__)


class QualityGateEvaluator:
    """
    Computes the status of a project from its quality gate and measures.

    Evaluation is a pure function of the gate and the matrix. The
    refresh_gate_status() variant also records the outcome in the project's
    alert_status and quality_gate_details measures.
    """

    def __init__(self):
        """Initialize quality gate evaluator."""
        self.logger = logger

    def metrics_related_to(self, gate: QualityGate) -> Set[str]:
        """
        Metrics that must be loaded to evaluate and record a gate.

        Args:
            gate: Quality gate definition

        Returns:
            Keys of the condition metrics plus the gate status metrics
        """
        keys = {condition.metric_key for condition in gate.conditions}
        keys.update((cm.ALERT_STATUS, cm.QUALITY_GATE_DETAILS))
        return keys

    def evaluate(
        self,
        project: Component,
        gate: QualityGate,
        matrix: MeasureMatrix,
    ) -> EvaluatedQualityGate:
        """
        Evaluate a quality gate on a project.

        Args:
            project: Root component of the project
            gate: Quality gate definition
            matrix: Refreshed measures

        Returns:
            Evaluated quality gate
        """
        evaluated = [
            self._evaluate_condition(condition, self._measured_value(project, condition, matrix), gate)
            for condition in gate.conditions
        ]
        status = GateStatus.worst([c.status for c in evaluated])

        self.logger.info(
            f"Quality gate '{gate.name}' on {project.key}: {status.value} "
            f"({sum(1 for c in evaluated if c.status != GateStatus.OK)} of {len(evaluated)} conditions failing)"
        )
        return EvaluatedQualityGate(gate=gate, status=status, conditions=evaluated)

    def refresh_gate_status(
        self,
        project: Component,
        gate: QualityGate,
        matrix: MeasureMatrix,
    ) -> EvaluatedQualityGate:
        """Evaluate a gate and write its outcome to the project measures."""
        evaluated = self.evaluate(project, gate, matrix)

        if matrix.has_metric(cm.ALERT_STATUS):
            matrix.set_text_value(project, cm.ALERT_STATUS, evaluated.status.value)
        if matrix.has_metric(cm.QUALITY_GATE_DETAILS):
            matrix.set_text_value(project, cm.QUALITY_GATE_DETAILS, self.details_of(evaluated))
        return evaluated

    @staticmethod
    def details_of(evaluated: EvaluatedQualityGate) -> str:
        """JSON summary of an evaluated gate, with stable key order."""
        return json.dumps(
            {
                "level": evaluated.status.value,
                "conditions": [
                    {
                        "metric": c.condition.metric_key,
                        "op": c.condition.operator.value,
                        "error": c.condition.error_threshold,
                        "warning": c.condition.warning_threshold,
                        "period": c.condition.on_leak_period,
                        "actual": c.value,
                        "level": c.status.value,
                    }
                    for c in evaluated.conditions
                ],
            },
            sort_keys=True,
        )

    @staticmethod
    def _measured_value(
        project: Component,
        condition: GateCondition,
        matrix: MeasureMatrix,
    ) -> Optional[float]:
        if not matrix.has_metric(condition.metric_key):
            return None
        if condition.on_leak_period:
            return matrix.leak_value(project, condition.metric_key)
        return matrix.value(project, condition.metric_key)

    def _evaluate_condition(
        self,
        condition: GateCondition,
        value: Optional[float],
        gate: QualityGate,
    ) -> EvaluatedCondition:
        if value is None:
            status = GateStatus.ERROR if gate.missing_value_policy == MissingValuePolicy.FAIL else GateStatus.OK
            self.logger.debug(f"No value for {condition.metric_key}, condition is {status.value}")
            return EvaluatedCondition(condition=condition, status=status)

        for status, threshold in (
            (GateStatus.ERROR, condition.error_threshold),
            (GateStatus.WARN, condition.warning_threshold),
        ):
            if threshold is not None and self.check_threshold(condition.operator, value, threshold):
                return EvaluatedCondition(
                    condition=condition,
                    status=status,
                    value=value,
                    threshold=threshold,
                )
        return EvaluatedCondition(condition=condition, status=GateStatus.OK, value=value)

    @staticmethod
    def check_threshold(operator: ConditionOperator, value: float, threshold: float) -> bool:
        """
        Check whether a value triggers a threshold.

        Args:
            operator: Condition operator
            value: Measured value
            threshold: Threshold of the condition

        Returns:
            True if the condition is raised
        """
        if operator == ConditionOperator.GREATER_THAN:
            return value > threshold
        if operator == ConditionOperator.LESS_THAN:
            return value < threshold
        if operator == ConditionOperator.EQUALS:
            return value == threshold
        if operator == ConditionOperator.NOT_EQUALS:
            return value != threshold
        raise ValueError(f"Unsupported operator: {operator}")
