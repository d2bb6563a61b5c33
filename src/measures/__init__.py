"""Live measure computation components.

This package recomputes issue-based measures of project trees, evaluates
quality gates over the refreshed measures and tracks which measures changed
so that only those are persisted.
"""

from .base import (
    ComponentSource,
    MeasureStore,
    IssueSource,
    QualityGateSource,
    LiveMeasureError,
    MissingProjectError,
    MissingReferenceDataError,
    MeasureMatrixError,
    FormulaComputationError,
)
from .measure_matrix import MeasureMatrix
from .issue_counter import IssueCounter
from .debt_rating_grid import DebtRatingGrid
from .formula import FormulaContext, IssueMetricFormula
from .formula_engine import FormulaEngine
from .formulas import IssueMetricFormulaFactory
from .gate_evaluator import QualityGateEvaluator
from .gate_registry import QualityGateRegistry
from .in_memory import InMemoryMeasureDatabase

__all__ = [
    "ComponentSource",
    "MeasureStore",
    "IssueSource",
    "QualityGateSource",
    "LiveMeasureError",
    "MissingProjectError",
    "MissingReferenceDataError",
    "MeasureMatrixError",
    "FormulaComputationError",
    "MeasureMatrix",
    "IssueCounter",
    "DebtRatingGrid",
    "FormulaContext",
    "IssueMetricFormula",
    "FormulaEngine",
    "IssueMetricFormulaFactory",
    "QualityGateEvaluator",
    "QualityGateRegistry",
    "InMemoryMeasureDatabase",
]
