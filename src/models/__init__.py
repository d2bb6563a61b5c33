"""Models package for live measure computation."""

from .measure_models import (
    Qualifier,
    QUALIFIER_RANKS,
    MetricValueType,
    Rating,
    IssueType,
    IssueSeverity,
    IssueStatus,
    IssueResolution,
    ConditionOperator,
    GateStatus,
    MissingValuePolicy,
    Component,
    Metric,
    LiveMeasure,
    Snapshot,
    Branch,
    Organization,
    Issue,
    IssueGroup,
    GateCondition,
    QualityGate,
    EvaluatedCondition,
    EvaluatedQualityGate,
    ProjectConfiguration,
    QGChangeEvent,
    RefreshOutcome,
)

__all__ = [
    # Enums
    "Qualifier",
    "QUALIFIER_RANKS",
    "MetricValueType",
    "Rating",
    "IssueType",
    "IssueSeverity",
    "IssueStatus",
    "IssueResolution",
    "ConditionOperator",
    "GateStatus",
    "MissingValuePolicy",
    # Components and measures
    "Component",
    "Metric",
    "LiveMeasure",
    "Snapshot",
    "Branch",
    "Organization",
    # Issues
    "Issue",
    "IssueGroup",
    # Quality gates
    "GateCondition",
    "QualityGate",
    "EvaluatedCondition",
    "EvaluatedQualityGate",
    "ProjectConfiguration",
    # Refresh results
    "QGChangeEvent",
    "RefreshOutcome",
]
