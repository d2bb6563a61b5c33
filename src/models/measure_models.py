"""Data models for live measure computation.

This module contains the Pydantic models for components, metrics, persisted
measures, issues, quality gates and the change events emitted when the
measures of a project are refreshed.
"""

from enum import Enum, IntEnum
from typing import Callable, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class Qualifier(str, Enum):
    """Kind of component in the project tree."""

    FILE = "file"
    UNIT_TEST_FILE = "unit_test_file"
    DIRECTORY = "directory"
    MODULE = "module"
    PROJECT = "project"


# Leaves first, project last
QUALIFIER_RANKS: Dict[Qualifier, int] = {
    Qualifier.FILE: 0,
    Qualifier.UNIT_TEST_FILE: 1,
    Qualifier.DIRECTORY: 2,
    Qualifier.MODULE: 3,
    Qualifier.PROJECT: 4,
}


class MetricValueType(str, Enum):
    """Value types a metric can hold."""

    INT = "INT"
    FLOAT = "FLOAT"
    PERCENT = "PERCENT"
    WORK_DUR = "WORK_DUR"
    RATING = "RATING"
    LEVEL = "LEVEL"
    DATA = "DATA"


class Rating(IntEnum):
    """Ordinal rating, A being the best."""

    A = 1
    B = 2
    C = 3
    D = 4
    E = 5

    @classmethod
    def from_value(cls, value: float) -> "Rating":
        """Rebuild a rating from its persisted ordinal."""
        ordinal = int(value)
        for rating in cls:
            if rating.value == ordinal:
                return rating
        raise ValueError(f"Invalid rating ordinal: {value}")


class IssueType(str, Enum):
    """Issue types."""

    CODE_SMELL = "CODE_SMELL"
    BUG = "BUG"
    VULNERABILITY = "VULNERABILITY"


class IssueSeverity(str, Enum):
    """Issue severities, from least to most severe."""

    INFO = "INFO"
    MINOR = "MINOR"
    MAJOR = "MAJOR"
    CRITICAL = "CRITICAL"
    BLOCKER = "BLOCKER"

    @property
    def rank(self) -> int:
        return list(IssueSeverity).index(self)


class IssueStatus(str, Enum):
    """Issue workflow statuses."""

    OPEN = "OPEN"
    CONFIRMED = "CONFIRMED"
    REOPENED = "REOPENED"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class IssueResolution(str, Enum):
    """Issue resolutions."""

    FIXED = "FIXED"
    FALSE_POSITIVE = "FALSE-POSITIVE"
    WONT_FIX = "WONTFIX"
    REMOVED = "REMOVED"


class ConditionOperator(str, Enum):
    """Comparison operators of quality gate conditions."""

    GREATER_THAN = "GT"
    LESS_THAN = "LT"
    EQUALS = "EQ"
    NOT_EQUALS = "NE"


class GateStatus(str, Enum):
    """Quality gate status, ordered OK < WARN < ERROR."""

    OK = "OK"
    WARN = "WARN"
    ERROR = "ERROR"

    @property
    def severity(self) -> int:
        return list(GateStatus).index(self)

    @classmethod
    def worst(cls, statuses: List["GateStatus"]) -> "GateStatus":
        """Return the most severe status, OK when there is none."""
        return max(statuses, key=lambda s: s.severity, default=cls.OK)


class MissingValuePolicy(str, Enum):
    """What a gate condition yields when its metric has no value."""

    IGNORE = "ignore"
    FAIL = "fail"


class Component(BaseModel):
    """Node of a project tree (file, directory, module or project)."""

    uuid: str = Field(description="Component identifier")
    key: str = Field(description="Human-readable component key")
    qualifier: Qualifier = Field(description="Kind of component")
    uuid_path: List[str] = Field(
        default_factory=list,
        description="Identifiers of the ancestors, root first, excluding self",
    )
    project_uuid: str = Field(description="Identifier of the owning project")
    organization_uuid: Optional[str] = Field(default=None)

    class Config:
        frozen = True

    @property
    def is_root_project(self) -> bool:
        return self.qualifier == Qualifier.PROJECT and not self.uuid_path

    @property
    def rank(self) -> int:
        return QUALIFIER_RANKS[self.qualifier]


class Metric(BaseModel):
    """Metric definition."""

    id: int = Field(description="Numeric metric identifier")
    key: str = Field(description="Stable metric key")
    value_type: MetricValueType = Field(default=MetricValueType.INT)

    class Config:
        frozen = True

    @property
    def is_numeric(self) -> bool:
        return self.value_type not in (MetricValueType.LEVEL, MetricValueType.DATA)

    @property
    def decimal_scale(self) -> int:
        """Number of decimals kept when comparing values."""
        if self.value_type in (MetricValueType.FLOAT, MetricValueType.PERCENT):
            return 1
        return 0


class LiveMeasure(BaseModel):
    """Persisted value of a metric on a component."""

    component_uuid: str = Field(description="Measured component")
    project_uuid: str = Field(description="Owning project")
    metric_id: int = Field(description="Measured metric")

    value: Optional[float] = Field(default=None, description="Current value")
    variation: Optional[float] = Field(
        default=None,
        description="Value restricted to the leak period",
    )
    text_value: Optional[str] = Field(default=None)


class Snapshot(BaseModel):
    """Analysis of a project."""

    uuid: str = Field(description="Analysis identifier")
    component_uuid: str = Field(description="Analyzed project")
    created_at: datetime = Field(default_factory=datetime.now)
    period_date: Optional[datetime] = Field(
        default=None,
        description="Beginning of the leak period, if any",
    )


class Branch(BaseModel):
    """Branch of a project. Shares the uuid of its root component."""

    uuid: str
    project_uuid: str
    key: str = "master"
    is_main: bool = True


class Organization(BaseModel):
    """Organization owning projects."""

    uuid: str
    key: str


class Issue(BaseModel):
    """Issue raised on a component."""

    key: str
    component_uuid: str
    project_uuid: str
    type: IssueType
    severity: IssueSeverity = IssueSeverity.MAJOR
    status: IssueStatus = IssueStatus.OPEN
    resolution: Optional[IssueResolution] = None
    effort: float = Field(default=0.0, ge=0, description="Remediation effort in minutes")
    created_at: datetime = Field(default_factory=datetime.now)


class IssueGroup(BaseModel):
    """Issues sharing type, severity, status, resolution and leak membership."""

    type: IssueType
    severity: IssueSeverity
    status: IssueStatus
    resolution: Optional[IssueResolution] = None
    in_leak: bool = False
    count: int = Field(default=0, ge=0)
    effort: float = Field(default=0.0, ge=0)

    class Config:
        frozen = True


class GateCondition(BaseModel):
    """Threshold condition on a metric."""

    metric_key: str = Field(description="Metric the condition applies to")
    operator: ConditionOperator = Field(default=ConditionOperator.GREATER_THAN)
    error_threshold: Optional[float] = Field(default=None)
    warning_threshold: Optional[float] = Field(default=None)
    on_leak_period: bool = Field(
        default=False,
        description="Compare the leak value instead of the current value",
    )

    class Config:
        frozen = True


class QualityGate(BaseModel):
    """Set of conditions deciding the status of a project."""

    id: str
    name: str
    conditions: List[GateCondition] = Field(default_factory=list)
    missing_value_policy: MissingValuePolicy = Field(default=MissingValuePolicy.IGNORE)

    class Config:
        frozen = True


class EvaluatedCondition(BaseModel):
    """Result of evaluating one condition."""

    condition: GateCondition
    status: GateStatus
    value: Optional[float] = None
    threshold: Optional[float] = Field(
        default=None,
        description="Threshold that was exceeded, if any",
    )

    class Config:
        frozen = True


class EvaluatedQualityGate(BaseModel):
    """Outcome of a quality gate on a project."""

    gate: QualityGate
    status: GateStatus
    conditions: List[EvaluatedCondition] = Field(default_factory=list)

    class Config:
        frozen = True

    @property
    def passed(self) -> bool:
        return self.status != GateStatus.ERROR


class ProjectConfiguration(BaseModel):
    """Effective settings of a project."""

    rating_grid: List[float] = Field(
        default_factory=lambda: [0.05, 0.1, 0.2, 0.5],
        description="Debt ratio thresholds of ratings A to D",
    )
    development_cost_per_line: float = Field(
        default=30.0,
        gt=0,
        description="Minutes needed to develop one line of code",
    )
    properties: Dict[str, str] = Field(default_factory=dict)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.properties.get(key, default)


class QGChangeEvent(BaseModel):
    """Emitted once per project whose live measures were refreshed."""

    project: Component
    branch: Branch
    analysis: Snapshot
    configuration: ProjectConfiguration
    quality_gate_supplier: Callable[[], Optional[EvaluatedQualityGate]] = Field(
        exclude=True,
        repr=False,
    )

    def quality_gate(self) -> Optional[EvaluatedQualityGate]:
        """Evaluated quality gate, resolved on demand."""
        return self.quality_gate_supplier()


class RefreshOutcome(BaseModel):
    """Events and per-project failures of a concurrent refresh."""

    events: List[QGChangeEvent] = Field(default_factory=list)
    failures: Dict[str, str] = Field(
        default_factory=dict,
        description="Error message by project uuid",
    )

    @property
    def succeeded(self) -> bool:
        return not self.failures
