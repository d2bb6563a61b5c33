"""Keys and definitions of the metrics maintained by live measures."""

from typing import List

from ..models.measure_models import Metric, MetricValueType

NCLOC = "ncloc"

CODE_SMELLS = "code_smells"
BUGS = "bugs"
VULNERABILITIES = "vulnerabilities"
VIOLATIONS = "violations"
BLOCKER_VIOLATIONS = "blocker_violations"
CRITICAL_VIOLATIONS = "critical_violations"
MAJOR_VIOLATIONS = "major_violations"
MINOR_VIOLATIONS = "minor_violations"
INFO_VIOLATIONS = "info_violations"
OPEN_ISSUES = "open_issues"
REOPENED_ISSUES = "reopened_issues"
CONFIRMED_ISSUES = "confirmed_issues"
FALSE_POSITIVE_ISSUES = "false_positive_issues"
WONT_FIX_ISSUES = "wont_fix_issues"

TECHNICAL_DEBT = "sqale_index"
RELIABILITY_REMEDIATION_EFFORT = "reliability_remediation_effort"
SECURITY_REMEDIATION_EFFORT = "security_remediation_effort"
SQALE_DEBT_RATIO = "sqale_debt_ratio"
SQALE_RATING = "sqale_rating"
EFFORT_TO_REACH_MAINTAINABILITY_RATING_A = "effort_to_reach_maintainability_rating_a"
RELIABILITY_RATING = "reliability_rating"
SECURITY_RATING = "security_rating"

NEW_CODE_SMELLS = "new_code_smells"
NEW_BUGS = "new_bugs"
NEW_VULNERABILITIES = "new_vulnerabilities"
NEW_VIOLATIONS = "new_violations"
NEW_TECHNICAL_DEBT = "new_technical_debt"
NEW_RELIABILITY_REMEDIATION_EFFORT = "new_reliability_remediation_effort"
NEW_SECURITY_REMEDIATION_EFFORT = "new_security_remediation_effort"
NEW_RELIABILITY_RATING = "new_reliability_rating"
NEW_SECURITY_RATING = "new_security_rating"

ALERT_STATUS = "alert_status"
QUALITY_GATE_DETAILS = "quality_gate_details"

_TYPES = {
    NCLOC: MetricValueType.INT,
    CODE_SMELLS: MetricValueType.INT,
    BUGS: MetricValueType.INT,
    VULNERABILITIES: MetricValueType.INT,
    VIOLATIONS: MetricValueType.INT,
    BLOCKER_VIOLATIONS: MetricValueType.INT,
    CRITICAL_VIOLATIONS: MetricValueType.INT,
    MAJOR_VIOLATIONS: MetricValueType.INT,
    MINOR_VIOLATIONS: MetricValueType.INT,
    INFO_VIOLATIONS: MetricValueType.INT,
    OPEN_ISSUES: MetricValueType.INT,
    REOPENED_ISSUES: MetricValueType.INT,
    CONFIRMED_ISSUES: MetricValueType.INT,
    FALSE_POSITIVE_ISSUES: MetricValueType.INT,
    WONT_FIX_ISSUES: MetricValueType.INT,
    TECHNICAL_DEBT: MetricValueType.WORK_DUR,
    RELIABILITY_REMEDIATION_EFFORT: MetricValueType.WORK_DUR,
    SECURITY_REMEDIATION_EFFORT: MetricValueType.WORK_DUR,
    SQALE_DEBT_RATIO: MetricValueType.PERCENT,
    SQALE_RATING: MetricValueType.RATING,
    EFFORT_TO_REACH_MAINTAINABILITY_RATING_A: MetricValueType.WORK_DUR,
    RELIABILITY_RATING: MetricValueType.RATING,
    SECURITY_RATING: MetricValueType.RATING,
    NEW_CODE_SMELLS: MetricValueType.INT,
    NEW_BUGS: MetricValueType.INT,
    NEW_VULNERABILITIES: MetricValueType.INT,
    NEW_VIOLATIONS: MetricValueType.INT,
    NEW_TECHNICAL_DEBT: MetricValueType.WORK_DUR,
    NEW_RELIABILITY_REMEDIATION_EFFORT: MetricValueType.WORK_DUR,
    NEW_SECURITY_REMEDIATION_EFFORT: MetricValueType.WORK_DUR,
    NEW_RELIABILITY_RATING: MetricValueType.RATING,
    NEW_SECURITY_RATING: MetricValueType.RATING,
    ALERT_STATUS: MetricValueType.LEVEL,
    QUALITY_GATE_DETAILS: MetricValueType.DATA,
}


def core_metrics() -> List[Metric]:
    """Definitions of all the metrics above, with stable ids."""
    return [
        Metric(id=index, key=key, value_type=value_type)
        for index, (key, value_type) in enumerate(_TYPES.items(), start=1)
    ]
