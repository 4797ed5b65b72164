"""Canonical domain models for one investigation run.

Used across:
- strategies (query plans, findings, next actions)
- the heuristic engine (actions, SOPs)
- evidence synthesis and remediation generation
- rendering (reports, JSON dumps)

Design note:
- Event payloads returned by the log store stay as plain dicts (`Dict[str, Any]`) because
  their shape depends on the query (raw logs vs. aggregations).
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    """Seam for tests."""
    return datetime.now(timezone.utc)


class BaseModelStrict(BaseModel):
    model_config = ConfigDict(extra="forbid")


class InvestigationMode(str, Enum):
    GLOBAL = "global"  # system-wide health scan
    COMPONENT = "component"  # single service focus
    FLOW = "flow"  # single request trace


class FindingType(str, Enum):
    ERROR = "error"
    LATENCY = "latency"
    RESOURCE = "resource"
    DEPENDENCY = "dependency"
    DEPLOYMENT = "deployment"
    SPIKE = "spike"


class InvestigationSeverity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """0 is the most severe."""
        return _SEVERITY_RANK[self]

    @classmethod
    def from_count(cls, count: float) -> "InvestigationSeverity":
        """Bucket an error count into a severity band."""
        if count > 500:
            return cls.CRITICAL
        if count > 100:
            return cls.HIGH
        if count > 20:
            return cls.MEDIUM
        return cls.LOW


_SEVERITY_RANK = {
    InvestigationSeverity.CRITICAL: 0,
    InvestigationSeverity.HIGH: 1,
    InvestigationSeverity.MEDIUM: 2,
    InvestigationSeverity.LOW: 3,
}


class ActionType(str, Enum):
    QUERY = "query"
    DRILL_DOWN = "drill_down"
    CORRELATE = "correlate"
    TRACE = "trace"
    CREATE_ALERT = "create_alert"


class RootCauseCategory(str, Enum):
    MEMORY_PRESSURE = "MEMORY_PRESSURE"
    TIMEOUT = "TIMEOUT"
    NETWORK_FAILURE = "NETWORK_FAILURE"
    STORAGE_FAILURE = "STORAGE_FAILURE"
    AUTH_FAILURE = "AUTH_FAILURE"
    CODE_BUG = "CODE_BUG"
    RATE_LIMITED = "RATE_LIMITED"
    DNS_FAILURE = "DNS_FAILURE"
    TLS_FAILURE = "TLS_FAILURE"
    DATABASE_FAILURE = "DATABASE_FAILURE"
    CPU_PRESSURE = "CPU_PRESSURE"
    K8S_ORCHESTRATION = "K8S_ORCHESTRATION"
    UNKNOWN = "UNKNOWN"


class InvestigationTimeRange(BaseModelStrict):
    start: datetime
    end: Optional[datetime] = None  # None while the incident is ongoing

    @field_validator("start", "end")
    @classmethod
    def _ensure_timezone_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        # Prevent naive/aware mixing bugs in downstream time math.
        if isinstance(v, datetime) and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class QueryPlan(BaseModelStrict):
    """A query to be executed by the caller; never executed by the engine itself."""

    id: str
    query: str
    purpose: str = ""
    tier: str = "archive"
    priority: int = 1
    depends_on: List[str] = Field(default_factory=list)


class ExecutedQuery(BaseModelStrict):
    query_id: str
    query: str = ""
    events: List[Dict[str, Any]] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    duration_ms: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class InvestigationFinding(BaseModel):
    """A single discovered fact. Immutable once created."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    timestamp: datetime = Field(default_factory=utcnow)
    type: FindingType = FindingType.ERROR
    service: str = ""
    summary: str
    evidence: str = ""
    severity: InvestigationSeverity = InvestigationSeverity.LOW
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    query_source: str = ""


class InvestigationHypothesis(BaseModelStrict):
    id: str
    description: str
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    evidence: List[str] = Field(default_factory=list)
    test_query: str = ""


class DataPoint(BaseModelStrict):
    metric: str
    value: Any = None
    unit: str = ""


class Evidence(BaseModelStrict):
    timestamp: datetime = Field(default_factory=utcnow)
    type: str
    description: str
    data_points: List[DataPoint] = Field(default_factory=list)
    query: str = ""


class HeuristicAction(BaseModelStrict):
    priority: int  # lower = more urgent
    type: ActionType = ActionType.QUERY
    description: str
    query: str = ""
    rationale: str = ""


class SOPRecommendation(BaseModelStrict):
    trigger: str
    procedure: str
    escalation: str


class TimelineEvent(BaseModelStrict):
    timestamp: datetime
    event: str
    service: str = ""
    significance: str = ""


class InvestigationRecommendation(BaseModelStrict):
    priority: int
    category: str
    action: str
    rationale: str = ""


class EvidenceSummary(BaseModelStrict):
    root_cause: str
    timeline: List[TimelineEvent] = Field(default_factory=list)
    affected_services: List[str] = Field(default_factory=list)
    impact_summary: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    recommendations: List[InvestigationRecommendation] = Field(default_factory=list)


class SmartInvestigationContext(BaseModelStrict):
    """Mutable state of one investigation run. Never shared between runs."""

    mode: InvestigationMode
    time_range: InvestigationTimeRange
    target_service: str = ""
    trace_id: str = ""
    correlation_id: str = ""
    findings: List[InvestigationFinding] = Field(default_factory=list)
    hypotheses: List[InvestigationHypothesis] = Field(default_factory=list)
    next_actions: List[HeuristicAction] = Field(default_factory=list)
    query_history: List[ExecutedQuery] = Field(default_factory=list)
    evidence_chain: List[Evidence] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


class LogCluster(BaseModelStrict):
    template_id: str
    template: str
    count: int = 0
    severity: int = 0  # numeric, highest seen
    severity_name: str = ""
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None
    apps: List[str] = Field(default_factory=list)
    representative_message: str = ""
    samples: List[str] = Field(default_factory=list)
    root_cause: RootCauseCategory = RootCauseCategory.UNKNOWN

    @property
    def investigation_severity(self) -> InvestigationSeverity:
        if self.severity >= 6:
            return InvestigationSeverity.CRITICAL
        if self.severity == 5:
            return InvestigationSeverity.HIGH
        if self.severity == 4:
            return InvestigationSeverity.MEDIUM
        return InvestigationSeverity.LOW


class IncidentContext(BaseModelStrict):
    """Minimal input for remediation; usable without a full investigation."""

    root_cause: str
    affected_services: List[str] = Field(default_factory=list)


class GeneratedAlert(BaseModelStrict):
    name: str
    description: str = ""
    severity: str
    priority: str
    query: str
    condition: str  # human readable
    threshold: int
    time_window_seconds: int
    terraform: str
    native_json: Dict[str, Any] = Field(default_factory=dict)


class DashboardWidget(BaseModelStrict):
    title: str
    widget_type: str
    query: str
    description: str = ""


class GeneratedDashboard(BaseModelStrict):
    name: str
    description: str = ""
    widgets: List[DashboardWidget] = Field(default_factory=list)
    terraform: str
    native_json: Dict[str, Any] = Field(default_factory=dict)


class RemediationAssets(BaseModelStrict):
    alert: GeneratedAlert
    dashboard: GeneratedDashboard
    sop_recommendations: List[SOPRecommendation] = Field(default_factory=list)


class InvestigationResult(BaseModelStrict):
    """Everything one pipeline run produced (for reports and dumps)."""

    context: SmartInvestigationContext
    evidence: EvidenceSummary
    results: List[ExecutedQuery] = Field(default_factory=list)
    sops: List[SOPRecommendation] = Field(default_factory=list)
    assets: Optional[RemediationAssets] = None
