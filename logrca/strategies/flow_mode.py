"""Single-request tracing: follow one trace/correlation id across services and locate the failure point."""

from __future__ import annotations

from typing import Any, Dict, List

from logrca.analysis.evidence import synthesize
from logrca.core.events import (
    ERROR_SEVERITY,
    SEVERITY_LEVELS,
    extract_app,
    extract_message,
    extract_severity,
    extract_timestamp,
    quote_literal,
    truncate_text,
)
from logrca.core.models import (
    ActionType,
    EvidenceSummary,
    ExecutedQuery,
    FindingType,
    HeuristicAction,
    InvestigationFinding,
    InvestigationMode,
    InvestigationSeverity,
    QueryPlan,
    SmartInvestigationContext,
)
from logrca.strategies.base import drill_down_query, usable

TRACE_QUERY_ID = "flow-by-trace"
CORRELATION_QUERY_ID = "flow-by-correlation"

UNTRACEABLE_NARRATIVE = "Unable to trace request flow: no events matched the request identifier"


def order_flow_events(events: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Timestamp order when every event carries one; otherwise the order the store returned."""
    stamped = [(extract_timestamp(e), e) for e in events]
    if not stamped or any(ts is None for ts, _ in stamped):
        return list(events)
    return [e for _, e in sorted(stamped, key=lambda p: p[0])]


class FlowModeStrategy:
    name = InvestigationMode.FLOW.value

    def initial_queries(self, ctx: SmartInvestigationContext) -> List[QueryPlan]:
        if ctx.trace_id:
            return [
                QueryPlan(
                    id=TRACE_QUERY_ID,
                    purpose="Trace request flow by trace_id",
                    query=f"""source logs
| filter $d.trace_id == '{quote_literal(ctx.trace_id)}'
| sortby $m.timestamp asc
| limit 500""",
                )
            ]
        if ctx.correlation_id:
            return [
                QueryPlan(
                    id=CORRELATION_QUERY_ID,
                    purpose="Trace request flow by correlation_id",
                    query=f"""source logs
| filter $d.correlation_id == '{quote_literal(ctx.correlation_id)}'
| sortby $m.timestamp asc
| limit 500""",
                )
            ]
        return []

    def analyze_results(
        self, ctx: SmartInvestigationContext, results: List[ExecutedQuery]
    ) -> List[InvestigationFinding]:
        findings: List[InvestigationFinding] = []
        for r in usable(results, TRACE_QUERY_ID, CORRELATION_QUERY_ID):
            findings.extend(self._request_flow(r))
        return findings

    def _request_flow(self, result: ExecutedQuery) -> List[InvestigationFinding]:
        events = order_flow_events(result.events)
        if not events:
            return []

        services: List[str] = []
        failure = None
        failure_level = 0
        for event in events:
            svc = extract_app(event)
            if svc and svc not in services:
                services.append(svc)
            _, level = extract_severity(event)
            # Strict '>' keeps the first event at the highest severity.
            if level > failure_level:
                failure, failure_level = event, level

        path = " -> ".join(services) if services else "(unknown services)"

        if failure is not None and failure_level >= ERROR_SEVERITY:
            svc = extract_app(failure)
            kwargs = {}
            ts = extract_timestamp(failure)
            if ts is not None:
                kwargs["timestamp"] = ts
            severity = (
                InvestigationSeverity.CRITICAL
                if failure_level >= SEVERITY_LEVELS["CRITICAL"]
                else InvestigationSeverity.HIGH
            )
            return [
                InvestigationFinding(
                    type=FindingType.ERROR,
                    service=svc,
                    summary=f"Request failed at {svc or 'unknown service'}: {truncate_text(extract_message(failure), 80)}",
                    evidence=f"Request traversed: {path}",
                    severity=severity,
                    confidence=0.9,
                    query_source=result.query_id,
                    **kwargs,
                )
            ]

        return [
            InvestigationFinding(
                type=FindingType.ERROR,
                summary="Request flow traced successfully, no errors detected",
                evidence=f"Services: {path}",
                severity=InvestigationSeverity.LOW,
                confidence=0.7,
                query_source=result.query_id,
            )
        ]

    def suggest_next_actions(self, ctx: SmartInvestigationContext) -> List[HeuristicAction]:
        actions: List[HeuristicAction] = []
        for f in ctx.findings:
            if not f.service or f.severity == InvestigationSeverity.LOW:
                continue
            actions.append(
                HeuristicAction(
                    priority=1,
                    type=ActionType.DRILL_DOWN,
                    description=f"Investigate {f.service} service in detail",
                    query=drill_down_query(f.service),
                    rationale="Request failed at this service",
                )
            )
        return actions

    def synthesize_evidence(self, ctx: SmartInvestigationContext) -> EvidenceSummary:
        summary = synthesize(ctx.findings, ctx.next_actions)
        if not ctx.findings:
            summary.root_cause = UNTRACEABLE_NARRATIVE
        elif all(f.severity == InvestigationSeverity.LOW for f in ctx.findings):
            summary.root_cause = ctx.findings[0].summary
        summary.impact_summary = f"{len(ctx.findings)} findings from flow analysis"
        return summary
