"""System-wide health scan: error volume per service, error timeline spikes, recurring critical errors."""

from __future__ import annotations

from typing import List

from logrca.analysis.evidence import synthesize
from logrca.core.events import extract_app, get_float, get_str, parse_timestamp, truncate_text
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
from logrca.logs.clustering import cluster_logs
from logrca.strategies.base import drill_down_query, usable

ERROR_RATE_QUERY_ID = "global-error-rate"
ERROR_TIMELINE_QUERY_ID = "global-error-timeline"
CRITICAL_ERRORS_QUERY_ID = "global-critical-errors"

SPIKE_MULTIPLIER = 5.0
SPIKE_TRAILING_WINDOW = 5
SPIKE_MIN_ERRORS = 10
RECURRING_CRITICAL_MIN = 3


class GlobalModeStrategy:
    name = InvestigationMode.GLOBAL.value

    def initial_queries(self, ctx: SmartInvestigationContext) -> List[QueryPlan]:
        return [
            QueryPlan(
                id=ERROR_RATE_QUERY_ID,
                purpose="Calculate error rate per application",
                query="""source logs
| filter $m.severity >= ERROR
| groupby $l.applicationname aggregate count() as error_count
| sortby -error_count
| limit 20""",
            ),
            QueryPlan(
                id=ERROR_TIMELINE_QUERY_ID,
                purpose="Error distribution over time",
                query="""source logs
| filter $m.severity >= WARNING
| groupby formatTimestamp($m.timestamp, '%Y-%m-%d %H:%M') as time_bucket aggregate count() as errors
| sortby time_bucket""",
            ),
            QueryPlan(
                id=CRITICAL_ERRORS_QUERY_ID,
                purpose="Identify critical severity events",
                query="""source logs
| filter $m.severity == CRITICAL
| limit 50""",
            ),
        ]

    def analyze_results(
        self, ctx: SmartInvestigationContext, results: List[ExecutedQuery]
    ) -> List[InvestigationFinding]:
        findings: List[InvestigationFinding] = []
        for r in usable(results):
            if r.query_id == ERROR_RATE_QUERY_ID:
                findings.extend(self._error_rates(r))
            elif r.query_id == ERROR_TIMELINE_QUERY_ID:
                findings.extend(self._error_timeline(r))
            elif r.query_id == CRITICAL_ERRORS_QUERY_ID:
                findings.extend(self._critical_errors(r))
        return findings

    def _error_rates(self, result: ExecutedQuery) -> List[InvestigationFinding]:
        out: List[InvestigationFinding] = []
        for event in result.events:
            app = extract_app(event)
            count = get_float(event, "error_count", "count")
            if not app or count <= 0:
                continue
            out.append(
                InvestigationFinding(
                    type=FindingType.ERROR,
                    service=app,
                    summary=f"Error volume: {int(count)} errors in time window",
                    evidence=f"error_count={int(count)}",
                    severity=InvestigationSeverity.from_count(count),
                    confidence=0.9,
                    query_source=result.query_id,
                )
            )
        return out

    def _error_timeline(self, result: ExecutedQuery) -> List[InvestigationFinding]:
        buckets = [
            (get_str(event, "time_bucket", "timestamp"), get_float(event, "errors", "error_count", "count"))
            for event in result.events
        ]

        out: List[InvestigationFinding] = []
        for i, (bucket, errors) in enumerate(buckets):
            trailing = [e for _, e in buckets[max(0, i - SPIKE_TRAILING_WINDOW) : i]]
            if not trailing or errors <= SPIKE_MIN_ERRORS:
                continue
            avg = sum(trailing) / len(trailing)
            if errors <= avg * SPIKE_MULTIPLIER:
                continue

            ratio = f"{errors / avg:.1f}x trailing average" if avg > 0 else "no errors in preceding buckets"
            label = bucket or f"bucket {i}"
            kwargs = {}
            ts = parse_timestamp(bucket) if bucket else None
            if ts is not None:
                kwargs["timestamp"] = ts
            out.append(
                InvestigationFinding(
                    type=FindingType.SPIKE,
                    summary=f"Error spike at {label}: {int(errors)} errors ({ratio})",
                    evidence=f"Trailing average: {avg:.1f} errors/bucket, spike: {int(errors)} errors",
                    severity=InvestigationSeverity.HIGH,
                    confidence=0.85,
                    query_source=result.query_id,
                    **kwargs,
                )
            )
        return out

    def _critical_errors(self, result: ExecutedQuery) -> List[InvestigationFinding]:
        out: List[InvestigationFinding] = []
        for c in cluster_logs(result.events):
            if c.count < RECURRING_CRITICAL_MIN:
                continue
            out.append(
                InvestigationFinding(
                    type=FindingType.ERROR,
                    service=c.apps[0] if len(c.apps) == 1 else "",
                    summary=f"Recurring critical error: {truncate_text(c.template, 60)} ({c.count} occurrences)",
                    evidence=f"Sample: {c.samples[0]}" if c.samples else "",
                    severity=InvestigationSeverity.CRITICAL,
                    confidence=0.95,
                    query_source=result.query_id,
                )
            )
        return out

    def suggest_next_actions(self, ctx: SmartInvestigationContext) -> List[HeuristicAction]:
        actions: List[HeuristicAction] = []
        seen = set()
        for f in ctx.findings:
            if not f.service or f.service in seen:
                continue
            seen.add(f.service)
            actions.append(
                HeuristicAction(
                    priority=1,
                    type=ActionType.DRILL_DOWN,
                    description=f"Drill down into {f.service} errors",
                    query=drill_down_query(f.service),
                    rationale="High error volume warrants detailed investigation",
                )
            )
        return actions

    def synthesize_evidence(self, ctx: SmartInvestigationContext) -> EvidenceSummary:
        urgent = [
            f
            for f in ctx.findings
            if f.severity in (InvestigationSeverity.CRITICAL, InvestigationSeverity.HIGH)
        ]
        return synthesize(ctx.findings, ctx.next_actions, focus=urgent)
