"""Single-service deep dive: recurring error patterns, downstream dependency failures, noisy subsystems."""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from logrca.analysis.evidence import synthesize
from logrca.core.events import extract_message, extract_subsystem, get_float, get_str, quote_literal, truncate_text
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
from logrca.logs.templates import extract_template
from logrca.strategies.base import usable

ERRORS_QUERY_ID = "component-errors"
ERROR_PATTERNS_QUERY_ID = "component-error-patterns"
SUBSYSTEMS_QUERY_ID = "component-subsystems"
DEPENDENCIES_QUERY_ID = "component-dependencies"

TOP_PATTERNS = 5
RECURRING_MIN_EXCLUSIVE = 5
DEPENDENCY_MIN_REPEATS = 3
SUBSYSTEM_MIN_EXCLUSIVE = 20

# (phrase, description); first phrase found in a message wins.
DEPENDENCY_PHRASES: List[Tuple[str, str]] = [
    ("connection refused", "Network/service connectivity failure"),
    ("econnrefused", "Network/service connectivity failure"),
    ("econnreset", "Connection reset by peer"),
    ("connection reset", "Connection reset by peer"),
    ("etimedout", "Connection timed out"),
    ("timed out", "Downstream service not responding"),
    ("timeout", "Downstream service not responding"),
    ("pool exhausted", "Connection pool exhaustion"),
    ("too many connections", "Connection limit exceeded"),
    ("deadlock", "Database deadlock detected"),
]

_TARGET_RE = re.compile(r"\b(?:to|from|at|on|with)\s+([A-Za-z0-9_][A-Za-z0-9_.\-]*(?::\d{1,5})?)")
_HOST_PORT_RE = re.compile(r"\b((?:[A-Za-z][A-Za-z0-9_.\-]*|\d{1,3}(?:\.\d{1,3}){3}):\d{1,5})\b")


def extract_dependency_target(message: str) -> str:
    """
    Best-effort downstream target in a failure message.

    Prefers the last 'to/from/at/on/with <name>' candidate, else a bare host:port anywhere in
    the message. Tokens like 'attempt:1' elsewhere in the text never override a named target.
    """
    candidates = [c.rstrip(".") for c in _TARGET_RE.findall(message or "")]
    candidates = [c for c in candidates if c]
    if candidates:
        return candidates[-1]
    m = _HOST_PORT_RE.search(message or "")
    return m.group(1) if m else ""


def _match_dependency_phrase(message: str) -> Optional[Tuple[str, str]]:
    lower = (message or "").lower()
    for phrase, desc in DEPENDENCY_PHRASES:
        if phrase in lower:
            return phrase, desc
    return None


class ComponentModeStrategy:
    name = InvestigationMode.COMPONENT.value

    def initial_queries(self, ctx: SmartInvestigationContext) -> List[QueryPlan]:
        svc = quote_literal(ctx.target_service)
        return [
            QueryPlan(
                id=ERRORS_QUERY_ID,
                purpose=f"All errors from {ctx.target_service}",
                query=f"""source logs
| filter $l.applicationname == '{svc}' && $m.severity >= ERROR
| limit 200""",
            ),
            QueryPlan(
                id=ERROR_PATTERNS_QUERY_ID,
                purpose=f"Group {ctx.target_service} errors by message pattern",
                query=f"""source logs
| filter $l.applicationname == '{svc}' && $m.severity >= ERROR
| groupby $d.message aggregate count() as occurrences
| sortby -occurrences
| limit 20""",
            ),
            QueryPlan(
                id=SUBSYSTEMS_QUERY_ID,
                purpose=f"Error distribution by subsystem in {ctx.target_service}",
                priority=2,
                query=f"""source logs
| filter $l.applicationname == '{svc}' && $m.severity >= WARNING
| groupby $l.subsystemname aggregate count() as errors
| sortby -errors""",
            ),
            QueryPlan(
                id=DEPENDENCIES_QUERY_ID,
                purpose=f"Identify downstream calls and failures from {ctx.target_service}",
                priority=3,
                depends_on=[ERRORS_QUERY_ID],
                query=f"""source logs
| filter $l.applicationname == '{svc}'
  && ($d.message.contains('connection') || $d.message.contains('timeout') || $d.message.contains('refused'))
| limit 100""",
            ),
        ]

    def analyze_results(
        self, ctx: SmartInvestigationContext, results: List[ExecutedQuery]
    ) -> List[InvestigationFinding]:
        findings: List[InvestigationFinding] = []
        for r in usable(results):
            if r.query_id == ERROR_PATTERNS_QUERY_ID:
                findings.extend(self._error_patterns(ctx, r))
            elif r.query_id == DEPENDENCIES_QUERY_ID:
                findings.extend(self._dependencies(ctx, r))
            elif r.query_id == SUBSYSTEMS_QUERY_ID:
                findings.extend(self._subsystems(ctx, r))
        return findings

    def _error_patterns(self, ctx: SmartInvestigationContext, result: ExecutedQuery) -> List[InvestigationFinding]:
        # template_id -> [representative message, total occurrences]
        groups: Dict[str, list] = {}
        for event in result.events:
            msg = get_str(event, "$d.message") or extract_message(event)
            if not msg:
                continue
            count = get_float(event, "occurrences", "count") or 1.0
            _, tid = extract_template(msg)
            if tid in groups:
                groups[tid][1] += count
            else:
                groups[tid] = [msg, count]

        ranked = sorted(groups.values(), key=lambda g: -g[1])[:TOP_PATTERNS]
        out: List[InvestigationFinding] = []
        for msg, count in ranked:
            if count <= RECURRING_MIN_EXCLUSIVE:
                continue
            out.append(
                InvestigationFinding(
                    type=FindingType.ERROR,
                    service=ctx.target_service,
                    summary=f"Recurring error pattern: {truncate_text(msg, 80)}",
                    evidence=f"{int(count)} occurrences",
                    severity=InvestigationSeverity.from_count(count),
                    confidence=0.9,
                    query_source=result.query_id,
                )
            )
        return out

    def _dependencies(self, ctx: SmartInvestigationContext, result: ExecutedQuery) -> List[InvestigationFinding]:
        counts: Dict[Tuple[str, str], int] = {}
        descriptions: Dict[str, str] = {}
        for event in result.events:
            msg = extract_message(event)
            hit = _match_dependency_phrase(msg)
            if hit is None:
                continue
            phrase, desc = hit
            descriptions[phrase] = desc
            key = (phrase, extract_dependency_target(msg))
            counts[key] = counts.get(key, 0) + 1

        out: List[InvestigationFinding] = []
        for (phrase, target), count in counts.items():
            if count < DEPENDENCY_MIN_REPEATS:
                continue
            summary = f"{descriptions[phrase]} - {phrase}"
            if target:
                summary += f" ({target})"
            out.append(
                InvestigationFinding(
                    type=FindingType.DEPENDENCY,
                    service=ctx.target_service,
                    summary=summary,
                    evidence=f"{count} occurrences detected" + (f" toward {target}" if target else ""),
                    severity=InvestigationSeverity.HIGH,
                    confidence=0.85,
                    query_source=result.query_id,
                )
            )
        return out

    def _subsystems(self, ctx: SmartInvestigationContext, result: ExecutedQuery) -> List[InvestigationFinding]:
        out: List[InvestigationFinding] = []
        for event in result.events:
            subsystem = extract_subsystem(event)
            errors = get_float(event, "errors", "error_count", "count")
            if not subsystem or errors <= SUBSYSTEM_MIN_EXCLUSIVE:
                continue
            out.append(
                InvestigationFinding(
                    type=FindingType.ERROR,
                    service=f"{ctx.target_service}/{subsystem}",
                    summary=f"High error count in subsystem {subsystem}: {int(errors)} errors",
                    severity=InvestigationSeverity.from_count(errors),
                    confidence=0.8,
                    query_source=result.query_id,
                )
            )
        return out

    def suggest_next_actions(self, ctx: SmartInvestigationContext) -> List[HeuristicAction]:
        actions: List[HeuristicAction] = []
        for f in ctx.findings:
            if f.type != FindingType.DEPENDENCY:
                continue
            actions.append(
                HeuristicAction(
                    priority=1,
                    type=ActionType.CORRELATE,
                    description="Check downstream service health",
                    rationale=f"Dependency issue detected: {f.summary}",
                )
            )

        actions.append(
            HeuristicAction(
                priority=3,
                type=ActionType.QUERY,
                description="Check for recent deployment correlations",
                rationale="Errors may correlate with recent code changes",
            )
        )
        return actions

    def synthesize_evidence(self, ctx: SmartInvestigationContext) -> EvidenceSummary:
        summary = synthesize(ctx.findings, ctx.next_actions)
        if not ctx.findings:
            summary.root_cause = f"No significant issues found in {ctx.target_service}. {summary.root_cause}"
        if ctx.target_service and ctx.target_service not in summary.affected_services:
            summary.affected_services.insert(0, ctx.target_service)
        summary.impact_summary = f"{len(ctx.findings)} findings for service {ctx.target_service}"
        return summary
