"""
Evidence synthesis: findings (+ suggested actions) -> EvidenceSummary.

Deterministic and total: any list of findings, including an empty one, yields a summary with
a non-empty root cause narrative.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from logrca.core.models import (
    EvidenceSummary,
    FindingType,
    HeuristicAction,
    InvestigationFinding,
    InvestigationRecommendation,
    TimelineEvent,
)

HEALTHY_NARRATIVE = "No issues found in the investigated window. The system appears healthy."


def _first_of(findings: Sequence[InvestigationFinding], *types: FindingType) -> Optional[InvestigationFinding]:
    for f in findings:
        if f.type in types:
            return f
    return None


def synthesize_root_cause(findings: Sequence[InvestigationFinding]) -> str:
    """Dependency issues first (they cascade), then errors/spikes, then latency, then anything."""
    if not findings:
        return HEALTHY_NARRATIVE

    dep = _first_of(findings, FindingType.DEPENDENCY)
    if dep is not None:
        return f"Dependency failure: {dep.summary}"
    err = _first_of(findings, FindingType.ERROR, FindingType.SPIKE)
    if err is not None:
        return f"Error pattern: {err.summary}"
    lat = _first_of(findings, FindingType.LATENCY)
    if lat is not None:
        return f"Performance degradation: {lat.summary}"
    return findings[0].summary


def calculate_confidence(findings: Sequence[InvestigationFinding]) -> float:
    if not findings:
        return 0.0
    return sum(float(f.confidence) for f in findings) / len(findings)


def affected_services(findings: Iterable[InvestigationFinding]) -> List[str]:
    out: List[str] = []
    for f in findings:
        svc = (f.service or "").strip()
        if svc and svc not in out:
            out.append(svc)
    return out


def build_timeline(findings: Iterable[InvestigationFinding]) -> List[TimelineEvent]:
    ordered = sorted(findings, key=lambda f: f.timestamp)
    return [
        TimelineEvent(timestamp=f.timestamp, event=f.summary, service=f.service, significance=f.severity.value)
        for f in ordered
    ]


def build_recommendations(actions: Iterable[HeuristicAction]) -> List[InvestigationRecommendation]:
    return [
        InvestigationRecommendation(
            priority=a.priority,
            category=a.type.value,
            action=a.description,
            rationale=a.rationale,
        )
        for a in actions
    ]


def synthesize(
    findings: Sequence[InvestigationFinding],
    actions: Sequence[HeuristicAction] = (),
    *,
    focus: Optional[Sequence[InvestigationFinding]] = None,
) -> EvidenceSummary:
    """
    Build the evidence summary.

    `focus` (optional) narrows which findings drive the narrative and confidence
    (e.g. only critical/high ones); affected services, impact and timeline always use all findings.
    """
    findings = list(findings or [])
    driving = list(focus) if focus else findings
    services = affected_services(findings)

    return EvidenceSummary(
        root_cause=synthesize_root_cause(driving),
        timeline=build_timeline(findings),
        affected_services=services,
        impact_summary=f"{len(services)} services affected, {len(findings)} findings identified",
        confidence=calculate_confidence(driving),
        recommendations=build_recommendations(actions or []),
    )
