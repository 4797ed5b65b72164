"""
Before/after comparison of log clusters (e.g. a window before an incident vs. during it).

Clusters are matched by template id. Pure functions; no I/O.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from pydantic import Field

from logrca.core.models import BaseModelStrict, LogCluster, RootCauseCategory

SPIKE_RATIO = 2.0
STABLE_LOW_RATIO = 0.5
MAX_HYPOTHESES = 3

CAUSE_DESCRIPTIONS: Dict[RootCauseCategory, str] = {
    RootCauseCategory.MEMORY_PRESSURE: "Memory exhaustion - check container memory limits and for memory leaks",
    RootCauseCategory.TIMEOUT: "Service timeouts - investigate downstream service latency or network issues",
    RootCauseCategory.NETWORK_FAILURE: "Network connectivity issues - check network policies, DNS, and service mesh",
    RootCauseCategory.STORAGE_FAILURE: "Storage issues - verify disk space, IOPS limits, and mount points",
    RootCauseCategory.AUTH_FAILURE: "Authentication/authorization failures - check credentials, tokens, and RBAC",
    RootCauseCategory.CODE_BUG: "Application code error - review recent deployments and code changes",
    RootCauseCategory.RATE_LIMITED: "Rate limiting triggered - check API quotas and client request patterns",
    RootCauseCategory.DNS_FAILURE: "DNS resolution failures - verify DNS configuration and resolver health",
    RootCauseCategory.TLS_FAILURE: "TLS/certificate issues - check certificate expiry and trust chains",
    RootCauseCategory.DATABASE_FAILURE: "Database errors - check connection pools, query performance, and deadlocks",
    RootCauseCategory.CPU_PRESSURE: "CPU contention - review resource limits and horizontal scaling needs",
    RootCauseCategory.K8S_ORCHESTRATION: "Orchestration issues - check pod scheduling, evictions, and node health",
}

NO_SIGNAL_DESCRIPTION = "Insufficient error patterns to determine root cause - consider expanding the time window"


class SpikingPattern(BaseModelStrict):
    pattern: LogCluster
    before_count: int
    after_count: int
    ratio: float


class DeltaAnalysis(BaseModelStrict):
    new_patterns: List[LogCluster] = Field(default_factory=list)
    disappeared_patterns: List[LogCluster] = Field(default_factory=list)
    spiking_patterns: List[SpikingPattern] = Field(default_factory=list)
    stable_patterns: List[LogCluster] = Field(default_factory=list)


class CausalHypothesis(BaseModelStrict):
    description: str
    strength: str  # strong | moderate | weak
    category: RootCauseCategory


def analyze_delta(before: Sequence[LogCluster], after: Sequence[LogCluster]) -> DeltaAnalysis:
    before_by_id = {c.template_id: c for c in before or []}
    after_by_id = {c.template_id: c for c in after or []}
    delta = DeltaAnalysis()

    for tid, a in after_by_id.items():
        b = before_by_id.get(tid)
        if b is None:
            delta.new_patterns.append(a)
            continue
        if b.count <= 0:
            continue
        ratio = a.count / b.count
        if ratio >= SPIKE_RATIO:
            delta.spiking_patterns.append(
                SpikingPattern(pattern=a, before_count=b.count, after_count=a.count, ratio=ratio)
            )
        elif ratio > STABLE_LOW_RATIO:
            delta.stable_patterns.append(a)

    delta.disappeared_patterns = [b for tid, b in before_by_id.items() if tid not in after_by_id]

    delta.spiking_patterns.sort(key=lambda s: (-s.ratio, s.pattern.template_id))
    delta.new_patterns.sort(key=lambda c: (-c.severity, -c.count, c.template_id))
    return delta


def generate_causal_hypotheses(delta: DeltaAnalysis) -> List[CausalHypothesis]:
    """Rank root-cause categories by how many new/spiking occurrences they explain (top 3)."""
    counts: Dict[RootCauseCategory, int] = {}
    for c in delta.new_patterns:
        counts[c.root_cause] = counts.get(c.root_cause, 0) + c.count
    for s in delta.spiking_patterns:
        counts[s.pattern.root_cause] = counts.get(s.pattern.root_cause, 0) + s.after_count
    counts.pop(RootCauseCategory.UNKNOWN, None)

    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0].value))[:MAX_HYPOTHESES]

    out: List[CausalHypothesis] = []
    for i, (cause, count) in enumerate(ranked):
        if i == 0 and count > 10:
            strength = "strong"
        elif i == 0 or count > 5:
            strength = "moderate"
        else:
            strength = "weak"
        out.append(CausalHypothesis(description=CAUSE_DESCRIPTIONS[cause], strength=strength, category=cause))

    if not out:
        out.append(
            CausalHypothesis(description=NO_SIGNAL_DESCRIPTION, strength="weak", category=RootCauseCategory.UNKNOWN)
        )
    return out
