from __future__ import annotations

from typing import Iterable, List, Protocol

from logrca.core.events import quote_literal
from logrca.core.models import (
    EvidenceSummary,
    ExecutedQuery,
    HeuristicAction,
    InvestigationFinding,
    QueryPlan,
    SmartInvestigationContext,
)


class QueryStrategy(Protocol):
    """
    Per-mode investigation strategy.

    Strategies are:
    - stateless (all run state lives in the context)
    - deterministic (same context + results -> same findings)
    - planners only (queries are executed by the caller)
    """

    name: str

    def initial_queries(self, ctx: SmartInvestigationContext) -> List[QueryPlan]:
        """Queries to run first, in priority order."""

    def analyze_results(
        self, ctx: SmartInvestigationContext, results: List[ExecutedQuery]
    ) -> List[InvestigationFinding]:
        """Turn executed queries into findings. Failed queries contribute nothing."""

    def suggest_next_actions(self, ctx: SmartInvestigationContext) -> List[HeuristicAction]:
        """Mode-specific follow-ups derived from `ctx.findings`."""

    def synthesize_evidence(self, ctx: SmartInvestigationContext) -> EvidenceSummary:
        """Always returns a summary with a non-empty root cause narrative."""


def usable(results: Iterable[ExecutedQuery], *query_ids: str) -> List[ExecutedQuery]:
    """Successful results for the given query ids (all ids when none given)."""
    out: List[ExecutedQuery] = []
    for r in results or []:
        if not r.ok:
            continue
        if query_ids and r.query_id not in query_ids:
            continue
        out.append(r)
    return out


def drill_down_query(service: str, limit: int = 100) -> str:
    return f"""source logs
| filter $l.applicationname == '{quote_literal(service)}' && $m.severity >= ERROR
| limit {limit}"""
