"""JSON dump helpers (CLI-friendly, testable).

We keep CLI printing logic out of core modules; these return plain dicts.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal

from logrca.core.models import InvestigationResult, LogCluster

DumpMode = Literal["summary", "full"]


def _clean(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v not in (None, "", [], {})}


def result_to_json_dict(result: InvestigationResult, *, mode: DumpMode = "summary") -> Dict[str, Any]:
    """
    JSON-safe view of one run.

    - summary: context identity, findings, actions, evidence, query status (no raw events)
    - full: the complete model, raw events included
    """
    if mode == "full":
        return result.model_dump(mode="json")

    ctx = result.context
    out: Dict[str, Any] = {
        "mode": ctx.mode.value,
        "time_range": ctx.time_range.model_dump(mode="json"),
        "target": _clean(
            {
                "application": ctx.target_service,
                "trace_id": ctx.trace_id,
                "correlation_id": ctx.correlation_id,
            }
        ),
        "queries": [
            _clean(
                {
                    "query_id": r.query_id,
                    "query": r.query,
                    "events": len(r.events),
                    "duration_ms": r.duration_ms,
                    "error": r.error,
                }
            )
            for r in result.results
        ],
        "findings": [f.model_dump(mode="json") for f in ctx.findings],
        "hypotheses": [h.model_dump(mode="json") for h in ctx.hypotheses],
        "next_actions": [a.model_dump(mode="json") for a in ctx.next_actions],
        "evidence": result.evidence.model_dump(mode="json"),
        "sops": [s.model_dump(mode="json") for s in result.sops],
        "assets": result.assets.model_dump(mode="json") if result.assets else None,
        "errors": list(ctx.errors),
    }
    return _clean(out)


def clusters_to_json_list(clusters: List[LogCluster]) -> List[Dict[str, Any]]:
    return [c.model_dump(mode="json") for c in clusters]
