from __future__ import annotations

from typing import Iterable, List

from logrca.core.models import HeuristicAction, InvestigationFinding


def append_unique(actions: List[HeuristicAction], a: HeuristicAction) -> None:
    key = (a.description or "").strip()
    for x in actions:
        if (x.description or "").strip() == key:
            return
    actions.append(a)


def deduplicate_actions(actions: Iterable[HeuristicAction]) -> List[HeuristicAction]:
    """Keep the first action per description (input order preserved)."""
    out: List[HeuristicAction] = []
    for a in actions or []:
        append_unique(out, a)
    return out


def sort_actions_by_priority(actions: Iterable[HeuristicAction]) -> List[HeuristicAction]:
    # Stable: equal priorities keep insertion order.
    return sorted(actions or [], key=lambda a: int(a.priority))


def sort_findings_by_severity(findings: Iterable[InvestigationFinding]) -> List[InvestigationFinding]:
    """critical -> high -> medium -> low; then confidence desc (stable otherwise)."""
    return sorted(findings or [], key=lambda f: (f.severity.rank, -float(f.confidence)))
