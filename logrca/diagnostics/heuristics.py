"""Phrase-based heuristic matching over findings (deterministic, no I/O)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from logrca.actions.suggestions import append_unique, sort_actions_by_priority
from logrca.core.events import quote_literal
from logrca.core.models import ActionType, HeuristicAction, InvestigationFinding, SOPRecommendation


@dataclass
class HeuristicMatcher:
    """A known failure signature: phrases to look for, plus what to do about it.

    Matchers are pure data; the engine decides ordering and deduplication.
    """

    name: str
    """Stable identifier (e.g. 'timeout_detector')"""

    phrases: List[str]
    """Lowercase substrings checked against the finding summary"""

    priority: int
    """Priority of the suggested action (1 = most urgent)"""

    action_type: ActionType
    description: str
    rationale: str

    sop: Optional[SOPRecommendation] = None

    query_template: str = ""
    """Follow-up query with a `{service}` placeholder; only used when the finding names a service"""

    def matches(self, finding: InvestigationFinding, events: Sequence[Dict[str, Any]] = ()) -> bool:
        summary = (finding.summary or "").lower()
        return any(p in summary for p in self.phrases)

    def suggest_action(self, finding: InvestigationFinding) -> HeuristicAction:
        query = ""
        if self.query_template and finding.service:
            query = self.query_template.format(service=quote_literal(finding.service))
        return HeuristicAction(
            priority=self.priority,
            type=self.action_type,
            description=self.description,
            query=query,
            rationale=self.rationale,
        )


@dataclass
class HeuristicEngine:
    """Runs an injected, ordered list of matchers over findings.

    Usage:
        engine = HeuristicEngine(default_matchers())
        actions = engine.analyze_and_suggest(ctx.findings, events)
        sops = engine.get_matching_sops(ctx.findings, events)
    """

    matchers: List[HeuristicMatcher] = field(default_factory=list)

    @classmethod
    def default(cls) -> "HeuristicEngine":
        from logrca.diagnostics.patterns.heuristic_patterns import default_matchers  # noqa: WPS433

        return cls(matchers=default_matchers())

    def analyze_and_suggest(
        self, findings: Iterable[InvestigationFinding], events: Sequence[Dict[str, Any]] = ()
    ) -> List[HeuristicAction]:
        """One action per matching (finding, matcher) pair, deduplicated by description, priority-sorted."""
        actions: List[HeuristicAction] = []
        for finding in findings or []:
            for m in self.matchers:
                if m.matches(finding, events):
                    append_unique(actions, m.suggest_action(finding))
        return sort_actions_by_priority(actions)

    def get_matching_sops(
        self, findings: Iterable[InvestigationFinding], events: Sequence[Dict[str, Any]] = ()
    ) -> List[SOPRecommendation]:
        sops: List[SOPRecommendation] = []
        seen = set()
        for finding in findings or []:
            for m in self.matchers:
                if m.sop is None or m.sop.trigger in seen:
                    continue
                if m.matches(finding, events):
                    seen.add(m.sop.trigger)
                    sops.append(m.sop)
        return sops
