"""
Replay mechanism: run an investigation against recorded query results.

Instead of talking to a log store, a fixture holds the events each query returned:

    {
      "params": {"application": "payment-api", "time_range": "1h"},
      "now": "2024-01-15T10:30:00Z",
      "results": {
        "component-error-patterns": [{"message": "...", "occurrences": 45}],
        "component-dependencies": {"error": "query timed out"}
      }
    }

Queries without a recorded entry return no events. An entry of the form {"error": "..."} makes
the executor raise, which exercises the pipeline's failure isolation.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from dateutil import parser as date_parser

from logrca.core.models import InvestigationTimeRange, QueryPlan


class ReplayQueryError(RuntimeError):
    pass


def load_fixture(path: Union[str, Path]) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Replay fixture not found: {p}")
    with open(p, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Replay fixture must be a JSON object: {p}")
    return data


def fixture_now(fixture: Dict[str, Any]) -> Optional[datetime]:
    raw = fixture.get("now")
    if not raw:
        return None
    return date_parser.isoparse(str(raw))


class FixtureExecutor:
    """Callable executor serving recorded events by query id."""

    def __init__(self, results: Optional[Dict[str, Any]] = None):
        self.results = results or {}
        self.calls: List[str] = []

    def __call__(self, plan: QueryPlan, time_range: InvestigationTimeRange) -> List[Dict[str, Any]]:
        self.calls.append(plan.id)
        recorded = self.results.get(plan.id)
        if isinstance(recorded, dict) and "error" in recorded:
            raise ReplayQueryError(str(recorded.get("error")))
        if isinstance(recorded, dict):
            recorded = recorded.get("events") or []
        return list(recorded or [])
