from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

from logrca.config import InvestigationConfig
from logrca.core.models import InvestigationMode, InvestigationSeverity, InvestigationTimeRange, QueryPlan
from logrca.pipeline.pipeline import run_investigation

NOW = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


class _FakeExecutor:
    def __init__(self, responses: Dict[str, Any]):
        self.responses = responses
        self.calls: List[QueryPlan] = []
        self.ranges: List[InvestigationTimeRange] = []

    def __call__(self, plan: QueryPlan, time_range: InvestigationTimeRange) -> List[Dict[str, Any]]:
        self.calls.append(plan)
        self.ranges.append(time_range)
        resp = self.responses.get(plan.id, [])
        if isinstance(resp, Exception):
            raise resp
        return resp


def _component_responses() -> Dict[str, Any]:
    return {
        "component-errors": [{"message": "Connection timeout to database", "severity": 5}],
        "component-error-patterns": [
            {"message": "Connection timeout to database", "occurrences": 45},
            {"message": "Invalid payment method", "occurrences": 20},
            {"message": "Rare error", "occurrences": 2},
        ],
        "component-subsystems": [{"subsystemname": "db", "errors": 12}],
        "component-dependencies": [{"message": "Connection refused to postgres:5432"}] * 3,
    }


def _config(**kw) -> InvestigationConfig:
    base = dict(max_queries=5, default_time_range="1h", generate_assets=False, asset_severity="high", log_level="INFO")
    base.update(kw)
    return InvestigationConfig(**base)


def test_component_investigation_end_to_end() -> None:
    executor = _FakeExecutor(_component_responses())
    result = run_investigation({"application": "payment-service"}, executor, now=NOW)
    ctx = result.context

    assert ctx.mode == InvestigationMode.COMPONENT
    assert ctx.target_service == "payment-service"
    assert [p.id for p in executor.calls] == [
        "component-errors",
        "component-error-patterns",
        "component-subsystems",
        "component-dependencies",
    ]
    assert all("\n" not in p.query and "payment-service" in p.query for p in executor.calls)
    assert executor.ranges[0].end == NOW
    assert executor.ranges[0].start == NOW - timedelta(hours=1)

    summaries = [f.summary for f in ctx.findings]
    assert "Recurring error pattern: Connection timeout to database" in summaries
    assert any("postgres:5432" in s for s in summaries)

    priorities = [a.priority for a in ctx.next_actions]
    assert priorities == sorted(priorities)
    descriptions = [a.description for a in ctx.next_actions]
    assert len(descriptions) == len(set(descriptions))
    assert "Check for recent deployment correlations" in descriptions
    assert "Analyze slow database queries" in descriptions

    assert result.evidence.root_cause.startswith("Dependency failure: ")
    assert result.evidence.affected_services == ["payment-service"]
    assert len(ctx.hypotheses) == 1
    assert ctx.hypotheses[0].description == result.evidence.root_cause
    assert len(ctx.evidence_chain) == 4
    assert len(ctx.query_history) == 4
    assert ctx.errors == []
    assert result.assets is None
    assert any(s.trigger == "Database connection/query issues detected" for s in result.sops)


def test_executor_failure_is_recorded_and_run_continues(caplog) -> None:
    responses = _component_responses()
    responses["component-dependencies"] = RuntimeError("store down")
    executor = _FakeExecutor(responses)

    with caplog.at_level(logging.WARNING, logger="logrca.pipeline.pipeline"):
        result = run_investigation({"application": "payment-service"}, executor, now=NOW)

    failed = [r for r in result.results if not r.ok]
    assert [r.query_id for r in failed] == ["component-dependencies"]
    assert failed[0].error == "RuntimeError: store down"
    assert failed[0].events == []
    assert result.context.errors == ["Query(component-dependencies): RuntimeError: store down"]
    assert "store down" in caplog.text

    assert len(result.context.evidence_chain) == 3
    assert result.context.findings
    assert not any(f.query_source == "component-dependencies" for f in result.context.findings)


def test_max_queries_is_capped() -> None:
    executor = _FakeExecutor({})
    run_investigation({"application": "svc", "max_queries": 2}, executor, now=NOW)
    assert len(executor.calls) == 2

    executor = _FakeExecutor({})
    run_investigation({"application": "svc", "max_queries": 50}, executor, now=NOW)
    assert len(executor.calls) == 4

    executor = _FakeExecutor({})
    run_investigation({"application": "svc"}, executor, config=_config(max_queries=1), now=NOW)
    assert [p.id for p in executor.calls] == ["component-errors"]


def test_flow_investigation_runs_single_query() -> None:
    events = [
        {"applicationname": "gateway", "severity": 3, "message": "received", "timestamp": "2024-01-15T09:59:00Z"},
        {"applicationname": "payment-api", "severity": 5, "message": "card declined",
         "timestamp": "2024-01-15T09:59:01Z"},
    ]
    executor = _FakeExecutor({"flow-by-trace": events})

    result = run_investigation({"trace_id": "abc123", "application": "ignored"}, executor, now=NOW)

    assert result.context.mode == InvestigationMode.FLOW
    assert [p.id for p in executor.calls] == ["flow-by-trace"]
    assert "abc123" in executor.calls[0].query
    assert result.context.findings[0].service == "payment-api"
    assert result.context.findings[0].severity == InvestigationSeverity.HIGH
    assert "Investigate payment-api service in detail" in [a.description for a in result.context.next_actions]


def test_assets_generated_on_request() -> None:
    executor = _FakeExecutor(_component_responses())
    result = run_investigation(
        {"application": "payment-service", "generate_assets": True, "severity": "critical"}, executor, now=NOW
    )

    assert result.assets is not None
    assert result.assets.alert.severity == "critical"
    assert "payment-service" in result.assets.alert.condition
    assert result.assets.sop_recommendations
    assert result.sops == []


def test_assets_follow_config_and_need_findings() -> None:
    result = run_investigation(
        {"application": "payment-service"}, _FakeExecutor(_component_responses()),
        config=_config(generate_assets=True, asset_severity="low"), now=NOW,
    )
    assert result.assets is not None
    assert result.assets.alert.priority == "P4"

    empty = run_investigation({}, _FakeExecutor({}), generate_assets=True, now=NOW)
    assert empty.assets is None
    assert empty.sops == []


def test_global_healthy_run() -> None:
    executor = _FakeExecutor({"global-error-rate": ["not a dict", 7]})
    result = run_investigation({}, executor, now=NOW)

    assert result.context.mode == InvestigationMode.GLOBAL
    assert len(executor.calls) == 3
    assert result.context.findings == []
    assert result.context.hypotheses == []
    assert result.results[0].events == []
    assert "healthy" in result.evidence.root_cause.lower()


def test_unsupported_time_range_falls_back_to_default(caplog) -> None:
    executor = _FakeExecutor({})
    with caplog.at_level(logging.WARNING, logger="logrca.pipeline.pipeline"):
        result = run_investigation({"time_range": "3d"}, executor, now=NOW)
    assert "Unsupported time_range" in caplog.text
    assert result.context.time_range.start == NOW - timedelta(hours=1)

    result = run_investigation({"time_range": "15m"}, _FakeExecutor({}), now=NOW)
    assert result.context.time_range.start == NOW - timedelta(minutes=15)
