"""Investigation pipeline orchestrator.

One run = one fresh SmartInvestigationContext. The pipeline plans queries through the selected
strategy, runs them through a caller-supplied executor, and then analyzes, applies heuristics,
synthesizes evidence and (optionally) generates remediation assets.

Executor failures never abort a run: they are recorded on the ExecutedQuery and in `ctx.errors`.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from logrca.actions.suggestions import deduplicate_actions, sort_actions_by_priority
from logrca.config import SUPPORTED_TIME_RANGES, InvestigationConfig, clamp_max_queries, load_config
from logrca.core.events import clean_query_string
from logrca.core.models import (
    DataPoint,
    Evidence,
    EvidenceSummary,
    ExecutedQuery,
    IncidentContext,
    InvestigationHypothesis,
    InvestigationMode,
    InvestigationResult,
    InvestigationTimeRange,
    QueryPlan,
    SmartInvestigationContext,
)
from logrca.core.time_window import time_range_from_window
from logrca.diagnostics.heuristics import HeuristicEngine
from logrca.remediation.generator import RemediationGenerator
from logrca.strategies.registry import select_mode, strategy_for

logger = logging.getLogger(__name__)

QueryExecutor = Callable[[QueryPlan, InvestigationTimeRange], List[Dict[str, Any]]]

FLOW_IDS_REQUIRED = "Flow mode requires either trace_id or correlation_id"


def _str_param(params: Mapping[str, Any], key: str) -> str:
    v = params.get(key)
    return v.strip() if isinstance(v, str) else ""


def _bool_param(params: Mapping[str, Any], key: str) -> Optional[bool]:
    v = params.get(key)
    if isinstance(v, bool):
        return v
    if isinstance(v, str) and v.strip():
        return v.strip().lower() in ("1", "true", "yes", "y", "on")
    return None


def _max_queries(params: Mapping[str, Any], config: InvestigationConfig) -> int:
    raw = params.get("max_queries")
    if isinstance(raw, bool) or raw in (None, "", 0, "0"):
        return config.max_queries
    try:
        return clamp_max_queries(int(raw))
    except (TypeError, ValueError):
        return config.max_queries


def build_context(
    params: Mapping[str, Any], config: InvestigationConfig, *, now: Optional[datetime] = None
) -> SmartInvestigationContext:
    mode = select_mode(params)
    tr = _str_param(params, "time_range") or config.default_time_range
    if tr not in SUPPORTED_TIME_RANGES:
        logger.warning("Unsupported time_range %r; using %s", tr, config.default_time_range)
        tr = config.default_time_range

    return SmartInvestigationContext(
        mode=mode,
        time_range=time_range_from_window(tr, now=now),
        target_service=_str_param(params, "application"),
        trace_id=_str_param(params, "trace_id"),
        correlation_id=_str_param(params, "correlation_id"),
    )


def execute_plans(
    ctx: SmartInvestigationContext, plans: List[QueryPlan], executor: QueryExecutor
) -> List[ExecutedQuery]:
    results: List[ExecutedQuery] = []
    for plan in plans:
        query = clean_query_string(plan.query)
        metadata = {
            "tier": plan.tier,
            "syntax": "dataprime",
            "start_date": ctx.time_range.start.isoformat(),
            "end_date": ctx.time_range.end.isoformat() if ctx.time_range.end else None,
        }
        started = time.monotonic()
        events: List[Dict[str, Any]] = []
        error: Optional[str] = None
        try:
            raw = executor(plan.model_copy(update={"query": query}), ctx.time_range)
            events = [e for e in (raw or []) if isinstance(e, dict)]
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
            ctx.errors.append(f"Query({plan.id}): {error}")
            logger.warning("Query %s failed: %s", plan.id, error)

        r = ExecutedQuery(
            query_id=plan.id,
            query=query,
            events=events,
            metadata=metadata,
            duration_ms=int((time.monotonic() - started) * 1000),
            error=error,
        )
        results.append(r)
        ctx.query_history.append(r)
        if r.ok:
            ctx.evidence_chain.append(
                Evidence(
                    type="query_result",
                    description=f"{plan.purpose or plan.id}: {len(events)} events",
                    data_points=[DataPoint(metric="events", value=len(events), unit="count")],
                    query=query,
                )
            )
        logger.debug("Query %s -> %d events (%dms)", plan.id, len(events), r.duration_ms)
    return results


def _collect_events(results: List[ExecutedQuery]) -> List[Dict[str, Any]]:
    events: List[Dict[str, Any]] = []
    for r in results:
        events.extend(r.events)
    return events


def _primary_hypothesis(ctx: SmartInvestigationContext, evidence: EvidenceSummary) -> InvestigationHypothesis:
    test_query = next((a.query for a in ctx.next_actions if a.query), "")
    return InvestigationHypothesis(
        id="primary",
        description=evidence.root_cause,
        confidence=evidence.confidence,
        evidence=[f.summary for f in ctx.findings[:5]],
        test_query=test_query,
    )


def run_investigation(
    params: Mapping[str, Any],
    executor: QueryExecutor,
    *,
    config: Optional[InvestigationConfig] = None,
    engine: Optional[HeuristicEngine] = None,
    generator: Optional[RemediationGenerator] = None,
    generate_assets: Optional[bool] = None,
    now: Optional[datetime] = None,
) -> InvestigationResult:
    """
    Run one investigation end to end.

    Params (all optional): application, trace_id, correlation_id, time_range (15m|1h|6h|24h),
    max_queries (capped at 10), generate_assets, severity.
    """
    params = params or {}
    config = config or load_config()
    engine = engine or HeuristicEngine.default()

    ctx = build_context(params, config, now=now)
    strategy = strategy_for(ctx.mode)
    logger.info(
        "Investigation started: mode=%s service=%s trace=%s", ctx.mode.value, ctx.target_service, ctx.trace_id
    )

    if ctx.mode == InvestigationMode.FLOW and not (ctx.trace_id or ctx.correlation_id):
        ctx.errors.append(FLOW_IDS_REQUIRED)
        return InvestigationResult(context=ctx, evidence=strategy.synthesize_evidence(ctx))

    plans = strategy.initial_queries(ctx)[: _max_queries(params, config)]
    results = execute_plans(ctx, plans, executor)

    ctx.findings = strategy.analyze_results(ctx, results)

    events = _collect_events(results)
    actions = engine.analyze_and_suggest(ctx.findings, events) + strategy.suggest_next_actions(ctx)
    ctx.next_actions = sort_actions_by_priority(deduplicate_actions(actions))

    evidence = strategy.synthesize_evidence(ctx)
    if ctx.findings:
        ctx.hypotheses = [_primary_hypothesis(ctx, evidence)]

    want_assets = generate_assets
    if want_assets is None:
        want_assets = _bool_param(params, "generate_assets")
    if want_assets is None:
        want_assets = config.generate_assets

    assets = None
    sops = []
    if want_assets and ctx.findings:
        generator = generator or RemediationGenerator(engine=engine)
        severity = _str_param(params, "severity") or config.asset_severity
        assets = generator.generate(
            IncidentContext(root_cause=evidence.root_cause, affected_services=evidence.affected_services),
            severity,
        )
    elif ctx.findings:
        sops = engine.get_matching_sops(ctx.findings, events)

    logger.info(
        "Investigation finished: mode=%s findings=%d actions=%d errors=%d",
        ctx.mode.value,
        len(ctx.findings),
        len(ctx.next_actions),
        len(ctx.errors),
    )
    return InvestigationResult(context=ctx, evidence=evidence, results=results, sops=sops, assets=assets)
