"""Deterministic markdown report renderer.

Depends only on the InvestigationResult; no I/O. Sections:
- header (mode, window, target)
- query execution, root cause, impact, affected services
- findings (top 10, severity-sorted) and suggested next actions (top 5)
- generated assets, or recommended procedures when no assets were generated
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import List, Optional

from logrca.actions.suggestions import sort_findings_by_severity
from logrca.core.events import clean_query_string, truncate_text
from logrca.core.models import InvestigationResult, RemediationAssets, SOPRecommendation, utcnow

MAX_FINDINGS = 10
MAX_ACTIONS = 5
MAX_QUERY_LEN = 100


def _fmt_time(dt: Optional[datetime]) -> str:
    return dt.strftime("%Y-%m-%d %H:%M UTC") if dt else "now"


def _render_sops(sops: List[SOPRecommendation], lines: List[str]) -> None:
    for sop in sops:
        lines.append(f"**{sop.trigger}**")
        lines.append("")
        lines.append(sop.procedure)
        lines.append("")
        lines.append(f"_Escalation: {sop.escalation}_")
        lines.append("")


def format_assets_as_markdown(assets: RemediationAssets) -> str:
    lines: List[str] = []
    alert = assets.alert
    lines.append(f"### Alert: {alert.name}")
    lines.append("")
    lines.append(f"- Severity: `{alert.severity}` ({alert.priority})")
    lines.append(f"- Condition: {alert.condition}")
    lines.append(f"- Query: `{alert.query}`")
    lines.append("")
    lines.append("```hcl")
    lines.append(alert.terraform.rstrip())
    lines.append("```")
    lines.append("")
    lines.append("<details><summary>Alert JSON</summary>")
    lines.append("")
    lines.append("```json")
    lines.append(json.dumps(alert.native_json, indent=2, sort_keys=True))
    lines.append("```")
    lines.append("</details>")
    lines.append("")

    dash = assets.dashboard
    lines.append(f"### Dashboard: {dash.name}")
    lines.append("")
    for w in dash.widgets:
        lines.append(f"- **{w.title}** ({w.widget_type}): {w.description}")
    lines.append("")
    lines.append("```hcl")
    lines.append(dash.terraform.rstrip())
    lines.append("```")
    lines.append("")

    if assets.sop_recommendations:
        lines.append("### Standard Operating Procedures")
        lines.append("")
        _render_sops(assets.sop_recommendations, lines)

    return "\n".join(lines)


def render_report(result: InvestigationResult, *, generated_at: Optional[datetime] = None) -> str:
    ctx = result.context
    ev = result.evidence
    ts = generated_at or utcnow()

    lines: List[str] = []
    lines.append("# Investigation Report")
    lines.append("")
    lines.append(f"**Mode:** `{ctx.mode.value}`")
    lines.append(f"**Time Range:** {_fmt_time(ctx.time_range.start)} to {_fmt_time(ctx.time_range.end)}")
    if ctx.target_service:
        lines.append(f"**Target Service:** `{ctx.target_service}`")
    if ctx.trace_id:
        lines.append(f"**Trace ID:** `{ctx.trace_id}`")
    if ctx.correlation_id:
        lines.append(f"**Correlation ID:** `{ctx.correlation_id}`")
    lines.append(f"**Generated:** {ts.strftime('%Y-%m-%d %H:%M:%S')}")
    lines.append("")

    lines.append("## Query Execution")
    lines.append("")
    if not result.results:
        lines.append("- No queries executed.")
    for r in result.results:
        status = "SUCCESS" if r.ok else f"ERROR ({r.error})"
        lines.append(f"- **{r.query_id}**: {status} ({len(r.events)} events, {r.duration_ms}ms)")
    lines.append("")

    lines.append("## Root Cause")
    lines.append("")
    lines.append(f"> **{ev.root_cause}**")
    lines.append("")
    lines.append(f"_Confidence: {ev.confidence * 100:.0f}%_")
    lines.append("")
    if ev.impact_summary:
        lines.append(f"**Impact:** {ev.impact_summary}")
        lines.append("")
    if ev.affected_services:
        lines.append(f"**Affected Services:** {', '.join(ev.affected_services)}")
        lines.append("")

    if ctx.findings:
        lines.append("## Findings")
        lines.append("")
        ordered = sort_findings_by_severity(ctx.findings)
        for i, f in enumerate(ordered[:MAX_FINDINGS], start=1):
            lines.append(f"{i}. **[{f.severity.value.upper()}]** {f.summary}")
            if f.evidence:
                lines.append(f"   - Evidence: {f.evidence}")
            if f.service:
                lines.append(f"   - Service: {f.service}")
        if len(ordered) > MAX_FINDINGS:
            lines.append("")
            lines.append(f"_... and {len(ordered) - MAX_FINDINGS} more findings_")
        lines.append("")

    if ctx.next_actions:
        lines.append("## Suggested Next Actions")
        lines.append("")
        for i, a in enumerate(ctx.next_actions[:MAX_ACTIONS], start=1):
            lines.append(f"**{i}. {a.description}**")
            if a.rationale:
                lines.append(f"   - Rationale: {a.rationale}")
            if a.query:
                lines.append(f"   - Query: `{truncate_text(clean_query_string(a.query), MAX_QUERY_LEN)}`")
        lines.append("")

    if result.assets is not None:
        lines.append("## Generated Assets")
        lines.append("")
        lines.append(format_assets_as_markdown(result.assets))
    elif result.sops:
        lines.append("## Recommended Procedures")
        lines.append("")
        _render_sops(result.sops, lines)

    if ctx.errors:
        lines.append("## Errors")
        lines.append("")
        for e in ctx.errors:
            lines.append(f"- {e}")
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"
