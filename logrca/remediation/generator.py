"""
Remediation asset generation: alert + dashboard definitions and SOPs for an incident.

Outputs are text/JSON documents for a human (or a provisioning pipeline) to review and apply.
Nothing here talks to the log platform.

Provisioning documents are emitted as Terraform (HCL). Free text placed into them is escaped
and stripped of braces so the document's block structure stays balanced.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from logrca.core.events import quote_literal
from logrca.core.models import (
    DashboardWidget,
    GeneratedAlert,
    GeneratedDashboard,
    IncidentContext,
    InvestigationFinding,
    InvestigationSeverity,
    RemediationAssets,
    SOPRecommendation,
)
from logrca.diagnostics.heuristics import HeuristicEngine

logger = logging.getLogger(__name__)

# severity -> (error threshold, window seconds, platform priority)
SEVERITY_TABLE: Dict[str, Tuple[int, int, str]] = {
    "critical": (5, 60, "P1"),
    "high": (10, 300, "P2"),
    "medium": (25, 600, "P3"),
    "low": (50, 900, "P4"),
}
DEFAULT_SEVERITY = "medium"

GENERIC_SOP = SOPRecommendation(
    trigger="Incident detected",
    procedure="\n".join(
        [
            "1. Confirm the alert condition against current error rates",
            "2. Identify the first failing service from the timeline",
            "3. Review recent deployments and configuration changes",
            "4. Check health of downstream dependencies",
            "5. Roll back or mitigate, then monitor the error rate",
        ]
    ),
    escalation="If unresolved in 30 minutes, escalate to the owning team's on-call",
)

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def _slug(text: str, max_len: int = 48) -> str:
    s = _SLUG_RE.sub("_", (text or "").lower()).strip("_")
    return s[:max_len].rstrip("_") or "incident"


def hcl_escape(text: str) -> str:
    """Make free text safe inside a double-quoted HCL string (no braces, no interpolation)."""
    s = (text or "").replace("{", "").replace("}", "")
    s = s.replace("\\", "\\\\").replace('"', '\\"')
    return " ".join(s.split())


def _hcl_list(values: Sequence[str]) -> str:
    return "[" + ", ".join(f'"{hcl_escape(v)}"' for v in values) + "]"


def normalize_severity(severity: Union[str, InvestigationSeverity, None]) -> str:
    raw = severity.value if isinstance(severity, InvestigationSeverity) else str(severity or "")
    key = raw.strip().lower()
    if key not in SEVERITY_TABLE:
        logger.warning("Unknown remediation severity %r; using %s", raw, DEFAULT_SEVERITY)
        return DEFAULT_SEVERITY
    return key


def service_filter(services: Sequence[str]) -> str:
    if not services:
        return ""
    return " || ".join(f"$l.applicationname == '{quote_literal(s)}'" for s in services)


def _error_query(services: Sequence[str], tail: str = "") -> str:
    flt = "$m.severity >= ERROR"
    svc = service_filter(services)
    if svc:
        flt += f" && ({svc})"
    q = f"source logs | filter {flt}"
    return f"{q} | {tail}" if tail else q


class RemediationGenerator:
    """
    Usage:
        gen = RemediationGenerator()
        assets = gen.generate(IncidentContext(root_cause="...", affected_services=["api"]), "high")
    """

    def __init__(self, engine: Optional[HeuristicEngine] = None):
        self.engine = engine or HeuristicEngine.default()

    def generate(
        self, ctx: IncidentContext, severity: Union[str, InvestigationSeverity] = "high"
    ) -> RemediationAssets:
        sev = normalize_severity(severity)
        services = [s for s in (ctx.affected_services or []) if s]
        assets = RemediationAssets(
            alert=self.generate_alert(ctx, sev, services),
            dashboard=self.generate_dashboard(ctx, services),
            sop_recommendations=self.recommend_sops(ctx, services),
        )
        logger.info(
            "Generated remediation assets: severity=%s services=%d sops=%d",
            sev,
            len(services),
            len(assets.sop_recommendations),
        )
        return assets

    def generate_alert(self, ctx: IncidentContext, severity: str, services: List[str]) -> GeneratedAlert:
        threshold, window, priority = SEVERITY_TABLE[severity]
        scope = ", ".join(services) if services else "all services"
        name = f"Elevated errors: {scope}"
        description = f"Generated from incident analysis. Root cause: {ctx.root_cause}"
        query = _error_query(services)
        condition = f"More than {threshold} errors in {window // 60} min from {scope}"

        native: Dict[str, Any] = {
            "name": name,
            "description": description,
            "enabled": True,
            "severity": severity,
            "priority": priority,
            "type": "logs_threshold",
            "condition": {
                "threshold": {
                    "condition": "more_than",
                    "threshold": threshold,
                    "time_window_seconds": window,
                    "group_by_keys": ["applicationname"],
                    "condition_match_type": "any",
                }
            },
            "filter": {
                "simple_filter": {"query": "severity:>=5"},
                "application_names": list(services),
            },
            "notifications": {
                "notify_on": "triggered_only",
                "retriggering_period_seconds": window,
                "notify_on_resolved": True,
            },
        }

        res = _slug(f"alert {scope}")
        terraform = "\n".join(
            [
                f'resource "ibm_logs_alert" "{res}" {{',
                "  instance_id = var.logs_instance_id",
                "  region      = var.logs_region",
                f'  name        = "{hcl_escape(name)}"',
                f'  description = "{hcl_escape(description)}"',
                "  is_active   = true",
                f'  severity    = "{severity}"',
                f'  priority    = "{priority.lower()}"',
                "",
                "  condition {",
                "    more_than {",
                f"      threshold           = {threshold}",
                f"      time_window_seconds = {window}",
                '      group_by            = ["applicationname"]',
                "    }",
                "  }",
                "",
                "  filters {",
                '    severities       = ["error", "critical"]',
                f"    application_name = {_hcl_list(services)}",
                f'    query            = "{hcl_escape(query)}"',
                "  }",
                "",
                "  notification_groups {",
                '    group_by_fields = ["applicationname"]',
                "    notify_on       = \"triggered_and_resolved\"",
                "  }",
                "}",
                "",
            ]
        )

        return GeneratedAlert(
            name=name,
            description=description,
            severity=severity,
            priority=priority,
            query=query,
            condition=condition,
            threshold=threshold,
            time_window_seconds=window,
            terraform=terraform,
            native_json=native,
        )

    def generate_dashboard(self, ctx: IncidentContext, services: List[str]) -> GeneratedDashboard:
        scope = ", ".join(services) if services else "all services"
        name = f"Incident overview: {scope}"
        description = f"Generated from incident analysis. Root cause: {ctx.root_cause}"

        latency_flt = service_filter(services)
        latency_query = "source logs | filter $d.duration_ms.exists()"
        if latency_flt:
            latency_query += f" && ({latency_flt})"
        latency_query += (
            " | groupby roundTime($m.timestamp, 1m) as time"
            " aggregate percentile($d.duration_ms, 95) as p95_latency"
        )

        widgets = [
            DashboardWidget(
                title="Error Rate",
                widget_type="line_chart",
                query=_error_query(services, "groupby roundTime($m.timestamp, 1m) as time aggregate count() as errors"),
                description="Errors per minute",
            ),
            DashboardWidget(
                title="Errors by Service",
                widget_type="bar_chart",
                query=_error_query(
                    services, "groupby $l.applicationname aggregate count() as errors | sortby -errors"
                ),
                description="Error volume per affected service",
            ),
            DashboardWidget(
                title="Latency (p95)",
                widget_type="line_chart",
                query=latency_query,
                description="95th percentile request duration",
            ),
            DashboardWidget(
                title="Top Error Patterns",
                widget_type="data_table",
                query=_error_query(
                    services, "groupby $d.message aggregate count() as occurrences | sortby -occurrences | limit 10"
                ),
                description="Most frequent error messages",
            ),
        ]

        native: Dict[str, Any] = {
            "name": name,
            "description": description,
            "widgets": [
                {
                    "title": w.title,
                    "type": w.widget_type,
                    "description": w.description,
                    "query": {"dataprime": {"query": w.query}},
                }
                for w in widgets
            ],
            "layout": {
                "columns": 2,
                "rows": [[widgets[0].title, widgets[1].title], [widgets[2].title, widgets[3].title]],
            },
        }

        res = _slug(f"dashboard {scope}")
        lines = [
            f'resource "ibm_logs_dashboard" "{res}" {{',
            "  instance_id = var.logs_instance_id",
            "  region      = var.logs_region",
            f'  name        = "{hcl_escape(name)}"',
            f'  description = "{hcl_escape(description)}"',
        ]
        for w in widgets:
            lines.extend(
                [
                    "",
                    "  widget {",
                    f'    title = "{hcl_escape(w.title)}"',
                    f'    type  = "{w.widget_type}"',
                    f'    query = "{hcl_escape(w.query)}"',
                    "  }",
                ]
            )
        lines.extend(["}", ""])

        return GeneratedDashboard(
            name=name,
            description=description,
            widgets=widgets,
            terraform="\n".join(lines),
            native_json=native,
        )

    def recommend_sops(self, ctx: IncidentContext, services: List[str]) -> List[SOPRecommendation]:
        root_finding = InvestigationFinding(
            summary=ctx.root_cause or "",
            service=services[0] if services else "",
        )
        sops = self.engine.get_matching_sops([root_finding], [])
        return sops or [GENERIC_SOP]
