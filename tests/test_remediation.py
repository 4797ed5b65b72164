from __future__ import annotations

import logging

import pytest

from logrca.core.models import IncidentContext, InvestigationSeverity
from logrca.remediation.generator import (
    GENERIC_SOP,
    RemediationGenerator,
    hcl_escape,
    normalize_severity,
    service_filter,
)


def _incident(**kw) -> IncidentContext:
    base = {
        "root_cause": "Database connection pool exhausted",
        "affected_services": ["payment-service", "order-service"],
    }
    base.update(kw)
    return IncidentContext(**base)


def _balanced(text: str) -> bool:
    depth = 0
    for ch in text:
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def test_alert_for_high_severity() -> None:
    alert = RemediationGenerator().generate(_incident(), "high").alert

    assert alert.severity == "high"
    assert alert.priority == "P2"
    assert alert.threshold == 10
    assert alert.time_window_seconds == 300
    assert "payment-service" in alert.condition
    assert "order-service" in alert.condition
    assert "payment-service" in alert.query and "order-service" in alert.query

    assert 'resource "ibm_logs_alert"' in alert.terraform
    assert "condition {" in alert.terraform
    assert "threshold           = 10" in alert.terraform
    assert _balanced(alert.terraform)

    for key in ("name", "severity", "condition", "notifications"):
        assert key in alert.native_json
    assert alert.native_json["condition"]["threshold"]["threshold"] == 10


@pytest.mark.parametrize(
    "severity,threshold,window,priority",
    [
        ("critical", 5, 60, "P1"),
        ("high", 10, 300, "P2"),
        ("medium", 25, 600, "P3"),
        ("low", 50, 900, "P4"),
        (InvestigationSeverity.CRITICAL, 5, 60, "P1"),
        ("HIGH", 10, 300, "P2"),
    ],
)
def test_severity_table(severity, threshold, window, priority) -> None:
    alert = RemediationGenerator().generate(_incident(), severity).alert
    assert (alert.threshold, alert.time_window_seconds, alert.priority) == (threshold, window, priority)


def test_unknown_severity_falls_back_to_medium(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="logrca.remediation.generator"):
        assert normalize_severity("sev0") == "medium"
    assert "Unknown remediation severity" in caplog.text
    assert RemediationGenerator().generate(_incident(), "bogus").alert.severity == "medium"


def test_dashboard_widgets_and_documents() -> None:
    dash = RemediationGenerator().generate(_incident(), "high").dashboard

    assert [w.title for w in dash.widgets] == ["Error Rate", "Errors by Service", "Latency (p95)", "Top Error Patterns"]
    assert all("payment-service" in w.query for w in dash.widgets)
    for key in ("name", "widgets", "layout"):
        assert key in dash.native_json
    assert len(dash.native_json["widgets"]) == 4
    assert 'resource "ibm_logs_dashboard"' in dash.terraform
    assert dash.terraform.count("widget {") == 4
    assert _balanced(dash.terraform)


def test_matching_sops_for_root_cause() -> None:
    sops = RemediationGenerator().generate(_incident(), "high").sop_recommendations
    assert sops
    assert "connection" in sops[0].procedure.lower()
    assert sops[0].trigger == "Database connection/query issues detected"


def test_generic_sop_when_nothing_matches() -> None:
    sops = RemediationGenerator().generate(_incident(root_cause="Unexplained behaviour in checkout"), "low").sop_recommendations
    assert sops == [GENERIC_SOP]


def test_free_text_cannot_break_terraform_structure() -> None:
    assets = RemediationGenerator().generate(
        _incident(root_cause='payload {"a": 1}} was "rejected"', affected_services=['evil"}svc']),
        "critical",
    )
    assert _balanced(assets.alert.terraform)
    assert _balanced(assets.dashboard.terraform)
    assert '\\"rejected\\"' in assets.alert.terraform
    assert hcl_escape('x {y} "z"') == 'x y \\"z\\"'


def test_no_services_scopes_to_everything() -> None:
    assets = RemediationGenerator().generate(_incident(affected_services=[]), "medium")
    assert assets.alert.name == "Elevated errors: all services"
    assert "applicationname ==" not in assets.alert.query
    assert assets.alert.native_json["filter"]["application_names"] == []
    assert _balanced(assets.alert.terraform)


def test_quotes_in_service_names_are_escaped_in_queries() -> None:
    assert service_filter(["o'brien"]) == "$l.applicationname == 'o\\'brien'"

    assets = RemediationGenerator().generate(_incident(affected_services=["o'brien"]), "high")
    assert "'o\\'brien'" in assets.alert.query
    assert all("'o\\'brien'" in w.query for w in assets.dashboard.widgets if "applicationname" in w.query)
    assert _balanced(assets.alert.terraform)
    assert _balanced(assets.dashboard.terraform)
