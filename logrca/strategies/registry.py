from __future__ import annotations

from typing import Any, Dict, Mapping, Type

from logrca.core.models import InvestigationMode
from logrca.strategies.base import QueryStrategy
from logrca.strategies.component_mode import ComponentModeStrategy
from logrca.strategies.flow_mode import FlowModeStrategy
from logrca.strategies.global_mode import GlobalModeStrategy

STRATEGY_CLASSES: Dict[InvestigationMode, Type[QueryStrategy]] = {
    InvestigationMode.GLOBAL: GlobalModeStrategy,
    InvestigationMode.COMPONENT: ComponentModeStrategy,
    InvestigationMode.FLOW: FlowModeStrategy,
}

_missing = set(InvestigationMode) - set(STRATEGY_CLASSES)
if _missing:
    raise RuntimeError(f"No strategy registered for modes: {sorted(m.value for m in _missing)}")


def _param(params: Mapping[str, Any], key: str) -> str:
    v = params.get(key) if params else None
    return v.strip() if isinstance(v, str) else ""


def select_mode(params: Mapping[str, Any]) -> InvestigationMode:
    """
    trace_id / correlation_id -> flow; else application -> component; else global.

    Only non-empty strings count. Never raises.
    """
    if _param(params, "trace_id") or _param(params, "correlation_id"):
        return InvestigationMode.FLOW
    if _param(params, "application"):
        return InvestigationMode.COMPONENT
    return InvestigationMode.GLOBAL


def strategy_for(mode: InvestigationMode) -> QueryStrategy:
    return STRATEGY_CLASSES[InvestigationMode(mode)]()
