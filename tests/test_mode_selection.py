from __future__ import annotations

import pytest

from logrca.core.models import InvestigationMode
from logrca.strategies.component_mode import ComponentModeStrategy
from logrca.strategies.flow_mode import FlowModeStrategy
from logrca.strategies.global_mode import GlobalModeStrategy
from logrca.strategies.registry import STRATEGY_CLASSES, select_mode, strategy_for


@pytest.mark.parametrize(
    "params,expected",
    [
        ({}, InvestigationMode.GLOBAL),
        ({"application": "x"}, InvestigationMode.COMPONENT),
        ({"trace_id": "y"}, InvestigationMode.FLOW),
        ({"correlation_id": "c"}, InvestigationMode.FLOW),
        ({"application": "x", "trace_id": "y"}, InvestigationMode.FLOW),
        ({"application": "x", "correlation_id": "c"}, InvestigationMode.FLOW),
        ({"application": "", "trace_id": ""}, InvestigationMode.GLOBAL),
        ({"application": "   "}, InvestigationMode.GLOBAL),
        ({"trace_id": 123, "application": "x"}, InvestigationMode.COMPONENT),
        ({"application": None}, InvestigationMode.GLOBAL),
    ],
)
def test_select_mode_precedence(params, expected) -> None:
    assert select_mode(params) == expected


def test_select_mode_never_raises_on_missing_params() -> None:
    assert select_mode(None) == InvestigationMode.GLOBAL  # type: ignore[arg-type]


def test_every_mode_has_a_strategy() -> None:
    assert set(STRATEGY_CLASSES) == set(InvestigationMode)
    assert isinstance(strategy_for(InvestigationMode.GLOBAL), GlobalModeStrategy)
    assert isinstance(strategy_for(InvestigationMode.COMPONENT), ComponentModeStrategy)
    assert isinstance(strategy_for(InvestigationMode.FLOW), FlowModeStrategy)
    assert strategy_for(InvestigationMode.FLOW).name == "flow"
