"""
Pytest config.

Local imports like `import logrca` and `import main` rely on the repo root being on sys.path.

In some environments (e.g. when invoking a global `pytest` entrypoint without an editable
install), that doesn't happen reliably during collection. We pin the behavior here so tests can
always import the local `logrca/` package.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()


@pytest.fixture(autouse=True)
def _isolate_logrca_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Tests must not pick up LOGRCA_* settings from the developer's shell."""
    for name in (
        "LOGRCA_MAX_QUERIES",
        "LOGRCA_DEFAULT_TIME_RANGE",
        "LOGRCA_GENERATE_ASSETS",
        "LOGRCA_ASSET_SEVERITY",
        "LOGRCA_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fixtures_dir() -> Path:
    return Path(__file__).resolve().parent / "fixtures"
