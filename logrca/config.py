from __future__ import annotations

import os
from dataclasses import dataclass

SUPPORTED_TIME_RANGES = ("15m", "1h", "6h", "24h")
SUPPORTED_ASSET_SEVERITIES = ("critical", "high", "medium", "low")

DEFAULT_MAX_QUERIES = 5
MAX_QUERIES_CAP = 10


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "y", "on")


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_choice(name: str, choices: tuple, default: str) -> str:
    raw = (os.getenv(name) or "").strip().lower()
    return raw if raw in choices else default


def clamp_max_queries(n: int) -> int:
    return max(1, min(int(n), MAX_QUERIES_CAP))


@dataclass(frozen=True)
class InvestigationConfig:
    max_queries: int
    default_time_range: str
    generate_assets: bool
    asset_severity: str
    log_level: str


def load_config() -> InvestigationConfig:
    """
    Load engine settings from env.

    Recognized vars:
    - LOGRCA_MAX_QUERIES=5            (clamped to 1..10)
    - LOGRCA_DEFAULT_TIME_RANGE=1h    (15m | 1h | 6h | 24h)
    - LOGRCA_GENERATE_ASSETS=0|1
    - LOGRCA_ASSET_SEVERITY=high      (critical | high | medium | low)
    - LOGRCA_LOG_LEVEL=INFO
    """
    return InvestigationConfig(
        max_queries=clamp_max_queries(_env_int("LOGRCA_MAX_QUERIES", DEFAULT_MAX_QUERIES)),
        default_time_range=_env_choice("LOGRCA_DEFAULT_TIME_RANGE", SUPPORTED_TIME_RANGES, "1h"),
        generate_assets=_env_bool("LOGRCA_GENERATE_ASSETS", False),
        asset_severity=_env_choice("LOGRCA_ASSET_SEVERITY", SUPPORTED_ASSET_SEVERITIES, "high"),
        log_level=(os.getenv("LOGRCA_LOG_LEVEL") or "").strip().upper() or "INFO",
    )
