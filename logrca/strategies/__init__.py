"""Per-mode investigation strategies.

Each strategy plans queries, turns executed results into findings, proposes follow-ups and
synthesizes evidence. Strategies never execute queries themselves.
"""

from .base import QueryStrategy
from .registry import select_mode, strategy_for

__all__ = ["QueryStrategy", "select_mode", "strategy_for"]
