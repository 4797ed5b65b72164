"""Heuristic diagnostics over investigation findings.

- deterministic phrase matching (no LLM, no I/O)
- suggested follow-up actions and SOPs; nothing here is executed
"""

from .heuristics import HeuristicEngine, HeuristicMatcher

__all__ = ["HeuristicEngine", "HeuristicMatcher"]
