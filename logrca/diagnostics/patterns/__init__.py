"""Heuristic matcher library.

Adding new matchers:
1. Define a HeuristicMatcher (phrases, action, optional SOP) in heuristic_patterns.py
   or in a new module next to it
2. Add it to `default_matchers()` at the position it should be evaluated
"""

from logrca.diagnostics.patterns.heuristic_patterns import default_matchers

__all__ = ["default_matchers"]
