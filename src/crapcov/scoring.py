"""CRAP (Change Risk Anti-Patterns) scoring.

    crap(c, p) = c^2 * (1 - p/100)^3 + c

A fully covered unit scores its complexity; an untested one scores c^2 + c.
"""

from __future__ import annotations


def crap_score(complexity: int, coverage_percent: float) -> float:
    """Risk score for a unit of cyclomatic ``complexity`` at ``coverage_percent``.

    Args:
        complexity: Complexity count, >= 1.
        coverage_percent: Line coverage in [0, 100].
    """
    cc = float(complexity)
    uncovered = 1.0 - coverage_percent / 100.0
    return cc * cc * uncovered * uncovered * uncovered + cc
