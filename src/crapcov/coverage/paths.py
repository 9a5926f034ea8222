"""File path normalization and matching between code units and coverage records.

Coverage exporters report paths as the build saw them, which often differ
from the paths of the analyzed sources: relocated build trees, sandboxed
copies under ``/private/var``, symlinked worktrees. Matching is therefore
exact-first, then by path suffix on component boundaries.
"""

from __future__ import annotations

import os
from collections.abc import Collection, Iterable

import structlog

log = structlog.get_logger(__name__)


def normalize(path: str) -> str:
    """Standardize a path without touching the filesystem.

    Collapses separators and resolves ``.``/``..`` lexically. Symlinks are
    not followed, so the path does not need to exist.
    """
    if not path:
        return path
    expanded = os.path.expanduser(path)
    return os.path.normpath(expanded).replace(os.sep, "/")


def _is_suffix(suffix: str, path: str) -> bool:
    """True if ``suffix`` ends ``path`` on a path-component boundary."""
    if suffix == path:
        return True
    if not path.endswith(suffix):
        return False
    if suffix.startswith("/"):
        return True
    return path[-len(suffix) - 1] == "/"


class PathResolver:
    """Resolves query paths against a fixed set of normalized candidate paths.

    Candidates are normalized once at construction. Resolution order:

    1. Exact match on the normalized query.
    2. Any candidate that is a suffix of the query, or that the query is a
       suffix of.
    3. Among several such candidates, the longest one wins; equal lengths
       fall back to lexicographic order.

    A miss returns None: it means "no coverage data for this file".
    """

    __slots__ = ("_candidates",)

    def __init__(self, candidates: Iterable[str]) -> None:
        self._candidates: frozenset[str] = frozenset(normalize(c) for c in candidates)

    @property
    def candidates(self) -> frozenset[str]:
        return self._candidates

    def resolve(self, query: str) -> str | None:
        return resolve(query, self._candidates, normalized=True)


def resolve(
    query: str,
    candidates: Collection[str],
    *,
    normalized: bool = False,
) -> str | None:
    """Match ``query`` to one of ``candidates``.

    Args:
        query: Path to look up.
        candidates: Paths known to the coverage index.
        normalized: Set when ``candidates`` are already normalized.

    Returns:
        The matching candidate (normalized), or None.
    """
    target = normalize(query)
    if not target:
        return None
    pool = candidates if normalized else {normalize(c) for c in candidates}
    if target in pool:
        return target

    matches = [c for c in pool if c and (_is_suffix(target, c) or _is_suffix(c, target))]
    if not matches:
        return None
    if len(matches) > 1:
        matches.sort(key=lambda c: (-len(c), c))
        log.debug("ambiguous_path_match", query=target, chosen=matches[0], candidates=matches)
    return matches[0]
