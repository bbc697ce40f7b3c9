"""Candidate selection for search results returned by the catalog provider."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

Candidate = Dict[str, Any]


@dataclass(slots=True)
class MatchOutcome:
    """Result of picking a candidate out of a search result list."""

    candidate: Optional[Candidate] = None
    candidates: List[Candidate] = field(default_factory=list)

    @property
    def confident(self) -> bool:
        return self.candidate is not None

    @property
    def ambiguous(self) -> bool:
        return self.candidate is None and bool(self.candidates)

    @property
    def not_found(self) -> bool:
        return self.candidate is None and not self.candidates


def _rated(candidate: Candidate) -> bool:
    try:
        return bool(candidate.get("vote_average")) and float(candidate["vote_average"]) != 0
    except (TypeError, ValueError):
        return False


def _same_title(left: Optional[str], right: Optional[str]) -> bool:
    if left is None or right is None:
        return False
    return left.strip().lower() == right.strip().lower()


def select_candidate(search_title: str, candidates: List[Candidate]) -> MatchOutcome:
    """Pick one candidate confidently, or report ambiguity or absence.

    A single result is trusted as-is. With several results, unrated entries
    are dropped first; among the survivors a unique exact title match wins,
    a lone survivor wins, and anything else is ambiguous.
    """

    if not candidates:
        return MatchOutcome()
    if len(candidates) == 1:
        return MatchOutcome(candidate=candidates[0])

    rated = [candidate for candidate in candidates if _rated(candidate)]
    if not rated:
        return MatchOutcome()
    if len(rated) == 1:
        return MatchOutcome(candidate=rated[0])

    exact = [candidate for candidate in rated if _same_title(candidate.get("title"), search_title)]
    if len(exact) == 1:
        return MatchOutcome(candidate=exact[0])
    return MatchOutcome(candidates=rated)
