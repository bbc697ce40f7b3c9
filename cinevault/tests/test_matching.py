"""Tests for candidate selection over provider search results."""
from __future__ import annotations

from cinevault.api.services.matching import select_candidate

from conftest import candidate


def test_no_results_is_not_found() -> None:
    outcome = select_candidate("Amélie", [])

    assert outcome.not_found
    assert outcome.candidate is None


def test_single_result_is_confident_even_without_rating() -> None:
    only = candidate(1, "Something Else", vote_average=None)

    outcome = select_candidate("Amélie", [only])

    assert outcome.confident
    assert outcome.candidate == only


def test_unrated_candidates_are_filtered_before_choosing() -> None:
    rated = candidate(3, "Heat", vote_average=7.9)
    results = [
        candidate(1, "Heat", vote_average=None, popularity=90),
        candidate(2, "Heat", vote_average=0, popularity=80),
        rated,
    ]

    outcome = select_candidate("Heat", results)

    assert outcome.confident
    assert outcome.candidate["id"] == 3


def test_all_unrated_candidates_is_not_found() -> None:
    results = [
        candidate(1, "Heat", vote_average=None),
        candidate(2, "Heat", vote_average=0.0),
    ]

    outcome = select_candidate("Heat", results)

    assert outcome.not_found


def test_exact_title_overrides_popularity() -> None:
    fuzzy = candidate(1, "Amélie from Montmartre", popularity=99.0)
    exact = candidate(2, "Amélie", popularity=5.0)

    outcome = select_candidate("amélie ", [fuzzy, exact])

    assert outcome.confident
    assert outcome.candidate["id"] == 2


def test_multiple_exact_matches_are_ambiguous() -> None:
    remake = candidate(1, "Solaris", release_date="2002-11-27")
    original = candidate(2, "Solaris", release_date="1972-03-20")
    other = candidate(3, "Solaris Rising")

    outcome = select_candidate("Solaris", [remake, original, other])

    assert outcome.ambiguous
    assert [item["id"] for item in outcome.candidates] == [1, 2, 3]


def test_no_exact_match_among_rated_candidates_is_ambiguous() -> None:
    results = [candidate(1, "The Thing"), candidate(2, "Thing")]

    outcome = select_candidate("A Thing", results)

    assert outcome.ambiguous
    assert len(outcome.candidates) == 2


def test_ambiguous_set_excludes_unrated_candidates() -> None:
    results = [
        candidate(1, "Crash", vote_average=6.5),
        candidate(2, "Crash", vote_average=None),
        candidate(3, "Crash", vote_average=7.0),
    ]

    outcome = select_candidate("Crash", results)

    assert outcome.ambiguous
    assert {item["id"] for item in outcome.candidates} == {1, 3}
