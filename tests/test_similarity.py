"""Tests for the concept similarity rule chain."""

import pytest

from ledger_recon.services.normalization import extract_numbers, normalize
from ledger_recon.services.similarity import (
    concept_similarity,
    levenshtein_distance,
)


def _score(a: str, b: str) -> float:
    return concept_similarity(normalize(a), normalize(b), extract_numbers(a), extract_numbers(b))


def test_empty_concept_scores_zero() -> None:
    assert concept_similarity("", "anything") == 0.0
    assert concept_similarity("anything", "") == 0.0


def test_identical_after_normalization() -> None:
    assert _score("ACME-Corp.", "acme corp") == 1.0


def test_containment_scores_point_eight() -> None:
    assert _score("Transfer ACME", "transfer acme invoice 12") == 0.8


def test_containment_is_checked_before_numbers() -> None:
    # Shared number 12 would score 0.9, containment wins first
    assert _score("fee 12", "bank fee 12") == 0.8


def test_common_numbers_scale_with_overlap() -> None:
    # numbers: ["2024", "15"] vs ["15"] -> 1 common of max 2
    assert _score("Invoice 2024 item 15", "Payment ref 15") == pytest.approx(0.6 + 0.3 * 1 / 2)


def test_all_numbers_common_scores_point_nine() -> None:
    assert _score("Factura 3310", "Pago 3310") == pytest.approx(0.9)


def test_numeric_suffix_is_scored_as_substring() -> None:
    # A trailing match is also a containment, so the substring score applies
    assert _score("Cheque 661112", "CHQ 1112") == pytest.approx(0.65)
    assert _score("Order 1234", "Ref 91234") == pytest.approx(0.65)


def test_numeric_substring_scores_point_six_five() -> None:
    assert _score("Order 912345", "Ref 234") == pytest.approx(0.65)


def test_numeric_partial_requires_three_digits() -> None:
    # "12" is too short for the partial rule, falls through to tokens/edit distance
    score = _score("Ref 9912", "Id 12")
    assert score != 0.65
    assert score != 0.7


def test_partial_match_skips_short_numbers() -> None:
    # "12" is skipped, the ("123456", "345") pair qualifies
    assert _score("A 12 B 123456", "C 345") == pytest.approx(0.65)
    assert _score("A 5555 B 123456", "C 555 D 345") == pytest.approx(0.65)


def test_token_overlap() -> None:
    # tokens: [pago, proveedor, norte] vs [proveedor, sur]
    assert _score("Pago proveedor norte", "proveedor sur") == pytest.approx(0.3 + 0.4 * 1 / 3)


def test_edit_distance_for_short_strings() -> None:
    # "kitten" -> "sitting" is 3 edits over length 7
    assert _score("kitten", "sitting") == pytest.approx((1 - 3 / 7) * 0.5)


def test_long_unrelated_strings_score_zero() -> None:
    assert _score("completely unrelated description", "nothing in common here at all") == 0.0


def test_levenshtein_distance_unit_costs() -> None:
    assert levenshtein_distance("abc", "abc") == 0
    assert levenshtein_distance("abc", "abd") == 1
    assert levenshtein_distance("abc", "ab") == 1
    assert levenshtein_distance("", "abc") == 3
