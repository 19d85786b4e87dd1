"""Tests for the date component and the combined match score."""

from datetime import date, timedelta

import pytest

from ledger_recon.services.scoring import score_date, score_match
from tests.factories import DEFAULT_DATE, make_entry, make_record


def test_score_date_same_day() -> None:
    assert score_date(date(2024, 1, 1), date(2024, 1, 1), 3) == 0.3


def test_score_date_inside_window_decays_linearly() -> None:
    assert score_date(date(2024, 1, 1), date(2024, 1, 2), 3) == pytest.approx(0.3 * (1 - 1 / 6))
    assert score_date(date(2024, 1, 3), date(2024, 1, 1), 4) == pytest.approx(0.3 * (1 - 2 / 8))


def test_score_date_window_edge_keeps_half_weight() -> None:
    assert score_date(date(2024, 1, 1), date(2024, 1, 4), 3) == pytest.approx(0.15)


def test_score_date_outside_window() -> None:
    assert score_date(date(2024, 1, 1), date(2024, 1, 5), 3) == 0.0


def test_score_date_zero_tolerance_only_rewards_same_day() -> None:
    assert score_date(date(2024, 1, 1), date(2024, 1, 1), 0) == 0.3
    assert score_date(date(2024, 1, 1), date(2024, 1, 2), 0) == 0.0


def test_identical_concept_same_day_scores_exactly_one() -> None:
    entry = make_entry("Transfer ACME")
    record = make_record("TRANSFER acme")
    assert score_match(entry, record, 3) == pytest.approx(1.0)


def test_cheque_partial_number_scenario() -> None:
    entry = make_entry("Cheque 661112")
    record = make_record("CHQ 1112")
    assert score_match(entry, record, 3) == pytest.approx(0.755)


def test_score_uses_record_additional_text() -> None:
    entry = make_entry("Invoice 4410")
    plain = make_record("Transfer")
    with_additional = make_record("Transfer", additional="Invoice 4410")
    assert score_match(entry, with_additional, 3) > score_match(entry, plain, 3)


def test_date_only_score_when_concepts_differ() -> None:
    entry = make_entry("completely unrelated description")
    record = make_record("nothing in common here at all", txn_date=DEFAULT_DATE + timedelta(days=1))
    assert score_match(entry, record, 2) == pytest.approx(0.3 * (1 - 1 / 4))
