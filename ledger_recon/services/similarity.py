"""Concept similarity between a ledger entry and an external record.

Rules are evaluated in a fixed priority order and the first one that applies
decides the score:

1. either concept empty             -> 0.0
2. identical concepts               -> 1.0
3. one concept contains the other   -> 0.8
4. shared or overlapping numbers    -> 0.6..0.9, or 0.65 for a partial (substring) overlap
5. shared tokens                    -> 0.3..0.7
6. short concepts, edit distance    -> 0.0..0.5
7. otherwise                        -> 0.0
"""

from collections.abc import Sequence

from rapidfuzz.distance import Levenshtein

EXACT_SCORE = 1.0
CONTAINMENT_SCORE = 0.8
NUMBER_BASE_SCORE = 0.6
NUMBER_OVERLAP_WEIGHT = 0.3
NUMBER_SUFFIX_SCORE = 0.7
NUMBER_SUBSTRING_SCORE = 0.65
TOKEN_BASE_SCORE = 0.3
TOKEN_OVERLAP_WEIGHT = 0.4
EDIT_DISTANCE_WEIGHT = 0.5
EDIT_DISTANCE_MAX_LENGTH = 20

MIN_PARTIAL_NUMBER_LENGTH = 3
MIN_SUFFIX_NUMBER_LENGTH = 4


def levenshtein_distance(a: str, b: str) -> int:
    """Unit-cost insert/delete/substitute distance."""
    return Levenshtein.distance(a, b)


def _partial_number_score(numbers_a: Sequence[str], numbers_b: Sequence[str]) -> float | None:
    # First qualifying pair wins: entry numbers outer, record numbers inner.
    for num_a in numbers_a:
        for num_b in numbers_b:
            if len(num_a) < MIN_PARTIAL_NUMBER_LENGTH or len(num_b) < MIN_PARTIAL_NUMBER_LENGTH:
                continue
            if num_a in num_b or num_b in num_a:
                return NUMBER_SUBSTRING_SCORE
            # A suffix is also a substring, so pairs reaching this point never qualify
            if max(len(num_a), len(num_b)) >= MIN_SUFFIX_NUMBER_LENGTH and (
                num_a.endswith(num_b) or num_b.endswith(num_a)
            ):
                return NUMBER_SUFFIX_SCORE
    return None


def _number_score(numbers_a: Sequence[str], numbers_b: Sequence[str]) -> float | None:
    if not numbers_a or not numbers_b:
        return None

    common = [number for number in numbers_a if number in numbers_b]
    if common:
        return NUMBER_BASE_SCORE + NUMBER_OVERLAP_WEIGHT * len(common) / max(
            len(numbers_a), len(numbers_b)
        )
    return _partial_number_score(numbers_a, numbers_b)


def _token_score(norm_a: str, norm_b: str) -> float | None:
    tokens_a = norm_a.split()
    tokens_b = norm_b.split()
    common = [token for token in tokens_a if token in tokens_b]
    if not common:
        return None
    return TOKEN_BASE_SCORE + TOKEN_OVERLAP_WEIGHT * len(common) / max(len(tokens_a), len(tokens_b))


def _edit_distance_score(norm_a: str, norm_b: str) -> float:
    if len(norm_a) >= EDIT_DISTANCE_MAX_LENGTH or len(norm_b) >= EDIT_DISTANCE_MAX_LENGTH:
        return 0.0
    distance = levenshtein_distance(norm_a, norm_b)
    max_length = max(len(norm_a), len(norm_b))
    return max(0.0, 1 - distance / max_length) * EDIT_DISTANCE_WEIGHT


def concept_similarity(
    norm_a: str,
    norm_b: str,
    numbers_a: Sequence[str] = (),
    numbers_b: Sequence[str] = (),
) -> float:
    """Score two normalized concepts in [0, 1].

    ``numbers_a``/``numbers_b`` are the digit runs extracted from the raw
    concepts; order matters for the partial number rule.
    """
    if not norm_a or not norm_b:
        return 0.0
    if norm_a == norm_b:
        return EXACT_SCORE
    if norm_a in norm_b or norm_b in norm_a:
        return CONTAINMENT_SCORE

    number_score = _number_score(numbers_a, numbers_b)
    if number_score is not None:
        return number_score

    token_score = _token_score(norm_a, norm_b)
    if token_score is not None:
        return token_score

    return _edit_distance_score(norm_a, norm_b)

