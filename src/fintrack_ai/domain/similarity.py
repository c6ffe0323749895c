"""
Field-by-field similarity between two transactions.

The composite score is a weighted average of up to four factors. A factor
only takes part when the field is present on both sides, and its weight is
then dropped from the denominator too, so the score is always renormalized
over the factors actually compared.

Name comparison is a plain Levenshtein distance (unit cost insert, delete
and substitute). It is O(n·m) in the two name lengths, which is what makes
an all-pairs scan expensive on long descriptions.
"""
import math

from rapidfuzz.distance import Levenshtein

from fintrack_ai.models import Transaction

AMOUNT_WEIGHT = 0.4
NAME_WEIGHT = 0.3
ACCOUNT_WEIGHT = 0.2
TYPE_WEIGHT = 0.1

# (sub_score, weight)
Factor = tuple[float, float]


def levenshtein_distance(first: str, second: str) -> int:
    return Levenshtein.distance(first, second)


def string_similarity(first: str, second: str) -> float:
    """(longest length - distance) / longest length, 1.0 for two empty strings."""
    return Levenshtein.normalized_similarity(first, second)


def amount_similarity(first: float, second: float) -> float:
    scale = max(abs(first), abs(second))
    if scale == 0:
        return 1.0
    score = 1 - abs(first - second) / scale
    return min(1.0, max(0.0, score))


def _amount_factor(t1: Transaction, t2: Transaction) -> Factor | None:
    # A zero amount counts as not entered.
    if not t1.amount or not t2.amount:
        return None
    return amount_similarity(t1.amount, t2.amount), AMOUNT_WEIGHT


def _name_factor(t1: Transaction, t2: Transaction) -> Factor | None:
    if not t1.name or not t2.name:
        return None
    return string_similarity(t1.name.lower(), t2.name.lower()), NAME_WEIGHT


def _account_factor(t1: Transaction, t2: Transaction) -> Factor | None:
    if not t1.account_id or not t2.account_id:
        return None
    return (1.0 if t1.account_id == t2.account_id else 0.0), ACCOUNT_WEIGHT


def _type_factor(t1: Transaction, t2: Transaction) -> Factor | None:
    if t1.type is None or t2.type is None:
        return None
    return (1.0 if t1.type == t2.type else 0.0), TYPE_WEIGHT


_FACTORS = (_amount_factor, _name_factor, _account_factor, _type_factor)


def compare_factors(t1: Transaction, t2: Transaction) -> list[Factor]:
    factors = []
    for factor_fn in _FACTORS:
        factor = factor_fn(t1, t2)
        if factor is not None:
            factors.append(factor)
    return factors


def calculate_similarity(t1: Transaction, t2: Transaction) -> float:
    factors = compare_factors(t1, t2)
    if not factors:
        return 0.0
    # fsum keeps e.g. 0.4 + 0.3 + 0.1 at exactly 0.8 for threshold checks.
    weighted = math.fsum(score * weight for score, weight in factors)
    total_weight = math.fsum(weight for _, weight in factors)
    return weighted / total_weight
