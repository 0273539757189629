"""
Fuzzy matching of benchmark competency names to catalog competency names.

Occupation benchmarks name competencies in their own vocabulary ("Critical
Thinking Skills" vs. "Critical Thinking"). Names are normalized to lowercase
alphanumeric tokens, then compared by:

1. Containment: when one normalized name contains the other, the score is
   the length ratio (shorter / longer). A contained name of at least
   ``MIN_CONTAINMENT_LENGTH`` characters scores at least
   ``CONTAINMENT_FLOOR`` since long substrings are rarely coincidental.
2. Otherwise token Jaccard similarity.

A pair matches when the score reaches ``MATCH_THRESHOLD``.
"""

import re
from typing import Iterable, Optional, Set, Tuple, TypeVar

MATCH_THRESHOLD = 0.6
MIN_CONTAINMENT_LENGTH = 8
CONTAINMENT_FLOOR = 0.7

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")

T = TypeVar("T")


def normalize_name(name: str) -> str:
    return _NON_ALNUM.sub("", name.lower()).strip()


def tokenize(normalized: str) -> Set[str]:
    return set(normalized.split())


def similarity(a: str, b: str) -> float:
    """Similarity in [0, 1] between two raw names."""
    left, right = normalize_name(a), normalize_name(b)
    if not left or not right:
        return 0.0
    if left == right:
        return 1.0

    shorter, longer = sorted((left, right), key=len)
    if shorter in longer:
        ratio = len(shorter) / len(longer)
        if len(shorter) >= MIN_CONTAINMENT_LENGTH:
            return max(ratio, CONTAINMENT_FLOOR)
        return ratio

    left_tokens, right_tokens = tokenize(left), tokenize(right)
    union = left_tokens | right_tokens
    if not union:
        return 0.0
    return len(left_tokens & right_tokens) / len(union)


def best_match(
    name: str,
    candidates: Iterable[Tuple[str, T]],
    threshold: float = MATCH_THRESHOLD,
) -> Optional[T]:
    """
    Return the value of the best-scoring candidate at or above ``threshold``.

    ``candidates`` yields ``(candidate_name, value)`` pairs. Ties keep the
    first candidate seen.
    """
    best_value: Optional[T] = None
    best_score = threshold
    found = False
    for candidate_name, value in candidates:
        score = similarity(name, candidate_name)
        if score > best_score or (not found and score >= threshold):
            best_value, best_score, found = value, score, True
    return best_value
