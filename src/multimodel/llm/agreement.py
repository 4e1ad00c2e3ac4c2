"""
Agreement Scoring
=================

Cheap lexical agreement between provider outputs.

Each output is reduced to its set of significant words (lowercased,
whitespace-split, longer than 3 characters). Two outputs agree by the
Jaccard index of their word sets; a group agrees by the mean over every
unordered pair.

Usage:
    from multimodel.llm.agreement import agreement_score

    agreement_score(["same text here", "same text here"])   # 1.0
    agreement_score(["alpha bravo", "charlie delta"])        # 0.0
"""

from itertools import combinations
from typing import FrozenSet, Sequence

MIN_WORD_LENGTH = 4


def significant_words(text: str) -> FrozenSet[str]:
    """Lowercased whitespace-delimited words of at least MIN_WORD_LENGTH chars."""
    return frozenset(word for word in text.lower().split() if len(word) >= MIN_WORD_LENGTH)


def jaccard_similarity(a: FrozenSet[str], b: FrozenSet[str]) -> float:
    """|A ∩ B| / |A ∪ B|. Two empty sets are identical."""
    union = a | b
    if not union:
        return 1.0
    return len(a & b) / len(union)


def agreement_score(outputs: Sequence[str]) -> float:
    """
    Mean pairwise Jaccard similarity of significant words.

    Returns 1.0 for fewer than two outputs.
    """
    if len(outputs) < 2:
        return 1.0

    word_sets = [significant_words(text) for text in outputs]
    scores = [jaccard_similarity(a, b) for a, b in combinations(word_sets, 2)]
    return sum(scores) / len(scores)


__all__ = [
    "MIN_WORD_LENGTH",
    "significant_words",
    "jaccard_similarity",
    "agreement_score",
]
