"""TF-IDF helpers.

The functions here stay independent of any storage backend so they can be
reused by the indexer and unit tested in isolation. Weights follow the
classic formulation:

    tf     = occurrences(term, content) / words(content)
    idf    = ln(total_documents / (document_frequency + 1))
    weight = tf * idf

``idf`` goes negative once a term appears in at least as many prior
documents as the batch holds; those weights are kept as they are.
"""

from __future__ import annotations

import math
from typing import Literal

from tfidf_index.search.analyzers import word_count


TfMode = Literal["substring", "token"]

DEFAULT_TF_MODE: TfMode = "substring"


def count_occurrences(content: str, term: str, *, mode: TfMode = DEFAULT_TF_MODE) -> int:
    """Count ``term`` in ``content``.

    ``substring`` counts non-overlapping, case-sensitive substring matches, so a
    term that is part of a longer word is counted too. ``token`` only counts
    whole whitespace-delimited words.
    """
    if not term:
        return 0
    if mode == "substring":
        return content.count(term)
    if mode == "token":
        return sum(1 for word in content.split() if word == term)
    raise ValueError(f"Unknown TF mode '{mode}'. Available: ['substring', 'token']")


def term_frequency(content: str, term: str, *, mode: TfMode = DEFAULT_TF_MODE) -> float:
    """Return occurrence density of ``term`` in ``content``.

    Empty content has no words; its term frequency is 0.0 rather than a
    division by zero.
    """
    words = word_count(content)
    if words == 0:
        return 0.0
    return count_occurrences(content, term, mode=mode) / words


def inverse_document_frequency(total_documents: int, document_frequency: int) -> float:
    if total_documents <= 0:
        return 0.0
    return math.log(total_documents / (max(document_frequency, 0) + 1))


def tfidf_weight(
    content: str,
    term: str,
    total_documents: int,
    document_frequency: int,
    *,
    mode: TfMode = DEFAULT_TF_MODE,
) -> float:
    tf = term_frequency(content, term, mode=mode)
    if tf == 0.0:
        return 0.0
    return tf * inverse_document_frequency(total_documents, document_frequency)


class TfidfScorer:
    """Binds a TF counting mode to the TF-IDF weight computation."""

    def __init__(self, mode: TfMode = DEFAULT_TF_MODE) -> None:
        if mode not in ("substring", "token"):
            raise ValueError(f"Unknown TF mode '{mode}'. Available: ['substring', 'token']")
        self.mode = mode

    def score(self, content: str, term: str, total_documents: int, document_frequency: int) -> float:
        return tfidf_weight(content, term, total_documents, document_frequency, mode=self.mode)
