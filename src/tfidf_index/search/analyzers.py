"""Text normalization and tokenization.

The normalizer is a small composable pipeline in the spirit of Whoosh's
tokenizer/filter chains: a character filter cleans the raw string, then word
filters drop stop words and stem what remains. The normalized string is both
the canonical stored document content and the input of ``tokenize``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
import re
from typing import Protocol

from tfidf_index.search.stemmers import Stemmer, get_stemmer


_NON_ALNUM_OR_SPACE = re.compile(r"[^a-z0-9\s]")
_TERM_SEPARATOR = re.compile(r"[^a-z0-9]+")

DEFAULT_STOPWORDS = [
    "dan",
    "di",
    "yang",
    "untuk",
    "pada",
    "ke",
    "dengan",
]


class WordFilter(Protocol):
    """Protocol implemented by word filters."""

    def __call__(self, words: Iterable[str]) -> Iterator[str]:  # pragma: no cover - interface definition
        ...


class CharacterFilter:
    """Lowercases text and strips everything but ASCII letters, digits and whitespace."""

    def __call__(self, text: str) -> str:
        return _NON_ALNUM_OR_SPACE.sub("", text.lower())


class StopFilter:
    """Removes stopwords from the stream."""

    def __init__(self, stopwords: Sequence[str] | None = None) -> None:
        vocab = stopwords if stopwords is not None else DEFAULT_STOPWORDS
        self.stopwords = {word.strip().lower() for word in vocab if word.strip()}

    def __call__(self, words: Iterable[str]) -> Iterator[str]:
        for word in words:
            if word not in self.stopwords:
                yield word


class StemFilter:
    """Applies a stemmer to every word, dropping words stemmed to nothing."""

    def __init__(self, stemmer: Stemmer) -> None:
        self.stemmer = stemmer

    def __call__(self, words: Iterable[str]) -> Iterator[str]:
        for word in words:
            stemmed = self.stemmer.stem(word)
            if stemmed:
                yield stemmed


class TextNormalizer:
    """Normalizer pipeline: character filter, then word filters, joined by single spaces."""

    def __init__(
        self,
        stemmer: Stemmer | None = None,
        *,
        stopwords: Sequence[str] | None = None,
    ) -> None:
        self.stemmer = stemmer if stemmer is not None else get_stemmer(None)
        self.char_filter = CharacterFilter()
        self.filters: list[WordFilter] = [StopFilter(stopwords), StemFilter(self.stemmer)]

    def normalize(self, raw: str) -> str:
        if not raw:
            return ""
        stream: Iterable[str] = self.char_filter(raw).split()
        for word_filter in self.filters:
            stream = word_filter(stream)
        return " ".join(stream)

    def __call__(self, raw: str) -> str:
        return self.normalize(raw)


def tokenize(normalized: str) -> tuple[str, ...]:
    """Split normalized text into its unique terms, in first-occurrence order."""

    if not normalized:
        return ()
    pieces = _TERM_SEPARATOR.split(normalized.lower())
    return tuple(dict.fromkeys(piece for piece in pieces if piece))


def word_count(text: str) -> int:
    """Number of whitespace-delimited words in ``text``."""

    return len(text.split())
