"""Pluggable stemmers used by the text normalizer.

A stemmer is anything with a ``stem(word) -> str`` method. The registry below
maps configuration names to factories so the concrete library is only loaded
when it is actually selected.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol


class Stemmer(Protocol):
    """Protocol implemented by stemmers."""

    def stem(self, word: str) -> str:  # pragma: no cover - interface definition
        ...


class IdentityStemmer:
    """Stemmer that returns words unchanged."""

    def stem(self, word: str) -> str:
        return word


class SastrawiStemmer:
    """Indonesian stemmer backed by PySastrawi."""

    def __init__(self) -> None:
        from Sastrawi.Stemmer.StemmerFactory import StemmerFactory

        self._stemmer = StemmerFactory().create_stemmer()

    def stem(self, word: str) -> str:
        if not word:
            return word
        return self._stemmer.stem(word)


class PorterStemmer:
    """English Porter stemmer backed by NLTK."""

    def __init__(self) -> None:
        from nltk.stem import PorterStemmer as _NltkPorterStemmer

        self._stemmer = _NltkPorterStemmer()

    def stem(self, word: str) -> str:
        if not word:
            return word
        return self._stemmer.stem(word)


_STEMMER_FACTORIES: dict[str, Callable[[], Stemmer]] = {
    "sastrawi": SastrawiStemmer,
    "porter": PorterStemmer,
    "identity": IdentityStemmer,
}

DEFAULT_STEMMER = "sastrawi"


def available_stemmers() -> list[str]:
    return sorted(_STEMMER_FACTORIES)


def get_stemmer(name: str | None) -> Stemmer:
    """Return stemmer by name, defaulting to the Indonesian stemmer."""

    if name is None:
        return _STEMMER_FACTORIES[DEFAULT_STEMMER]()
    normalized = name.strip().lower()
    if normalized not in _STEMMER_FACTORIES:
        msg = f"Unknown stemmer '{name}'. Available: {available_stemmers()}"
        raise ValueError(msg)
    return _STEMMER_FACTORIES[normalized]()
