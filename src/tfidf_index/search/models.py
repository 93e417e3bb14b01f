"""Search data models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Document:
    """A stored document. ``content`` is the normalized text and never changes."""

    id: int
    content: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "content": self.content}


@dataclass(frozen=True, slots=True)
class Term:
    """A unique lowercase alphanumeric term."""

    id: int
    text: str


@dataclass(frozen=True, slots=True)
class Posting:
    """Edge of the inverted index: the TF-IDF weight of a term in a document."""

    document_id: int
    term_id: int
    weight: float


@dataclass(frozen=True, slots=True)
class SearchHit:
    """Represents a scored document produced by the searcher."""

    document: Document
    score: float

    @property
    def id(self) -> int:
        return self.document.id

    @property
    def content(self) -> str:
        return self.document.content

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"id": self.document.id, "content": self.document.content, "score": self.score}
