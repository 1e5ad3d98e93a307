"""Shared typed models for the paper explorer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")

UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_CATEGORY = "Unknown"


@dataclass(frozen=True, slots=True)
class EmbeddingRecord:
    """One row of the vector embeddings collection."""

    paper_id: str
    summary: str
    keywords: tuple[str, ...]
    fields: tuple[str, ...]
    novelty: str
    related_work: tuple[str, ...]
    embedding: tuple[float, ...]


@dataclass(frozen=True, slots=True)
class MetadataRecord:
    """One row of the paper metadata collection.

    ``alt_id`` holds the optional ``_id`` key, consulted only when no row
    matches on ``paper_id``.
    """

    paper_id: str
    title: str
    authors: tuple[str, ...]
    year: int
    alt_id: str | None = None
    journal_ref: str | None = None
    selected_category: str | None = None


@dataclass(frozen=True, slots=True)
class AbstractRecord:
    abstract: str


@dataclass(frozen=True, slots=True)
class CitationContext:
    label: str


@dataclass(frozen=True, slots=True)
class NlpRecord:
    paper_id: str
    fields: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class RankedPaper:
    """Paper view returned by the retrieval operations."""

    paper_id: str
    title: str
    authors: tuple[str, ...]
    year: int
    category: str
    abstract: str
    keywords: tuple[str, ...]
    fields: tuple[str, ...]
    similarity: float | None = None


@dataclass(frozen=True, slots=True)
class ResearchGap:
    paper_id: str
    unique_keywords: tuple[str, ...]
    research_gaps: tuple[str, ...]
    cluster_size: int


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """Paper row shown on the browse page."""

    paper_id: str
    title: str
    authors: tuple[str, ...]
    year: int
    venue: str
    topics: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class PaperDetail:
    paper_id: str
    title: str
    authors: tuple[str, ...]
    year: int
    venue: str
    abstract: str


@dataclass(frozen=True, slots=True)
class GraphNode:
    node_id: str
    label: str
    kind: str  # Paper | Author | Citation
    year: int | None = None
    intent_label: str | None = None


@dataclass(frozen=True, slots=True)
class GraphEdge:
    edge_id: str
    source: str
    target: str
    label: str
    animated: bool = False


@dataclass(frozen=True, slots=True)
class CitationGraph:
    center: GraphNode
    nodes: tuple[GraphNode, ...] = field(default_factory=tuple)
    edges: tuple[GraphEdge, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class Outcome(Generic[T]):
    """Result of a data-backed operation: a value on success, a cause on failure."""

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> Outcome[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> Outcome[T]:
        return cls(error=error)

    def unwrap_or(self, default: T) -> T:
        """Collapse to the value, or ``default`` when the operation failed."""
        if not self.ok or self.value is None:
            return default
        return self.value
