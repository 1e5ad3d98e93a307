"""Embedding similarity and keyword retrieval over the static paper collections.

The ranking functions (``rank_*``, ``synthesize_query_vector``,
``build_research_gap``) are pure: they take already-loaded collections and
never touch the network or disk. The public operations load both collections
on every call and come in two forms:

- ``*_outcome`` returns an :class:`models.Outcome` so callers can tell a data
  failure apart from an empty result.
- The plain form collapses a failure to ``[]`` (or ``None``) after logging it.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Iterable, Sequence

import numpy as np

from data_source import DataSourceError, load_embeddings, load_metadata
from models import (
    UNKNOWN_CATEGORY,
    UNKNOWN_TITLE,
    EmbeddingRecord,
    MetadataRecord,
    Outcome,
    RankedPaper,
    ResearchGap,
)

LOGGER = logging.getLogger(__name__)

CLUSTER_MIN_SHARED_KEYWORDS = 2
CLUSTER_MIN_SIMILARITY = 0.6
DEFAULT_SIMILAR_LIMIT = 5
DEFAULT_SEMANTIC_LIMIT = 10

# Query tokens shorter than this match too many keywords by substring.
_MIN_QUERY_TOKEN_LEN = 3
_TOKEN_RE = re.compile(r"\w+")


def cosine_similarity(vec_a: Sequence[float] | None, vec_b: Sequence[float] | None) -> float:
    """Return the cosine of the angle between two vectors.

    Returns 0.0 for missing or empty input, mismatched lengths, a zero vector,
    or a non-finite result.
    """
    if vec_a is None or vec_b is None or len(vec_a) == 0 or len(vec_a) != len(vec_b):
        return 0.0

    a = np.asarray(vec_a, dtype=float)
    b = np.asarray(vec_b, dtype=float)
    with np.errstate(over="ignore", invalid="ignore"):
        norm_a = np.linalg.norm(a)
        norm_b = np.linalg.norm(b)
        if norm_a == 0 or norm_b == 0:
            return 0.0
        similarity = float(np.dot(a, b) / (norm_a * norm_b))

    return similarity if math.isfinite(similarity) else 0.0


def find_metadata(metadata: Iterable[MetadataRecord], paper_id: str) -> MetadataRecord | None:
    """Look up metadata for a paper id.

    ``paper_id`` takes precedence: the first row whose ``paper_id`` matches is
    returned. Only when none matches is the alternate ``_id`` key consulted.
    """
    rows = list(metadata)
    for row in rows:
        if row.paper_id == paper_id:
            return row
    for row in rows:
        if row.alt_id is not None and row.alt_id == paper_id:
            return row
    return None


def find_embedding(embeddings: Iterable[EmbeddingRecord], paper_id: str) -> EmbeddingRecord | None:
    return next((item for item in embeddings if item.paper_id == paper_id), None)


def to_ranked_paper(
    item: EmbeddingRecord,
    metadata: Sequence[MetadataRecord],
    similarity: float | None = None,
) -> RankedPaper:
    """Join an embedding row with its metadata, using placeholders when absent."""
    meta = find_metadata(metadata, item.paper_id)
    return RankedPaper(
        paper_id=item.paper_id,
        title=meta.title if meta and meta.title else UNKNOWN_TITLE,
        authors=meta.authors if meta else (),
        year=meta.year if meta else 0,
        category=meta.selected_category if meta and meta.selected_category else UNKNOWN_CATEGORY,
        abstract=item.summary,
        keywords=item.keywords,
        fields=item.fields,
        similarity=similarity,
    )


# ---------------------------------------------------------------------------
# Pure ranking
# ---------------------------------------------------------------------------


def rank_by_keywords(
    embeddings: Sequence[EmbeddingRecord],
    metadata: Sequence[MetadataRecord],
    keywords: Sequence[str],
    fields: Sequence[str] | None = None,
) -> list[RankedPaper]:
    """Return papers whose keywords contain any query keyword, in collection order."""
    needles = [kw.lower() for kw in keywords]
    wanted_fields = set(fields or ())

    def matches(item: EmbeddingRecord) -> bool:
        own = [k.lower() for k in item.keywords]
        keyword_match = any(needle in k for needle in needles for k in own)
        field_match = not wanted_fields or any(f in wanted_fields for f in item.fields)
        return keyword_match and field_match

    return [to_ranked_paper(item, metadata) for item in embeddings if matches(item)]


def rank_similar(
    embeddings: Sequence[EmbeddingRecord],
    metadata: Sequence[MetadataRecord],
    target: EmbeddingRecord,
    limit: int = DEFAULT_SIMILAR_LIMIT,
) -> list[RankedPaper]:
    """Rank every other paper by cosine similarity to ``target``, best first."""
    scored = [
        to_ranked_paper(item, metadata, cosine_similarity(target.embedding, item.embedding))
        for item in embeddings
        if item.paper_id != target.paper_id
    ]
    # sorted() is stable, so ties keep collection order.
    scored = sorted(scored, key=lambda p: p.similarity or 0.0, reverse=True)
    return scored[: max(limit, 0)]


def tokenize_query(query: str) -> list[str]:
    """Lowercase word tokens of a free-text query, deduplicated in order."""
    tokens = [tok for tok in _TOKEN_RE.findall(query.lower()) if len(tok) >= _MIN_QUERY_TOKEN_LEN]
    return list(dict.fromkeys(tokens))


def _lexical_weight(item: EmbeddingRecord, tokens: Sequence[str]) -> int:
    """Number of query tokens found in the record's keywords or summary."""
    keywords = [k.lower() for k in item.keywords]
    summary_tokens = set(_TOKEN_RE.findall(item.summary.lower()))
    return sum(
        1
        for tok in tokens
        if tok in summary_tokens or any(tok in k for k in keywords)
    )


def synthesize_query_vector(embeddings: Sequence[EmbeddingRecord], query: str) -> list[float]:
    """Build a query vector as the lexically weighted mean of the embeddings.

    Records are weighted by how many query tokens they mention. When no record
    mentions any token, every record gets equal weight. Records whose
    dimensionality differs from the first usable record are ignored.
    """
    usable = [item for item in embeddings if item.embedding]
    if not usable:
        return []

    dim = len(usable[0].embedding)
    usable = [item for item in usable if len(item.embedding) == dim]

    tokens = tokenize_query(query)
    matrix = np.asarray([item.embedding for item in usable], dtype=float)
    weights = np.asarray([_lexical_weight(item, tokens) for item in usable], dtype=float)
    if weights.sum() == 0:
        LOGGER.debug("No lexical overlap for query=%r, averaging all embeddings", query)
        weights = np.ones(len(usable))

    return np.average(matrix, axis=0, weights=weights).tolist()


def rank_by_query(
    embeddings: Sequence[EmbeddingRecord],
    metadata: Sequence[MetadataRecord],
    query: str,
    min_similarity: float = 0.0,
    limit: int = DEFAULT_SEMANTIC_LIMIT,
) -> list[RankedPaper]:
    query_vector = synthesize_query_vector(embeddings, query)
    if not query_vector:
        return []

    scored = [
        to_ranked_paper(item, metadata, cosine_similarity(query_vector, item.embedding))
        for item in embeddings
    ]
    kept = [p for p in scored if (p.similarity or 0.0) >= min_similarity]
    kept = sorted(kept, key=lambda p: p.similarity or 0.0, reverse=True)
    return kept[: max(limit, 0)]


def build_research_gap(embeddings: Sequence[EmbeddingRecord], target: EmbeddingRecord) -> ResearchGap:
    """Find the target's keywords that no related paper shares.

    The cluster is the target plus every paper sharing at least two of its
    keywords or with embedding similarity above 0.6.
    """
    def related(item: EmbeddingRecord) -> bool:
        own = set(item.keywords)
        shared = sum(1 for k in target.keywords if k in own)
        return (
            shared >= CLUSTER_MIN_SHARED_KEYWORDS
            or cosine_similarity(target.embedding, item.embedding) > CLUSTER_MIN_SIMILARITY
        )

    cluster = (target,) + tuple(
        item for item in embeddings if item.paper_id != target.paper_id and related(item)
    )
    unique_keywords = tuple(
        kw for kw in target.keywords if sum(1 for member in cluster if kw in member.keywords) == 1
    )
    return ResearchGap(
        paper_id=target.paper_id,
        unique_keywords=unique_keywords,
        research_gaps=target.related_work,
        cluster_size=len(cluster),
    )


# ---------------------------------------------------------------------------
# Data-backed operations
# ---------------------------------------------------------------------------


def search_by_keywords_outcome(
    keywords: Sequence[str],
    fields: Sequence[str] | None = None,
    source: str | None = None,
) -> Outcome[list[RankedPaper]]:
    try:
        embeddings, metadata = _load_corpus(source)
    except DataSourceError as exc:
        LOGGER.error("Error in keyword search: %s", exc)
        return Outcome.failure(str(exc))

    results = rank_by_keywords(embeddings, metadata, keywords, fields)
    LOGGER.info("Keyword search: keywords=%s fields=%s matched=%s", list(keywords), fields, len(results))
    return Outcome.success(results)


def search_by_keywords(
    keywords: Sequence[str],
    fields: Sequence[str] | None = None,
    source: str | None = None,
) -> list[RankedPaper]:
    return search_by_keywords_outcome(keywords, fields, source).unwrap_or([])


def find_similar_papers_outcome(
    paper_id: str,
    limit: int = DEFAULT_SIMILAR_LIMIT,
    source: str | None = None,
) -> Outcome[list[RankedPaper]]:
    try:
        embeddings, metadata = _load_corpus(source)
    except DataSourceError as exc:
        LOGGER.error("Error finding similar papers: %s", exc)
        return Outcome.failure(str(exc))

    target = find_embedding(embeddings, paper_id)
    if target is None:
        LOGGER.warning("Paper not found in embeddings: paper_id=%s", paper_id)
        return Outcome.success([])

    return Outcome.success(rank_similar(embeddings, metadata, target, limit))


def find_similar_papers(
    paper_id: str,
    limit: int = DEFAULT_SIMILAR_LIMIT,
    source: str | None = None,
) -> list[RankedPaper]:
    return find_similar_papers_outcome(paper_id, limit, source).unwrap_or([])


def semantic_search_outcome(
    query: str,
    min_similarity: float = 0.0,
    limit: int = DEFAULT_SEMANTIC_LIMIT,
    source: str | None = None,
) -> Outcome[list[RankedPaper]]:
    try:
        embeddings, metadata = _load_corpus(source)
    except DataSourceError as exc:
        LOGGER.error("Error in semantic search: %s", exc)
        return Outcome.failure(str(exc))

    results = rank_by_query(embeddings, metadata, query, min_similarity, limit)
    LOGGER.info(
        "Semantic search: query=%r min_similarity=%s returned=%s",
        query,
        min_similarity,
        len(results),
    )
    return Outcome.success(results)


def semantic_search(
    query: str,
    min_similarity: float = 0.0,
    limit: int = DEFAULT_SEMANTIC_LIMIT,
    source: str | None = None,
) -> list[RankedPaper]:
    return semantic_search_outcome(query, min_similarity, limit, source).unwrap_or([])


def detect_research_gap_outcome(paper_id: str, source: str | None = None) -> Outcome[ResearchGap | None]:
    try:
        embeddings = load_embeddings(source)
    except DataSourceError as exc:
        LOGGER.error("Error detecting research gap: %s", exc)
        return Outcome.failure(str(exc))

    target = find_embedding(embeddings, paper_id)
    if target is None:
        LOGGER.warning("Paper not found in embeddings: paper_id=%s", paper_id)
        return Outcome.success(None)

    return Outcome.success(build_research_gap(embeddings, target))


def detect_research_gap(paper_id: str, source: str | None = None) -> ResearchGap | None:
    return detect_research_gap_outcome(paper_id, source).unwrap_or(None)


def _load_corpus(source: str | None) -> tuple[list[EmbeddingRecord], list[MetadataRecord]]:
    return load_embeddings(source), load_metadata(source)
