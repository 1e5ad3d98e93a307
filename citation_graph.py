"""Citation graph for one paper: the paper, its authors, and cited papers.

Only graph structure is produced. Node placement and colors belong to
whatever renders the graph.
"""

from __future__ import annotations

from typing import Sequence

from models import CitationContext, CitationGraph, GraphEdge, GraphNode, MetadataRecord

DEFAULT_MAX_CITATIONS = 8
CENTER_TITLE_CHARS = 50
CITATION_TITLE_CHARS = 40
INTENT_LABELS: frozenset[str] = frozenset({"background", "extend", "contrast", "support"})


def build_citation_graph(
    metadata: Sequence[MetadataRecord],
    contexts: Sequence[CitationContext],
    paper_id: str,
    max_citations: int = DEFAULT_MAX_CITATIONS,
) -> CitationGraph | None:
    """Build the graph centered on ``paper_id``, or None if the paper is unknown.

    Citation contexts carry only an intent label, so the cited paper for the
    n-th context is the n-th metadata row.
    """
    main = next((meta for meta in metadata if meta.paper_id == paper_id), None)
    if main is None:
        return None

    center_id = f"paper-{main.paper_id}"
    center = GraphNode(
        node_id=center_id,
        label=_truncate(main.title, CENTER_TITLE_CHARS),
        kind="Paper",
        year=main.year,
        intent_label="main",
    )

    nodes: list[GraphNode] = [center]
    edges: list[GraphEdge] = []

    for author in main.authors:
        author_id = f"author-{author}"
        nodes.append(GraphNode(node_id=author_id, label=author, kind="Author"))
        edges.append(
            GraphEdge(
                edge_id=f"edge-{main.paper_id}-{author}",
                source=center_id,
                target=author_id,
                label="authored by",
            )
        )

    shown = min(max(max_citations, 0), len(contexts))
    for context, related in zip(contexts[:shown], metadata):
        citation_id = f"paper-{related.paper_id}"
        nodes.append(
            GraphNode(
                node_id=citation_id,
                label=_truncate(related.title, CITATION_TITLE_CHARS),
                kind="Citation",
                year=related.year,
                intent_label=context.label,
            )
        )
        edges.append(
            GraphEdge(
                edge_id=f"edge-{main.paper_id}-{related.paper_id}",
                source=center_id,
                target=citation_id,
                label=context.label,
                animated=context.label == "extend",
            )
        )

    return CitationGraph(center=center, nodes=tuple(nodes), edges=tuple(edges))


def intent_counts(graph: CitationGraph) -> dict[str, int]:
    """Count citation edges per intent label, unknown labels grouped as 'other'."""
    counts: dict[str, int] = {}
    for edge in graph.edges:
        if edge.label == "authored by":
            continue
        key = edge.label if edge.label in INTENT_LABELS else "other"
        counts[key] = counts.get(key, 0) + 1
    return counts


def _truncate(title: str, limit: int) -> str:
    return title[:limit] + "..."
