from citation_graph import build_citation_graph, intent_counts
from models import CitationContext, MetadataRecord


def _meta(paper_id: str, title: str, authors: tuple[str, ...] = ()) -> MetadataRecord:
    return MetadataRecord(paper_id=paper_id, title=title, authors=authors, year=2021)


_METADATA = [
    _meta("P0", "A Study of Gravitational Waves in Binary Systems With Many Words", ("Kip", "Rai")),
    _meta("P1", "Extending Numerical Relativity"),
    _meta("P2", "Contrasting Observations"),
]


def test_unknown_paper_returns_none() -> None:
    assert build_citation_graph(_METADATA, [], "missing") is None


def test_center_and_author_nodes() -> None:
    graph = build_citation_graph(_METADATA, [], "P0")

    assert graph is not None
    assert graph.center.node_id == "paper-P0"
    assert graph.center.kind == "Paper"
    assert graph.center.intent_label == "main"
    assert graph.center.label == _METADATA[0].title[:50] + "..."

    author_nodes = [n for n in graph.nodes if n.kind == "Author"]
    assert [n.node_id for n in author_nodes] == ["author-Kip", "author-Rai"]
    assert all(e.label == "authored by" for e in graph.edges)
    assert {e.target for e in graph.edges} == {"author-Kip", "author-Rai"}


def test_citation_nodes_are_positional() -> None:
    contexts = [CitationContext("background"), CitationContext("extend"), CitationContext("contrast")]
    graph = build_citation_graph(_METADATA, contexts, "P2")

    citations = [n for n in graph.nodes if n.kind == "Citation"]
    assert [n.node_id for n in citations] == ["paper-P0", "paper-P1", "paper-P2"]
    assert [n.intent_label for n in citations] == ["background", "extend", "contrast"]

    extend_edge = next(e for e in graph.edges if e.label == "extend")
    assert extend_edge.animated is True
    assert extend_edge.edge_id == "edge-P2-P1"
    assert not any(e.animated for e in graph.edges if e.label != "extend")


def test_citations_capped_by_max_and_metadata_length() -> None:
    contexts = [CitationContext("support")] * 20

    capped = build_citation_graph(_METADATA, contexts, "P1", max_citations=2)
    assert len([n for n in capped.nodes if n.kind == "Citation"]) == 2

    # Only three metadata rows exist to pair with the contexts.
    uncapped = build_citation_graph(_METADATA, contexts, "P1")
    assert len([n for n in uncapped.nodes if n.kind == "Citation"]) == 3


def test_intent_counts_groups_unknown_labels() -> None:
    contexts = [CitationContext("support"), CitationContext("support"), CitationContext("weird")]
    graph = build_citation_graph(_METADATA, contexts, "P0")

    assert intent_counts(graph) == {"support": 2, "other": 1}
