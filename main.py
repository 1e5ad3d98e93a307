"""CLI entrypoint for the CiteMind paper explorer."""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from typing import Any, Sequence

from dotenv import load_dotenv

from catalog import YEAR_RANGES, build_catalog, filter_catalog, find_paper_detail
from citation_graph import DEFAULT_MAX_CITATIONS, build_citation_graph, intent_counts
from csv_sink import write_ranked_papers
from data_source import (
    DataSourceError,
    load_abstracts,
    load_citation_contexts,
    load_metadata,
    load_nlp_output,
)
from models import Outcome, RankedPaper
from semantic_search import (
    DEFAULT_SEMANTIC_LIMIT,
    DEFAULT_SIMILAR_LIMIT,
    detect_research_gap_outcome,
    find_similar_papers_outcome,
    search_by_keywords_outcome,
    semantic_search_outcome,
)

EXIT_OK = 0
EXIT_DATA_ERROR = 1
EXIT_NOT_FOUND = 2


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Explore papers in the CiteMind JSON collections")
    parser.add_argument(
        "--source",
        default=None,
        help="Directory or http(s) base URL holding the JSON files (default: CITEMIND_DATA_SOURCE)",
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("--csv", default=None, metavar="PATH", help="Also write ranked results to a CSV file")
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Papers whose keywords contain any of the given keywords")
    search.add_argument("keywords", nargs="+")
    search.add_argument("--field", action="append", default=[], help="Restrict to a field code (repeatable)")

    similar = sub.add_parser("similar", help="Papers with the closest embeddings to a paper")
    similar.add_argument("paper_id")
    similar.add_argument("--limit", type=int, default=DEFAULT_SIMILAR_LIMIT)

    semantic = sub.add_parser("semantic", help="Rank papers against a free-text query")
    semantic.add_argument("query")
    semantic.add_argument("--min-similarity", type=float, default=0.0)
    semantic.add_argument("--limit", type=int, default=DEFAULT_SEMANTIC_LIMIT)

    gap = sub.add_parser("gap", help="Keywords unique to a paper within its related cluster")
    gap.add_argument("paper_id")

    browse = sub.add_parser("browse", help="Filter the catalog by title/author, year range and topic")
    browse.add_argument("--query", default="")
    browse.add_argument("--year", action="append", default=[], choices=YEAR_RANGES)
    browse.add_argument("--topic", action="append", default=[])

    detail = sub.add_parser("detail", help="Show one paper's metadata and abstract")
    detail.add_argument("paper_id")

    graph = sub.add_parser("graph", help="Citation graph around one paper")
    graph.add_argument("paper_id")
    graph.add_argument("--max-citations", type=int, default=DEFAULT_MAX_CITATIONS)

    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> int:
    """Dispatch one sub-command and return the process exit code."""
    if args.command == "search":
        return _emit_ranked(search_by_keywords_outcome(args.keywords, args.field, args.source), args)
    if args.command == "similar":
        return _emit_ranked(find_similar_papers_outcome(args.paper_id, args.limit, args.source), args)
    if args.command == "semantic":
        outcome = semantic_search_outcome(args.query, args.min_similarity, args.limit, args.source)
        return _emit_ranked(outcome, args)
    if args.command == "gap":
        return run_gap(args)
    if args.command == "browse":
        return run_browse(args)
    if args.command == "detail":
        return run_detail(args)
    if args.command == "graph":
        return run_graph(args)
    raise ValueError(f"Unknown command: {args.command}")


def run_gap(args: argparse.Namespace) -> int:
    outcome = detect_research_gap_outcome(args.paper_id, args.source)
    if not outcome.ok:
        logging.error("Research gap unavailable: %s", outcome.error)
        return EXIT_DATA_ERROR
    if outcome.value is None:
        logging.warning("No embedding for paper_id=%s", args.paper_id)
        return EXIT_NOT_FOUND

    gap = outcome.value
    if args.json:
        _print_json(gap)
    else:
        print(f"Paper: {gap.paper_id} (cluster of {gap.cluster_size})")
        print(f"Unique keywords: {', '.join(gap.unique_keywords) or '-'}")
        for text in gap.research_gaps:
            print(f"  - {text}")
    return EXIT_OK


def run_browse(args: argparse.Namespace) -> int:
    try:
        metadata = load_metadata(args.source)
        nlp_records = load_nlp_output(args.source)
    except DataSourceError as exc:
        logging.error("Error loading papers: %s", exc)
        return EXIT_DATA_ERROR

    entries = filter_catalog(
        build_catalog(metadata, nlp_records),
        query=args.query,
        years=args.year,
        topics=args.topic,
    )
    logging.info("Browse: total=%s shown=%s", len(metadata), len(entries))

    if args.json:
        _print_json(entries)
    else:
        for entry in entries:
            print(f"{entry.paper_id}\t{entry.year}\t{entry.venue}\t{entry.title}")
    return EXIT_OK


def run_detail(args: argparse.Namespace) -> int:
    try:
        metadata = load_metadata(args.source)
        abstracts = load_abstracts(args.source)
    except DataSourceError as exc:
        logging.error("Error loading paper: %s", exc)
        return EXIT_DATA_ERROR

    paper = find_paper_detail(metadata, abstracts, args.paper_id)
    if paper is None:
        logging.warning('Paper with ID "%s" not found', args.paper_id)
        return EXIT_NOT_FOUND

    if args.json:
        _print_json(paper)
    else:
        print(paper.title)
        print(f"{', '.join(paper.authors)} ({paper.year}) {paper.venue}")
        print()
        print(paper.abstract)
    return EXIT_OK


def run_graph(args: argparse.Namespace) -> int:
    try:
        metadata = load_metadata(args.source)
        contexts = load_citation_contexts(args.source)
    except DataSourceError as exc:
        logging.error("Failed to build graph: %s", exc)
        return EXIT_DATA_ERROR

    graph = build_citation_graph(metadata, contexts, args.paper_id, args.max_citations)
    if graph is None:
        logging.warning("Paper not found in metadata: paper_id=%s", args.paper_id)
        return EXIT_NOT_FOUND

    if args.json:
        _print_json(graph)
    else:
        print(f"{graph.center.label} [{len(graph.nodes)} nodes, {len(graph.edges)} edges]")
        for edge in graph.edges:
            print(f"  {edge.source} -[{edge.label}]-> {edge.target}")
        counts = intent_counts(graph)
        if counts:
            print("Intents: " + ", ".join(f"{label}={n}" for label, n in sorted(counts.items())))
    return EXIT_OK


def _emit_ranked(outcome: Outcome[list[RankedPaper]], args: argparse.Namespace) -> int:
    if not outcome.ok:
        logging.error("Data source unavailable: %s", outcome.error)
        return EXIT_DATA_ERROR

    papers = outcome.unwrap_or([])
    if args.csv:
        write_ranked_papers(papers, csv_path=args.csv)

    if args.json:
        _print_json(papers)
    else:
        for paper in papers:
            score = "" if paper.similarity is None else f"{paper.similarity:.3f}\t"
            print(f"{score}{paper.paper_id}\t{paper.year}\t{paper.title}")
    return EXIT_OK


def _print_json(value: Any) -> None:
    if isinstance(value, list):
        data: Any = [dataclasses.asdict(item) for item in value]
    else:
        data = dataclasses.asdict(value)
    print(json.dumps(data, indent=2, ensure_ascii=False))


def main(argv: Sequence[str] | None = None) -> int:
    """Load config, configure logging and run one command."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    return run(parse_args(argv))


if __name__ == "__main__":
    sys.exit(main())
