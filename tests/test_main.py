"""Tests for the CLI dispatch in main.run."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

import main
from data_source import DataSourceError
from models import MetadataRecord, Outcome, RankedPaper, ResearchGap


def _ranked(paper_id: str, similarity: float | None = None) -> RankedPaper:
    return RankedPaper(
        paper_id=paper_id,
        title=f"Paper {paper_id}",
        authors=("Someone",),
        year=2020,
        category="cs.LG",
        abstract="",
        keywords=(),
        fields=(),
        similarity=similarity,
    )


def _write_collections(tmp_path: Path) -> None:
    def dump(name: str, payload: object) -> None:
        (tmp_path / f"CiteMind.{name}").write_text(json.dumps(payload), encoding="utf-8")

    dump("Paper_MetaData.json", [
        {"paper_id": "A", "title": "Alpha Paper", "authors": ["Ann"], "year": 2022, "selected_category": "cs.LG"},
        {"paper_id": "B", "title": "Beta Paper", "authors": ["Bob"], "year": 2012, "selected_category": "math.PR"},
    ])
    dump("vector_embeddings.json", [
        {"_id": "A", "keywords": ["alpha", "shared"], "fields": ["cs.LG"], "embedding": [1, 0]},
        {"_id": "B", "keywords": ["beta", "shared"], "fields": ["math.PR"], "embedding": [1, 1]},
    ])
    dump("Abstract.json", [{"abstract": "About alpha."}, {"abstract": "About beta."}])
    dump("citation_context.json", [{"label": "extend"}])
    dump("nlp_output.json", [{"paper_id": "A", "nlp_output": {"fields": ["cs.LG"]}}])


def test_search_prints_matches(capsys: pytest.CaptureFixture[str]) -> None:
    args = main.parse_args(["search", "neural", "--field", "cs.LG"])

    with patch("main.search_by_keywords_outcome", return_value=Outcome.success([_ranked("A")])) as mock_search:
        code = main.run(args)

    assert code == main.EXIT_OK
    mock_search.assert_called_once_with(["neural"], ["cs.LG"], None)
    assert "Paper A" in capsys.readouterr().out


def test_data_failure_exits_nonzero() -> None:
    args = main.parse_args(["similar", "A"])

    with patch("main.find_similar_papers_outcome", return_value=Outcome.failure("unreachable")):
        assert main.run(args) == main.EXIT_DATA_ERROR


def test_semantic_writes_csv(tmp_path: Path) -> None:
    out = tmp_path / "out.csv"
    args = main.parse_args(["--csv", str(out), "semantic", "graphs", "--limit", "3"])

    with patch("main.semantic_search_outcome", return_value=Outcome.success([_ranked("A", 0.9)])) as mock_sem, \
         patch("main.write_ranked_papers") as mock_write:
        main.run(args)

    mock_sem.assert_called_once_with("graphs", 0.0, 3, None)
    mock_write.assert_called_once()
    assert mock_write.call_args.kwargs["csv_path"] == str(out)


def test_gap_json_output(capsys: pytest.CaptureFixture[str]) -> None:
    gap = ResearchGap(paper_id="A", unique_keywords=("x",), research_gaps=("y",), cluster_size=2)
    args = main.parse_args(["--json", "gap", "A"])

    with patch("main.detect_research_gap_outcome", return_value=Outcome.success(gap)):
        assert main.run(args) == main.EXIT_OK

    data = json.loads(capsys.readouterr().out)
    assert data["cluster_size"] == 2
    assert data["unique_keywords"] == ["x"]


def test_gap_unknown_paper() -> None:
    args = main.parse_args(["gap", "missing"])

    with patch("main.detect_research_gap_outcome", return_value=Outcome.success(None)):
        assert main.run(args) == main.EXIT_NOT_FOUND


def test_browse_filters_catalog(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _write_collections(tmp_path)
    args = main.parse_args(["--source", str(tmp_path), "browse", "--year", "2021–2025"])

    assert main.run(args) == main.EXIT_OK
    out = capsys.readouterr().out
    assert "Alpha Paper" in out
    assert "Beta Paper" not in out


def test_browse_data_failure() -> None:
    args = main.parse_args(["browse"])

    with patch("main.load_metadata", side_effect=DataSourceError("gone")):
        assert main.run(args) == main.EXIT_DATA_ERROR


def test_detail_and_graph_from_directory(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _write_collections(tmp_path)

    assert main.run(main.parse_args(["--source", str(tmp_path), "detail", "B"])) == main.EXIT_OK
    assert "About beta." in capsys.readouterr().out

    assert main.run(main.parse_args(["--source", str(tmp_path), "graph", "B"])) == main.EXIT_OK
    out = capsys.readouterr().out
    assert "-[extend]->" in out
    assert "extend=1" in out


def test_detail_unknown_paper(tmp_path: Path) -> None:
    with patch("main.load_metadata", return_value=[MetadataRecord("A", "T", (), 2020)]), \
         patch("main.load_abstracts", return_value=[]):
        assert main.run(main.parse_args(["detail", "Z"])) == main.EXIT_NOT_FOUND


def test_end_to_end_similar_from_directory(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _write_collections(tmp_path)

    code = main.main(["--source", str(tmp_path), "--json", "similar", "A"])

    assert code == main.EXIT_OK
    data = json.loads(capsys.readouterr().out)
    assert [p["paper_id"] for p in data] == ["B"]
    assert data[0]["similarity"] == pytest.approx(0.7071, abs=1e-4)
