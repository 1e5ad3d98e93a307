from __future__ import annotations

import csv
import json
from pathlib import Path

import pytest

import csv_sink
from models import RankedPaper

SAMPLE_PAPER = RankedPaper(
    paper_id="2101.99999",
    title="Test Paper",
    authors=("A. Author", "B. Author"),
    year=2021,
    category="cs.LG",
    abstract="  A test abstract.  ",
    keywords=("graphs",),
    fields=("cs.LG", "stat.ML"),
    similarity=0.8765432,
)


@pytest.fixture(autouse=True)
def patch_csv_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point CSV_OUTPUT_PATH at a temp file for every test."""
    output = tmp_path / "test_output.csv"
    monkeypatch.setattr(csv_sink, "CSV_OUTPUT_PATH", str(output))


def _read_rows(path: str) -> list[dict[str, str]]:
    with Path(path).open(newline="", encoding="utf-8") as fh:
        return list(csv.DictReader(fh))


def test_write_ranked_papers_creates_file_with_header() -> None:
    written = csv_sink.write_ranked_papers([SAMPLE_PAPER])

    rows = _read_rows(csv_sink.CSV_OUTPUT_PATH)
    assert written == 1
    assert len(rows) == 1
    row = rows[0]
    assert row["rank"] == "1"
    assert row["paper_id"] == "2101.99999"
    assert row["similarity"] == "0.876543"
    assert row["abstract"] == "A test abstract."


def test_write_ranked_papers_serializes_lists() -> None:
    csv_sink.write_ranked_papers([SAMPLE_PAPER])

    row = _read_rows(csv_sink.CSV_OUTPUT_PATH)[0]
    assert json.loads(row["authors"]) == ["A. Author", "B. Author"]
    assert json.loads(row["fields"]) == ["cs.LG", "stat.ML"]


def test_keyword_match_has_empty_similarity() -> None:
    paper = RankedPaper(
        paper_id="x",
        title="Keyword hit",
        authors=(),
        year=0,
        category="Unknown",
        abstract="",
        keywords=(),
        fields=(),
    )
    csv_sink.write_ranked_papers([paper])

    assert _read_rows(csv_sink.CSV_OUTPUT_PATH)[0]["similarity"] == ""


def test_write_ranked_papers_overwrites_previous_run() -> None:
    csv_sink.write_ranked_papers([SAMPLE_PAPER, SAMPLE_PAPER])
    csv_sink.write_ranked_papers([SAMPLE_PAPER])

    assert len(_read_rows(csv_sink.CSV_OUTPUT_PATH)) == 1


def test_explicit_path_overrides_default(tmp_path: Path) -> None:
    target = tmp_path / "explicit.csv"
    csv_sink.write_ranked_papers([SAMPLE_PAPER], csv_path=str(target))

    assert target.exists()
    assert not Path(csv_sink.CSV_OUTPUT_PATH).exists()


def test_abstract_truncated() -> None:
    long_paper = RankedPaper(
        paper_id="y",
        title="Long",
        authors=(),
        year=2020,
        category="cs.CL",
        abstract="x" * 1000,
        keywords=(),
        fields=(),
    )
    csv_sink.write_ranked_papers([long_paper])

    abstract = _read_rows(csv_sink.CSV_OUTPUT_PATH)[0]["abstract"]
    assert len(abstract) == 500
    assert abstract.endswith("…")
