"""CSV export for ranked paper lists."""

from __future__ import annotations

import csv
import json
import logging
import os
from pathlib import Path
from typing import Iterable

from models import RankedPaper

CSV_OUTPUT_PATH = os.getenv("CSV_OUTPUT_PATH", "citemind_results.csv")

LOGGER = logging.getLogger(__name__)

CSV_COLUMNS = [
    "rank",
    "paper_id",
    "title",
    "authors",     # JSON list
    "year",
    "category",
    "similarity",  # empty for keyword matches
    "keywords",    # JSON list
    "fields",      # JSON list
    "abstract",
]


def write_ranked_papers(papers: Iterable[RankedPaper], csv_path: str | None = None) -> int:
    """Write papers to CSV in the given order, replacing any existing file.

    Returns the number of rows written.
    """
    path = Path(csv_path or CSV_OUTPUT_PATH)

    written = 0
    with path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        for rank, paper in enumerate(papers, start=1):
            writer.writerow(_paper_row(rank, paper))
            written += 1

    LOGGER.info("Wrote %s CSV rows to %s", written, path)
    return written


def _paper_row(rank: int, paper: RankedPaper) -> dict[str, object]:
    return {
        "rank": rank,
        "paper_id": paper.paper_id,
        "title": paper.title,
        "authors": json.dumps(list(paper.authors)),
        "year": paper.year,
        "category": paper.category,
        "similarity": "" if paper.similarity is None else f"{paper.similarity:.6f}",
        "keywords": json.dumps(list(paper.keywords)),
        "fields": json.dumps(list(paper.fields)),
        "abstract": _as_text(paper.abstract),
    }


def _as_text(value: str, max_len: int = 500) -> str:
    """Strip and truncate to max_len chars."""
    s = value.strip()
    if len(s) > max_len:
        return s[: max_len - 1] + "…"
    return s
