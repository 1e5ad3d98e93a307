"""Browse-page filters and the paper detail lookup (no embeddings involved)."""

from __future__ import annotations

from typing import Iterable, Sequence

from models import (
    UNKNOWN_CATEGORY,
    AbstractRecord,
    CatalogEntry,
    MetadataRecord,
    NlpRecord,
    PaperDetail,
)

NO_ABSTRACT = "No abstract available."
UNKNOWN_VENUE = "Unknown Venue"

# arXiv category code -> label shown in the topic filter.
CATEGORY_MAP: dict[str, str] = {
    "astro-ph": "Astrophysics",
    "astro-ph.CO": "Cosmology",
    "astro-ph.GA": "Astrophysics of Galaxies",
    "astro-ph.HE": "High Energy Astrophysical Phenomena",
    "astro-ph.SR": "Solar and Stellar Astrophysics",
    "cond-mat.mes-hall": "Mesoscale & Nanoscale Physics",
    "cond-mat.mtrl-sci": "Materials Science",
    "cond-mat.stat-mech": "Statistical Mechanics",
    "cond-mat.str-el": "Strongly Correlated Electrons",
    "cs.CL": "NLP (Computation & Language)",
    "cs.CV": "Computer Vision",
    "cs.IT": "Information Theory",
    "cs.LG": "Machine Learning",
    "cs.RO": "Robotics",
    "gr-qc": "General Relativity & Cosmology",
    "hep-ph": "High Energy Physics – Phenomenology",
    "hep-th": "High Energy Physics – Theory",
    "math.AG": "Algebraic Geometry",
    "math.AP": "PDEs",
    "math.CO": "Combinatorics",
    "math.NT": "Number Theory",
    "math.OC": "Optimization & Control",
    "math.PR": "Probability",
    "nucl-th": "Nuclear Theory",
    "quant-ph": "Quantum Physics",
}

YEAR_RANGES: tuple[str, ...] = (
    "2021–2025",
    "2016–2020",
    "2011–2015",
    "2000–2010",
    "Earlier",
)


def classify_year(year: int) -> str:
    """Map a publication year onto one of YEAR_RANGES."""
    if year >= 2021:
        return "2021–2025"
    if year >= 2016:
        return "2016–2020"
    if year >= 2011:
        return "2011–2015"
    if year >= 2000:
        return "2000–2010"
    return "Earlier"


def build_catalog(
    metadata: Sequence[MetadataRecord],
    nlp_records: Iterable[NlpRecord] = (),
) -> list[CatalogEntry]:
    """One entry per metadata row; topics come from NLP fields when available."""
    fields_by_id = {record.paper_id: record.fields for record in nlp_records}

    entries: list[CatalogEntry] = []
    for meta in metadata:
        category = meta.selected_category or ""
        topics = fields_by_id.get(meta.paper_id)
        if topics is None:
            topics = (category,) if category else ()
        entries.append(
            CatalogEntry(
                paper_id=meta.paper_id,
                title=meta.title,
                authors=meta.authors,
                year=meta.year,
                venue=CATEGORY_MAP.get(category, UNKNOWN_CATEGORY),
                topics=topics,
            )
        )
    return entries


def filter_catalog(
    entries: Iterable[CatalogEntry],
    query: str = "",
    years: Sequence[str] = (),
    topics: Sequence[str] = (),
) -> list[CatalogEntry]:
    """Apply the year-range, topic and free-text filters of the browse page.

    Empty ``years``/``topics`` disable that filter. The text query matches
    case-insensitively against the title or any author name, after
    surrounding whitespace is stripped; a blank query disables it.
    """
    needle = query.strip().lower()

    def keep(entry: CatalogEntry) -> bool:
        if years and classify_year(entry.year) not in years:
            return False
        if topics and not any(t in entry.topics for t in topics):
            return False
        if needle:
            return needle in entry.title.lower() or any(needle in a.lower() for a in entry.authors)
        return True

    return [entry for entry in entries if keep(entry)]


def find_paper_detail(
    metadata: Sequence[MetadataRecord],
    abstracts: Sequence[AbstractRecord],
    paper_id: str,
) -> PaperDetail | None:
    """Resolve a paper's detail view, or None when the id is unknown.

    Abstracts carry no id: they are matched by position against the metadata
    rows that have both an id and a title.
    """
    valid = [meta for meta in metadata if meta.paper_id and meta.title]
    index = next(
        (i for i, meta in enumerate(valid) if meta.paper_id == paper_id or meta.alt_id == paper_id),
        None,
    )
    if index is None:
        return None

    meta = valid[index]
    abstract = abstracts[index].abstract if index < len(abstracts) else ""
    return PaperDetail(
        paper_id=meta.paper_id,
        title=meta.title,
        authors=meta.authors,
        year=meta.year,
        venue=meta.journal_ref or UNKNOWN_VENUE,
        abstract=abstract or NO_ABSTRACT,
    )
