"""Loading helpers for the static CiteMind JSON collections.

Each collection is a JSON array served next to the application, either from a
local directory or from an HTTP origin. Nothing is cached: every call re-reads
the file, mirroring how each page view refetches its data.
"""

from __future__ import annotations

import json
import logging
import math
import os
from json import JSONDecodeError
from pathlib import Path
from typing import Any

import requests

from models import (
    AbstractRecord,
    CitationContext,
    EmbeddingRecord,
    MetadataRecord,
    NlpRecord,
)

DEFAULT_DATA_SOURCE = "data"
DEFAULT_FILE_PREFIX = "CiteMind."
REQUEST_TIMEOUT_SECONDS = float(os.getenv("CITEMIND_REQUEST_TIMEOUT", "20"))

EMBEDDINGS_FILE = "vector_embeddings.json"
METADATA_FILE = "Paper_MetaData.json"
ABSTRACTS_FILE = "Abstract.json"
CITATION_CONTEXT_FILE = "citation_context.json"
NLP_OUTPUT_FILE = "nlp_output.json"

LOGGER = logging.getLogger(__name__)


class DataSourceError(RuntimeError):
    """A backing collection could not be fetched or decoded."""


def load_embeddings(source: str | None = None) -> list[EmbeddingRecord]:
    return _parse_embeddings_payload(fetch_collection(EMBEDDINGS_FILE, source))


def load_metadata(source: str | None = None) -> list[MetadataRecord]:
    return _parse_metadata_payload(fetch_collection(METADATA_FILE, source))


def load_abstracts(source: str | None = None) -> list[AbstractRecord]:
    return _parse_abstracts_payload(fetch_collection(ABSTRACTS_FILE, source))


def load_citation_contexts(source: str | None = None) -> list[CitationContext]:
    return _parse_citation_payload(fetch_collection(CITATION_CONTEXT_FILE, source))


def load_nlp_output(source: str | None = None) -> list[NlpRecord]:
    return _parse_nlp_payload(fetch_collection(NLP_OUTPUT_FILE, source))


def fetch_collection(name: str, source: str | None = None) -> Any:
    """Fetch one collection and return its decoded JSON payload.

    Args:
        name: File name without the ``CITEMIND_FILE_PREFIX`` prefix.
        source: Directory path or http(s) base URL. Defaults to
            ``CITEMIND_DATA_SOURCE``.

    Raises:
        DataSourceError: on any transport, filesystem, or decode failure.
    """
    base = source or os.getenv("CITEMIND_DATA_SOURCE", DEFAULT_DATA_SOURCE)
    file_name = f"{os.getenv('CITEMIND_FILE_PREFIX', DEFAULT_FILE_PREFIX)}{name}"

    if _is_url(base):
        url = f"{base.rstrip('/')}/{file_name}"
        try:
            response = requests.get(url, timeout=REQUEST_TIMEOUT_SECONDS)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise DataSourceError(f"Failed to fetch {url}: {exc}") from exc
        LOGGER.debug("Fetched %s", url)
        return payload

    path = Path(base) / file_name
    try:
        with path.open(encoding="utf-8") as fh:
            payload = json.load(fh)
    except (OSError, JSONDecodeError) as exc:
        raise DataSourceError(f"Failed to read {path}: {exc}") from exc
    LOGGER.debug("Read %s", path)
    return payload


def _is_url(base: str) -> bool:
    return base.startswith(("http://", "https://"))


def _parse_embeddings_payload(payload: Any) -> list[EmbeddingRecord]:
    """Parse the embeddings array; rows without an id are skipped."""
    parsed: list[EmbeddingRecord] = []
    for item in _require_list(payload, EMBEDDINGS_FILE):
        if not isinstance(item, dict):
            continue
        paper_id = _as_str(item.get("_id")) or _as_str(item.get("paper_id"))
        if not paper_id:
            continue

        parsed.append(
            EmbeddingRecord(
                paper_id=paper_id,
                summary=_as_text(item.get("summary")),
                keywords=_as_str_tuple(item.get("keywords")),
                fields=_as_str_tuple(item.get("fields")),
                novelty=_as_text(item.get("novelty")),
                related_work=_as_str_tuple(item.get("related_work")),
                embedding=_as_vector(item.get("embedding")),
            )
        )
    return parsed


def _parse_metadata_payload(payload: Any) -> list[MetadataRecord]:
    parsed: list[MetadataRecord] = []
    for item in _require_list(payload, METADATA_FILE):
        if not isinstance(item, dict):
            continue
        parsed.append(
            MetadataRecord(
                paper_id=_as_str(item.get("paper_id")) or "",
                title=_as_str(item.get("title")) or "",
                authors=_as_str_tuple(item.get("authors")),
                year=_as_int(item.get("year")),
                alt_id=_as_str(item.get("_id")),
                journal_ref=_as_str(item.get("journal_ref")),
                selected_category=_as_str(item.get("selected_category")),
            )
        )
    return parsed


def _parse_abstracts_payload(payload: Any) -> list[AbstractRecord]:
    # Positional collection: keep one row per item so indexes line up with metadata.
    return [
        AbstractRecord(abstract=_field_text(item, "abstract"))
        for item in _require_list(payload, ABSTRACTS_FILE)
    ]


def _parse_citation_payload(payload: Any) -> list[CitationContext]:
    return [
        CitationContext(label=_field_text(item, "label"))
        for item in _require_list(payload, CITATION_CONTEXT_FILE)
    ]


def _parse_nlp_payload(payload: Any) -> list[NlpRecord]:
    parsed: list[NlpRecord] = []
    for item in _require_list(payload, NLP_OUTPUT_FILE):
        if not isinstance(item, dict):
            continue
        paper_id = _as_str(item.get("paper_id"))
        output = item.get("nlp_output") if isinstance(item.get("nlp_output"), dict) else {}
        if not paper_id:
            continue
        parsed.append(NlpRecord(paper_id=paper_id, fields=_as_str_tuple(output.get("fields"))))
    return parsed


def _require_list(payload: Any, name: str) -> list[Any]:
    if not isinstance(payload, list):
        raise DataSourceError(f"Unexpected {name} payload shape: expected a list")
    return payload


def _as_str(value: Any) -> str | None:
    return value.strip() if isinstance(value, str) and value.strip() else None


def _as_text(value: Any) -> str:
    """Free text passed through unchanged; non-strings become empty."""
    return value if isinstance(value, str) else ""


def _field_text(item: Any, key: str) -> str:
    if not isinstance(item, dict):
        return ""
    return _as_str(item.get(key)) or ""


def _as_str_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(item for item in value if isinstance(item, str))


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return 0


def _as_vector(value: Any) -> tuple[float, ...]:
    """Numeric embedding as floats; empty when any component is unusable."""
    if not isinstance(value, list):
        return ()
    try:
        vector = tuple(float(x) for x in value)
    except (TypeError, ValueError, OverflowError):
        LOGGER.warning("Embedding contains non-numeric values, treating as empty")
        return ()
    if not all(math.isfinite(x) for x in vector):
        LOGGER.warning("Embedding contains non-finite values, treating as empty")
        return ()
    return vector
