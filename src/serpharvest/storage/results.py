"""Persisted JSON exchange files for search and enrichment sessions.

``search_results_<query_with_underscores>.json`` holds a ``SearchResponse``;
the enrichment output is written next to it with a ``_processed`` suffix.
Writes go to a temporary file in the target directory and are renamed
into place, so readers never see a partially written file.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from pathlib import Path

from pydantic import ValidationError

from serpharvest.exceptions import PersistenceError, ResultsFileError
from serpharvest.models.search import ProcessedResponse, ProcessedResult, SearchResponse

logger = logging.getLogger(__name__)

RESULTS_PREFIX = "search_results_"
PROCESSED_SUFFIX = "_processed"

# Whitespace, path separators and NUL never reach the filesystem
_UNSAFE_FILENAME_CHARS = re.compile(r"[\s/\\\x00]")


def results_filename(query: str) -> str:
    """Derive the results filename from *query*.

    Whitespace, ``/``, ``\\`` and NUL become underscores and leading dots
    are dropped, so the name is always a single path component.

    >>> results_filename("laporan keuangan bbri")
    'search_results_laporan_keuangan_bbri.json'
    >>> results_filename("laporan 2023/2024")
    'search_results_laporan_2023_2024.json'
    """
    stem = _UNSAFE_FILENAME_CHARS.sub("_", query).lstrip(".")
    return f"{RESULTS_PREFIX}{stem}.json"


def results_path_for(query: str, output_dir: str | Path) -> Path:
    """Return the results file path for *query* inside *output_dir*.

    Raises:
        PersistenceError: If the derived path would leave *output_dir*.
    """
    base = Path(output_dir).resolve()
    path = (base / results_filename(query)).resolve()
    if path.parent != base:
        raise PersistenceError(str(path), f"results file must be written inside {base}")
    return path


def processed_path_for(results_path: str | Path) -> Path:
    """Return the sibling ``_processed`` path for a results file."""
    path = Path(results_path)
    return path.with_name(f"{path.stem}{PROCESSED_SUFFIX}{path.suffix or '.json'}")


def save_search_response(response: SearchResponse, output_dir: str | Path) -> Path:
    """Write *response* to ``output_dir`` and return the file path."""
    path = results_path_for(response.query, output_dir)
    _atomic_write_json(path, response.model_dump(mode="json", by_alias=True))
    logger.info("Saved %d results for %r to %s", response.total_links, response.query, path)
    return path


def load_search_response(path: str | Path) -> SearchResponse:
    """Read and validate a persisted ``SearchResponse``.

    Raises:
        ResultsFileError: If the file is missing, not JSON, or not a
            valid ``SearchResponse``.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ResultsFileError(str(path), exc.strerror or type(exc).__name__) from exc
    try:
        return SearchResponse.model_validate_json(raw)
    except ValidationError as exc:
        raise ResultsFileError(str(path), f"invalid search results ({exc.error_count()} errors)") from exc


def save_processed_results(
    results_path: str | Path,
    original_query: str,
    processed: list[ProcessedResult],
) -> Path:
    """Write the enrichment output next to *results_path* and return its path."""
    path = processed_path_for(results_path)
    payload = ProcessedResponse(original_query=original_query, processed_results=processed)
    _atomic_write_json(path, payload.model_dump(mode="json", by_alias=True, exclude_none=True))
    logger.info("Saved %d processed results to %s", len(processed), path)
    return path


def _atomic_write_json(path: Path, data: dict) -> None:
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise PersistenceError(str(path), exc.strerror or type(exc).__name__) from exc
