"""API routes for serpharvest.

Handlers are plain ``def`` so FastAPI runs them in its threadpool, where
the sync Playwright API can drive a browser.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from serpharvest.api.rate_limit import enforce_rate_limit
from serpharvest.exceptions import HarvestError
from serpharvest.models.search import SearchConfig
from serpharvest.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(enforce_rate_limit)])


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class SearchRequest(BaseModel):
    """Parameters for a ``POST /search`` request. Omitted fields use the configured defaults."""

    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(..., min_length=1, description="Search query to submit.")
    num_pages: int | None = Field(None, ge=1, alias="numPages")
    min_delay: float | None = Field(None, ge=0, alias="minDelay")
    max_delay: float | None = Field(None, ge=0, alias="maxDelay")

    def to_config(self) -> SearchConfig:
        defaults = get_settings().search
        return SearchConfig(
            query=self.query,
            num_pages=self.num_pages if self.num_pages is not None else defaults.num_pages,
            min_delay=self.min_delay if self.min_delay is not None else defaults.min_delay,
            max_delay=self.max_delay if self.max_delay is not None else defaults.max_delay,
        )


class ProcessResultsRequest(BaseModel):
    """Parameters for a ``POST /process-results`` request."""

    model_config = ConfigDict(populate_by_name=True)

    file_path: str | None = Field(None, alias="filePath", description="Results file from a previous search.")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/search")
def search(req: SearchRequest) -> Any:
    """Run a full search session and report the results file."""
    from serpharvest.harvester.orchestrator import run_search

    try:
        config = req.to_config()
    except ValidationError as e:
        return _failure(422, "; ".join(err["msg"] for err in e.errors()))

    try:
        outcome = run_search(config)
    except Exception as e:
        return _session_failure("search", e)

    return {
        "success": True,
        "data": {
            "message": "Search completed successfully",
            "resultsFile": str(outcome.results_path),
            "pagesProcessed": outcome.response.pages_processed,
            "totalLinks": outcome.response.total_links,
        },
    }


@router.post("/process-results")
def process_results(req: ProcessResultsRequest) -> Any:
    """Run an enrichment session over a previously written results file."""
    from serpharvest.harvester.orchestrator import process_search_results

    if not req.file_path or not req.file_path.strip():
        return _failure(400, "File path is required")

    try:
        outcome = process_search_results(_resolve_results_path(req.file_path.strip()))
    except Exception as e:
        return _session_failure("process-results", e)

    return {
        "success": True,
        "data": {
            "message": "Results processed successfully",
            "processedFile": str(outcome.processed_path),
            "processedCount": len(outcome.processed),
            "failedCount": outcome.failed_count,
        },
    }


def _resolve_results_path(file_path: str) -> Path:
    """Relative paths are looked up in the configured results directory."""
    path = Path(file_path)
    if path.is_absolute():
        return path
    return Path(get_settings().output.results_dir) / path


def _session_failure(operation: str, exc: Exception) -> JSONResponse:
    if isinstance(exc, HarvestError):
        logger.error("%s failed: %s", operation, exc)
        return _failure(500, str(exc))
    logger.exception("%s failed", operation)
    return _failure(500, "Internal server error")


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})
