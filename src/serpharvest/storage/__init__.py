"""Result file persistence."""

from serpharvest.storage.results import (
    load_search_response,
    processed_path_for,
    results_filename,
    results_path_for,
    save_processed_results,
    save_search_response,
)

__all__ = [
    "load_search_response",
    "processed_path_for",
    "results_filename",
    "results_path_for",
    "save_processed_results",
    "save_search_response",
]
