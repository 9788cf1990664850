"""HTTP API (FastAPI) exposing the search and enrichment sessions."""
