"""Session orchestration for the search and enrichment passes."""
