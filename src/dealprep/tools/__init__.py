"""Tools used by the pipeline stages (LLM access, web fetching)."""
