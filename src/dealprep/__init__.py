"""Deal preparation brief pipeline.

Builds a sales-call brief from a lead record, a scraped website, an optional
requester summary and an LLM analysis, then renders and delivers it.
"""

__version__ = "0.1.0"
