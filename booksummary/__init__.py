"""Book summary service: search, AI summaries and reader feedback."""

__version__ = "1.0.0"
