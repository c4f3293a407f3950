"""copilot-context — curate a reproducible local context folder."""

__version__ = "0.1.0"
