"""clipboard-god: local clipboard history with paste re-injection."""

__version__ = "0.1.0"
