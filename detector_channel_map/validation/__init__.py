"""Map file validation utilities (summary report and command-line checker)."""

from .check_map import MapSummary, summarize_map

__all__ = ["MapSummary", "summarize_map"]
