"""I/O utilities for schedule export."""

from .export_csv import allocations_frame, export_day_csv

__all__ = ["allocations_frame", "export_day_csv"]
