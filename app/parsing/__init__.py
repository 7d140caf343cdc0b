"""
app/parsing package marker.
"""

from app.parsing.cell_normalizer import normalize_cell
from app.parsing.header_sanitizer import sanitize_headers
from app.parsing.tabular_parser import SUPPORTED_EXTENSIONS, TabularParser

__all__ = [
    "SUPPORTED_EXTENSIONS",
    "TabularParser",
    "normalize_cell",
    "sanitize_headers",
]
