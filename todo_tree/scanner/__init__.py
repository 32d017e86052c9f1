"""
Scanner backends for todo-tree.

The only backend shells out to ripgrep; tests substitute their own
ScannerAdapter implementations.
"""

from .base import ScannerAdapter
from .locate import locate_ripgrep, bundled_locations
from .ripgrep import RipgrepAdapter, parse_vimgrep_line, parse_vimgrep_output

__all__ = [
    "ScannerAdapter",
    "RipgrepAdapter",
    "locate_ripgrep",
    "bundled_locations",
    "parse_vimgrep_line",
    "parse_vimgrep_output",
]
