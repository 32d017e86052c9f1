"""
ScannerAdapter protocol implemented by every scanner backend.

An adapter runs one search over a folder (recursively) or a single file and
returns the matches it found. An empty list is a meaningful result (no
markers); failures are raised as AdapterError.
"""

from typing import List, Protocol, runtime_checkable

from ..models.scan import Match, ScanOptions


@runtime_checkable
class ScannerAdapter(Protocol):
    """Protocol every scanner adapter must satisfy."""

    async def invoke(self, root: str, options: ScanOptions) -> List[Match]:
        """
        Search for `options.pattern`.

        Args:
            root:    Folder to search recursively. Ignored for recursion
                     purposes when `options.restrict_to_file` is set.
            options: Pattern, glob filters, optional single-file restriction
                     and the executable to run.

        Returns:
            Matches in the order the scanner produced them (possibly empty).

        Raises:
            AdapterError: the scanner could not run or exited unexpectedly.
        """
        ...
