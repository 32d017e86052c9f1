"""
Result Aggregate.

The authoritative in-memory set of every known match across all scanned
files. All writes come from the planner and the executor on the event loop
thread, one at a time, so no locking is needed.
"""

import logging
from collections import Counter
from typing import Any, Dict, Iterable, Iterator, List

from ..models.scan import Match

logger = logging.getLogger(__name__)


class ResultAggregate:
    """
    Ordered collection of matches partitioned logically by file.

    `generation` increases on every clear(), which lets the executor
    recognise results from an invocation that started before a full refresh.
    """

    def __init__(self):
        self._matches: List[Match] = []
        self.generation = 0

    def clear(self) -> None:
        """Empty the set; used only at the start of a full rescan"""
        count = len(self._matches)
        self._matches = []
        self.generation += 1
        logger.debug(f"Cleared {count} matches (generation {self.generation})")

    def merge(self, matches: Iterable[Match]) -> int:
        """Append matches in the order given and return how many were added"""
        added = list(matches)
        self._matches.extend(added)
        return len(added)

    def remove_file(self, path: str) -> int:
        """Remove every match for `path`; idempotent. Returns the count removed"""
        kept = [match for match in self._matches if match.file != path]
        removed = len(self._matches) - len(kept)
        self._matches = kept
        if removed:
            logger.debug(f"Removed {removed} matches for {path}")
        return removed

    def sorted_view(self) -> List[Match]:
        """
        Matches ordered by (file, line).

        sorted() is stable, so matches sharing a file and line keep their
        insertion order.
        """
        return sorted(self._matches, key=lambda match: (match.file, match.line))

    def matches_for(self, path: str) -> List[Match]:
        return [match for match in self._matches if match.file == path]

    def files(self) -> List[str]:
        """Distinct files with at least one match, sorted"""
        return sorted({match.file for match in self._matches})

    def stats(self) -> Dict[str, Any]:
        per_file = Counter(match.file for match in self._matches)
        return {
            "total_matches": len(self._matches),
            "files": len(per_file),
            "generation": self.generation,
            "max_matches_per_file": max(per_file.values(), default=0),
        }

    def __len__(self) -> int:
        return len(self._matches)

    def __iter__(self) -> Iterator[Match]:
        return iter(list(self._matches))
