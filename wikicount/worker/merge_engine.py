"""
Merge engine.

Folds local tables into the run-wide table. Merging is integer addition, so
the final table does not depend on the order units finish in. The global
table admits one writer at a time and only exposes its contents after
finalize().
"""

import logging
import threading
from collections import Counter
from types import MappingProxyType
from typing import Iterable, Mapping, MutableMapping, Optional

from wikicount.common.errors import WordCountError

logger = logging.getLogger(__name__)


def merge_into(target: MutableMapping[str, int], local: Mapping[str, int]) -> MutableMapping[str, int]:
    """
    Add every (word, count) pair of local into target, summing on collision

    Returns:
        target, mutated in place
    """
    for word, count in local.items():
        target[word] = target.get(word, 0) + count
    return target


def merge_tables(tables: Iterable[Mapping[str, int]]) -> Counter:
    """Reduce any number of local tables into a new table"""
    merged = Counter()
    for table in tables:
        merge_into(merged, table)
    return merged


class GlobalTable:
    """The single word -> count table of a run"""

    def __init__(self):
        self._counts: Counter = Counter()
        self._lock = threading.Lock()
        self._merged_units = set()
        self._finalized = False

    def merge(self, local: Mapping[str, int], unit_id: Optional[int] = None):
        """
        Merge one local table under the table lock

        Args:
            local: Local table handed over by a counter; not used afterwards
            unit_id: Unit the table came from, guards against double merges

        Raises:
            WordCountError: If the table is already final or the unit was merged before
        """
        with self._lock:
            if self._finalized:
                raise WordCountError("Cannot merge into a finalized table")
            if unit_id is not None:
                if unit_id in self._merged_units:
                    raise WordCountError(f"Unit {unit_id} merged twice")
                self._merged_units.add(unit_id)
            merge_into(self._counts, local)

    def finalize(self) -> Mapping[str, int]:
        """Close the table to writers and return a read-only view of it"""
        with self._lock:
            self._finalized = True
            logger.info(f"Global table finalized: {len(self._counts)} distinct words "
                        f"from {len(self._merged_units)} units")
            return MappingProxyType(self._counts)

    @property
    def finalized(self) -> bool:
        return self._finalized

    @property
    def merged_units(self) -> int:
        with self._lock:
            return len(self._merged_units)

    @property
    def counts(self) -> Mapping[str, int]:
        """Read-only view of the final table"""
        if not self._finalized:
            raise WordCountError("Global table read before all units were merged")
        return MappingProxyType(self._counts)
