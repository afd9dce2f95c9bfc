"""
Unit counter.

Counts the words of one work unit into a fresh local table. Touches no
shared state, so any number of units can be counted at once. The module
level functions are picklable and run unchanged in a process pool.
"""

import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from wikicount.common.documents import Document
from wikicount.common.tokenizer import tokenize, should_count


@dataclass
class UnitResult:
    """Local table produced by counting one work unit"""
    unit_id: int
    counts: Counter = field(default_factory=Counter)
    documents: int = 0
    execution_time_ms: int = 0


def count_documents(documents: Iterable[Document]) -> Counter:
    """Count the countable words in a batch of documents"""
    counts = Counter()
    for document in documents:
        for word in tokenize(document.text):
            if should_count(word):
                counts[word] += 1
    return counts


def count_unit(unit) -> UnitResult:
    """
    Count one work unit

    Args:
        unit: WorkUnit with unit_id and documents

    Returns:
        UnitResult owning the new local table
    """
    start_time = time.time()
    counts = count_documents(unit.documents)
    execution_time = int((time.time() - start_time) * 1000)
    return UnitResult(
        unit_id=unit.unit_id,
        counts=counts,
        documents=len(unit.documents),
        execution_time_ms=execution_time,
    )
