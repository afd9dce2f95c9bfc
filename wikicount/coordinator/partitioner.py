"""
Partitioner
Splits a document stream, or a materialized document list, into work units
"""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Sequence, Tuple

from wikicount.common.documents import Document


@dataclass
class WorkUnit:
    """A bounded batch of documents counted by exactly one task"""
    unit_id: int
    documents: List[Document] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.documents)


def partition(documents: Iterable[Document], unit_size: int, first_unit_id: int = 0) -> Iterator[WorkUnit]:
    """
    Group consecutive documents into units of at most unit_size

    Units are yielded as soon as they fill up, so counting can start while
    the source is still being read. The last unit may be smaller; an empty
    input yields no units at all.

    Args:
        documents: Documents in source order
        unit_size: Maximum documents per unit
        first_unit_id: Id given to the first unit, later ones count up from it

    Yields:
        WorkUnit objects in input order
    """
    if unit_size < 1:
        raise ValueError(f"unit_size must be positive, got {unit_size}")

    unit_id = first_unit_id
    batch: List[Document] = []
    for document in documents:
        batch.append(document)
        if len(batch) >= unit_size:
            yield WorkUnit(unit_id=unit_id, documents=batch)
            unit_id += 1
            batch = []

    if batch:
        yield WorkUnit(unit_id=unit_id, documents=batch)


def split_evenly(documents: Sequence[Document], parts: int) -> List[WorkUnit]:
    """
    Split a materialized list into at most `parts` contiguous units

    Each unit holds ceil(len / parts) documents except possibly the last;
    no empty units are produced.
    """
    if parts < 1:
        raise ValueError(f"parts must be positive, got {parts}")

    total = len(documents)
    chunk_size = (total + parts - 1) // parts
    units = []
    for i in range(parts):
        start = i * chunk_size
        end = min(total, start + chunk_size)
        if start >= end:
            break
        units.append(WorkUnit(unit_id=i, documents=list(documents[start:end])))
    return units


def split_in_half(documents: Sequence[Document]) -> Tuple[Sequence[Document], Sequence[Document]]:
    """Halve a document list for divide-and-conquer counting"""
    mid = len(documents) // 2
    return documents[:mid], documents[mid:]
