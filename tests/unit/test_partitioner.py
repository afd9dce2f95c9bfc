"""
Unit tests for the partitioner
"""

import pytest

from wikicount.common.documents import Document
from wikicount.coordinator.partitioner import WorkUnit, partition, split_evenly, split_in_half


def make_docs(n):
    return [Document(title=f"t{i}", text=f"text {i}") for i in range(n)]


class TestPartition:
    """Tests for streaming partitioning"""

    def test_full_units_and_smaller_tail(self):
        units = list(partition(make_docs(7), 3))

        assert [len(u) for u in units] == [3, 3, 1]
        assert [u.unit_id for u in units] == [0, 1, 2]

    def test_preserves_order(self):
        docs = make_docs(10)
        units = list(partition(docs, 4))
        flattened = [d for u in units for d in u.documents]
        assert flattened == docs

    def test_exact_multiple_has_no_empty_tail(self):
        units = list(partition(make_docs(6), 3))
        assert [len(u) for u in units] == [3, 3]

    def test_empty_input_yields_no_units(self):
        assert list(partition([], 5)) == []

    def test_unit_size_one(self):
        units = list(partition(make_docs(4), 1))
        assert [len(u) for u in units] == [1, 1, 1, 1]

    def test_unit_larger_than_input(self):
        units = list(partition(make_docs(4), 100))
        assert len(units) == 1
        assert len(units[0]) == 4

    def test_first_unit_id(self):
        units = list(partition(make_docs(4), 2, first_unit_id=10))
        assert [u.unit_id for u in units] == [10, 11]

    @pytest.mark.parametrize("unit_size", [0, -1])
    def test_rejects_non_positive_unit_size(self, unit_size):
        with pytest.raises(ValueError):
            list(partition(make_docs(3), unit_size))

    def test_emits_units_before_source_is_exhausted(self):
        pulled = []

        def source():
            for doc in make_docs(100):
                pulled.append(doc)
                yield doc

        units = partition(source(), 5)
        first = next(units)

        assert len(first) == 5
        assert len(pulled) == 5

    def test_units_do_not_share_lists(self):
        units = list(partition(make_docs(4), 2))
        units[0].documents.append(Document("extra", ""))
        assert len(units[1]) == 2


class TestSplitEvenly:
    """Tests for the manual thread split"""

    def test_ceiling_division(self):
        units = split_evenly(make_docs(10), 4)
        assert [len(u) for u in units] == [3, 3, 3, 1]

    def test_fewer_documents_than_parts(self):
        units = split_evenly(make_docs(2), 8)
        assert [len(u) for u in units] == [1, 1]

    def test_uneven_split_may_use_fewer_parts(self):
        # ceil(9 / 4) = 3 -> only three partitions are needed
        units = split_evenly(make_docs(9), 4)
        assert [len(u) for u in units] == [3, 3, 3]

    def test_empty_input(self):
        assert split_evenly([], 4) == []

    def test_covers_input_exactly_once(self):
        docs = make_docs(23)
        units = split_evenly(docs, 5)
        assert [d for u in units for d in u.documents] == docs
        assert [u.unit_id for u in units] == list(range(len(units)))

    def test_rejects_zero_parts(self):
        with pytest.raises(ValueError):
            split_evenly(make_docs(3), 0)


class TestSplitInHalf:
    """Tests for divide-and-conquer halving"""

    def test_even(self):
        left, right = split_in_half(make_docs(4))
        assert len(left) == 2 and len(right) == 2

    def test_odd_puts_extra_on_the_right(self):
        docs = make_docs(5)
        left, right = split_in_half(docs)
        assert list(left) + list(right) == docs
        assert len(left) == 2 and len(right) == 3


def test_work_unit_len():
    assert len(WorkUnit(unit_id=0, documents=make_docs(3))) == 3
    assert len(WorkUnit(unit_id=1)) == 0
