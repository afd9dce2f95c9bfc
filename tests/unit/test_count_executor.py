"""
Unit tests for the unit counter
"""

import threading
from collections import Counter

from wikicount.common.documents import Document
from wikicount.coordinator.partitioner import WorkUnit
from wikicount.worker.count_executor import UnitResult, count_documents, count_unit


class TestCountDocuments:
    """Tests for counting a batch of documents"""

    def test_counts_words_across_documents(self):
        docs = [Document("1", "the cat sat"), Document("2", "the dog sat")]
        assert count_documents(docs) == Counter({"the": 2, "cat": 1, "sat": 2, "dog": 1})

    def test_single_letter_policy(self):
        docs = [Document("1", "I am a cat"), Document("2", "a a a")]
        assert count_documents(docs) == Counter({"I": 1, "am": 1, "a": 4, "cat": 1})

    def test_drops_other_single_letters(self):
        docs = [Document("1", "x marks the spot, A b c i")]
        assert count_documents(docs) == Counter({"marks": 1, "the": 1, "spot": 1})

    def test_case_sensitive(self):
        docs = [Document("1", "The the THE")]
        assert count_documents(docs) == Counter({"The": 1, "the": 1, "THE": 1})

    def test_empty_documents(self):
        assert count_documents([]) == Counter()
        assert count_documents([Document("empty", "")]) == Counter()

    def test_title_is_not_counted(self):
        assert count_documents([Document("Zebra", "horse")]) == Counter({"horse": 1})


class TestCountUnit:
    """Tests for counting a whole work unit"""

    def test_returns_unit_result(self):
        unit = WorkUnit(unit_id=7, documents=[Document("1", "hello world"), Document("2", "hello")])
        result = count_unit(unit)

        assert isinstance(result, UnitResult)
        assert result.unit_id == 7
        assert result.documents == 2
        assert result.counts == Counter({"hello": 2, "world": 1})
        assert result.execution_time_ms >= 0

    def test_fresh_table_per_call(self):
        unit = WorkUnit(unit_id=0, documents=[Document("1", "one two")])
        first = count_unit(unit)
        second = count_unit(unit)

        assert first.counts == second.counts
        assert first.counts is not second.counts

    def test_does_not_mutate_unit(self):
        docs = [Document("1", "some text here")]
        unit = WorkUnit(unit_id=0, documents=list(docs))
        count_unit(unit)
        assert unit.documents == docs

    def test_concurrent_calls_on_distinct_units(self):
        units = [WorkUnit(unit_id=i, documents=[Document(str(i), "alpha beta " * (i + 1))]) for i in range(16)]
        results = [None] * len(units)

        def run(index):
            results[index] = count_unit(units[index])

        threads = [threading.Thread(target=run, args=(i,)) for i in range(len(units))]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        for i, result in enumerate(results):
            assert result.unit_id == i
            assert result.counts == Counter({"alpha": i + 1, "beta": i + 1})
