"""
Unit tests for ranking and report formatting
"""

from collections import Counter

import pytest

from wikicount.client.reporting import (
    format_comparison, format_duration, format_ranked, format_report, rank,
)
from wikicount.coordinator.job_manager import RunState
from wikicount.coordinator.scheduler import RunResult


class TestRank:

    def test_most_frequent_first(self):
        counts = {"the": 10, "cat": 3, "sat": 5, "on": 1}
        assert rank(counts, 3) == [("the", 10), ("sat", 5), ("cat", 3)]

    def test_ties_break_alphabetically(self):
        counts = {"zeta": 2, "alpha": 2, "mid": 2, "top": 9}
        assert rank(counts, 4) == [("top", 9), ("alpha", 2), ("mid", 2), ("zeta", 2)]

    def test_fewer_words_than_k(self):
        assert rank({"only": 1}, 3) == [("only", 1)]

    @pytest.mark.parametrize("k", [0, -1])
    def test_non_positive_k(self, k):
        assert rank({"word": 1}, k) == []

    def test_empty_table(self):
        assert rank({}, 3) == []

    def test_accepts_counter(self):
        assert rank(Counter("aab"), 1) == [("a", 2)]


class TestFormatting:

    def test_format_ranked(self):
        assert format_ranked([("the", 4), ("a", 2)]) == [
            "Word: 'the' with total 4 occurrences!",
            "Word: 'a' with total 2 occurrences!",
        ]

    def test_format_report(self):
        result = RunResult(counts={"the": 2, "sat": 2, "cat": 1, "dog": 1},
                           documents_processed=2, units_counted=2, elapsed_ms=15, state=RunState.DONE)
        report = format_report(result, 3)

        assert report.splitlines() == [
            "Processed pages: 2",
            "Elapsed time: 15ms",
            "Word: 'sat' with total 2 occurrences!",
            "Word: 'the' with total 2 occurrences!",
            "Word: 'cat' with total 1 occurrences!",
        ]

    def test_format_report_empty(self):
        result = RunResult(counts={}, documents_processed=0, units_counted=0, elapsed_ms=0, state=RunState.DONE)
        assert format_report(result, 3).splitlines() == ["Processed pages: 0", "Elapsed time: 0ms"]

    @pytest.mark.parametrize("seconds,expected", [
        (5.0, "5.0s"),
        (75, "1m 15.0s"),
        (3725, "1h 2m 5.0s"),
    ])
    def test_format_duration(self, seconds, expected):
        assert format_duration(seconds) == expected

    def test_format_comparison(self):
        rows = [{'dispatch': 'pool', 'merge': 'batched', 'documents': 10, 'units': 5,
                 'elapsed_ms': 12, 'documents_per_second': 833.3}]
        lines = format_comparison(rows).splitlines()
        assert lines[0].startswith("Dispatch")
        assert "pool" in lines[2] and "batched" in lines[2] and "833.3" in lines[2]
