"""
Performance metrics collection for word count runs.
"""

import time
import json
from dataclasses import dataclass, asdict
from typing import Dict, Optional

import psutil


@dataclass
class RunMetrics:
    """Metrics for a single word count run."""

    run_id: str
    dispatch: str
    merge: str
    executor: str
    worker_count: int
    unit_size: int
    threshold: int
    start_time: float
    end_time: float = 0.0
    collect_phase_end: float = 0.0
    documents_processed: int = 0
    units_counted: int = 0
    distinct_words: int = 0
    peak_rss_bytes: int = 0
    cpu_percent: float = 0.0

    @property
    def total_time_ms(self) -> int:
        """Wall-clock run time in milliseconds."""
        return int((self.end_time - self.start_time) * 1000)

    @property
    def collect_time_ms(self) -> int:
        """Time spent reading and partitioning the source, in milliseconds."""
        if not self.collect_phase_end:
            return 0
        return int((self.collect_phase_end - self.start_time) * 1000)

    @property
    def documents_per_second(self) -> float:
        """Throughput over the whole run."""
        elapsed = self.end_time - self.start_time
        if elapsed <= 0:
            return 0.0
        return self.documents_processed / elapsed

    def to_dict(self) -> dict:
        """Convert metrics to dictionary, derived values included."""
        data = asdict(self)
        data['total_time_ms'] = self.total_time_ms
        data['collect_time_ms'] = self.collect_time_ms
        data['documents_per_second'] = round(self.documents_per_second, 3)
        return data

    def save_to_file(self, filepath: str):
        """Save metrics to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


class MetricsCollector:
    """Collects and manages metrics for word count runs."""

    def __init__(self):
        self.run_metrics: Dict[str, RunMetrics] = {}
        self.process = psutil.Process()

    def start_run(self, run_id: str, config) -> RunMetrics:
        """Initialize metrics tracking for a new run."""
        # First call only primes psutil's CPU counters
        self.process.cpu_percent(interval=None)
        metrics = RunMetrics(
            run_id=run_id,
            dispatch=config.dispatch,
            merge=config.merge,
            executor=config.executor,
            worker_count=config.worker_count,
            unit_size=config.unit_size,
            threshold=config.threshold,
            start_time=time.time(),
            peak_rss_bytes=self.process.memory_info().rss,
        )
        self.run_metrics[run_id] = metrics
        return metrics

    def sample_memory(self, run_id: str):
        """Record resident memory if it is a new peak for the run."""
        metrics = self.run_metrics.get(run_id)
        if metrics:
            rss = self.process.memory_info().rss
            if rss > metrics.peak_rss_bytes:
                metrics.peak_rss_bytes = rss

    def end_collecting(self, run_id: str):
        """Mark the point where the source was fully read."""
        if run_id in self.run_metrics:
            self.run_metrics[run_id].collect_phase_end = time.time()

    def end_run(self, run_id: str, documents: int, units: int, distinct_words: int):
        """Mark run completion and record the totals."""
        metrics = self.run_metrics.get(run_id)
        if metrics:
            self.sample_memory(run_id)
            metrics.end_time = time.time()
            metrics.documents_processed = documents
            metrics.units_counted = units
            metrics.distinct_words = distinct_words
            metrics.cpu_percent = self.process.cpu_percent(interval=None)

    def get_metrics(self, run_id: str) -> Optional[RunMetrics]:
        """Retrieve metrics for a specific run."""
        return self.run_metrics.get(run_id)
