"""
Run configuration.

Defaults come from WIKICOUNT_* environment variables; the client overlays
its command line arguments on top.
"""

import os
from dataclasses import dataclass, asdict, field
from typing import Optional

from wikicount.common.errors import ConfigError

DISPATCH_STRATEGIES = ("sequential", "pool", "futures", "threads", "recursive")
MERGE_STRATEGIES = ("incremental", "batched")
EXECUTOR_KINDS = ("thread", "process")
# Strategies that hand units to an executor; manual threads bypass it
POOLED_DISPATCH = ("pool", "futures", "recursive")


def _default_workers() -> int:
    return os.cpu_count() or 1


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == '':
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {value!r}")


@dataclass
class WordCountConfig:
    """Everything a run needs to know up front"""
    max_documents: int = 100000
    source_path: str = "enwiki.xml"
    unit_size: int = 500
    worker_count: int = field(default_factory=_default_workers)
    threshold: int = 500
    top_k: int = 3
    dispatch: str = "pool"
    merge: str = "batched"
    executor: str = "thread"
    max_in_flight: Optional[int] = None
    grace_period: float = 0.0
    metrics_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> "WordCountConfig":
        """Build a configuration from WIKICOUNT_* environment variables"""
        defaults = cls()
        return cls(
            max_documents=_env_int('WIKICOUNT_MAX_DOCUMENTS', defaults.max_documents),
            source_path=os.getenv('WIKICOUNT_SOURCE', defaults.source_path),
            unit_size=_env_int('WIKICOUNT_UNIT_SIZE', defaults.unit_size),
            worker_count=_env_int('WIKICOUNT_WORKERS', defaults.worker_count),
            threshold=_env_int('WIKICOUNT_THRESHOLD', defaults.threshold),
            top_k=_env_int('WIKICOUNT_TOP_K', defaults.top_k),
            dispatch=os.getenv('WIKICOUNT_DISPATCH', defaults.dispatch),
            merge=os.getenv('WIKICOUNT_MERGE', defaults.merge),
            executor=os.getenv('WIKICOUNT_EXECUTOR', defaults.executor),
            max_in_flight=_env_int('WIKICOUNT_MAX_IN_FLIGHT', 0) or None,
            grace_period=_env_float('WIKICOUNT_GRACE_PERIOD', defaults.grace_period),
            metrics_file=os.getenv('WIKICOUNT_METRICS_FILE') or None,
        )

    @property
    def in_flight_limit(self) -> int:
        """Maximum number of units submitted but not yet merged"""
        return self.max_in_flight or self.worker_count

    def validate(self) -> "WordCountConfig":
        """
        Check the configuration for values no strategy can run with

        Returns:
            self, so calls can be chained

        Raises:
            ConfigError: On the first invalid value found
        """
        if self.max_documents < 0:
            raise ConfigError(f"max_documents must be >= 0, got {self.max_documents}")
        for name in ('unit_size', 'worker_count', 'threshold', 'top_k'):
            value = getattr(self, name)
            if value < 1:
                raise ConfigError(f"{name} must be a positive integer, got {value}")
        if self.max_in_flight is not None and self.max_in_flight < 1:
            raise ConfigError(f"max_in_flight must be a positive integer, got {self.max_in_flight}")
        if self.grace_period < 0:
            raise ConfigError(f"grace_period must be >= 0, got {self.grace_period}")
        if self.dispatch not in DISPATCH_STRATEGIES:
            raise ConfigError(f"Unknown dispatch strategy {self.dispatch!r}, expected one of {DISPATCH_STRATEGIES}")
        if self.merge not in MERGE_STRATEGIES:
            raise ConfigError(f"Unknown merge strategy {self.merge!r}, expected one of {MERGE_STRATEGIES}")
        if self.executor not in EXECUTOR_KINDS:
            raise ConfigError(f"Unknown executor {self.executor!r}, expected one of {EXECUTOR_KINDS}")
        if self.executor == "process" and self.dispatch not in POOLED_DISPATCH:
            raise ConfigError(f"The process executor only applies to {POOLED_DISPATCH}, not {self.dispatch!r}")
        return self

    def to_dict(self) -> dict:
        return asdict(self)
