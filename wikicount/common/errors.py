"""
Exception types shared by the coordinator, worker and client packages.
"""

from typing import Optional


class WordCountError(Exception):
    """Base class for fatal errors that abort a run"""


class SourceError(WordCountError):
    """The document source could not be opened"""


class ConfigError(WordCountError, ValueError):
    """Invalid run configuration"""


class CountingError(WordCountError):
    """A counting task failed; the run cannot produce a correct table"""

    def __init__(self, message: str, unit_id: Optional[int] = None):
        super().__init__(message)
        self.unit_id = unit_id
