"""
Word frequency counting over streamed XML page dumps, with interchangeable
concurrency strategies.
"""

__version__ = "0.1.0"
