"""Ranking and formatting of word count results."""

from typing import List, Mapping, Sequence, Tuple


def rank(counts: Mapping[str, int], k: int) -> List[Tuple[str, int]]:
    """
    Top k (word, count) pairs, most frequent first.

    Equal counts are ordered alphabetically so the output is the same on
    every run regardless of merge order.
    """
    if k <= 0 or not counts:
        return []
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))[:k]


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human readable string."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds / 60)
    seconds = seconds % 60
    if minutes < 60:
        return f"{minutes}m {seconds:.1f}s"
    hours = int(minutes / 60)
    minutes = minutes % 60
    return f"{hours}h {minutes}m {seconds:.1f}s"


def format_ranked(ranked: Sequence[Tuple[str, int]]) -> List[str]:
    return [f"Word: '{word}' with total {count} occurrences!" for word, count in ranked]


def format_report(result, k: int) -> str:
    """Run statistics followed by the top k words, one per line."""
    lines = [
        f"Processed pages: {result.documents_processed}",
        f"Elapsed time: {result.elapsed_ms}ms",
    ]
    lines.extend(format_ranked(rank(result.counts, k)))
    return "\n".join(lines)


def format_comparison(rows: Sequence[dict]) -> str:
    """Timing table for the compare command."""
    lines = [
        f"{'Dispatch':<12} {'Merge':<12} {'Pages':>8} {'Units':>7} {'Time':>10} {'Pages/s':>10}",
        "-" * 64,
    ]
    for row in rows:
        lines.append(
            f"{row['dispatch']:<12} {row['merge']:<12} {row['documents']:>8} "
            f"{row['units']:>7} {row['elapsed_ms']:>8}ms {row['documents_per_second']:>10.1f}"
        )
    return "\n".join(lines)
