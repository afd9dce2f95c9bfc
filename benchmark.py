#!/usr/bin/env python3
"""
Automated benchmarking script for the word count strategies.
Runs every configuration in-process over one page dump and collects metrics.
"""

import argparse
import csv
import json
import os
import sys
import time
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from wikicount.common.config import WordCountConfig
from wikicount.common.errors import WordCountError
from wikicount.coordinator.scheduler import WordCountRunner

# Configuration
RESULTS_DIR = Path("benchmark_results")
DEFAULT_INPUT = Path("shared/input/enwiki_medium.xml")

# Benchmark configurations
BENCHMARKS = [
    # Experiment 1: Dispatch strategy comparison (fixed unit size)
    {"name": "strategy_sequential", "dispatch": "sequential", "merge": "incremental", "unit_size": 500,
     "description": "No concurrency"},
    {"name": "strategy_pool", "dispatch": "pool", "merge": "batched", "unit_size": 500,
     "description": "Fixed thread pool, batched merge"},
    {"name": "strategy_futures", "dispatch": "futures", "merge": "batched", "unit_size": 500,
     "description": "Future composition, batched merge"},
    {"name": "strategy_threads", "dispatch": "threads", "merge": "batched", "unit_size": 500,
     "description": "One thread per partition"},
    {"name": "strategy_recursive", "dispatch": "recursive", "merge": "batched", "threshold": 500,
     "description": "Divide-and-conquer, threshold 500"},

    # Experiment 2: Unit size scaling (pool dispatch)
    {"name": "unit_size_10", "dispatch": "pool", "merge": "incremental", "unit_size": 10,
     "description": "10 pages per unit"},
    {"name": "unit_size_100", "dispatch": "pool", "merge": "incremental", "unit_size": 100,
     "description": "100 pages per unit"},
    {"name": "unit_size_500", "dispatch": "pool", "merge": "incremental", "unit_size": 500,
     "description": "500 pages per unit"},
    {"name": "unit_size_2000", "dispatch": "pool", "merge": "incremental", "unit_size": 2000,
     "description": "2000 pages per unit"},

    # Experiment 3: Recursive threshold scaling
    {"name": "threshold_100", "dispatch": "recursive", "merge": "batched", "threshold": 100,
     "description": "Split above 100 pages"},
    {"name": "threshold_500", "dispatch": "recursive", "merge": "batched", "threshold": 500,
     "description": "Split above 500 pages"},
    {"name": "threshold_2000", "dispatch": "recursive", "merge": "batched", "threshold": 2000,
     "description": "Split above 2000 pages"},

    # Experiment 4: Merge strategy and executor kind
    {"name": "merge_futures_incremental", "dispatch": "futures", "merge": "incremental", "unit_size": 500,
     "description": "Merge from completion callbacks"},
    {"name": "merge_futures_batched", "dispatch": "futures", "merge": "batched", "unit_size": 500,
     "description": "Merge after all futures complete"},
    {"name": "executor_process", "dispatch": "pool", "merge": "incremental", "unit_size": 500,
     "executor": "process", "description": "Process pool, incremental merge"},
    {"name": "executor_process_recursive", "dispatch": "recursive", "merge": "batched", "threshold": 500,
     "executor": "process", "description": "Process pool, divide-and-conquer leaves"},
]


def get_file_size(path):
    """Get file size in bytes."""
    try:
        return os.path.getsize(path)
    except OSError:
        return 0


def run_benchmark(base_config, benchmark, run_number=1):
    """Run a single benchmark configuration."""
    print(f"\n{'='*70}")
    print(f"Benchmark: {benchmark['name']} (Run {run_number})")
    print(f"Description: {benchmark['description']}")
    print(f"{'='*70}")

    overrides = {key: benchmark[key] for key in ("dispatch", "merge", "unit_size", "threshold", "executor")
                 if key in benchmark}
    config = replace(base_config, **overrides)

    start_time = time.time()
    try:
        result = WordCountRunner(config).run()
        success = True
    except WordCountError as e:
        print(f"  ❌ Run failed: {e}")
        result = None
        success = False
    duration = time.time() - start_time

    input_size = get_file_size(config.source_path)
    metrics = result.metrics if result else None
    row = {
        "benchmark_name": benchmark["name"],
        "description": benchmark["description"],
        "run_number": run_number,
        "timestamp": datetime.now().isoformat(),
        "input_file": config.source_path,
        "input_size_mb": round(input_size / 1024 / 1024, 2),
        "dispatch": config.dispatch,
        "merge": config.merge,
        "executor": config.executor,
        "worker_count": config.worker_count,
        "unit_size": config.unit_size,
        "threshold": config.threshold,
        "success": success,
        "documents_processed": result.documents_processed if result else 0,
        "units_counted": result.units_counted if result else 0,
        "elapsed_ms": result.elapsed_ms if result else int(duration * 1000),
        "documents_per_second": round(metrics.documents_per_second, 1) if metrics else 0.0,
        "peak_rss_mb": round(metrics.peak_rss_bytes / 1024 / 1024, 1) if metrics else 0.0,
    }
    if success:
        print(f"  ✓ {row['documents_processed']} pages in {row['elapsed_ms']}ms "
              f"({row['documents_per_second']} pages/s)")
    return row


def save_results(results, timestamp):
    """Save results to JSON and CSV files."""
    RESULTS_DIR.mkdir(exist_ok=True)

    json_file = RESULTS_DIR / f"benchmark_results_{timestamp}.json"
    with open(json_file, 'w') as f:
        json.dump(results, f, indent=2)
    print(f"\n✓ Results saved to: {json_file}")

    csv_file = RESULTS_DIR / f"benchmark_results_{timestamp}.csv"
    if results:
        fieldnames = list(results[0].keys())
        with open(csv_file, 'w', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(results)
        print(f"✓ Results saved to: {csv_file}")

    return json_file, csv_file


def print_summary(results):
    """Print a summary table of results."""
    print(f"\n{'='*70}")
    print("BENCHMARK SUMMARY")
    print(f"{'='*70}")
    print(f"{'Benchmark':<28} {'Dispatch':>10} {'Unit':>6} {'Runtime':>10} {'Status':>8}")
    print(f"{'-'*70}")

    for r in results:
        print(f"{r['benchmark_name']:<28} {r['dispatch']:>10} {r['unit_size']:>6} "
              f"{r['elapsed_ms']:>8}ms {'✓' if r['success'] else '✗':>8}")

    print(f"{'='*70}")

    successful = sum(1 for r in results if r['success'])
    print(f"Total: {len(results)} benchmarks, {successful} successful, "
          f"{len(results) - successful} failed")


def main():
    """Main benchmarking workflow."""
    parser = argparse.ArgumentParser(description='Benchmark word count strategies')
    parser.add_argument('--input', default=str(DEFAULT_INPUT), help='Page dump to count')
    parser.add_argument('--runs', type=int, default=1, help='Runs per benchmark (default: 1)')
    parser.add_argument('--max-documents', type=int, default=100000, help='Maximum pages per run')
    parser.add_argument('--workers', type=int, help='Worker count (default: CPU count)')
    args = parser.parse_args()

    print("="*70)
    print("Word Count Strategy Benchmark Suite")
    print("="*70)

    if not Path(args.input).exists():
        print(f"❌ Missing input dump: {args.input}")
        print("   Run scripts/generate_benchmark_inputs.py first")
        return 1

    base_config = WordCountConfig(source_path=args.input, max_documents=args.max_documents)
    if args.workers:
        base_config = replace(base_config, worker_count=args.workers)

    runs_per_benchmark = max(1, min(5, args.runs))
    print(f"\nRunning {len(BENCHMARKS)} benchmarks × {runs_per_benchmark} runs = "
          f"{len(BENCHMARKS) * runs_per_benchmark} total runs")

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    all_results = []
    for benchmark in BENCHMARKS:
        for run in range(1, runs_per_benchmark + 1):
            all_results.append(run_benchmark(base_config, benchmark, run_number=run))

    json_file, _ = save_results(all_results, timestamp)
    print_summary(all_results)

    print(f"\n{'='*70}")
    print("Next steps:")
    print(f"  1. Review results: cat {json_file}")
    print(f"  2. Generate plots: python plot_results.py {json_file}")
    print(f"{'='*70}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
