#!/usr/bin/env python3
"""
Generate plots from word count benchmark results.
"""

import json
import sys
from collections import defaultdict
from pathlib import Path

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np

# Configuration
PLOTS_DIR = Path("benchmark_results/plots")


def load_results(json_file):
    """Load benchmark results from JSON file."""
    with open(json_file, 'r') as f:
        return json.load(f)


def aggregate_runs(results):
    """
    Aggregate multiple runs of the same benchmark.
    Returns dict: benchmark_name -> {avg_runtime, std_runtime, config, ...}
    """
    by_benchmark = defaultdict(list)

    for r in results:
        if r['success']:  # Only include successful runs
            by_benchmark[r['benchmark_name']].append(r)

    aggregated = {}
    for name, runs in by_benchmark.items():
        runtimes = [r['elapsed_ms'] / 1000 for r in runs]
        throughputs = [r['documents_per_second'] for r in runs]

        # Use first run for configuration data
        first = runs[0]

        aggregated[name] = {
            'benchmark_name': name,
            'description': first['description'],
            'dispatch': first['dispatch'],
            'merge': first['merge'],
            'unit_size': first['unit_size'],
            'threshold': first['threshold'],
            'documents': first['documents_processed'],
            'avg_runtime': np.mean(runtimes),
            'std_runtime': np.std(runtimes),
            'min_runtime': np.min(runtimes),
            'max_runtime': np.max(runtimes),
            'avg_throughput': np.mean(throughputs),
            'num_runs': len(runs)
        }

    return aggregated


def plot_strategy_comparison(aggregated, output_file):
    """Bar chart of runtime per dispatch strategy."""
    data = [(v['dispatch'], v['avg_runtime'], v['std_runtime'])
            for k, v in aggregated.items()
            if k.startswith('strategy_')]

    if not data:
        print("⚠️  No strategy comparison data found")
        return

    names, runtimes, stds = zip(*data)
    positions = np.arange(len(names))

    plt.figure(figsize=(10, 6))
    plt.bar(positions, runtimes, yerr=stds, capsize=5, color='steelblue')
    plt.xticks(positions, names)
    plt.xlabel('Dispatch Strategy', fontsize=12)
    plt.ylabel('Runtime (seconds)', fontsize=12)
    plt.title('Word Count Runtime by Dispatch Strategy', fontsize=14, fontweight='bold')
    plt.grid(True, axis='y', alpha=0.3)
    plt.tight_layout()
    plt.savefig(output_file, dpi=300, bbox_inches='tight')
    print(f"✓ Saved: {output_file}")
    plt.close()


def _plot_scaling(aggregated, prefix, key, xlabel, title, color, output_file):
    data = [(v[key], v['avg_runtime'], v['std_runtime'])
            for k, v in aggregated.items()
            if k.startswith(prefix)]

    if not data:
        print(f"⚠️  No {prefix.rstrip('_')} data found")
        return

    data.sort()
    xs, runtimes, stds = zip(*data)

    plt.figure(figsize=(10, 6))
    plt.errorbar(xs, runtimes, yerr=stds, marker='o', capsize=5,
                 linewidth=2, markersize=8, color=color)
    plt.xscale('log')
    plt.xlabel(xlabel, fontsize=12)
    plt.ylabel('Runtime (seconds)', fontsize=12)
    plt.title(title, fontsize=14, fontweight='bold')
    plt.xticks(xs, [str(x) for x in xs])
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig(output_file, dpi=300, bbox_inches='tight')
    print(f"✓ Saved: {output_file}")
    plt.close()


def plot_unit_size_scaling(aggregated, output_file):
    """Plot runtime vs pages per work unit."""
    _plot_scaling(aggregated, 'unit_size_', 'unit_size', 'Pages per Work Unit',
                  'Pool Dispatch: Work Unit Size', 'orangered', output_file)


def plot_threshold_scaling(aggregated, output_file):
    """Plot runtime vs recursive split threshold."""
    _plot_scaling(aggregated, 'threshold_', 'threshold', 'Split Threshold (pages)',
                  'Recursive Dispatch: Split Threshold', 'green', output_file)


def plot_speedup(aggregated, output_file):
    """Plot speedup of each strategy over the sequential baseline."""
    baseline = aggregated.get('strategy_sequential')
    data = [(v['dispatch'], v['avg_runtime'])
            for k, v in aggregated.items()
            if k.startswith('strategy_') and k != 'strategy_sequential']

    if baseline is None or not data:
        print("⚠️  Insufficient data for speedup plot")
        return

    names, runtimes = zip(*data)
    speedups = [baseline['avg_runtime'] / rt if rt > 0 else 0.0 for rt in runtimes]
    positions = np.arange(len(names))

    plt.figure(figsize=(10, 6))
    plt.bar(positions, speedups, color='slateblue')
    plt.axhline(1.0, linestyle='--', linewidth=2, color='gray', alpha=0.7, label='Sequential')
    plt.xticks(positions, names)
    plt.xlabel('Dispatch Strategy', fontsize=12)
    plt.ylabel('Speedup', fontsize=12)
    plt.title('Speedup over Sequential Counting', fontsize=14, fontweight='bold')
    plt.legend(fontsize=11)
    plt.grid(True, axis='y', alpha=0.3)
    plt.tight_layout()
    plt.savefig(output_file, dpi=300, bbox_inches='tight')
    print(f"✓ Saved: {output_file}")
    plt.close()


def generate_summary_table(aggregated, output_file):
    """Generate a markdown table summarizing all results."""
    lines = [
        "# Benchmark Results Summary\n",
        "| Benchmark | Dispatch | Merge | Unit | Threshold | Avg Runtime (s) | Std Dev | Pages/s |",
        "|-----------|----------|-------|------|-----------|-----------------|---------|---------|"
    ]

    for name in sorted(aggregated.keys()):
        v = aggregated[name]
        lines.append(
            f"| {v['benchmark_name']:<26} | {v['dispatch']:<10} | {v['merge']:<11} | "
            f"{v['unit_size']:>5} | {v['threshold']:>9} | "
            f"{v['avg_runtime']:>15.3f} | {v['std_runtime']:>7.3f} | "
            f"{v['avg_throughput']:>9.1f} |"
        )

    with open(output_file, 'w') as f:
        f.write('\n'.join(lines))

    print(f"✓ Saved: {output_file}")


def main():
    """Generate all plots from benchmark results."""
    if len(sys.argv) < 2:
        print("Usage: python plot_results.py <results.json>")
        print("\nExample:")
        print("  python plot_results.py benchmark_results/benchmark_results_20250113_120000.json")
        sys.exit(1)

    json_file = sys.argv[1]

    if not Path(json_file).exists():
        print(f"❌ File not found: {json_file}")
        sys.exit(1)

    print(f"Loading results from: {json_file}")
    results = load_results(json_file)
    print(f"✓ Loaded {len(results)} benchmark results")

    aggregated = aggregate_runs(results)
    print(f"✓ Aggregated into {len(aggregated)} unique benchmarks")

    PLOTS_DIR.mkdir(parents=True, exist_ok=True)

    print("\nGenerating plots...")
    plot_strategy_comparison(aggregated, PLOTS_DIR / "1_strategy_comparison.png")
    plot_unit_size_scaling(aggregated, PLOTS_DIR / "2_unit_size_scaling.png")
    plot_threshold_scaling(aggregated, PLOTS_DIR / "3_threshold_scaling.png")
    plot_speedup(aggregated, PLOTS_DIR / "4_speedup_analysis.png")

    generate_summary_table(aggregated, PLOTS_DIR / "results_table.md")

    print(f"\n{'='*70}")
    print(f"All plots saved to: {PLOTS_DIR}/")
    print(f"{'='*70}")


if __name__ == "__main__":
    main()
