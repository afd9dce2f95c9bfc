#!/usr/bin/env python3
"""
Word Count Client CLI
Runs word counts over an XML page dump and compares concurrency strategies
"""

import argparse
import logging
import sys
from dataclasses import replace

from wikicount.common.config import (
    DISPATCH_STRATEGIES,
    EXECUTOR_KINDS,
    MERGE_STRATEGIES,
    POOLED_DISPATCH,
    WordCountConfig,
)
from wikicount.common.errors import WordCountError
from wikicount.client.reporting import format_comparison, format_duration, format_ranked, format_report, rank
from wikicount.coordinator.scheduler import WordCountRunner

logger = logging.getLogger(__name__)

# Command line flag -> config field
CONFIG_ARGS = {
    'input': 'source_path',
    'max_documents': 'max_documents',
    'unit_size': 'unit_size',
    'workers': 'worker_count',
    'threshold': 'threshold',
    'top_k': 'top_k',
    'dispatch': 'dispatch',
    'merge': 'merge',
    'executor': 'executor',
    'max_in_flight': 'max_in_flight',
    'grace_period': 'grace_period',
    'metrics_file': 'metrics_file',
}


def setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def build_config(args) -> WordCountConfig:
    """Environment defaults with explicit command line values on top"""
    config = WordCountConfig.from_env()
    overrides = {}
    for arg_name, field_name in CONFIG_ARGS.items():
        value = getattr(args, arg_name, None)
        if value is not None:
            overrides[field_name] = value
    return replace(config, **overrides).validate()


def count_words(args):
    """Run one word count and print the report"""
    try:
        config = build_config(args)
        result = WordCountRunner(config).run()
    except WordCountError as e:
        logger.error(f"Word count failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logger.info(f"Finished in {format_duration(result.elapsed_ms / 1000)}")
    print(format_report(result, config.top_k))
    return 0


def compare_strategies(args):
    """Run every dispatch strategy over the same input and check they agree"""
    try:
        base = build_config(args)
    except WordCountError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    rows = []
    reference = None
    mismatches = []
    for dispatch in DISPATCH_STRATEGIES:
        # Process pools only apply to pooled strategies
        executor = base.executor if dispatch in POOLED_DISPATCH else "thread"
        config = replace(base, dispatch=dispatch, executor=executor, metrics_file=None)
        try:
            result = WordCountRunner(config).run()
        except WordCountError as e:
            logger.error(f"{dispatch} run failed: {e}")
            print(f"Error: {dispatch} run failed: {e}", file=sys.stderr)
            return 1

        counts = dict(result.counts)
        if reference is None:
            reference = counts
        elif counts != reference:
            mismatches.append(dispatch)

        rows.append({
            'dispatch': dispatch,
            'merge': config.merge,
            'documents': result.documents_processed,
            'units': result.units_counted,
            'elapsed_ms': result.elapsed_ms,
            'documents_per_second': result.metrics.documents_per_second if result.metrics else 0.0,
        })

    print(format_comparison(rows))
    if reference is not None:
        for line in format_ranked(rank(reference, base.top_k)):
            print(line)

    if mismatches:
        print(f"Error: tables differ from {DISPATCH_STRATEGIES[0]} for: {', '.join(mismatches)}", file=sys.stderr)
        return 1
    return 0


def _add_run_arguments(parser):
    parser.add_argument('--input', help='XML page dump (default: $WIKICOUNT_SOURCE or enwiki.xml)')
    parser.add_argument('--max-documents', type=int, help='Maximum pages to read (default: 100000)')
    parser.add_argument('--unit-size', type=int, help='Pages per work unit (default: 500)')
    parser.add_argument('--workers', type=int, help='Worker count (default: CPU count)')
    parser.add_argument('--threshold', type=int, help='Split threshold for recursive dispatch (default: 500)')
    parser.add_argument('--top-k', type=int, help='Number of words to report (default: 3)')
    parser.add_argument('--merge', choices=MERGE_STRATEGIES, help='Merge strategy (default: batched)')
    parser.add_argument('--executor', choices=EXECUTOR_KINDS, help='Pool kind for pool, futures and recursive dispatch')
    parser.add_argument('--max-in-flight', type=int, help='Bound on unmerged units for incremental merge')
    parser.add_argument('--grace-period', type=float, help='Seconds to wait for pool shutdown')
    parser.add_argument('--metrics-file', help='Write run metrics as JSON to this path')


def main(argv=None):
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description='Word frequency counter for XML page dumps',
        epilog='Example: %(prog)s count --input enwiki.xml --dispatch recursive --threshold 100'
    )
    parser.add_argument('--log-level', default='WARNING', help='Logging level (default: WARNING)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Shorthand for --log-level INFO')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # count command
    count_parser = subparsers.add_parser(
        'count',
        help='Count words with one strategy',
        description='Count words in a page dump and print the most frequent ones'
    )
    _add_run_arguments(count_parser)
    count_parser.add_argument('--dispatch', choices=DISPATCH_STRATEGIES, help='Dispatch strategy (default: pool)')
    count_parser.set_defaults(func=count_words)

    # compare command
    compare_parser = subparsers.add_parser(
        'compare',
        help='Run every strategy and compare',
        description='Run all dispatch strategies on the same input, check the tables agree and print timings'
    )
    _add_run_arguments(compare_parser)
    compare_parser.set_defaults(func=compare_strategies)

    args = parser.parse_args(argv)
    setup_logging('INFO' if args.verbose else args.log_level)

    # If no command specified, print help
    if not hasattr(args, 'func'):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
