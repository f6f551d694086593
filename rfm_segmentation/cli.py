#!/usr/bin/env python3
"""
RFM Segmentation - Main Runner
==============================

Command-line interface for the RFM segmentation pipeline.

Usage:
    rfm-segmentation --task rfm --data data/transactions.csv
    rfm-segmentation --task select-k --data outputs/rfm.csv
    rfm-segmentation --task segment --data outputs/rfm.csv --n-clusters 4

Examples:
    # Inspect inertia and silhouette for K = 2..8
    rfm-segmentation --task select-k --data rfm.csv --k-min 2 --k-max 8

    # Segment with the configured labels and a different seed
    rfm-segmentation --task segment --data rfm.csv --random-state 7
"""

import argparse
import sys
from pathlib import Path
from typing import Optional, List, Dict, Any
import pandas as pd
from loguru import logger

from .common import load_config, DataLoader, Visualizer, Reporter
from .customer_segmentation import RFMFeatureEngineer, SegmentationPipeline, SegmentAnalyzer
from .exceptions import SegmentationError


def setup_logging(log_level: str = "INFO"):
    """Configure logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>"
    )


def build_overrides(args) -> Dict[str, Any]:
    """Translate CLI flags into configuration overrides."""
    overrides: Dict[str, Any] = {'clustering': {}, 'selection': {}}

    if args.n_clusters is not None:
        overrides['clustering']['n_clusters'] = args.n_clusters
    if args.random_state is not None:
        overrides['clustering']['random_state'] = args.random_state
    if args.n_init is not None:
        overrides['clustering']['n_init'] = args.n_init
    if args.max_iter is not None:
        overrides['clustering']['max_iter'] = args.max_iter
    if args.k_min is not None:
        overrides['selection']['k_min'] = args.k_min
    if args.k_max is not None:
        overrides['selection']['k_max'] = args.k_max
    if args.no_silhouette:
        overrides['selection']['compute_silhouette'] = False
    if args.output is not None:
        overrides['output'] = {'dir': args.output}

    return overrides


def run_rfm(args, config):
    """Build the RFM table from raw transactions."""
    logger.info("Starting RFM Aggregation")

    transactions = pd.read_csv(args.data, sep=config['data'].get('delimiter', ','))

    engineer = RFMFeatureEngineer()
    rfm = engineer.calculate_rfm(transactions)

    reporter = Reporter(output_dir=config['output']['dir'])
    path = reporter.export_rfm(rfm, 'rfm.csv')

    logger.info(f"RFM aggregation complete. Results saved to {path}")
    return rfm


def run_select_k(args, config):
    """Run the elbow/silhouette diagnostics."""
    logger.info("Starting Cluster Selection Diagnostics")

    loader = DataLoader.from_config(config)
    rfm = loader.load_rfm_table(args.data)

    pipeline = SegmentationPipeline(config)
    diagnostics = pipeline.select_k(rfm)

    output = config['output']
    reporter = Reporter(output_dir=output['dir'])
    reporter.export_diagnostics(diagnostics, output['diagnostics_file'])

    viz = Visualizer(output_dir=output['dir'])
    viz.plot_selection(diagnostics, save_name=output['plot_file'])

    for _, row in diagnostics.iterrows():
        logger.info(f"k={int(row['k'])}: inertia={row['inertia']:.2f}, silhouette={row['silhouette']:.3f}")

    logger.info("Choose K from the elbow of the inertia curve and pass it with --n-clusters")
    return diagnostics


def run_segmentation(args, config):
    """Run customer segmentation pipeline."""
    logger.info("Starting Customer Segmentation Pipeline")

    loader = DataLoader.from_config(config)
    rfm = loader.load_rfm_table(args.data)

    pipeline = SegmentationPipeline(config)
    result = pipeline.run(rfm)

    analyzer = SegmentAnalyzer(value_columns=pipeline.feature_columns)
    insights = analyzer.analyze_segments(result.segments, labels=config['labels'])
    logger.info(f"\n{insights['summary']}")

    output = config['output']
    reporter = Reporter(output_dir=output['dir'], delimiter=config['data'].get('delimiter', ','))
    reporter.export_segments(result.segments, output['segments_file'], columns=pipeline.output_columns)

    summary = result.to_summary()
    summary['statistical_tests'] = insights['statistical_tests']
    summary['labels'] = config['labels']
    reporter.write_summary(summary, output['summary_file'])

    if not result.converged:
        logger.warning("Segmentation finished without convergence; see summary 'converged' flag")

    logger.info(f"Segmentation complete. Results saved to {output['dir']}")
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='RFM Customer Segmentation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument(
        '--task',
        choices=['rfm', 'select-k', 'segment'],
        required=True,
        help='Pipeline task to run'
    )

    parser.add_argument(
        '--data',
        type=str,
        required=True,
        help='Path to input data file (transactions for rfm, RFM table otherwise)'
    )

    parser.add_argument(
        '--config',
        type=str,
        default='config/settings.yaml',
        help='Path to configuration file'
    )

    parser.add_argument(
        '--output',
        type=str,
        default=None,
        help='Output directory for results (overrides config)'
    )

    parser.add_argument(
        '--log-level',
        type=str,
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level'
    )

    # Clustering options
    parser.add_argument('--n-clusters', type=int, default=None, help='Number of clusters (K)')
    parser.add_argument('--random-state', type=int, default=None, help='Random seed')
    parser.add_argument('--n-init', type=int, default=None, help='Number of K-Means initializations')
    parser.add_argument('--max-iter', type=int, default=None, help='Maximum iterations per initialization')

    # Selection options
    parser.add_argument('--k-min', type=int, default=None, help='Smallest K to evaluate')
    parser.add_argument('--k-max', type=int, default=None, help='Largest K to evaluate')
    parser.add_argument('--no-silhouette', action='store_true', help='Skip silhouette scores')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    tasks = {
        'rfm': run_rfm,
        'select-k': run_select_k,
        'segment': run_segmentation,
    }

    try:
        config = load_config(args.config, overrides=build_overrides(args))
        Path(config['output']['dir']).mkdir(parents=True, exist_ok=True)
        tasks[args.task](args, config)
    except (SegmentationError, FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
