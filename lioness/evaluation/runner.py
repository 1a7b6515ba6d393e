#!/usr/bin/env python3
"""
Evaluation runner for LIONESS.

Usage:
    python -m lioness.evaluation.runner performance [--block-sizes 64,256] [--iterations N]
    python -m lioness.evaluation.runner diffusion [--block-size N] [--trials N]
    python -m lioness.evaluation.runner all [--quick]
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

from ..cipher import Lioness
from ..crypto.kdf import generate_master_key, required_key_size
from ..crypto.mac import MAC, get_mac
from ..crypto.stream import StreamCipher, UnknownPrimitiveError, get_stream_cipher
from .benchmark import DEFAULT_PAIRS, PerformanceBenchmark, measure_diffusion
from .sysinfo import capture_system_info

logger = logging.getLogger(__name__)


def parse_sizes(value: str) -> List[int]:
    """Parse a comma-separated list of block sizes."""
    try:
        return [int(x.strip()) for x in value.split(',') if x.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid size list: {value}")


def parse_pairs(value: Optional[str]) -> List[Tuple[Type[StreamCipher], Type[MAC]]]:
    """Parse ``stream:mac,stream:mac`` into primitive class pairs."""
    if not value:
        return list(DEFAULT_PAIRS)

    pairs = []
    for item in value.split(','):
        stream_name, _, mac_name = item.partition(':')
        pairs.append((get_stream_cipher(stream_name), get_mac(mac_name or 'blake3')))
    return pairs


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(prog='lioness-eval', description='LIONESS Evaluation Suite')
    parser.add_argument('--output', type=str, help='Write JSON results to this file')
    parser.add_argument('--pairs', type=str,
                        help='Comma-separated stream:mac pairs (default: built-in set)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Sub-commands')

    performance_parser = subparsers.add_parser('performance', help='Run throughput benchmarks')
    performance_parser.add_argument('--block-sizes', type=parse_sizes, default=[64, 256, 1024, 4096],
                                    help='Comma-separated block sizes to test')
    performance_parser.add_argument('--iterations', type=int, default=500,
                                    help='Iterations per block size (default: 500)')

    diffusion_parser = subparsers.add_parser('diffusion', help='Measure avalanche behaviour')
    diffusion_parser.add_argument('--block-size', type=int, default=256,
                                  help='Block size for diffusion trials (default: 256)')
    diffusion_parser.add_argument('--trials', type=int, default=64,
                                  help='Number of single-bit flips (default: 64)')

    all_parser = subparsers.add_parser('all', help='Run all evaluations')
    all_parser.add_argument('--quick', action='store_true',
                            help='Run with reduced parameters for quick testing')

    return parser


def run_performance(pairs, block_sizes: Sequence[int], iterations: int) -> Dict[str, Any]:
    benchmark = PerformanceBenchmark()
    comparison = benchmark.compare_primitives(block_sizes, iterations, pairs)
    print(benchmark.generate_report())
    return {name: [r.to_dict() for r in results] for name, results in comparison.items()}


def run_diffusion(pairs, block_size: int, trials: int) -> List[Dict[str, Any]]:
    results = []
    for stream, mac in pairs:
        cipher = Lioness(generate_master_key(required_key_size(stream, mac)), stream, mac)
        if block_size < cipher.min_block_size:
            logger.warning(f"Skipping {cipher.algorithm_name}: block size below "
                           f"{cipher.min_block_size}B")
            continue
        result = measure_diffusion(cipher, block_size, trials)
        print(f"{result.algorithm} ({block_size}B): "
              f"{result.mean_byte_change:.1%} bytes changed on average, "
              f"{result.min_byte_change:.1%} minimum, "
              f"{result.mean_bit_change:.1%} bits")
        results.append(result.to_dict())
    return results


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the evaluation runner."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(asctime)s %(name)s %(levelname)s %(message)s')

    if not args.command:
        parser.print_help()
        return 1

    try:
        pairs = parse_pairs(args.pairs)
    except UnknownPrimitiveError as e:
        print(f"Error: {e.args[0]}", file=sys.stderr)
        return 1

    results: Dict[str, Any] = {'command': args.command, 'system_info': capture_system_info()}

    if args.command == 'performance':
        results['performance'] = run_performance(pairs, args.block_sizes, args.iterations)
    elif args.command == 'diffusion':
        results['diffusion'] = run_diffusion(pairs, args.block_size, args.trials)
    elif args.command == 'all':
        iterations = 50 if args.quick else 500
        trials = 16 if args.quick else 64
        results['performance'] = run_performance(pairs, [256, 1024] if args.quick
                                                 else [64, 256, 1024, 4096], iterations)
        results['diffusion'] = run_diffusion(pairs, 256, trials)

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            json.dump(results, f, indent=2, default=str)
        print(f"Results saved to: {args.output}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
