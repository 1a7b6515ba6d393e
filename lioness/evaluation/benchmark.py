"""
Benchmark module for LIONESS.

Measures encryption/decryption throughput and memory use per primitive pair
and block size, and estimates diffusion (avalanche) behaviour of a keyed
cipher.
"""

import gc
import logging
import statistics
import time
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

import psutil

from ..cipher import Lioness
from ..crypto.kdf import generate_master_key, required_key_size
from ..crypto.mac import MAC, Blake3MAC, HMACSHA256
from ..crypto.stream import AES256CTRStream, ChaCha20Stream, StreamCipher
from ..crypto.utils import generate_random_bytes

DEFAULT_PAIRS: List[Tuple[Type[StreamCipher], Type[MAC]]] = [
    (ChaCha20Stream, Blake3MAC),
    (AES256CTRStream, Blake3MAC),
    (ChaCha20Stream, HMACSHA256),
]


@dataclass
class BenchmarkResult:
    """Container for benchmark results."""
    name: str
    algorithm: str
    operation: str
    block_size: int
    iterations: int
    total_time: float
    avg_time: float
    std_dev: float
    throughput_mbps: float
    memory_usage: Optional[Dict[str, float]] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DiffusionResult:
    """Avalanche statistics for single-bit plaintext flips."""
    algorithm: str
    block_size: int
    trials: int
    mean_byte_change: float
    min_byte_change: float
    mean_bit_change: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _bit_count(value: int) -> int:
    return bin(value).count("1")


def measure_diffusion(cipher: Lioness, block_size: int, trials: int = 32) -> DiffusionResult:
    """
    Flip one random plaintext bit per trial and compare ciphertexts.

    Args:
        cipher: Keyed cipher to test
        block_size: Length of the random plaintexts
        trials: Number of single-bit flips

    Returns:
        DiffusionResult with changed byte/bit fractions
    """
    byte_changes = []
    bit_changes = []

    for _ in range(trials):
        plaintext = bytearray(generate_random_bytes(block_size))
        position = int.from_bytes(generate_random_bytes(4), 'big') % (block_size * 8)

        flipped = bytearray(plaintext)
        flipped[position // 8] ^= 1 << (position % 8)

        c1 = cipher.encrypt(bytes(plaintext))
        c2 = cipher.encrypt(bytes(flipped))

        byte_changes.append(sum(a != b for a, b in zip(c1, c2)) / block_size)
        bit_changes.append(sum(_bit_count(a ^ b) for a, b in zip(c1, c2)) / (block_size * 8))

    return DiffusionResult(
        algorithm=cipher.algorithm_name,
        block_size=block_size,
        trials=trials,
        mean_byte_change=statistics.mean(byte_changes),
        min_byte_change=min(byte_changes),
        mean_bit_change=statistics.mean(bit_changes),
    )


class PerformanceBenchmark:
    """
    Performance benchmarking for LIONESS primitive pairs.
    """

    def __init__(self):
        """Initialize benchmark suite."""
        self.results: List[BenchmarkResult] = []
        self.logger = logging.getLogger(__name__)

    def measure_memory_usage(self) -> Dict[str, float]:
        """
        Measure current memory usage.

        Returns:
            Dictionary with memory statistics in MB
        """
        process = psutil.Process()
        memory_info = process.memory_info()

        return {
            'rss': memory_info.rss / 1024 / 1024,
            'vms': memory_info.vms / 1024 / 1024,
            'percent': process.memory_percent()
        }

    def _time_operation(self, cipher: Lioness, operation: str, block_size: int,
                        iterations: int) -> BenchmarkResult:
        block = bytearray(generate_random_bytes(block_size))
        transform = cipher.encrypt_block if operation == 'encrypt' else cipher.decrypt_block

        gc.collect()
        memory_before = self.measure_memory_usage()

        times = []
        for _ in range(iterations):
            start = time.perf_counter()
            transform(block)
            times.append(time.perf_counter() - start)

        memory_after = self.measure_memory_usage()
        total_time = sum(times)
        avg_time = total_time / iterations

        return BenchmarkResult(
            name=f"{operation.capitalize()}-{cipher.algorithm_name}-{block_size}B",
            algorithm=cipher.algorithm_name,
            operation=operation,
            block_size=block_size,
            iterations=iterations,
            total_time=total_time,
            avg_time=avg_time,
            std_dev=statistics.stdev(times) if iterations > 1 else 0.0,
            throughput_mbps=(block_size / avg_time) / 1024 / 1024 if avg_time > 0 else 0.0,
            memory_usage={
                'rss_delta': memory_after['rss'] - memory_before['rss'],
                'vms_delta': memory_after['vms'] - memory_before['vms'],
            },
        )

    def benchmark_pair(self, stream: Type[StreamCipher], mac: Type[MAC],
                       block_sizes: Sequence[int],
                       iterations: int = 1000) -> List[BenchmarkResult]:
        """
        Benchmark encryption and decryption for one primitive pair.

        Block sizes not larger than the MAC output are skipped.

        Args:
            stream: Stream cipher class
            mac: MAC class
            block_sizes: Block lengths to test
            iterations: Transforms per block size and direction

        Returns:
            List of benchmark results
        """
        cipher = Lioness(generate_master_key(required_key_size(stream, mac)), stream, mac)
        self.logger.info(f"Benchmarking {cipher.algorithm_name}")

        results = []
        for size in block_sizes:
            if size < cipher.min_block_size:
                self.logger.warning(
                    f"Skipping {size}B for {cipher.algorithm_name}: "
                    f"minimum block size is {cipher.min_block_size}B"
                )
                continue
            for operation in ('encrypt', 'decrypt'):
                result = self._time_operation(cipher, operation, size, iterations)
                results.append(result)
                self.results.append(result)

        return results

    def compare_primitives(self, block_sizes: Sequence[int], iterations: int = 1000,
                           pairs: Optional[Sequence[Tuple[Type[StreamCipher], Type[MAC]]]] = None
                           ) -> Dict[str, List[BenchmarkResult]]:
        """
        Benchmark several primitive pairs.

        Returns:
            Dictionary keyed by algorithm name
        """
        comparison = {}
        for stream, mac in pairs or DEFAULT_PAIRS:
            results = self.benchmark_pair(stream, mac, block_sizes, iterations)
            if results:
                comparison[results[0].algorithm] = results
        return comparison

    def generate_report(self) -> str:
        """
        Generate a text report of all results collected so far.
        """
        if not self.results:
            return "No benchmark results available."

        lines = ["LIONESS Performance Report", "=" * 50, ""]
        for result in self.results:
            lines.append(
                f"{result.name}: {result.avg_time * 1e6:.1f} us/block, "
                f"{result.throughput_mbps:.2f} MB/s"
            )
        return "\n".join(lines)


def run_comprehensive_benchmark(block_sizes: Sequence[int] = (64, 256, 1024, 4096),
                                iterations: int = 200,
                                diffusion_trials: int = 32) -> Dict[str, Any]:
    """
    Run throughput and diffusion measurements for the default primitive pairs.

    Returns:
        Dictionary with ``performance`` and ``diffusion`` result lists
    """
    benchmark = PerformanceBenchmark()
    comparison = benchmark.compare_primitives(block_sizes, iterations)

    diffusion = []
    for stream, mac in DEFAULT_PAIRS:
        cipher = Lioness(generate_master_key(required_key_size(stream, mac)), stream, mac)
        size = max(max(block_sizes), cipher.min_block_size)
        diffusion.append(measure_diffusion(cipher, size, diffusion_trials).to_dict())

    return {
        'performance': {
            name: [r.to_dict() for r in results] for name, results in comparison.items()
        },
        'diffusion': diffusion,
        'report': benchmark.generate_report(),
    }
