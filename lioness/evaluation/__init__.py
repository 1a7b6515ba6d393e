"""
Evaluation and benchmarking tools for LIONESS.
"""

from .benchmark import (
    BenchmarkResult,
    DiffusionResult,
    PerformanceBenchmark,
    measure_diffusion,
    run_comprehensive_benchmark,
)
from .runner import main as run_evaluation
from .sysinfo import capture_system_info
