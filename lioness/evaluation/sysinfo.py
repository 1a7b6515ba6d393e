"""
System information capture for reproducible benchmark results.
"""

import platform
import sys
from datetime import datetime
from importlib import metadata
from typing import Any, Dict

import psutil

TRACKED_DISTRIBUTIONS = ("cryptography", "blake3", "psutil")


def capture_system_info() -> Dict[str, Any]:
    """Capture system information for benchmark reproducibility."""
    return {
        "timestamp": datetime.now().isoformat(),
        "system": get_system_info(),
        "python": get_python_info(),
        "hardware": get_hardware_info(),
        "libraries": get_library_versions()
    }


def get_system_info() -> Dict[str, Any]:
    """Get operating system information."""
    return {
        "platform": platform.platform(),
        "system": platform.system(),
        "release": platform.release(),
        "machine": platform.machine(),
        "processor": platform.processor()
    }


def get_python_info() -> Dict[str, Any]:
    """Get Python interpreter information."""
    return {
        "version": sys.version,
        "implementation": platform.python_implementation(),
        "executable": sys.executable,
    }


def get_hardware_info() -> Dict[str, Any]:
    """Get CPU and memory information."""
    cpu_freq = psutil.cpu_freq()
    memory = psutil.virtual_memory()

    hardware = {
        "cpu": {
            "physical_cores": psutil.cpu_count(logical=False),
            "logical_cores": psutil.cpu_count(logical=True),
            "max_frequency_mhz": cpu_freq.max if cpu_freq else None,
        },
        "memory": {
            "total_gb": round(memory.total / (1024**3), 2),
            "available_gb": round(memory.available / (1024**3), 2),
        },
    }

    # CPU model is only exposed on Linux
    try:
        with open('/proc/cpuinfo', 'r') as f:
            for line in f:
                if 'model name' in line:
                    hardware["cpu_model"] = line.split(':')[1].strip()
                    break
    except (FileNotFoundError, PermissionError):
        pass

    return hardware


def get_library_versions() -> Dict[str, str]:
    """Get versions of the libraries LIONESS depends on."""
    versions = {}
    for name in TRACKED_DISTRIBUTIONS:
        try:
            versions[name] = metadata.version(name)
        except metadata.PackageNotFoundError:
            versions[name] = "not available"
    return versions
