"""Utility functions for review-keeper.

This package provides utility modules:
- process: Subprocess execution with typed errors and JSON extraction
- threading: Worker sizing and a readers-writer lock
"""

from .process import run_command, run_json, clean_output_json, best_effort
from .threading import (
    ReadWriteLock,
    is_free_threading_enabled,
    get_python_threading_mode,
    get_optimal_worker_count,
    get_threading_info,
)

__all__ = [
    # Process
    "run_command",
    "run_json",
    "clean_output_json",
    "best_effort",
    # Threading
    "ReadWriteLock",
    "is_free_threading_enabled",
    "get_python_threading_mode",
    "get_optimal_worker_count",
    "get_threading_info",
]
