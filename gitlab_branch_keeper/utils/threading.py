"""Threading utilities for sizing worker pools."""

import os
import sys
from typing import Any, Dict, Optional


def is_free_threading_enabled() -> bool:
    """Return True when running on a free-threaded (GIL disabled) interpreter."""
    check = getattr(sys, "_is_gil_enabled", None)
    return check is not None and not check()


def get_optimal_worker_count(user_specified: Optional[int] = None, cap: Optional[int] = None) -> int:
    """Calculate a worker count for I/O-bound fan-out.

    Args:
        user_specified: Explicit worker count, wins when positive
        cap: Optional upper bound applied to the auto-detected value

    Returns:
        Number of workers to use
    """
    if user_specified is not None and user_specified > 0:
        return user_specified

    cpu_count = os.cpu_count() or 1

    if is_free_threading_enabled():
        workers = min(64, cpu_count * 2)
    else:
        # CPU_count + 4 is the usual heuristic for I/O-bound work
        workers = min(32, cpu_count + 4)

    if cap is not None:
        workers = min(workers, cap)
    return max(1, workers)


def get_threading_info() -> Dict[str, Any]:
    """Summary of the interpreter's threading configuration, for --debug output."""
    return {
        "free_threading": is_free_threading_enabled(),
        "cpu_count": os.cpu_count() or 1,
        "optimal_workers": get_optimal_worker_count(),
        "python_version": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
    }
