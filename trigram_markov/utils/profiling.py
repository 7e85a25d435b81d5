"""
Profiling hooks for the command line pipeline.

`cpu_profile` wraps a block in cProfile and dumps a stats file readable with
`python -m pstats`. `write_memory_profile` stores a snapshot of the process
memory reported by the ResourceMonitor.
"""

import cProfile
import json
from contextlib import contextmanager


@contextmanager
def cpu_profile(path, logger=None):
    """
    Profiles the CPU usage of the enclosed block.

    Args:
        path (str or None): Stats file to write; profiling is skipped when None
        logger (Logger, optional): Receives a message naming the stats file
    """
    if not path:
        yield None
        return

    profiler = cProfile.Profile()
    profiler.enable()
    try:
        yield profiler
    finally:
        profiler.disable()
        profiler.dump_stats(path)
        if logger is not None:
            logger.info(f"CPU profile written to {path}")


def write_memory_profile(path, monitor, logger=None):
    """
    Writes the current memory usage of the process as JSON.

    Args:
        path (str): Output file
        monitor (ResourceMonitor): Source of the resource metrics

    Returns:
        dict: The snapshot that was written
    """
    snapshot = monitor.get_resource_usage()
    with open(path, "w") as f:
        json.dump(snapshot, f, indent=2)

    if logger is not None:
        logger.info(f"Memory profile written to {path}", extra={
            "metrics": snapshot["memory"]
        })
    return snapshot
