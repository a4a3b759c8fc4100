"""
Default resource limits — parallel jobs and memory ceiling.

Read-only host probes (CPU count, /proc/meminfo) plus the arithmetic
that turns them into defaults. The CLI calls ``default_jobs`` and
``default_memory_mb`` lazily, so an explicit flag or environment
variable means the host is never probed.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)

MIN_JOBS = 1
MAX_JOBS = 64
MEMINFO_PATH = "/proc/meminfo"


def calc_default_jobs(cpu_count: int | None) -> int:
    """A quarter of the cores, clamped to [MIN_JOBS, MAX_JOBS]."""
    quarter = (cpu_count or 1) // 4
    return max(MIN_JOBS, min(MAX_JOBS, quarter))


def calc_default_memory_mb(total_kb: int) -> int:
    """Half of total memory, in MB."""
    return total_kb // 2 // 1024


def read_cpu_count() -> int | None:
    return os.cpu_count()


def read_total_memory_kb(path: str = MEMINFO_PATH) -> int:
    """Read MemTotal (kB) from /proc/meminfo, or 0 if unavailable."""
    try:
        with open(path) as f:
            for line in f:
                if line.startswith("MemTotal:"):
                    return int(line.split()[1])
    except (FileNotFoundError, ValueError, IndexError):
        logger.debug("Could not read MemTotal from %s", path)
    return 0


def default_jobs() -> int:
    jobs = calc_default_jobs(read_cpu_count())
    logger.debug("Computed default jobs: %d", jobs)
    return jobs


def default_memory_mb() -> int:
    memory = calc_default_memory_mb(read_total_memory_kb())
    logger.debug("Computed default memory limit: %d MB", memory)
    return memory
