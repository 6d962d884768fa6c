# clip_scout/telemetry.py
"""
Periodic resource statistics for long crawls.
"""
from __future__ import annotations

import asyncio
import gc
from typing import Dict

import psutil

from clip_scout.logger import logger

_MIB = 1024 * 1024


def memory_stats() -> Dict[str, float]:
    """Current memory, live asyncio tasks and garbage collections of this process."""
    memory = psutil.Process().memory_info()
    system = psutil.virtual_memory()
    try:
        tasks = len(asyncio.all_tasks())
    except RuntimeError:
        tasks = 0
    return {
        "rss_mib": round(memory.rss / _MIB, 2),
        "vms_mib": round(memory.vms / _MIB, 2),
        "system_available_mib": round(system.available / _MIB, 2),
        "tasks": tasks,
        "gc_collections": sum(gen["collections"] for gen in gc.get_stats()),
    }


def log_memory_stats() -> None:
    stats = memory_stats()
    lines = ["=" * 72, "Memory Profile:"]
    lines.extend(f"\t{key}: {value}" for key, value in stats.items())
    lines.append("=" * 72)
    logger.info("\n".join(lines))


async def run_memstats(interval: float) -> None:
    """Log :func:`memory_stats` every *interval* seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        log_memory_stats()
