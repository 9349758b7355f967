"""Timestamp comparisons deciding cache validity and regeneration.

The comparison functions take plain modification times so they can be tested
without touching the filesystem clock; ``file_mtime`` is the only function
here that reads the disk.
"""

from __future__ import annotations

import os
from typing import Optional


def file_mtime(path: str) -> Optional[int]:
    """Modification time in nanoseconds, or None when the file is absent."""
    try:
        return os.stat(path).st_mtime_ns
    except FileNotFoundError:
        return None


def is_newer(candidate: Optional[float], reference: Optional[float]) -> bool:
    """True when ``candidate`` exists and is strictly newer than ``reference``.

    A missing reference makes any existing candidate newer.
    """
    if candidate is None:
        return False
    if reference is None:
        return True
    return candidate > reference


def cache_is_fresh(cache_mtime: Optional[float], manifest_mtime: Optional[float]) -> bool:
    """A cache is usable only when it is strictly newer than its manifest."""
    return is_newer(cache_mtime, manifest_mtime)


def needs_regeneration(
    output_mtime: Optional[float],
    cache_mtime: Optional[float],
    manifest_mtime: Optional[float],
    force: bool = False,
) -> bool:
    """Decide whether one package's generated output must be rewritten.

    A missing output or cache always forces regeneration. Otherwise the output
    must be strictly newer than both the cache and the manifest to be kept.
    """
    if force or output_mtime is None or cache_mtime is None:
        return True
    return not (is_newer(output_mtime, cache_mtime) and is_newer(output_mtime, manifest_mtime))
