"""Manifest discovery over a workspace tree."""

from __future__ import annotations

import logging
import os
from typing import Iterable, List

from constants import Constants
from errors import DiscoveryError
from common.logging_utils import Timer, extra_context, log_discovered_manifests

logger = logging.getLogger(__name__)


def _raise_walk_error(err: OSError) -> None:
    raise DiscoveryError(getattr(err, "filename", None) or "<unknown>", err.strerror or str(err))


def find_manifests(
    root: str,
    excluded: Iterable[str] = Constants.EXCLUDED_DIRECTORIES,
    manifest_name: str = Constants.MANIFEST_FILE,
) -> List[str]:
    """Recursively find manifest files under ``root``.

    The root directory is itself a candidate package. Excluded directory names
    and hidden directories are pruned without being descended into.

    Args:
        root: Workspace root directory.
        excluded: Directory names never descended into.
        manifest_name: File name identifying a package.

    Returns:
        Sorted absolute manifest paths; empty when no packages exist.

    Raises:
        DiscoveryError: If the root is missing or any directory cannot be listed.
    """
    root = os.path.abspath(root)
    if not os.path.exists(root):
        raise DiscoveryError(root, "directory does not exist")
    if not os.path.isdir(root):
        raise DiscoveryError(root, "not a directory")

    skip = set(excluded)
    manifests: List[str] = []
    with Timer() as timer:
        for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
            dirnames[:] = sorted(
                d for d in dirnames if d not in skip and not d.startswith(".")
            )
            if manifest_name in filenames:
                manifests.append(os.path.join(dirpath, manifest_name))

    manifests.sort()
    logger.info("Found %d package(s) under %s", len(manifests), root)
    logger.debug(
        "Discovery finished",
        extra=extra_context(
            event="discovery_done", component="scanner", count=len(manifests), duration_ms=timer.duration_ms()
        ),
    )
    log_discovered_manifests(logger, manifests)
    return manifests
