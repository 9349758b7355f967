"""Load package descriptions from the on-disk cache or the introspection command."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from typing import Dict, Optional, Sequence, Tuple

from constants import Constants
from errors import DecodeFailure, DescribeFailure, DescribeTimeout
from common.logging_utils import Timer, extra_context, is_debug_enabled
from description import PackageDescriptor, SwiftSetting, decode_json, dumps_description
from scanner.process import run_process
from scanner.settings import decode_dump_settings
from scanner.staleness import cache_is_fresh, file_mtime

logger = logging.getLogger(__name__)


class DescriptionLoader:
    """Produce a ``PackageDescriptor`` for a manifest path.

    A cache file beside the manifest is used when it is strictly newer than
    the manifest. Otherwise the describe command runs in the package
    directory (and, when enabled, the dump command alongside it for compiler
    settings); the result is written back to the cache on a best-effort basis.
    """

    def __init__(
        self,
        timeout: float = Constants.DESCRIBE_TIMEOUT_SEC,
        describe_command: Sequence[str] = Constants.DESCRIBE_COMMAND,
        dump_command: Sequence[str] = Constants.DUMP_COMMAND,
        merge_settings: bool = True,
        grace: float = Constants.TERMINATE_GRACE_SEC,
        cache_name: str = Constants.CACHE_FILE,
    ):
        self.timeout = timeout
        self.describe_command = tuple(describe_command)
        self.dump_command = tuple(dump_command)
        self.merge_settings = merge_settings
        self.grace = grace
        self.cache_name = cache_name
        self.spawned = 0

    def cache_path(self, manifest_path: str) -> str:
        return os.path.join(os.path.dirname(os.path.abspath(manifest_path)), self.cache_name)

    def load_cached(self, manifest_path: str) -> Optional[PackageDescriptor]:
        """Return the cached descriptor when the cache is fresh and decodable."""
        cache = self.cache_path(manifest_path)
        if not cache_is_fresh(file_mtime(cache), file_mtime(manifest_path)):
            return None
        try:
            with open(cache, "r", encoding="utf-8") as handle:
                text = handle.read()
            return decode_json(text, os.path.dirname(cache))
        except (OSError, DecodeFailure) as exc:
            logger.debug("Ignoring unreadable cache %s: %s", cache, exc)
            return None

    async def load(self, manifest_path: str) -> PackageDescriptor:
        """Load one manifest's description.

        Raises:
            DescribeFailure: The describe command exited non-zero or could not start.
            DecodeFailure: Its output is not a valid description.
            DescribeTimeout: It did not finish within the timeout.
        """
        cached = self.load_cached(manifest_path)
        if cached is not None:
            logger.debug("Using cached description for %s", os.path.dirname(manifest_path))
            return cached

        descriptor = await self.describe(manifest_path)
        self.write_cache(manifest_path, descriptor)
        return descriptor

    async def describe(self, manifest_path: str) -> PackageDescriptor:
        """Run the introspection command(s) for a manifest, bypassing the cache."""
        directory = os.path.dirname(os.path.abspath(manifest_path))
        if not self.merge_settings:
            return await self._describe(directory)

        dump_task = asyncio.ensure_future(self._dump_settings(directory))
        try:
            descriptor = await self._describe(directory)
        except BaseException:
            dump_task.cancel()
            await asyncio.gather(dump_task, return_exceptions=True)
            raise
        return descriptor.with_swift_settings(await dump_task)

    async def _describe(self, directory: str) -> PackageDescriptor:
        self.spawned += 1
        with Timer() as timer:
            try:
                result = await run_process(self.describe_command, cwd=directory, timeout=self.timeout, grace=self.grace)
            except TimeoutError as exc:
                raise DescribeTimeout(directory, self.timeout) from exc
            except OSError as exc:
                raise DescribeFailure(directory, str(exc)) from exc
        if is_debug_enabled(logger):
            logger.debug(
                "Describe finished",
                extra=extra_context(
                    event="describe", component="loader", path=directory,
                    returncode=result.returncode, duration_ms=timer.duration_ms(),
                ),
            )
        if result.returncode != 0:
            raise DescribeFailure(directory, result.stderr)
        return decode_json(result.stdout, directory)

    async def _dump_settings(self, directory: str) -> Dict[str, Tuple[SwiftSetting, ...]]:
        try:
            result = await run_process(self.dump_command, cwd=directory, timeout=self.timeout, grace=self.grace)
        except OSError as exc:
            logger.debug("Skipping compiler settings for %s: %s", directory, exc)
            return {}
        if result.returncode != 0:
            logger.debug("Skipping compiler settings for %s: dump exited %d", directory, result.returncode)
            return {}
        try:
            return decode_dump_settings(json.loads(result.stdout))
        except json.JSONDecodeError as exc:
            logger.debug("Skipping compiler settings for %s: %s", directory, exc)
            return {}

    def write_cache(self, manifest_path: str, descriptor: PackageDescriptor) -> bool:
        """Atomically write the cache file; failures are logged and reported as False."""
        cache = self.cache_path(manifest_path)
        directory = os.path.dirname(cache)
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".package-description-", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(dumps_description(descriptor))
            os.replace(tmp_path, cache)
            tmp_path = None
            logger.debug("Cached description for %s", directory)
            return True
        except OSError as exc:
            logger.warning("Failed to write description cache %s: %s", cache, exc)
            return False
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
