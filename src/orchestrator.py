"""Drive a whole-workspace conversion.

Phases: discovery, bounded-concurrency loading, per-package skip and
staleness decisions, index and path matrix construction from every loaded
package, bounded-concurrency conversion and writing, then validation of the
aggregated external dependencies.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from constants import Constants
from cli_config import ConverterConfig
from common.concurrency import BoundedPool, ProgressCounter
from common.logging_utils import Timer, extra_context
from conversion.convert import ConvertedProject, ProjectConverter
from conversion.validator import TuistPackageValidator, ValidationReport
from conversion.writer import ProjectWriter
from description.models import ExternalDependencySpec, PackageDescriptor
from graph.index import DependencyGraphIndex, has_library_product
from graph.paths import PathMatrix, relative_path
from scanner.discovery import find_manifests
from scanner.loader import DescriptionLoader
from scanner.staleness import file_mtime, needs_regeneration

logger = logging.getLogger(__name__)

SKIP_NO_LIBRARY = "no library product"
SKIP_PLATFORM = "platform filtered"


@dataclass(frozen=True)
class LoadedPackage:
    """A package whose description loaded successfully."""
    manifest: str
    descriptor: PackageDescriptor

    @property
    def directory(self) -> str:
        return os.path.dirname(self.manifest)


@dataclass
class RunSummary:
    """Outcome of one run, keyed by package directory."""

    root: str
    discovered: int = 0
    loaded: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    skipped: Dict[str, str] = field(default_factory=dict)
    up_to_date: List[str] = field(default_factory=list)
    written: List[str] = field(default_factory=list)
    conversion_failures: Dict[str, str] = field(default_factory=dict)
    projects: Dict[str, ConvertedProject] = field(default_factory=dict)
    external_dependencies: List[ExternalDependencySpec] = field(default_factory=list)
    validation: ValidationReport = field(default_factory=ValidationReport)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed or self.conversion_failures)


class WorkspaceConverter:
    """Run discovery, loading, resolution and writing for one workspace root."""

    def __init__(
        self,
        config: ConverterConfig,
        loader: Optional[DescriptionLoader] = None,
        converter: Optional[ProjectConverter] = None,
        writer: Optional[ProjectWriter] = None,
        validator: Optional[TuistPackageValidator] = None,
    ):
        self.config = config
        self.root = os.path.abspath(config.root)
        self.loader = loader or DescriptionLoader(
            timeout=config.describe_timeout,
            describe_command=config.describe_command,
            dump_command=config.dump_command,
            merge_settings=config.merge_settings,
        )
        self.converter = converter or ProjectConverter(config.bundle_id_prefix, config.product_type)
        self.writer = writer or ProjectWriter(dry_run=config.dry_run)
        self.validator = validator or TuistPackageValidator(self.loader, config.tuist_dir)
        self.load_pool = BoundedPool(config.max_concurrency, name="load")
        self.convert_pool = BoundedPool(config.max_concurrency, name="convert")

    async def run(self) -> RunSummary:
        """Convert the workspace.

        Raises:
            DiscoveryError: If the workspace cannot be enumerated; nothing is
                scheduled in that case.
        """
        summary = RunSummary(root=self.root)
        with Timer() as timer:
            manifests = find_manifests(self.root)
            summary.discovered = len(manifests)
            if not manifests:
                logger.info("No %s files found.", Constants.MANIFEST_FILE)
                return summary

            packages = await self.load_all(manifests, summary)
            index = self.build_index(packages)
            matrix = PathMatrix.build(p.directory for p in packages)
            work = self.select_work(packages, summary)
            await self.convert_all(work, packages, index, matrix, summary)

            summary.external_dependencies = index.all_external_dependencies()
            if summary.external_dependencies:
                summary.validation = await self.validator.validate(summary.external_dependencies, self.root)

        logger.debug(
            "Run finished",
            extra=extra_context(
                event="run_done",
                component="orchestrator",
                discovered=summary.discovered,
                written=len(summary.written),
                duration_ms=timer.duration_ms(),
            ),
        )
        return summary

    async def load_all(self, manifests: List[str], summary: RunSummary) -> List[LoadedPackage]:
        """Load every manifest; failures are recorded and excluded."""
        progress = ProgressCounter(len(manifests), label="Loaded")

        async def _load(manifest: str) -> PackageDescriptor:
            try:
                descriptor = await self.loader.load(manifest)
            except Exception as exc:
                await progress.increment_failed(os.path.dirname(manifest), exc)
                raise
            await progress.increment(descriptor.name)
            return descriptor

        packages = []
        for result in await self.load_pool.run(manifests, _load):
            directory = os.path.dirname(result.item)
            if result.ok:
                packages.append(LoadedPackage(result.item, result.value))
                summary.loaded.append(directory)
            else:
                summary.failed[directory] = str(result.error)
        return packages

    def build_index(self, packages: List[LoadedPackage]) -> DependencyGraphIndex:
        """Index every loaded package, with paths relative to the workspace root."""
        index = DependencyGraphIndex()
        for package in sorted(packages, key=lambda p: p.directory):
            index.register_descriptor(package.descriptor, relative_path(self.root, package.directory))
        return index

    def select_work(self, packages: List[LoadedPackage], summary: RunSummary) -> List[LoadedPackage]:
        """Apply the library, platform and staleness filters."""
        work = []
        for package in sorted(packages, key=lambda p: p.directory):
            descriptor = package.descriptor
            if not has_library_product(descriptor):
                summary.skipped[package.directory] = SKIP_NO_LIBRARY
                logger.info("Skipping %s: %s", descriptor.name, SKIP_NO_LIBRARY)
                continue
            if self.config.platforms and not descriptor.supports_any(self.config.platforms):
                summary.skipped[package.directory] = SKIP_PLATFORM
                logger.info("Skipping %s: %s", descriptor.name, SKIP_PLATFORM)
                continue
            if not self._needs_work(package):
                summary.up_to_date.append(package.directory)
                logger.info("Up to date: %s", descriptor.name)
                continue
            work.append(package)
        return work

    def _needs_work(self, package: LoadedPackage) -> bool:
        return needs_regeneration(
            file_mtime(os.path.join(package.directory, Constants.OUTPUT_FILE)),
            file_mtime(self.loader.cache_path(package.manifest)),
            file_mtime(package.manifest),
            force=self.config.force,
        )

    async def convert_all(
        self,
        work: List[LoadedPackage],
        packages: List[LoadedPackage],
        index: DependencyGraphIndex,
        matrix: PathMatrix,
        summary: RunSummary,
    ) -> None:
        """Convert and write each selected package against its own view of the index."""
        if not work:
            return
        progress = ProgressCounter(len(work), label="Converted")

        async def _convert(package: LoadedPackage) -> ConvertedProject:
            paths = {
                other.descriptor.name: matrix.relative(package.directory, other.directory)
                for other in packages
            }
            view = index.specialize(paths)
            try:
                project = self.converter.convert(package.descriptor, package.directory, view)
                await self.writer.write_async(project)
            except Exception as exc:
                await progress.increment_failed(package.directory, exc)
                raise
            await progress.increment(package.descriptor.name)
            return project

        for result in await self.convert_pool.run(work, _convert):
            directory = result.item.directory
            if result.ok:
                summary.projects[directory] = result.value
                summary.written.append(directory)
            else:
                summary.conversion_failures[directory] = str(result.error)
