"""Check collected external dependencies against the Tuist package manifest."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from constants import Constants
from errors import PackageLoadError
from description.models import ExternalDependencySpec, PackageDescriptor
from scanner.loader import DescriptionLoader

logger = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    """Dependencies the Tuist manifest lacks or pins differently."""

    missing: List[ExternalDependencySpec] = field(default_factory=list)
    mismatched: List[Tuple[ExternalDependencySpec, ExternalDependencySpec]] = field(default_factory=list)
    manifest: Optional[str] = None

    @property
    def has_issues(self) -> bool:
        return bool(self.missing or self.mismatched)


def dependency_line(spec: ExternalDependencySpec) -> str:
    """Manifest line declaring ``spec``, e.g. `.package(url: "...", from: "1.0.0")`."""
    return f'.package(url: "{spec.url}", {spec.requirement.describe()})'


def existing_dependencies(descriptor: PackageDescriptor) -> Dict[str, ExternalDependencySpec]:
    """Source-control dependencies of the Tuist manifest keyed by lower-cased URL."""
    existing: Dict[str, ExternalDependencySpec] = {}
    for dependency in descriptor.dependencies:
        spec = ExternalDependencySpec.from_dependency(dependency)
        if spec is not None:
            existing[spec.url.lower()] = spec
    return existing


def compare(
    required: Sequence[ExternalDependencySpec],
    existing: Dict[str, ExternalDependencySpec],
) -> ValidationReport:
    report = ValidationReport()
    for spec in required:
        found = existing.get(spec.url.lower())
        if found is None:
            report.missing.append(spec)
        elif not spec.requirement.matches(found.requirement):
            report.mismatched.append((spec, found))
    return report


class TuistPackageValidator:
    """Validate required external dependencies against `Tuist/Package.swift`.

    The manifest is loaded through the same ``DescriptionLoader`` as workspace
    packages. When it is absent or cannot be loaded, every dependency is
    reported as missing.
    """

    def __init__(self, loader: DescriptionLoader, tuist_dir: Optional[str] = None):
        self.loader = loader
        self.tuist_dir = tuist_dir

    def manifest_path(self, root: str) -> str:
        tuist_dir = self.tuist_dir or os.path.join(
            os.path.dirname(os.path.abspath(root)), Constants.TUIST_DIRECTORY
        )
        return os.path.join(tuist_dir, Constants.MANIFEST_FILE)

    async def validate(self, required: Sequence[ExternalDependencySpec], root: str) -> ValidationReport:
        manifest = self.manifest_path(root)
        if not os.path.isfile(manifest):
            logger.info("No Tuist package manifest found at %s", manifest)
            return ValidationReport(missing=list(required))
        try:
            descriptor = await self.loader.load(manifest)
        except PackageLoadError as exc:
            logger.warning("Could not load %s, treating all dependencies as missing: %s", manifest, exc)
            return ValidationReport(missing=list(required), manifest=manifest)

        report = compare(required, existing_dependencies(descriptor))
        report.manifest = manifest
        return report


def format_report(report: ValidationReport) -> List[str]:
    """Human-readable lines describing the report; empty when there are no issues."""
    if not report.has_issues:
        return []
    lines = ["External dependency issues detected:"]
    if report.missing:
        lines.append("Missing dependencies in Tuist/Package.swift, add to the dependencies array:")
        lines.extend(f"    {dependency_line(spec)}," for spec in report.missing)
    if report.mismatched:
        lines.append("Version mismatches in Tuist/Package.swift:")
        for required, existing in report.mismatched:
            lines.append(f"  Found:    {dependency_line(existing)}")
            lines.append(f"  Expected: {dependency_line(required)}")
    return lines
