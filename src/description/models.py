"""Data models for package descriptions and external dependency requirements."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

import semantic_version

from constants import Constants, DependencyKind, TargetKind


class RequirementKind(Enum):
    """Version requirement flavours of a source-control dependency."""
    RANGE = "range"
    EXACT = "exact"
    BRANCH = "branch"
    REVISION = "revision"


def _normalize_version(raw: str) -> str:
    """Coerce a version string to canonical semver; leave non-versions untouched."""
    try:
        return str(semantic_version.Version.coerce(raw.strip()))
    except ValueError:
        return raw


@dataclass(frozen=True)
class VersionRequirement:
    """A version requirement: range [value, upper_bound), exact, branch or revision."""
    kind: RequirementKind
    value: str
    upper_bound: Optional[str] = None

    @classmethod
    def default(cls) -> "VersionRequirement":
        lower, upper = Constants.DEFAULT_REQUIREMENT_RANGE
        return cls(RequirementKind.RANGE, lower, upper)

    def matches(self, other: "VersionRequirement") -> bool:
        """Return True when both requirements pin the same versions.

        Range bounds and exact versions are compared as semantic versions so
        that "1.0" and "1.0.0" are equal; branches and revisions verbatim.
        Different kinds never match.
        """
        if self.kind != other.kind:
            return False
        if self.kind in (RequirementKind.BRANCH, RequirementKind.REVISION):
            return self.value == other.value
        if _normalize_version(self.value) != _normalize_version(other.value):
            return False
        if self.kind == RequirementKind.RANGE:
            mine = _normalize_version(self.upper_bound) if self.upper_bound else None
            theirs = _normalize_version(other.upper_bound) if other.upper_bound else None
            return mine == theirs
        return True

    def describe(self) -> str:
        """Argument form used in `.package(url:, ...)` suggestion lines."""
        label = "from" if self.kind == RequirementKind.RANGE else self.kind.value
        return f'{label}: "{self.value}"'


@dataclass(frozen=True)
class Platform:
    """Minimum deployment platform declared by a package."""
    name: str
    version: str


@dataclass(frozen=True)
class SwiftSetting:
    """Compiler setting merged from `swift package dump-package` output."""
    kind: str
    values: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Product:
    """Externally consumable grouping of one or more targets."""
    name: str
    targets: Tuple[str, ...]
    kind: str = "library"
    library_types: Tuple[str, ...] = ()

    @property
    def is_library(self) -> bool:
        return self.kind == "library"


@dataclass(frozen=True)
class Target:
    """A single compilable unit within a package."""
    name: str
    kind: str
    path: str
    sources: Tuple[str, ...] = ()
    target_dependencies: Tuple[str, ...] = ()
    product_dependencies: Tuple[str, ...] = ()
    c99name: Optional[str] = None
    module_type: Optional[str] = None
    swift_settings: Tuple[SwiftSetting, ...] = ()

    @property
    def is_executable(self) -> bool:
        return self.kind == TargetKind.EXECUTABLE.value

    @property
    def is_test(self) -> bool:
        return self.kind == TargetKind.TEST.value


@dataclass(frozen=True)
class PackageDependency:
    """Raw package-level dependency declaration."""
    identity: str
    kind: str
    path: Optional[str] = None
    url: Optional[str] = None
    requirement: Optional[VersionRequirement] = None

    @property
    def is_file_system(self) -> bool:
        return self.kind == DependencyKind.FILE_SYSTEM.value

    @property
    def is_source_control(self) -> bool:
        return self.kind == DependencyKind.SOURCE_CONTROL.value


@dataclass(frozen=True)
class PackageDescriptor:
    """Parsed description of one manifest. Immutable once loaded."""
    name: str
    path: str
    products: Tuple[Product, ...] = ()
    targets: Tuple[Target, ...] = ()
    dependencies: Tuple[PackageDependency, ...] = ()
    platforms: Optional[Tuple[Platform, ...]] = None
    manifest_display_name: Optional[str] = None
    tools_version: Optional[str] = None

    @property
    def key(self) -> str:
        """Lookup key: identity compared case-insensitively."""
        return self.name.lower()

    @property
    def has_library_product(self) -> bool:
        return any(product.is_library for product in self.products)

    @property
    def target_names(self) -> Tuple[str, ...]:
        return tuple(target.name for target in self.targets)

    def file_system_dependencies(self) -> Tuple[PackageDependency, ...]:
        return tuple(dep for dep in self.dependencies if dep.is_file_system)

    def supports_any(self, platform_names) -> bool:
        """True when no platforms are declared or one of them is requested."""
        if not self.platforms:
            return True
        wanted = {name.lower() for name in platform_names}
        return any(platform.name.lower() in wanted for platform in self.platforms)

    def with_swift_settings(self, settings_by_target: Dict[str, Tuple[SwiftSetting, ...]]) -> "PackageDescriptor":
        """Return a copy whose targets carry the given Swift settings."""
        if not settings_by_target:
            return self
        targets = tuple(
            dataclasses.replace(target, swift_settings=settings_by_target[target.name])
            if target.name in settings_by_target
            else target
            for target in self.targets
        )
        return dataclasses.replace(self, targets=targets)


@dataclass(frozen=True)
class ExternalDependencySpec:
    """Dependency resolved from outside the workspace."""
    identity: str
    url: str
    requirement: VersionRequirement

    @property
    def key(self) -> str:
        return self.identity.lower()

    @classmethod
    def from_dependency(cls, dependency: PackageDependency) -> Optional["ExternalDependencySpec"]:
        """Build a spec from a versioned source-control declaration.

        Returns None for other kinds and for declarations without a requirement.
        """
        if not dependency.is_source_control or not dependency.url or dependency.requirement is None:
            return None
        return cls(identity=dependency.identity, url=dependency.url, requirement=dependency.requirement)
