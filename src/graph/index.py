"""Dependency graph index and product dependency resolution.

The index is populated once from every loaded package before conversion
starts. Conversion units never mutate it; each one takes a ``specialize``d
copy whose local package paths are relative to its own directory.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from errors import UnresolvableDependency
from description.models import ExternalDependencySpec, PackageDescriptor, Target

logger = logging.getLogger(__name__)


class EdgeKind(Enum):
    """Where a resolved dependency lives."""
    TARGET = "target"
    PROJECT = "project"
    EXTERNAL = "external"


@dataclass(frozen=True)
class DependencyEdge:
    """Resolved reference from a consuming target.

    ``path`` is only set for PROJECT edges and is relative to the consuming
    package's directory ("" for the same directory).
    """
    kind: EdgeKind
    name: str
    path: Optional[str] = None

    @classmethod
    def target(cls, name: str) -> "DependencyEdge":
        return cls(EdgeKind.TARGET, name)

    @classmethod
    def project(cls, path: str, name: str) -> "DependencyEdge":
        return cls(EdgeKind.PROJECT, name, path)

    @classmethod
    def external(cls, name: str) -> "DependencyEdge":
        return cls(EdgeKind.EXTERNAL, name)


def names_match(product: str, identity: str) -> bool:
    """Exact or case-insensitive substring match in either direction."""
    if product == identity:
        return True
    product_l = product.lower()
    identity_l = identity.lower()
    return product_l in identity_l or identity_l in product_l


def has_library_product(descriptor: PackageDescriptor) -> bool:
    """Packages without a library product have nothing to convert."""
    return descriptor.has_library_product


Matcher = Callable[[str, str], bool]


class DependencyGraphIndex:
    """Lookup tables over every local package and external dependency in the workspace."""

    def __init__(self) -> None:
        self.local_package_path: Dict[str, str] = {}
        self.product_owner: Dict[str, str] = {}
        self.product_targets: Dict[str, Tuple[str, ...]] = {}
        self.package_products: Dict[str, Tuple[Tuple[str, Tuple[str, ...]], ...]] = {}
        self.external_dependencies: Dict[str, ExternalDependencySpec] = {}

    def register_local_package(
        self,
        identity: str,
        relative_path: str,
        products: Iterable[Tuple[str, Sequence[str]]],
    ) -> None:
        """Insert or replace a local package and its products.

        Products with an empty target list are not registered.
        """
        key = identity.lower()
        for old, _ in self.package_products.get(key, ()):
            if self.product_owner.get(old, "").lower() == key:
                del self.product_owner[old]
                self.product_targets.pop(old, None)

        self.local_package_path[key] = relative_path
        owned: List[Tuple[str, Tuple[str, ...]]] = []
        for name, targets in products:
            if not targets:
                continue
            self.product_owner[name] = identity
            self.product_targets[name] = tuple(targets)
            owned.append((name, tuple(targets)))
        self.package_products[key] = tuple(owned)

    def register_descriptor(self, descriptor: PackageDescriptor, relative_path: str) -> None:
        """Register a loaded package together with its source-control dependencies."""
        self.register_local_package(
            descriptor.name,
            relative_path,
            [(product.name, product.targets) for product in descriptor.products],
        )
        for dependency in descriptor.dependencies:
            spec = ExternalDependencySpec.from_dependency(dependency)
            if spec is not None:
                self.register_external_dependency(spec)

    def register_external_dependency(self, spec: ExternalDependencySpec) -> bool:
        """Register under the lower-cased identity; the first registration wins.

        Returns:
            True if the spec was stored, False if an entry already existed.
        """
        if spec.key in self.external_dependencies:
            logger.debug("Ignoring duplicate external dependency %s", spec.identity)
            return False
        self.external_dependencies[spec.key] = spec
        return True

    def is_local_package(self, identity: str) -> bool:
        return identity.lower() in self.local_package_path

    def path_for(self, identity: str) -> Optional[str]:
        return self.local_package_path.get(identity.lower())

    def all_targets_for_package(self, identity: str) -> Tuple[str, ...]:
        """Every target exposed by any product of a package, in first-seen order."""
        seen: Dict[str, None] = {}
        for _, targets in self.package_products.get(identity.lower(), ()):
            for target in targets:
                seen.setdefault(target, None)
        return tuple(seen)

    def all_external_dependencies(self) -> List[ExternalDependencySpec]:
        return sorted(self.external_dependencies.values(), key=lambda spec: spec.identity)

    def specialize(self, paths: Mapping[str, str]) -> "DependencyGraphIndex":
        """Copy of the index with local package paths replaced.

        ``paths`` maps package identity to the path relative to the consuming
        package. Identities absent from ``paths`` keep their current value.
        """
        view = copy.copy(self)
        view.local_package_path = dict(self.local_package_path)
        for identity, path in paths.items():
            view.local_package_path[identity.lower()] = path
        view.product_owner = dict(self.product_owner)
        view.product_targets = dict(self.product_targets)
        view.package_products = dict(self.package_products)
        view.external_dependencies = dict(self.external_dependencies)
        return view

    def _targets_in_package(self, product: str, identity: str) -> Tuple[str, ...]:
        wanted = product.lower()
        for name, targets in self.package_products.get(identity.lower(), ()):
            if name.lower() == wanted:
                return targets
        return self.all_targets_for_package(identity)

    def _project_edges(self, product: str, package: PackageDescriptor, identity: str) -> List[DependencyEdge]:
        targets = self._targets_in_package(product, identity)
        if not targets:
            raise UnresolvableDependency(product, package.name, identity)
        path = self.local_package_path[identity.lower()]
        return [DependencyEdge.project(path, target) for target in targets]

    def resolve_product_dependency(
        self,
        product: str,
        package: PackageDescriptor,
        matcher: Matcher = names_match,
    ) -> List[DependencyEdge]:
        """Resolve a product name used by ``package`` to dependency edges.

        Tried in order: a target of the same package, a registered product
        owner, a matching local file-system dependency, a local package named
        like the product. Anything else is external.

        Raises:
            UnresolvableDependency: A local package matched but exposes no
                targets for the product.
        """
        if product in package.target_names:
            return [DependencyEdge.target(product)]

        owner = self.product_owner.get(product)
        if owner is not None and self.is_local_package(owner):
            path = self.local_package_path[owner.lower()]
            return [DependencyEdge.project(path, target) for target in self.product_targets[product]]

        for dependency in package.file_system_dependencies():
            if self.is_local_package(dependency.identity) and matcher(product, dependency.identity):
                return self._project_edges(product, package, dependency.identity)

        if self.is_local_package(product):
            return self._project_edges(product, package, product)

        return [DependencyEdge.external(product)]

    def resolve_target_edges(
        self,
        target: Target,
        package: PackageDescriptor,
        matcher: Matcher = names_match,
    ) -> List[DependencyEdge]:
        """All edges of one target: same-package targets, then products.

        Duplicates are dropped keeping the first occurrence.
        """
        edges: List[DependencyEdge] = [DependencyEdge.target(name) for name in target.target_dependencies]
        for product in target.product_dependencies:
            edges.extend(self.resolve_product_dependency(product, package, matcher))
        return list(dict.fromkeys(edges))
