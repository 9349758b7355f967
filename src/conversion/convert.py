"""Convert a package description into a Tuist project model."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from constants import Constants, ProductType, SupportedPlatform
from description.models import PackageDescriptor, Platform, SwiftSetting, Target
from graph.index import DependencyEdge, DependencyGraphIndex, Matcher, names_match

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConvertedTarget:
    """One generated target."""
    name: str
    product: str
    bundle_id: str
    sources: str
    dependencies: Tuple[DependencyEdge, ...] = ()
    destinations: Tuple[str, ...] = (Constants.DEFAULT_DESTINATION,)
    deployment_targets: Tuple[Tuple[str, str], ...] = ()
    swift_settings: Tuple[SwiftSetting, ...] = ()


@dataclass(frozen=True)
class ConvertedProject:
    """A generated project: one per package, written beside its manifest."""
    name: str
    directory: str
    targets: Tuple[ConvertedTarget, ...] = ()


def destinations_for(platforms: Optional[Iterable[Platform]]) -> Tuple[str, ...]:
    """Destinations for every recognised declared platform; iOS when none are."""
    found = []
    for platform in platforms or ():
        supported = SupportedPlatform.from_name(platform.name)
        if supported is not None and supported.value not in found:
            found.append(supported.value)
    return tuple(found) or (Constants.DEFAULT_DESTINATION,)


def deployment_targets_for(platforms: Optional[Iterable[Platform]]) -> Tuple[Tuple[str, str], ...]:
    pairs = []
    for platform in platforms or ():
        supported = SupportedPlatform.from_name(platform.name)
        if supported is not None:
            pairs.append((supported.value, platform.version))
    return tuple(pairs)


class ProjectConverter:
    """Build ``ConvertedProject`` values from descriptors and a resolved index."""

    def __init__(
        self,
        bundle_id_prefix: str = Constants.BUNDLE_ID_PREFIX,
        product_type: str = Constants.DEFAULT_PRODUCT_TYPE,
        matcher: Matcher = names_match,
    ):
        if product_type not in Constants.LIBRARY_PRODUCT_TYPES:
            logger.warning("Unknown product type %s, using %s", product_type, Constants.DEFAULT_PRODUCT_TYPE)
            product_type = Constants.DEFAULT_PRODUCT_TYPE
        self.bundle_id_prefix = bundle_id_prefix
        self.product_type = product_type
        self.matcher = matcher

    def convert(self, descriptor: PackageDescriptor, directory: str, index: DependencyGraphIndex) -> ConvertedProject:
        """Convert every non-executable target of a package.

        Raises:
            UnresolvableDependency: If a product dependency cannot be resolved.
        """
        destinations = destinations_for(descriptor.platforms)
        deployment = deployment_targets_for(descriptor.platforms)
        targets = []
        for target in descriptor.targets:
            if target.is_executable:
                logger.debug("Skipping executable target %s", target.name)
                continue
            targets.append(self._convert_target(target, descriptor, index, destinations, deployment))
        return ConvertedProject(name=descriptor.name, directory=directory, targets=tuple(targets))

    def _convert_target(self, target: Target, descriptor, index, destinations, deployment) -> ConvertedTarget:
        product = ProductType.UNIT_TESTS.value if target.is_test else self.product_type
        edges = index.resolve_target_edges(target, descriptor, self.matcher)
        logger.debug("Converting target %s -> %s", target.name, product)
        return ConvertedTarget(
            name=target.name,
            product=product,
            bundle_id=f"{self.bundle_id_prefix}.{target.name}",
            sources=target.path,
            dependencies=tuple(edges),
            destinations=destinations,
            deployment_targets=deployment,
            swift_settings=target.swift_settings,
        )
