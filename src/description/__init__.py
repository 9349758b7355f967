"""Package descriptions: typed model and the JSON codec shared by cache and introspection."""

from .models import (
    ExternalDependencySpec,
    PackageDependency,
    PackageDescriptor,
    Platform,
    Product,
    RequirementKind,
    SwiftSetting,
    Target,
    VersionRequirement,
)
from .codec import decode_description, decode_json, dumps_description, encode_description

__all__ = [
    "ExternalDependencySpec",
    "PackageDependency",
    "PackageDescriptor",
    "Platform",
    "Product",
    "RequirementKind",
    "SwiftSetting",
    "Target",
    "VersionRequirement",
    "decode_description",
    "decode_json",
    "dumps_description",
    "encode_description",
]
