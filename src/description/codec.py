"""JSON codec for package descriptions.

The same encoding is produced by `swift package describe --type json` and
written to the on-disk cache, so both sources go through ``decode_description``.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from jsonschema import Draft7Validator

from errors import DecodeFailure
from .models import (
    PackageDependency,
    PackageDescriptor,
    Platform,
    Product,
    RequirementKind,
    SwiftSetting,
    Target,
    VersionRequirement,
)

_STRING_LIST = {"type": "array", "items": {"type": "string"}}

DESCRIPTION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["name", "path", "products", "targets"],
    "properties": {
        "name": {"type": "string"},
        "path": {"type": "string"},
        "manifest_display_name": {"type": ["string", "null"]},
        "tools_version": {"type": ["string", "null"]},
        "platforms": {
            "type": ["array", "null"],
            "items": {
                "type": "object",
                "required": ["name", "version"],
                "properties": {"name": {"type": "string"}, "version": {"type": "string"}},
            },
        },
        "products": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "targets", "type"],
                "properties": {
                    "name": {"type": "string"},
                    "targets": _STRING_LIST,
                    "type": {"type": "object"},
                },
            },
        },
        "targets": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "type", "path"],
                "properties": {
                    "name": {"type": "string"},
                    "type": {"type": "string"},
                    "path": {"type": "string"},
                    "sources": _STRING_LIST,
                    "target_dependencies": _STRING_LIST,
                    "product_dependencies": _STRING_LIST,
                    "swift_settings": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["kind"],
                            "properties": {"kind": {"type": "string"}, "values": _STRING_LIST},
                        },
                    },
                },
            },
        },
        "dependencies": {
            "type": ["array", "null"],
            "items": {
                "type": "object",
                "required": ["identity", "type"],
                "properties": {
                    "identity": {"type": "string"},
                    "type": {"type": "string"},
                    "path": {"type": ["string", "null"]},
                    "url": {"type": ["string", "null"]},
                    "requirement": {"type": ["object", "null"]},
                },
            },
        },
    },
}

_VALIDATOR = Draft7Validator(DESCRIPTION_SCHEMA)


def _validate(data: Any, path: str) -> None:
    errs = sorted(_VALIDATOR.iter_errors(data), key=lambda e: [str(p) for p in e.path])
    if errs:
        first = errs[0]
        location = "/".join(str(p) for p in first.path)
        raise DecodeFailure(path, f"invalid description at '{location}': {first.message}")


def _decode_requirement(raw: Optional[Dict[str, Any]]) -> Optional[VersionRequirement]:
    if raw is None:
        return None
    ranges = raw.get("range") or []
    if ranges:
        bounds = ranges[0]
        return VersionRequirement(RequirementKind.RANGE, bounds["lower_bound"], bounds.get("upper_bound"))
    for kind in (RequirementKind.EXACT, RequirementKind.BRANCH, RequirementKind.REVISION):
        values = raw.get(kind.value) or []
        if values:
            return VersionRequirement(kind, values[0])
    return VersionRequirement.default()


def _encode_requirement(requirement: VersionRequirement) -> Dict[str, Any]:
    if requirement.kind == RequirementKind.RANGE:
        bounds = {"lower_bound": requirement.value}
        if requirement.upper_bound is not None:
            bounds["upper_bound"] = requirement.upper_bound
        return {"range": [bounds]}
    return {requirement.kind.value: [requirement.value]}


def _decode_product(raw: Dict[str, Any]) -> Product:
    product_type = raw["type"]
    if "library" in product_type:
        kind = "library"
        library_types = tuple(product_type.get("library") or ())
    elif product_type:
        kind = next(iter(product_type))
        library_types = ()
    else:
        kind = "unknown"
        library_types = ()
    return Product(
        name=raw["name"],
        targets=tuple(raw["targets"]),
        kind=kind,
        library_types=library_types,
    )


def _encode_product(product: Product) -> Dict[str, Any]:
    if product.is_library:
        product_type: Dict[str, Any] = {"library": list(product.library_types)}
    else:
        product_type = {product.kind: None}
    return {"name": product.name, "targets": list(product.targets), "type": product_type}


def _decode_target(raw: Dict[str, Any]) -> Target:
    return Target(
        name=raw["name"],
        kind=raw["type"],
        path=raw["path"],
        sources=tuple(raw.get("sources") or ()),
        target_dependencies=tuple(raw.get("target_dependencies") or ()),
        product_dependencies=tuple(raw.get("product_dependencies") or ()),
        c99name=raw.get("c99name"),
        module_type=raw.get("module_type"),
        swift_settings=tuple(
            SwiftSetting(kind=s["kind"], values=tuple(s.get("values") or ()))
            for s in raw.get("swift_settings") or ()
        ),
    )


def _encode_target(target: Target) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "name": target.name,
        "type": target.kind,
        "path": target.path,
        "sources": list(target.sources),
        "target_dependencies": list(target.target_dependencies),
        "product_dependencies": list(target.product_dependencies),
    }
    if target.c99name is not None:
        data["c99name"] = target.c99name
    if target.module_type is not None:
        data["module_type"] = target.module_type
    if target.swift_settings:
        data["swift_settings"] = [
            {"kind": s.kind, "values": list(s.values)} for s in target.swift_settings
        ]
    return data


def _decode_dependency(raw: Dict[str, Any]) -> PackageDependency:
    return PackageDependency(
        identity=raw["identity"],
        kind=raw["type"],
        path=raw.get("path"),
        url=raw.get("url"),
        requirement=_decode_requirement(raw.get("requirement")),
    )


def _encode_dependency(dependency: PackageDependency) -> Dict[str, Any]:
    data: Dict[str, Any] = {"identity": dependency.identity, "type": dependency.kind}
    if dependency.path is not None:
        data["path"] = dependency.path
    if dependency.url is not None:
        data["url"] = dependency.url
    if dependency.requirement is not None:
        data["requirement"] = _encode_requirement(dependency.requirement)
    return data


def decode_description(data: Any, path: str) -> PackageDescriptor:
    """Decode a parsed JSON document into a descriptor.

    Args:
        data: Parsed JSON value.
        path: Package path used in error messages.

    Raises:
        DecodeFailure: If the document does not have the expected structure.
    """
    _validate(data, path)
    try:
        platforms = data.get("platforms")
        return PackageDescriptor(
            name=data["name"],
            path=data["path"],
            products=tuple(_decode_product(p) for p in data["products"]),
            targets=tuple(_decode_target(t) for t in data["targets"]),
            dependencies=tuple(_decode_dependency(d) for d in data.get("dependencies") or ()),
            platforms=None if platforms is None else tuple(
                Platform(name=p["name"], version=p["version"]) for p in platforms
            ),
            manifest_display_name=data.get("manifest_display_name"),
            tools_version=data.get("tools_version"),
        )
    except (KeyError, TypeError, IndexError) as exc:
        raise DecodeFailure(path, f"missing or malformed field: {exc}") from exc


def decode_json(text: str, path: str) -> PackageDescriptor:
    """Parse JSON text and decode it; any parse problem is a DecodeFailure."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeFailure(path, str(exc)) from exc
    return decode_description(data, path)


def encode_description(descriptor: PackageDescriptor) -> Dict[str, Any]:
    """Encode a descriptor to the describe JSON shape."""
    data: Dict[str, Any] = {
        "name": descriptor.name,
        "path": descriptor.path,
        "products": [_encode_product(p) for p in descriptor.products],
        "targets": [_encode_target(t) for t in descriptor.targets],
        "dependencies": [_encode_dependency(d) for d in descriptor.dependencies],
    }
    if descriptor.platforms is not None:
        data["platforms"] = [{"name": p.name, "version": p.version} for p in descriptor.platforms]
    if descriptor.manifest_display_name is not None:
        data["manifest_display_name"] = descriptor.manifest_display_name
    if descriptor.tools_version is not None:
        data["tools_version"] = descriptor.tools_version
    return data


def dumps_description(descriptor: PackageDescriptor) -> str:
    """Serialize a descriptor for the cache file (pretty-printed, sorted keys)."""
    return json.dumps(encode_description(descriptor), indent=2, sort_keys=True)
