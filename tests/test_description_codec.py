"""Tests for the package description model and JSON codec."""

import json

import pytest

from errors import DecodeFailure
from description import (
    ExternalDependencySpec,
    PackageDependency,
    RequirementKind,
    SwiftSetting,
    VersionRequirement,
    decode_description,
    decode_json,
    dumps_description,
    encode_description,
)

DESCRIBE_OUTPUT = {
    "name": "Networking",
    "manifest_display_name": "Networking",
    "path": "/work/Packages/Networking",
    "tools_version": "5.9",
    "platforms": [{"name": "ios", "version": "16.0"}, {"name": "macos", "version": "13.0"}],
    "products": [
        {"name": "Networking", "targets": ["Networking", "HTTP"], "type": {"library": ["automatic"]}},
        {"name": "netcli", "targets": ["CLI"], "type": {"executable": None}},
    ],
    "targets": [
        {
            "name": "Networking",
            "c99name": "Networking",
            "type": "library",
            "module_type": "SwiftTarget",
            "path": "Sources/Networking",
            "sources": ["Client.swift"],
            "target_dependencies": ["HTTP"],
            "product_dependencies": ["Logging"],
            "product_memberships": ["Networking"],
        },
        {"name": "HTTP", "type": "library", "path": "Sources/HTTP", "sources": []},
        {"name": "CLI", "type": "executable", "path": "Sources/CLI"},
        {"name": "NetworkingTests", "type": "test", "path": "Tests/NetworkingTests"},
    ],
    "dependencies": [
        {
            "identity": "swift-log",
            "type": "sourceControl",
            "url": "https://github.com/apple/swift-log.git",
            "requirement": {"range": [{"lower_bound": "1.5.0", "upper_bound": "2.0.0"}]},
        },
        {"identity": "core", "type": "fileSystem", "path": "/work/Packages/Core"},
        {
            "identity": "pinned",
            "type": "sourceControl",
            "url": "https://example.com/pinned.git",
            "requirement": {"revision": ["abc123"]},
        },
    ],
}


class TestDecodeDescription:
    """Decoding describe output."""

    def test_decodes_describe_output(self):
        desc = decode_description(DESCRIBE_OUTPUT, "/work/Packages/Networking")
        assert desc.name == "Networking"
        assert [p.name for p in desc.platforms] == ["ios", "macos"]
        assert desc.products[0].targets == ("Networking", "HTTP")
        assert desc.products[0].is_library
        assert desc.products[0].library_types == ("automatic",)
        assert desc.products[1].kind == "executable"
        assert desc.targets[0].target_dependencies == ("HTTP",)
        assert desc.targets[0].product_dependencies == ("Logging",)
        assert desc.targets[2].is_executable
        assert desc.targets[3].is_test
        assert desc.has_library_product
        assert [d.identity for d in desc.file_system_dependencies()] == ["core"]

    def test_requirements(self):
        desc = decode_description(DESCRIBE_OUTPUT, "x")
        log, _, pinned = desc.dependencies
        assert log.requirement == VersionRequirement(RequirementKind.RANGE, "1.5.0", "2.0.0")
        assert pinned.requirement == VersionRequirement(RequirementKind.REVISION, "abc123")

    def test_unknown_requirement_defaults_to_range(self):
        data = dict(DESCRIBE_OUTPUT)
        data["dependencies"] = [
            {"identity": "x", "type": "sourceControl", "url": "https://x.git", "requirement": {}}
        ]
        desc = decode_description(data, "x")
        assert desc.dependencies[0].requirement == VersionRequirement(RequirementKind.RANGE, "1.0.0", "2.0.0")

    def test_missing_platforms_is_none(self):
        data = {k: v for k, v in DESCRIBE_OUTPUT.items() if k != "platforms"}
        assert decode_description(data, "x").platforms is None

    def test_schema_violation_raises_decode_failure(self):
        data = dict(DESCRIBE_OUTPUT)
        data["products"] = [{"name": "Broken", "targets": "not-a-list", "type": {}}]
        with pytest.raises(DecodeFailure) as excinfo:
            decode_description(data, "/pkg")
        assert excinfo.value.path == "/pkg"
        assert "products/0/targets" in str(excinfo.value)

    def test_missing_name_raises(self):
        data = {k: v for k, v in DESCRIBE_OUTPUT.items() if k != "name"}
        with pytest.raises(DecodeFailure):
            decode_description(data, "/pkg")

    def test_invalid_json_text(self):
        with pytest.raises(DecodeFailure):
            decode_json("warning: something\n{", "/pkg")


class TestEncodeDescription:
    """Encoding mirrors the describe shape so the cache shares the decoder."""

    def test_round_trip(self):
        desc = decode_description(DESCRIBE_OUTPUT, "x")
        assert decode_description(encode_description(desc), "x") == desc

    def test_round_trip_through_text_with_settings(self):
        desc = decode_description(DESCRIBE_OUTPUT, "x").with_swift_settings(
            {"Networking": (SwiftSetting("define", ("DEBUG_NET",)),)}
        )
        text = dumps_description(desc)
        assert json.loads(text)["targets"][0]["swift_settings"] == [{"kind": "define", "values": ["DEBUG_NET"]}]
        assert decode_json(text, "x") == desc

    def test_executable_product_type(self):
        encoded = encode_description(decode_description(DESCRIBE_OUTPUT, "x"))
        assert encoded["products"][1]["type"] == {"executable": None}


class TestVersionRequirement:
    """Requirement comparison used by dependency validation."""

    def test_versions_are_normalized(self):
        a = VersionRequirement(RequirementKind.RANGE, "1.0", "2.0")
        b = VersionRequirement(RequirementKind.RANGE, "1.0.0", "2.0.0")
        assert a.matches(b)

    def test_different_upper_bound(self):
        a = VersionRequirement(RequirementKind.RANGE, "1.0.0", "2.0.0")
        b = VersionRequirement(RequirementKind.RANGE, "1.0.0", "3.0.0")
        assert not a.matches(b)

    def test_exact_versions(self):
        assert VersionRequirement(RequirementKind.EXACT, "5.1").matches(
            VersionRequirement(RequirementKind.EXACT, "5.1.0")
        )
        assert not VersionRequirement(RequirementKind.EXACT, "5.1.0").matches(
            VersionRequirement(RequirementKind.EXACT, "5.1.1")
        )

    def test_branches_compare_verbatim(self):
        assert VersionRequirement(RequirementKind.BRANCH, "main").matches(
            VersionRequirement(RequirementKind.BRANCH, "main")
        )
        assert not VersionRequirement(RequirementKind.BRANCH, "main").matches(
            VersionRequirement(RequirementKind.BRANCH, "Main")
        )

    def test_different_kinds_never_match(self):
        assert not VersionRequirement(RequirementKind.EXACT, "1.0.0").matches(
            VersionRequirement(RequirementKind.RANGE, "1.0.0", "2.0.0")
        )

    def test_describe(self):
        assert VersionRequirement.default().describe() == 'from: "1.0.0"'
        assert VersionRequirement(RequirementKind.BRANCH, "main").describe() == 'branch: "main"'


class TestExternalDependencySpec:
    def test_file_system_dependency_is_not_external(self):
        assert ExternalDependencySpec.from_dependency(PackageDependency("core", "fileSystem", path="/x")) is None

    def test_missing_requirement_is_not_external(self):
        dependency = PackageDependency("Zebra", "sourceControl", url="https://example.com/Zebra.git")
        assert ExternalDependencySpec.from_dependency(dependency) is None

    def test_unrecognised_requirement_gets_default(self):
        data = {
            "name": "App",
            "path": "/ws/App",
            "products": [],
            "targets": [],
            "dependencies": [
                {"identity": "Zebra", "type": "sourceControl", "url": "https://example.com/Zebra.git", "requirement": {}}
            ],
        }
        spec = ExternalDependencySpec.from_dependency(decode_description(data, "/ws/App").dependencies[0])
        assert spec.requirement == VersionRequirement.default()
        assert spec.key == "zebra"
