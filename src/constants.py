"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    PACKAGE_ERRORS = 2
    EXIT_WARNINGS = 3


class DependencyKind(Enum):
    """Package-level dependency declaration kinds emitted by `swift package describe`.

    Args:
        Enum (string): Dependency kinds.
    """

    SOURCE_CONTROL = "sourceControl"
    FILE_SYSTEM = "fileSystem"
    REGISTRY = "registry"


class TargetKind(Enum):
    """Target kinds understood by the converter.

    Args:
        Enum (string): Target kinds.
    """

    LIBRARY = "library"
    TEST = "test"
    EXECUTABLE = "executable"
    BINARY = "binary"


class ProductType(Enum):
    """Tuist product types a library target can be generated as.

    Args:
        Enum (string): Tuist product types.
    """

    STATIC_FRAMEWORK = "staticFramework"
    FRAMEWORK = "framework"
    STATIC_LIBRARY = "staticLibrary"
    UNIT_TESTS = "unitTests"


class SupportedPlatform(Enum):
    """Platforms accepted by the platform filter and mapped to destinations.

    Args:
        Enum (string): Platform names as spelled by Tuist.
    """

    IOS = "iOS"
    MACOS = "macOS"
    TVOS = "tvOS"
    WATCHOS = "watchOS"
    VISIONOS = "visionOS"

    @classmethod
    def from_name(cls, name):
        """Case-insensitive lookup; returns None for unknown platforms."""
        lowered = str(name).strip().lower()
        for platform in cls:
            if platform.value.lower() == lowered:
                return platform
        return None


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    MANIFEST_FILE = "Package.swift"
    CACHE_FILE = ".package-description.json"
    OUTPUT_FILE = "Project.swift"
    CONFIG_FILE = ".spm2tuist.yml"
    TUIST_DIRECTORY = "Tuist"

    EXCLUDED_DIRECTORIES = frozenset({
        ".build",
        ".git",
        "Derived",
        "DerivedData",
        ".swiftpm",
        "Tuist",
        "node_modules",
        "Pods",
    })

    DESCRIBE_COMMAND = ("swift", "package", "describe", "--type", "json")
    DUMP_COMMAND = ("swift", "package", "dump-package")
    DESCRIBE_TIMEOUT_SEC = 30
    TERMINATE_GRACE_SEC = 0.1
    MAX_CONCURRENCY = 8

    BUNDLE_ID_PREFIX = "com.example"
    DEFAULT_PRODUCT_TYPE = ProductType.STATIC_FRAMEWORK.value
    LIBRARY_PRODUCT_TYPES = [
        ProductType.STATIC_FRAMEWORK.value,
        ProductType.FRAMEWORK.value,
        ProductType.STATIC_LIBRARY.value,
    ]
    DEFAULT_DESTINATION = SupportedPlatform.IOS.value
    DEFAULT_REQUIREMENT_RANGE = ("1.0.0", "2.0.0")

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
    ENV_LOG_LEVEL = "SPM2TUIST_LOG_LEVEL"
    LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
