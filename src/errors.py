"""Error taxonomy for workspace conversion.

Discovery and configuration errors are fatal for a run. Load errors are
raised per package and recovered by the orchestrator, which excludes the
package and keeps going. Resolution errors abort one package's conversion.
"""

from __future__ import annotations

from typing import Optional


class ConversionError(Exception):
    """Base class for every error raised by the conversion pipeline."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ConfigError(ConversionError):
    """Raised when configuration values are missing or out of range."""


class DiscoveryError(ConversionError):
    """Raised when the workspace tree cannot be enumerated."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot enumerate directory {path}: {reason}", path)
        self.reason = reason


class PackageLoadError(ConversionError):
    """Base class for failures loading a single package description."""


class DescribeFailure(PackageLoadError):
    """The introspection process exited with a non-zero status."""

    def __init__(self, path: str, stderr: str):
        detail = stderr.strip() or "unknown error"
        super().__init__(f"Failed to describe package at {path}: {detail}", path)
        self.stderr = stderr


class DecodeFailure(PackageLoadError):
    """The introspection output could not be decoded into a descriptor."""

    def __init__(self, path: str, detail: str):
        super().__init__(f"Failed to decode package JSON at {path}: {detail}", path)
        self.detail = detail


class DescribeTimeout(PackageLoadError, TimeoutError):
    """The introspection process did not finish within the time limit."""

    def __init__(self, path: str, seconds: float):
        super().__init__(f"Timed out after {seconds:g}s loading package at {path}", path)
        self.seconds = seconds


class UnresolvableDependency(ConversionError):
    """A product matched a local package that exposes no targets for it."""

    def __init__(self, product: str, package: str, identity: str):
        super().__init__(
            f"Product '{product}' used by package '{package}' matched local package "
            f"'{identity}', but no targets could be resolved for it"
        )
        self.product = product
        self.package = package
        self.identity = identity
