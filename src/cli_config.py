"""Run configuration assembled from CLI arguments, a YAML file and defaults.

Precedence is CLI argument, then the YAML file (``--config`` or
``.spm2tuist.yml`` in the workspace root), then the built-in defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Optional, Tuple

import yaml

from constants import Constants, SupportedPlatform
from errors import ConfigError

logger = logging.getLogger(__name__)

# YAML key -> CLI dest
_CLI_DESTS = {
    "bundle_id_prefix": "BUNDLE_ID_PREFIX",
    "product_type": "PRODUCT_TYPE",
    "tuist_dir": "TUIST_DIR",
    "platforms": "PLATFORMS",
    "max_concurrency": "JOBS",
    "describe_timeout": "TIMEOUT",
}
_CLI_FLAGS = {
    "dry_run": "DRY_RUN",
    "force": "FORCE",
    "error_on_warnings": "ERROR_ON_WARNINGS",
}


@dataclass(frozen=True)
class ConverterConfig:
    """Settings for one conversion run."""

    root: str = "."
    bundle_id_prefix: str = Constants.BUNDLE_ID_PREFIX
    product_type: str = Constants.DEFAULT_PRODUCT_TYPE
    tuist_dir: Optional[str] = None
    platforms: Tuple[str, ...] = ()
    max_concurrency: int = Constants.MAX_CONCURRENCY
    describe_timeout: float = Constants.DESCRIBE_TIMEOUT_SEC
    merge_settings: bool = True
    dry_run: bool = False
    force: bool = False
    error_on_warnings: bool = False
    describe_command: Tuple[str, ...] = field(default=Constants.DESCRIBE_COMMAND)
    dump_command: Tuple[str, ...] = field(default=Constants.DUMP_COMMAND)

    def validate(self) -> "ConverterConfig":
        """Check value ranges.

        Raises:
            ConfigError: On the first invalid value.
        """
        if not isinstance(self.max_concurrency, int) or self.max_concurrency < 1:
            raise ConfigError(f"max_concurrency must be a positive integer, got {self.max_concurrency!r}")
        if not isinstance(self.describe_timeout, (int, float)) or self.describe_timeout <= 0:
            raise ConfigError(f"describe_timeout must be positive, got {self.describe_timeout!r}")
        if self.product_type not in Constants.LIBRARY_PRODUCT_TYPES:
            raise ConfigError(
                f"product_type must be one of {', '.join(Constants.LIBRARY_PRODUCT_TYPES)}, got {self.product_type!r}"
            )
        if not self.describe_command:
            raise ConfigError("describe_command must not be empty")
        return self

    @classmethod
    def from_mapping(cls, data: Dict[str, Any], base: Optional["ConverterConfig"] = None) -> "ConverterConfig":
        """Apply known keys of ``data`` on top of ``base``; unknown keys are logged and ignored."""
        base = base or cls()
        known = {f.name for f in fields(cls)} - {"root"}
        updates: Dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                logger.warning("Ignoring unknown configuration key: %s", key)
                continue
            updates[key] = _coerce(key, value)
        return replace(base, **updates)

    @classmethod
    def from_args(cls, args: Any) -> "ConverterConfig":
        """Create config from CLI arguments, merging the YAML file when present.

        Args:
            args: Parsed CLI arguments namespace.

        Raises:
            ConfigError: If the resulting values are invalid.
        """
        root = getattr(args, "root", ".") or "."
        config = cls(root=root)

        config_path = getattr(args, "CONFIG", None)
        if not config_path:
            candidate = os.path.join(root, Constants.CONFIG_FILE)
            if os.path.isfile(candidate):
                config_path = candidate
        config = cls.from_mapping(load_config_file(config_path), config)

        overrides: Dict[str, Any] = {}
        for key, dest in _CLI_DESTS.items():
            value = getattr(args, dest, None)
            if value is not None:
                overrides[key] = _coerce(key, value)
        for key, dest in _CLI_FLAGS.items():
            if getattr(args, dest, False):
                overrides[key] = True
        if getattr(args, "NO_SETTINGS", False):
            overrides["merge_settings"] = False
        return replace(config, **overrides).validate()


def _coerce(key: str, value: Any) -> Any:
    if key == "platforms":
        values = [value] if isinstance(value, str) else list(value or [])
        names = []
        for raw in values:
            platform = SupportedPlatform.from_name(raw)
            if platform is None:
                raise ConfigError(f"Unknown platform in configuration: {raw!r}")
            names.append(platform.value)
        return tuple(names)
    if key in ("describe_command", "dump_command"):
        if isinstance(value, str):
            return tuple(value.split())
        return tuple(str(part) for part in value)
    if key == "max_concurrency":
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"max_concurrency must be an integer, got {value!r}") from exc
    if key == "describe_timeout":
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"describe_timeout must be a number, got {value!r}") from exc
    return value


def load_config_file(config_path: Optional[str]) -> Dict[str, Any]:
    """Load the YAML configuration mapping.

    Args:
        config_path: Path to the YAML file, or None.

    Returns:
        The mapping, or an empty dict when the path is missing, unreadable or
        does not hold a mapping.
    """
    if not config_path:
        return {}

    if not os.path.isfile(config_path):
        logger.warning("Config file not found: %s", config_path)
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.error("Failed to load config %s: %s", config_path, e)
        return {}

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level is not a mapping", config_path)
        return {}
    logger.debug("Loaded configuration from %s", config_path)
    return data
