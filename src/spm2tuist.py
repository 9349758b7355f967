"""spm2tuist - convert a workspace of Swift packages into Tuist projects.

Entry point: parses arguments, configures logging, runs the workspace
conversion and maps its outcome to an exit code.
"""

import asyncio
import logging
import sys

from args import parse_args
from cli_config import ConverterConfig
from constants import ExitCodes
from errors import ConfigError, DiscoveryError
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from conversion.validator import format_report
from orchestrator import RunSummary, WorkspaceConverter

logger = logging.getLogger(__name__)


def log_summary(summary: RunSummary, dry_run: bool = False) -> None:
    """Report counts, per-package failures and dependency issues."""
    logger.info(
        "Packages: %d discovered, %d loaded, %d failed, %d skipped, %d up to date",
        summary.discovered,
        len(summary.loaded),
        len(summary.failed),
        len(summary.skipped),
        len(summary.up_to_date),
    )
    for path, message in sorted(summary.failed.items()):
        logger.error("Failed to load %s: %s", path, message)
    for path, message in sorted(summary.conversion_failures.items()):
        logger.error("Failed to convert %s: %s", path, message)
    for line in format_report(summary.validation):
        logger.warning(line)
    verb = "Resolved" if dry_run else "Generated"
    logger.info("%s %d project(s)", verb, len(summary.written))


def exit_code_for(summary: RunSummary, error_on_warnings: bool = False) -> ExitCodes:
    if summary.has_failures:
        return ExitCodes.PACKAGE_ERRORS
    if error_on_warnings and summary.validation.has_issues:
        return ExitCodes.EXIT_WARNINGS
    return ExitCodes.SUCCESS


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(getattr(args, "LOG_LEVEL", None), getattr(args, "LOG_FILE", None))

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main"),
        )

    try:
        config = ConverterConfig.from_args(args)
    except ConfigError as exc:
        logger.error("%s", exc)
        sys.exit(ExitCodes.FILE_ERROR.value)

    logger.info("Scanning for packages in: %s", config.root)
    try:
        summary = asyncio.run(WorkspaceConverter(config).run())
    except DiscoveryError as exc:
        logger.error("%s", exc)
        sys.exit(ExitCodes.FILE_ERROR.value)

    log_summary(summary, dry_run=config.dry_run)
    code = exit_code_for(summary, config.error_on_warnings)
    if code is ExitCodes.EXIT_WARNINGS:
        logger.error("Warnings present, exiting with non-zero status code.")
    sys.exit(code.value)


if __name__ == "__main__":
    main()
