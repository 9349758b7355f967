"""Argument parsing for spm2tuist."""

import argparse
from constants import Constants, SupportedPlatform


def _platform(value):
    platform = SupportedPlatform.from_name(value)
    if platform is None:
        choices = ", ".join(p.value for p in SupportedPlatform)
        raise argparse.ArgumentTypeError(f"unknown platform '{value}' (choose from {choices})")
    return platform.value


def build_parser():
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="spm2tuist",
        description=(
            "spm2tuist - Convert a workspace of Swift packages into Tuist projects"
        ),
        add_help=True,
    )

    parser.add_argument("root",
                        help="Workspace root to scan for Package.swift files (default: .)",
                        nargs="?",
                        default=".")
    parser.add_argument("--bundle-id-prefix",
                        dest="BUNDLE_ID_PREFIX",
                        help=f"Bundle identifier prefix (default: {Constants.BUNDLE_ID_PREFIX})",
                        action="store", type=str)
    parser.add_argument("--product-type",
                        dest="PRODUCT_TYPE",
                        help=f"Product type for library targets (default: {Constants.DEFAULT_PRODUCT_TYPE})",
                        action="store", type=str,
                        choices=Constants.LIBRARY_PRODUCT_TYPES)
    parser.add_argument("--tuist-dir",
                        dest="TUIST_DIR",
                        help="Directory holding the Tuist Package.swift (default: <root>/../Tuist)",
                        action="store", type=str)
    parser.add_argument("--dry-run",
                        dest="DRY_RUN",
                        help="Resolve everything but do not write Project.swift files.",
                        action="store_true")
    parser.add_argument("--force",
                        dest="FORCE",
                        help="Regenerate every project regardless of timestamps.",
                        action="store_true")
    parser.add_argument("--platform",
                        dest="PLATFORMS",
                        help="Only convert packages supporting this platform (repeatable).",
                        action="append", type=_platform)
    parser.add_argument("-j", "--jobs",
                        dest="JOBS",
                        help=f"Maximum concurrent units of work (default: {Constants.MAX_CONCURRENCY})",
                        action="store", type=int)
    parser.add_argument("--timeout",
                        dest="TIMEOUT",
                        help=f"Seconds allowed for each package description (default: {Constants.DESCRIBE_TIMEOUT_SEC})",
                        action="store", type=float)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help=f"YAML configuration file (default: <root>/{Constants.CONFIG_FILE} when present)",
                        action="store", type=str)
    parser.add_argument("--no-settings",
                        dest="NO_SETTINGS",
                        help="Do not merge compiler settings from swift package dump-package.",
                        action="store_true")
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=Constants.LOG_LEVELS)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("--error-on-warnings",
                        dest="ERROR_ON_WARNINGS",
                        help="Exit with a non-zero status code if dependency warnings are present.",
                        action="store_true")
    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
