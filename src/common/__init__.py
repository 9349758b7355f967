"""Shared helpers: logging utilities and bounded concurrency primitives."""
