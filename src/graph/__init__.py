"""Cross-package dependency index, resolution and relative path matrix."""
