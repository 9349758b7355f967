"""Relative paths between package directories."""

from __future__ import annotations

import os
from typing import Dict, Iterable, List, Mapping

PARENT = ".."


def _components(path: str) -> List[str]:
    normalized = os.path.normpath(os.path.abspath(path))
    return [part for part in normalized.split(os.sep) if part]


def relative_path(from_dir: str, to_dir: str) -> str:
    """Path from ``from_dir`` to ``to_dir`` using '/' separators.

    One parent segment is emitted for every component of ``from_dir`` past
    the common prefix, followed by the remaining components of ``to_dir``.
    The same directory yields the empty string.
    """
    source = _components(from_dir)
    dest = _components(to_dir)
    common = 0
    for left, right in zip(source, dest):
        if left != right:
            break
        common += 1
    parts = [PARENT] * (len(source) - common) + dest[common:]
    return "/".join(parts)


class PathMatrix:
    """Relative path for every ordered pair of package directories.

    Built once for the whole workspace and only read afterwards.
    """

    def __init__(self, paths: Mapping[str, Mapping[str, str]]):
        self._paths = {source: dict(row) for source, row in paths.items()}

    @classmethod
    def build(cls, directories: Iterable[str]) -> "PathMatrix":
        dirs = [os.path.normpath(os.path.abspath(d)) for d in directories]
        return cls({source: {dest: relative_path(source, dest) for dest in dirs} for source in dirs})

    def relative(self, from_dir: str, to_dir: str) -> str:
        """Look up a precomputed path.

        Raises:
            KeyError: If either directory was not part of the build.
        """
        return self._paths[os.path.normpath(os.path.abspath(from_dir))][os.path.normpath(os.path.abspath(to_dir))]

    def row(self, from_dir: str) -> Dict[str, str]:
        """Copy of the paths from one directory to every other."""
        return dict(self._paths[os.path.normpath(os.path.abspath(from_dir))])

    def __len__(self) -> int:
        return len(self._paths)
