"""Write generated projects beside their manifests."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from typing import Any, Callable, Dict

from constants import Constants
from conversion.convert import ConvertedProject, ConvertedTarget
from graph.index import DependencyEdge

logger = logging.getLogger(__name__)

Renderer = Callable[[ConvertedProject], str]


def _edge_to_dict(edge: DependencyEdge) -> Dict[str, Any]:
    data: Dict[str, Any] = {"kind": edge.kind.value, "name": edge.name}
    if edge.path is not None:
        data["path"] = edge.path
    return data


def _target_to_dict(target: ConvertedTarget) -> Dict[str, Any]:
    return {
        "name": target.name,
        "product": target.product,
        "bundleId": target.bundle_id,
        "sources": target.sources,
        "destinations": list(target.destinations),
        "deploymentTargets": dict(target.deployment_targets),
        "dependencies": [_edge_to_dict(edge) for edge in target.dependencies],
        "swiftSettings": [{"kind": s.kind, "values": list(s.values)} for s in target.swift_settings],
    }


def render_project_json(project: ConvertedProject) -> str:
    """Structured rendering of a project; swap in a template renderer for Swift output."""
    payload = {"name": project.name, "targets": [_target_to_dict(t) for t in project.targets]}
    return json.dumps(payload, indent=2) + "\n"


class ProjectWriter:
    """Render and atomically write ``Project.swift`` files."""

    def __init__(
        self,
        dry_run: bool = False,
        renderer: Renderer = render_project_json,
        output_name: str = Constants.OUTPUT_FILE,
    ):
        self.dry_run = dry_run
        self.renderer = renderer
        self.output_name = output_name

    def output_path(self, project: ConvertedProject) -> str:
        return os.path.join(project.directory, self.output_name)

    def write(self, project: ConvertedProject) -> str:
        """Write one project and return the output path.

        Raises:
            OSError: If the file cannot be written.
        """
        path = self.output_path(project)
        content = self.renderer(project)
        if self.dry_run:
            logger.info("Would write %s (%d target(s))", path, len(project.targets))
            return path

        fd, tmp_path = tempfile.mkstemp(prefix=".project-", suffix=".tmp", dir=project.directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
            os.replace(tmp_path, path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        logger.info("Wrote %s", path)
        return path

    async def write_async(self, project: ConvertedProject) -> str:
        """Run ``write`` in a worker thread so the event loop keeps scheduling."""
        return await asyncio.to_thread(self.write, project)
