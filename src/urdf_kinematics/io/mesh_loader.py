"""Mesh loading boundary used by :func:`urdf_kinematics.tree.load_tree`.

A loader is any async callable taking a resolved filename and returning the
loaded mesh object. The tree only attaches whatever comes back; it never
inspects it.
"""

import asyncio
import logging
from typing import Any, Protocol

import trimesh

logger = logging.getLogger(__name__)


class MeshLoader(Protocol):
    async def __call__(self, filename: str) -> Any:
        ...


class TrimeshLoader:
    """Load mesh files with trimesh in a worker thread.

    Multi-body files (scenes) are concatenated into a single mesh.
    """

    def __init__(self, force: str = "mesh"):
        self.force = force

    def load(self, filename: str) -> trimesh.Trimesh:
        logger.debug("Loading mesh %s", filename)
        return trimesh.load(filename, force=self.force)

    async def __call__(self, filename: str) -> trimesh.Trimesh:
        return await asyncio.to_thread(self.load, filename)
