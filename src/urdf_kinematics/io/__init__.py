"""I/O utilities for reading robot descriptions and their mesh assets.

This module provides the URDF parser and the mesh-loading boundary used when
attaching visual geometry to a built kinematic tree.
"""

from .mesh_loader import MeshLoader, TrimeshLoader
from .urdf_parser import ParseOptions, load_urdf, parse_urdf, resolve_mesh_filename

__all__ = [
    "MeshLoader",
    "ParseOptions",
    "TrimeshLoader",
    "load_urdf",
    "parse_urdf",
    "resolve_mesh_filename",
]
