"""Rendering components for the N-body viewer."""

from .grid import DiscGuide
from .projector import PointCloud
from .text import TextRenderer

__all__ = ["DiscGuide", "PointCloud", "TextRenderer"]
