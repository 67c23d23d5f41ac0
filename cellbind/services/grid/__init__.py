"""Grid view service package."""

from .view import EditResult, GridView, build_grid

__all__ = ["EditResult", "GridView", "build_grid"]
