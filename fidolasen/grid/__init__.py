"""
fidolasen Grid Module

Bounding boxes and pixel-grid alignment.
"""

from fidolasen.grid.alignment import (
    BBox,
    default_resampling,
    reproject_bbox,
    round_resolution,
    snap_bbox_outward,
    snap_bbox_round,
)

__all__ = [
    "BBox",
    "default_resampling",
    "reproject_bbox",
    "round_resolution",
    "snap_bbox_outward",
    "snap_bbox_round",
]
