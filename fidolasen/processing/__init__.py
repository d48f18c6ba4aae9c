"""
fidolasen Processing Module

Conversion of SAFE products, cloud masking, mosaicking and warping.
"""

from fidolasen.processing.mask import MASK_TYPES, s2_mask
from fidolasen.processing.merge import s2_merge
from fidolasen.processing.translate import s2_translate
from fidolasen.processing.warp import SOURCE_EXTENT, gdal_warp, gdalwarp_grid

__all__ = [
    "MASK_TYPES",
    "SOURCE_EXTENT",
    "gdal_warp",
    "gdalwarp_grid",
    "s2_mask",
    "s2_merge",
    "s2_translate",
]
