"""
fidolasen I/O Module

Raster metadata, GDAL driver lookup and VRT path rewriting.
"""

from fidolasen.io.drivers import check_format, driver_extension
from fidolasen.io.raster_info import RasterInfo, read_raster_info
from fidolasen.io.vrt_paths import gdal_abs2rel, gdal_rel2abs

__all__ = [
    "RasterInfo",
    "check_format",
    "driver_extension",
    "gdal_abs2rel",
    "gdal_rel2abs",
    "read_raster_info",
]
