"""
fidolasen GDAL Module

Thin wrappers around the GDAL command-line utilities.
"""

from fidolasen.gdal.runner import (
    check_gdal,
    gdal_args,
    gdal_translate,
    gdalbuildvrt,
    gdalwarp,
    run_gdal,
)

__all__ = [
    "check_gdal",
    "gdal_args",
    "gdal_translate",
    "gdalbuildvrt",
    "gdalwarp",
    "run_gdal",
]
