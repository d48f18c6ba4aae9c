"""
Raster metadata extraction utilities.

Read grid and format information from any GDAL-readable raster
without loading pixel data.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from fidolasen.grid.alignment import BBox

logger = logging.getLogger(__name__)


@dataclass
class RasterInfo:
    """Metadata extracted from a raster header."""

    path: str
    driver: str
    crs: Any
    width: int
    height: int
    band_count: int
    dtype: str
    resolution: tuple[float, float]
    lower_left: tuple[float, float]
    nodata: float | None

    @property
    def size(self) -> tuple[int, int]:
        """Number of (columns, rows)."""
        return (self.width, self.height)

    @property
    def bbox(self) -> BBox:
        """Bounding box in the raster CRS, computed from the lower-left corner."""
        xmin, ymin = self.lower_left
        return BBox(
            xmin,
            ymin,
            xmin + self.width * self.resolution[0],
            ymin + self.height * self.resolution[1],
            crs=self.crs,
        )

    def __repr__(self):
        return (
            f"<RasterInfo: {Path(self.path).name}>\n"
            f"  Driver: {self.driver}\n"
            f"  Size: {self.width}x{self.height}, {self.band_count} bands\n"
            f"  CRS: {self.crs}\n"
            f"  Resolution: {self.resolution}\n"
            f"  Dtype: {self.dtype}"
        )


def read_raster_info(path: str | Path) -> RasterInfo:
    """
    Extract metadata from a raster file without reading pixel data.

    Args:
        path: Path of a file readable by GDAL

    Returns:
        RasterInfo with driver, CRS, dimensions, resolution, lower-left corner, etc.

    Examples:
        >>> info = read_raster_info("S2A2A_20170603_022_32TQQ_BOA_10.tif")
        >>> info.resolution
        (10.0, 10.0)
        >>> info.bbox.to_te()
        [499980.0, 4990200.0, 609780.0, 5100000.0]
    """
    import rasterio

    with rasterio.open(str(path)) as src:
        res_x, res_y = src.res
        return RasterInfo(
            path=str(path),
            driver=src.driver,
            crs=src.crs,
            width=src.width,
            height=src.height,
            band_count=src.count,
            dtype=str(src.dtypes[0]),
            resolution=(abs(res_x), abs(res_y)),
            lower_left=(src.bounds.left, src.bounds.bottom),
            nodata=src.nodata,
        )
