"""
Grid alignment arithmetic

Bounding boxes are snapped to the pixel grid of a reference raster so
that output extents are exact multiples of the target resolution offset
from the reference origin. Resampling and reprojection themselves are
left to GDAL.
"""

import math
from dataclasses import dataclass
from typing import Any, Sequence


@dataclass(frozen=True)
class BBox:
    """
    Bounding box in the units of its coordinate system

    Attributes:
        xmin, ymin, xmax, ymax: Extent
        crs: Coordinate system (anything accepted by rasterio.crs.CRS, or None)

    Examples:
        >>> bbox = BBox(499980.0, 4990200.0, 609780.0, 5100000.0, crs="EPSG:32632")
        >>> bbox.to_projwin()
        [499980.0, 5100000.0, 609780.0, 4990200.0]
    """

    xmin: float
    ymin: float
    xmax: float
    ymax: float
    crs: Any = None

    def __post_init__(self):
        if self.xmin > self.xmax or self.ymin > self.ymax:
            raise ValueError(f"Invalid bounding box: {self.to_te()}")

    @classmethod
    def from_bounds(cls, bounds: Sequence[float], crs: Any = None) -> "BBox":
        """Build from (xmin, ymin, xmax, ymax)."""
        xmin, ymin, xmax, ymax = bounds
        return cls(float(xmin), float(ymin), float(xmax), float(ymax), crs=crs)

    def to_te(self) -> list[float]:
        """Order used by gdalwarp -te: xmin ymin xmax ymax."""
        return [self.xmin, self.ymin, self.xmax, self.ymax]

    def to_projwin(self) -> list[float]:
        """Order used by gdal_translate -projwin: ulx uly lrx lry."""
        return [self.xmin, self.ymax, self.xmax, self.ymin]

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin


def snap_bbox_round(
    bbox: BBox,
    origin: tuple[float, float],
    res: tuple[float, float],
) -> BBox:
    """
    Move each edge of a bounding box to the nearest grid line

    Grid lines lie at origin + k * res.

    Args:
        bbox: Bounding box to align
        origin: (x, y) of a grid corner (e.g. lower-left of the reference)
        res: (xres, yres) of the grid

    Returns:
        Aligned BBox (same CRS)

    Examples:
        >>> snap_bbox_round(BBox(3.0, 7.0, 96.0, 104.0), (0.0, 0.0), (10.0, 10.0)).to_te()
        [0.0, 10.0, 100.0, 100.0]
    """
    ox, oy = origin
    rx, ry = res
    return BBox(
        round((bbox.xmin - ox) / rx) * rx + ox,
        round((bbox.ymin - oy) / ry) * ry + oy,
        round((bbox.xmax - ox) / rx) * rx + ox,
        round((bbox.ymax - oy) / ry) * ry + oy,
        crs=bbox.crs,
    )


def snap_bbox_outward(
    bbox: BBox,
    origin: tuple[float, float],
    res: tuple[float, float],
) -> BBox:
    """
    Enlarge a bounding box to the grid lines enclosing it

    Minimum edges are floored and maximum edges ceiled, so the result
    always contains the input.

    Examples:
        >>> snap_bbox_outward(BBox(3.0, 7.0, 96.0, 104.0), (0.0, 0.0), (10.0, 10.0)).to_te()
        [0.0, 0.0, 100.0, 110.0]
    """
    ox, oy = origin
    rx, ry = res
    return BBox(
        math.floor((bbox.xmin - ox) / rx) * rx + ox,
        math.floor((bbox.ymin - oy) / ry) * ry + oy,
        math.ceil((bbox.xmax - ox) / rx) * rx + ox,
        math.ceil((bbox.ymax - oy) / ry) * ry + oy,
        crs=bbox.crs,
    )


def round_resolution(
    ref_size: tuple[int, int],
    ref_res: tuple[float, float],
    tr: tuple[float, float],
) -> tuple[float, float]:
    """
    Adjust a target resolution so that it divides the reference extent

    Args:
        ref_size: (columns, rows) of the reference raster
        ref_res: (xres, yres) of the reference raster
        tr: Requested (xres, yres)

    Returns:
        Resolution closest to tr fitting a whole number of pixels
        in the reference extent

    Examples:
        >>> round_resolution((120, 120), (10.0, 10.0), (250.0, 250.0))
        (240.0, 240.0)
    """
    adjusted = []
    for size, r, t in zip(ref_size, ref_res, tr):
        extent = size * r
        n_pixels = max(round(extent / t), 1)
        adjusted.append(extent / n_pixels)
    return (adjusted[0], adjusted[1])


def default_resampling(tr: tuple[float, float] | None, src_res: tuple[float, float]) -> str:
    """
    Resampling method used when none is requested

    "near" when no target resolution is requested or when it is finer than
    half the source one on both axes, "mode" otherwise.
    """
    if tr is None or all(2 * t < s for t, s in zip(tr, src_res)):
        return "near"
    return "mode"


def reproject_bbox(bbox: BBox, dst_crs: Any, src_crs: Any = None) -> BBox:
    """
    Bounding box enclosing the reprojection of a bounding box

    Args:
        bbox: Input bounding box
        dst_crs: Target coordinate system
        src_crs: Source coordinate system (default: bbox.crs)

    Returns:
        BBox in dst_crs (densified edges, via rasterio.warp.transform_bounds)
    """
    from rasterio.crs import CRS
    from rasterio.warp import transform_bounds

    src_crs = src_crs if src_crs is not None else bbox.crs
    if src_crs is None:
        raise ValueError("Bounding box has no coordinate system")

    src = CRS.from_user_input(src_crs)
    dst = CRS.from_user_input(dst_crs)
    if src == dst:
        return BBox(bbox.xmin, bbox.ymin, bbox.xmax, bbox.ymax, crs=dst)

    bounds = transform_bounds(src, dst, *bbox.to_te())
    return BBox.from_bounds(bounds, crs=dst)
