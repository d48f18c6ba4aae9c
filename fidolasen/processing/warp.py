"""
Clip, reproject and warp rasters

Each output is produced by a single GDAL call: ``gdal_translate`` when
the source is already in the target coordinate system and no cutline is
needed, ``gdalwarp`` otherwise. This module only decides the output
grid (coordinate system, resolution, extent aligned to a reference).
"""

import logging
import math
import shutil
import tempfile
from pathlib import Path
from typing import Any, Sequence

from fidolasen.core.exceptions import ValidationError
from fidolasen.gdal.runner import gdal_translate, gdalwarp
from fidolasen.grid.alignment import (
    BBox,
    default_resampling,
    reproject_bbox,
    round_resolution,
    snap_bbox_outward,
    snap_bbox_round,
)
from fidolasen.io.drivers import check_format
from fidolasen.io.raster_info import RasterInfo, read_raster_info

logger = logging.getLogger(__name__)


class _SourceExtent:
    """Marker: take the grid from the reference raster, the extent from the source."""

    def __repr__(self):
        return "SOURCE_EXTENT"


SOURCE_EXTENT = _SourceExtent()

# gdal_translate names nearest-neighbour differently from gdalwarp
_TRANSLATE_RESAMPLING = {"near": "nearest"}


def _as_list(files: str | Path | Sequence[str | Path]) -> list[str]:
    if isinstance(files, (str, Path)):
        return [str(files)]
    return [str(f) for f in files]


def _as_pair(value: float | Sequence[float]) -> tuple[float, float]:
    if isinstance(value, (int, float)):
        return (float(value), float(value))
    x, y = value
    return (float(x), float(y))


def _check_lengths(srcfiles: list[str], dstfiles: list[str]) -> None:
    if len(srcfiles) != len(dstfiles):
        raise ValidationError('"srcfiles" and "dstfiles" must be of the same length.')


def _crs_string(crs: Any) -> str:
    from rasterio.crs import CRS

    return CRS.from_user_input(crs).to_string()


def same_crs(crs1: Any, crs2: Any) -> bool:
    from rasterio.crs import CRS

    if crs1 is None or crs2 is None:
        return crs1 is None and crs2 is None
    return CRS.from_user_input(crs1) == CRS.from_user_input(crs2)


def _load_mask(mask: Any):
    """
    Convert a mask argument into a GeoSeries.

    Returns:
        (geoseries, is_polygon): is_polygon tells whether the mask must be
        used as cutline (polygons) or only for its bounding box
    """
    import geopandas as gpd
    from shapely.geometry import box
    from shapely.geometry.base import BaseGeometry

    if isinstance(mask, BBox):
        return gpd.GeoSeries([box(*mask.to_te())], crs=mask.crs), False
    if isinstance(mask, BaseGeometry):
        geoms = gpd.GeoSeries([mask])
    elif isinstance(mask, gpd.GeoDataFrame):
        geoms = mask.geometry
    elif isinstance(mask, gpd.GeoSeries):
        geoms = mask
    elif isinstance(mask, (str, Path)):
        from rasterio.errors import RasterioIOError

        try:
            bbox = read_raster_info(mask).bbox
        except RasterioIOError:
            geoms = gpd.read_file(str(mask)).geometry
        else:
            return gpd.GeoSeries([box(*bbox.to_te())], crs=bbox.crs), False
    else:
        raise ValidationError(f"Mask of type {type(mask).__name__} is not supported.")

    is_polygon = bool(geoms.geom_type.isin(["Polygon", "MultiPolygon"]).any())
    return geoms, is_polygon


def _mask_bbox(geoms, t_srs: Any) -> BBox:
    """Bounding box of the mask in the target coordinate system."""
    if geoms.crs is not None:
        geoms = geoms.to_crs(t_srs)
    return BBox.from_bounds(geoms.total_bounds, crs=t_srs)


def _write_cutline(geoms, tmpdir: str) -> str:
    """Dissolve polygons into a single feature and write them as cutline."""
    import geopandas as gpd

    polygons = geoms[geoms.geom_type.isin(["Polygon", "MultiPolygon"])]
    cutline = gpd.GeoDataFrame(geometry=[polygons.union_all()], crs=geoms.crs)
    cutline_file = str(Path(tmpdir) / "cutline.gpkg")
    cutline.to_file(cutline_file, driver="GPKG")
    logger.debug("Written cutline: %s", cutline_file)
    return cutline_file


def _nodata_options(dstnodata: float | None, translate: bool) -> dict[str, Any]:
    if dstnodata is None:
        return {}
    if isinstance(dstnodata, float) and math.isnan(dstnodata):
        return {"a_nodata": "none"} if translate else {"dstnodata": "None"}
    return {"a_nodata": dstnodata} if translate else {"dstnodata": dstnodata}


def gdal_warp(
    srcfiles: str | Path | Sequence[str | Path],
    dstfiles: str | Path | Sequence[str | Path],
    of: str | None = None,
    ref: str | Path | None = None,
    mask: Any = None,
    tr: float | Sequence[float] | None = None,
    t_srs: Any = None,
    r: str | None = None,
    dstnodata: float | None = None,
    **options: Any,
) -> list[str]:
    """
    Clip, reproject and/or warp raster files.

    gdal_translate is used when input and output coordinate systems are
    equal and no polygon mask is given, gdalwarp otherwise. Unless
    specified, each output keeps the format of its source.

    Args:
        srcfiles: Input file path(s)
        dstfiles: Corresponding output file path(s)
        of: Output format (GDAL short name)
        ref: Reference raster: output coordinate system, grid alignment,
             resolution and extent are taken from it (t_srs is ignored);
             a given ``tr`` is rounded to fit the reference extent
        mask: Extent of the outputs. A vector file, GeoDataFrame, GeoSeries
              or shapely geometry (polygons also mask the area outside them),
              a raster file or a BBox (only the bounding box is used).
              With ``ref``, SOURCE_EXTENT takes the grid from the reference
              and the extent from each source. The output coordinate system
              is never taken from the mask.
        tr: Output resolution (xres, yres) or a single value
        t_srs: Target coordinate system (anything accepted by GDAL)
        r: Resampling method; default "near" when no resolution is requested
           (neither tr nor ref) or when it is finer than half the source one,
           "mode" otherwise
        dstnodata: Output nodata value; None copies the source one,
                   float("nan") leaves nodata undefined
        **options: Further gdalwarp/gdal_translate options (see gdal_args)

    Returns:
        List of output paths

    Raises:
        ValidationError: If srcfiles and dstfiles differ in length
        FormatError: If ``of`` is not a GDAL driver

    Examples:
        >>> # Clip on a polygon, masking outside
        >>> gdal_warp("S2A2A_20170603_022_32TQQ_BOA_10.tif", "clip.tif", mask="field.shp")
        >>> # Warp on the grid of another raster
        >>> gdal_warp("in.tif", "out.tif", ref="reference.tif", mask=SOURCE_EXTENT)
        >>> # Reproject
        >>> gdal_warp("in.tif", "out.tif", t_srs="EPSG:32631", r="bilinear")
    """
    srcfiles = _as_list(srcfiles)
    dstfiles = _as_list(dstfiles)
    _check_lengths(srcfiles, dstfiles)

    if of is not None:
        check_format(of)

    if tr is not None:
        tr = _as_pair(tr)

    ref_info: RasterInfo | None = None
    if ref is not None:
        ref_info = read_raster_info(ref)
        t_srs = ref_info.crs
        if tr is None:
            tr = ref_info.resolution
        else:
            tr = round_resolution(ref_info.size, ref_info.resolution, tr)

    source_extent = mask is SOURCE_EXTENT
    mask_geoms = None
    is_polygon = False
    if mask is not None and not source_extent:
        mask_geoms, is_polygon = _load_mask(mask)

    cutline_file = None
    tmpdir = tempfile.mkdtemp(prefix="fidolasen_warp_") if is_polygon else None
    try:
        if tmpdir is not None:
            cutline_file = _write_cutline(mask_geoms, tmpdir)

        for srcfile, dstfile in zip(srcfiles, dstfiles):
            src_info = read_raster_info(srcfile)
            s_srs = src_info.crs
            sel_of = of or src_info.driver
            sel_t_srs = t_srs if t_srs is not None else s_srs
            sel_tr = tr if tr is not None else src_info.resolution
            sel_r = r or default_resampling(tr, src_info.resolution)

            src_bbox = reproject_bbox(src_info.bbox, sel_t_srs)

            if ref_info is None:
                if mask_geoms is None:
                    sel_te = src_bbox
                else:
                    sel_te = snap_bbox_outward(
                        _mask_bbox(mask_geoms, sel_t_srs), src_info.lower_left, sel_tr
                    )
            elif source_extent:
                sel_te = snap_bbox_outward(src_bbox, ref_info.lower_left, sel_tr)
            elif mask_geoms is None:
                sel_te = ref_info.bbox
            else:
                sel_te = snap_bbox_outward(
                    _mask_bbox(mask_geoms, sel_t_srs), ref_info.lower_left, sel_tr
                )

            if same_crs(sel_t_srs, s_srs) and cutline_file is None:
                logger.debug("Translating %s (same coordinate system)", srcfile)
                gdal_translate(
                    srcfile,
                    dstfile,
                    projwin=sel_te.to_projwin(),
                    tr=sel_tr,
                    of=sel_of,
                    r=_TRANSLATE_RESAMPLING.get(sel_r, sel_r),
                    **_nodata_options(dstnodata, translate=True),
                    **options,
                )
            else:
                logger.debug("Warping %s to %s", srcfile, sel_t_srs)
                gdalwarp(
                    srcfile,
                    dstfile,
                    s_srs=_crs_string(s_srs),
                    t_srs=_crs_string(sel_t_srs),
                    te=sel_te.to_te(),
                    cutline=cutline_file,
                    tr=sel_tr,
                    of=sel_of,
                    r=sel_r,
                    **_nodata_options(dstnodata, translate=False),
                    **options,
                )
    finally:
        if tmpdir is not None:
            shutil.rmtree(tmpdir, ignore_errors=True)

    logger.info("%d files were clipped/warped", len(dstfiles))
    return dstfiles


def gdalwarp_grid(
    srcfiles: str | Path | Sequence[str | Path],
    dstfiles: str | Path | Sequence[str | Path],
    ref: str | Path,
    of: str | None = None,
    **options: Any,
) -> list[str]:
    """
    Warp rasters onto the grid of a reference raster.

    Outputs get the coordinate system and resolution of ``ref``, and the
    extent of their source reprojected and rounded to the nearest lines
    of the reference grid.

    Args:
        srcfiles: Input file path(s)
        dstfiles: Corresponding output file path(s)
        ref: Reference raster
        of: Output format (default: format of each source)
        **options: Further gdalwarp options (other than s_srs, t_srs, te, tr, of)

    Returns:
        List of output paths

    Examples:
        >>> gdalwarp_grid(["a.tif", "b.jp2"], ["a_out.tif", "b_out.tif"],
        ...               ref="reference.jp2", dstnodata=0, overwrite=True)
    """
    srcfiles = _as_list(srcfiles)
    dstfiles = _as_list(dstfiles)
    _check_lengths(srcfiles, dstfiles)

    if of is not None:
        check_format(of)

    ref_info = read_raster_info(ref)

    for srcfile, dstfile in zip(srcfiles, dstfiles):
        src_info = read_raster_info(srcfile)
        out_bbox = reproject_bbox(src_info.bbox, ref_info.crs)
        out_bbox = snap_bbox_round(out_bbox, ref_info.lower_left, ref_info.resolution)

        gdalwarp(
            srcfile,
            dstfile,
            s_srs=_crs_string(src_info.crs),
            t_srs=_crs_string(ref_info.crs),
            te=out_bbox.to_te(),
            tr=ref_info.resolution,
            of=of or src_info.driver,
            **options,
        )

    return dstfiles
