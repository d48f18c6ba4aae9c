"""
Mosaic of tile products of the same acquisition

Tiles of a scene sharing every short-name element except the tile ID are
merged into a single product named with the merged pattern
(``S2A2A_20170603_022__BOA_10.tif``). Tiles in another UTM zone are first
warped on the grid of the first tile of the group.
"""

import logging
import os
from pathlib import Path
from typing import Sequence

from fidolasen.config import get_settings
from fidolasen.core.exceptions import ValidationError
from fidolasen.gdal.runner import check_gdal, gdal_translate, gdalbuildvrt
from fidolasen.io.drivers import check_format, driver_extension
from fidolasen.io.raster_info import read_raster_info
from fidolasen.io.vrt_paths import gdal_abs2rel
from fidolasen.naming.shortname import ShortNameInfo, merged_name, parse_shortname
from fidolasen.processing.warp import gdalwarp_grid, same_crs

logger = logging.getLogger(__name__)


def group_tiles(
    infiles: Sequence[str], infiles_meta: Sequence[ShortNameInfo]
) -> dict[str, list[str]]:
    """
    Group tile products by the merged name they belong to.

    Returns:
        Dictionary {merged name without extension: [tile files]}, groups in
        order of first appearance
    """
    groups: dict[str, list[str]] = {}
    for infile, info in zip(infiles, infiles_meta):
        if info.type != "tile":
            raise ValidationError(f"{os.path.basename(infile)} is not a tile product.")
        groups.setdefault(merged_name(info, ext=""), []).append(infile)
    return groups


def s2_merge(
    infiles: Sequence[str | Path],
    outdir: str | Path = ".",
    subdirs: bool | None = None,
    tmpdir: str | Path | None = None,
    format: str | None = None,
    compress: str | None = None,
    vrt_rel_paths: bool = True,
) -> list[str]:
    """
    Merge tiles of the same acquisition into single products.

    Args:
        infiles: Tile products named with the short-name convention
        outdir: Output directory (created if missing); a relative path is
                expanded from the common parent directory of infiles
        subdirs: Put each product type in its own subdirectory; None (default)
                 does so only when inputs have more than one product type
        tmpdir: Directory of intermediate files (default: hidden ".vrt"
                directory inside outdir)
        format: Output format (default: format of the first tile of each group)
        compress: Compression for GTiff outputs (default from settings)
        vrt_rel_paths: Write source paths relative to VRT outputs

    Returns:
        List of the created files

    Raises:
        ValidationError: If inputs are missing or are not tile products
        FormatError: If format is not a GDAL driver
        GDALError: If GDAL utilities are missing or fail
    """
    infiles = [str(f) for f in infiles]
    missing = [f for f in infiles if not os.path.exists(f)]
    if missing:
        raise ValidationError(f"Input files not found: {', '.join(missing)}")

    if format is not None:
        check_format(format)
    check_gdal(abort=True)

    compress = (compress or get_settings().compress).upper()
    infiles_meta = [parse_shortname(f) for f in infiles]

    outdir = Path(outdir)
    if not outdir.is_absolute():
        parent = os.path.commonpath([os.path.dirname(os.path.abspath(f)) for f in infiles])
        outdir = Path(parent) / outdir
    outdir.mkdir(parents=True, exist_ok=True)

    prod_types = list(dict.fromkeys(m.prod_type for m in infiles_meta))
    if subdirs is None:
        subdirs = len(prod_types) > 1
    if subdirs:
        for prod in prod_types:
            (outdir / prod).mkdir(exist_ok=True)

    tmpdir = Path(tmpdir) if tmpdir is not None else outdir / get_settings().vrt_dirname
    tmpdir.mkdir(parents=True, exist_ok=True)

    outfiles: list[str] = []
    for out_prefix, tiles in group_tiles(infiles, infiles_meta).items():
        ref_info = read_raster_info(tiles[0])
        sel_format = format or ref_info.driver
        out_ext = driver_extension(sel_format)
        prod_type = parse_shortname(tiles[0]).prod_type
        out_subdir = outdir / prod_type if subdirs else outdir
        out_name = out_subdir / f"{out_prefix}.{out_ext}"

        sources = [tiles[0]]
        for tile in tiles[1:]:
            if same_crs(read_raster_info(tile).crs, ref_info.crs):
                sources.append(tile)
            else:
                logger.debug("Reprojecting %s on the grid of %s", tile, tiles[0])
                warped = tmpdir / f"{Path(tile).stem}_warped.vrt"
                gdalwarp_grid(tile, warped, ref=tiles[0], of="VRT", overwrite=True)
                sources.append(str(warped))

        mosaic_vrt = out_name if sel_format == "VRT" else tmpdir / f"{out_prefix}.vrt"
        gdalbuildvrt(mosaic_vrt, sources)

        if sel_format != "VRT":
            gdal_translate(
                mosaic_vrt,
                out_name,
                of=sel_format,
                co=[f"COMPRESS={compress}"] if sel_format == "GTiff" else None,
            )
        elif vrt_rel_paths:
            gdal_abs2rel(out_name)

        logger.debug("Merged %d tiles into %s", len(tiles), out_name)
        outfiles.append(str(out_name))

    logger.info("%d merged files were created.", len(outfiles))
    return outfiles
