"""
Conversion of SAFE products into GDAL formats

Band files of a SAFE product are stacked into a virtual raster with
``gdalbuildvrt -separate`` and, for formats other than VRT, written with
``gdal_translate``. Output names follow the short-name convention.
"""

import logging
from pathlib import Path

from fidolasen.config import get_settings
from fidolasen.core.exceptions import ValidationError
from fidolasen.gdal.runner import check_gdal, gdal_translate, gdalbuildvrt
from fidolasen.io.drivers import check_format, driver_extension
from fidolasen.io.vrt_paths import gdal_abs2rel
from fidolasen.naming.safe import SafeProduct, parse_granule_name, s2_shortname
from fidolasen.naming.shortname import PROD_TYPES, RESOLUTIONS

logger = logging.getLogger(__name__)

GTIFF_COMPRESSIONS = (
    "JPEG",
    "LZW",
    "PACKBITS",
    "DEFLATE",
    "CCITTRLE",
    "CCITTFAX3",
    "CCITTFAX4",
    "LZMA",
    "NONE",
)

# Nodata value assigned to each product type (None: left undefined)
PROD_NODATA = {
    "BOA": 65535,
    "TOA": 65535,
    "SCL": 0,
}

DEFAULT_PROD_TYPE = {"1C": "TOA", "2A": "BOA"}


def _res_value(res: str) -> int:
    return int(res[:2])


def _jp2_type(prod_type: str) -> str:
    """Band-file type holding a product type."""
    return "MSI" if prod_type in ("BOA", "TOA") else prod_type


def select_bands(jp2list, prod_type: str, tile: str, res: str):
    """
    Choose the band files composing a product.

    Files of the requested type and tile are ordered by band and resolution;
    resolutions finer than ``res`` are discarded and the finest remaining
    file is kept for each band. Products whose file names carry no
    resolution (L1C) drop B8A at 10 m and B08 at 20 m and 60 m.

    Args:
        jp2list: Band table from SafeProduct.jp2list
        prod_type: Product type (TOA, BOA, SCL, ...)
        tile: Tile ID
        res: Requested resolution ("10m", "20m", "60m")

    Returns:
        Filtered pandas.DataFrame (same columns as jp2list)
    """
    selected = jp2list[(jp2list["type"] == _jp2_type(prod_type)) & (jp2list["tile"] == tile)]
    selected = selected.sort_values(["band", "res"])

    if not (selected["res"] == "").any():
        resolutions = selected["res"].str.slice(0, 2).astype(int)
        selected = selected[resolutions >= _res_value(res)]
    elif _res_value(res) < 20:
        selected = selected[selected["band"] != "B8A"]
    else:
        selected = selected[selected["band"] != "B08"]

    return selected.drop_duplicates(subset=["band", "tile"], keep="first")


def s2_translate(
    infile: str | Path,
    outdir: str | Path = ".",
    subdirs: bool | None = None,
    tmpdir: str | Path | None = None,
    prod_type: str | list[str] | None = None,
    res: str = "10m",
    format: str = "VRT",
    compress: str | None = None,
    vrt_rel_paths: bool = True,
    utmzone: int | None = None,
) -> list[str]:
    """
    Build a raster from a Sentinel-2 SAFE product.

    One output is created for each product type and granule of the selected
    UTM zone (compact products have a single granule).

    Args:
        infile: SAFE directory (or its main XML file)
        outdir: Output directory; a relative path is expanded from the
                parent directory of the SAFE. It is created if missing
                (its parent must exist).
        subdirs: Put each product type in its own subdirectory; None (default)
                 does so only when more than one product type is requested
        tmpdir: Directory of the intermediate VRTs (default: hidden ".vrt"
                directory next to the SAFE)
        prod_type: Product type(s); default "TOA" for L1C, "BOA" for L2A
        res: "10m" (default), "20m" or "60m"; coarser bands are resampled to it
        format: Output format (GDAL short name, default "VRT")
        compress: Compression for GTiff outputs (default from settings)
        vrt_rel_paths: Write source paths relative to VRT outputs
        utmzone: UTM zone of the outputs (default: the first one of the
                 granules). No reprojection is done: granules in other zones
                 are skipped.

    Returns:
        List of the created files

    Raises:
        ValidationError: If res is not recognised or prod_type is not
                         available for the product level
        FormatError: If format is not a GDAL driver
        GDALError: If GDAL utilities are missing or fail

    Examples:
        >>> # A single TOA GeoTIFF next to the SAFE
        >>> s2_translate(l1c_safe, format="GTiff")
        >>> # Three ENVI products at 60 m in separate subdirectories
        >>> s2_translate(l2a_safe, format="ENVI", prod_type=["BOA", "TCI", "SCL"],
        ...              res="60m", subdirs=True)
    """
    if res not in RESOLUTIONS:
        raise ValidationError(
            f'"res" value "{res}" is not recognised (accepted values are '
            f"{', '.join(RESOLUTIONS)})."
        )

    check_format(format)
    check_gdal(abort=True)

    product = SafeProduct(infile)
    safe_dir = product.path
    jp2list = product.jp2list

    if prod_type is None:
        prod_types = [DEFAULT_PROD_TYPE[product.level]]
    elif isinstance(prod_type, str):
        prod_types = [prod_type]
    else:
        prod_types = list(prod_type)
    for sel_prod in prod_types:
        if sel_prod not in PROD_TYPES[product.level]:
            raise ValidationError(
                f'Product type "{sel_prod}" is not available for level {product.level} '
                f"(accepted: {', '.join(PROD_TYPES[product.level])})."
            )

    outdir = Path(outdir)
    if not outdir.is_absolute():
        outdir = safe_dir.parent / outdir
    outdir.mkdir(exist_ok=True)

    if subdirs is None:
        subdirs = len(prod_types) > 1
    if subdirs:
        for sel_prod in prod_types:
            (outdir / sel_prod).mkdir(exist_ok=True)

    compress = (compress or get_settings().compress).upper()
    if format == "GTiff" and compress not in GTIFF_COMPRESSIONS:
        logger.warning(
            "'%s' is not a valid compression value; the default 'DEFLATE' value will be used.",
            compress,
        )
        compress = "DEFLATE"

    utm_zones = product.utm
    if not utm_zones:
        raise ValidationError(f"No granules found in {safe_dir}")
    if utmzone is None:
        sel_utmzone = utm_zones[0]
        logger.info("Using UTM zone %d.", sel_utmzone)
    elif int(utmzone) in utm_zones:
        sel_utmzone = int(utmzone)
    else:
        sel_utmzone = utm_zones[0]
        logger.warning(
            "Tiles with UTM zone %s are not present: zone %d will be used.", utmzone, sel_utmzone
        )

    granules = [
        g for g in product.granules if int(parse_granule_name(g.name)["id_tile"][:2]) == sel_utmzone
    ]

    out_ext = driver_extension(format)
    if tmpdir is None:
        tmpdir = safe_dir.parent / get_settings().vrt_dirname
    tmpdir = Path(tmpdir)

    out_names: list[str] = []
    for sel_prod in prod_types:
        sel_na = PROD_NODATA.get(sel_prod)
        out_subdir = outdir / sel_prod if subdirs else outdir

        for granule in granules:
            sel_tile = parse_granule_name(granule.name)["id_tile"]
            out_prefix = s2_shortname(granule, sel_prod, res)
            out_name = out_subdir / f"{out_prefix}.{out_ext}"

            selbands = select_bands(jp2list, sel_prod, sel_tile, res)
            if selbands.empty:
                logger.warning("No %s bands found for tile %s; skipping.", sel_prod, sel_tile)
                continue
            band_files = [str(safe_dir / relpath) for relpath in selbands["relpath"]]

            if len(band_files) > 1:
                tmpdir.mkdir(exist_ok=True)
                if format == "VRT":
                    final_vrt = out_name
                else:
                    final_vrt = tmpdir / f"{out_prefix}.vrt"
                buildvrt_options = {"separate": True}
                if (selbands["res"] == "").any():
                    # band files of mixed native resolution
                    buildvrt_options["tr"] = (_res_value(res), _res_value(res))
                else:
                    buildvrt_options["resolution"] = "highest"
                gdalbuildvrt(final_vrt, band_files, **buildvrt_options)
            else:
                final_vrt = Path(band_files[0])

            if format != "VRT" or len(band_files) == 1:
                resample_options = {}
                if len(band_files) == 1:
                    # resampled to res with nearest, as gdalbuildvrt does
                    resample_options = {
                        "tr": (_res_value(res), _res_value(res)),
                        "r": "nearest",
                    }
                gdal_translate(
                    final_vrt,
                    out_name,
                    of=format,
                    co=[f"COMPRESS={compress}"] if format == "GTiff" else None,
                    a_nodata=sel_na,
                    **resample_options,
                )

            if format == "VRT" and vrt_rel_paths:
                gdal_abs2rel(out_name)

            out_names.append(str(out_name))

    logger.info("%d output files were correctly created.", len(out_names))
    return out_names
