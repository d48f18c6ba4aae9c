"""
Cloud masking of converted Sentinel-2 products

Pixels flagged in the Scene Classification Layer (SCL) are set to the
nodata value of the product. Outputs are physical rasters written with
rasterio (virtual rasters are not allowed as output).
"""

import logging
import os
from pathlib import Path
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from fidolasen.config import get_settings
from fidolasen.core.exceptions import ValidationError
from fidolasen.io.drivers import check_format, driver_extension
from fidolasen.naming.shortname import ShortNameInfo, parse_shortname

logger = logging.getLogger(__name__)

# SCL classes: 0 no data, 3 cloud shadow, 7 unclassified / cloud low probability,
# 8 cloud medium probability, 9 cloud high probability, 10 thin cirrus.
# Keys of each entry are the product types of the mask files, values the
# pixel values to mask.
MASK_TYPES: dict[str, dict[str, list[int]] | None] = {
    "cloud_high_proba": {"SCL": [0, 9]},
    "cloud_medium_proba": {"SCL": [0, 8, 9]},
    "cloud_low_proba": {"SCL": [0, 7, 8, 9]},
    "cloud_and_shadow": {"SCL": [0, 3, 7, 8, 9]},
    "cloud_shadow_cirrus": {"SCL": [0, 3, 7, 8, 9, 10]},
    "opaque_clouds": None,
}


def default_nodata(dtype: str) -> float:
    """Nodata value used for a data type when the input declares none."""
    dt = np.dtype(dtype)
    if dt.kind == "u":
        return int(np.iinfo(dt).max)
    if dt.kind == "i":
        return int(np.iinfo(dt).min)
    return float("nan")


def required_masks(mask_type: str) -> dict[str, list[int]]:
    """
    Mask layers and values to mask for a mask type.

    Raises:
        ValidationError: If the mask type is unknown or not implemented
    """
    if mask_type not in MASK_TYPES:
        raise ValidationError(
            f'Mask type "{mask_type}" is not recognised '
            f"(accepted: {', '.join(MASK_TYPES)})."
        )
    req_masks = MASK_TYPES[mask_type]
    if req_masks is None:
        raise ValidationError(f"Mask type '{mask_type}' has not been yet implemented.")
    return req_masks


def compute_valid(
    mask_layers: Sequence[NDArray],
    mask_values: Sequence[Sequence[int]],
    mask_nodata: Sequence[float | None] = (),
) -> NDArray:
    """
    Boolean array of the pixels to keep.

    A pixel is masked when every mask layer holds one of its masking values
    (or its nodata value).

    Args:
        mask_layers: 2D arrays, one per mask file
        mask_values: Values to mask, one list per layer
        mask_nodata: Nodata value of each layer (None: undefined)

    Returns:
        Boolean array, True where the pixel is kept
    """
    valid_count = np.zeros(mask_layers[0].shape, dtype=np.uint8)
    for i, (layer, values) in enumerate(zip(mask_layers, mask_values)):
        flagged = np.isin(layer, values)
        nodata = mask_nodata[i] if i < len(mask_nodata) else None
        if nodata is not None:
            flagged |= np.isnan(layer) if np.isnan(nodata) else layer == nodata
        valid_count += ~flagged
    return valid_count > 0


def _find_maskfile(
    info: ShortNameInfo,
    prod_type: str,
    maskfiles: Sequence[str],
    maskfiles_meta: Sequence[ShortNameInfo],
) -> str | None:
    for maskfile, mask_info in zip(maskfiles, maskfiles_meta):
        if mask_info.prod_type == prod_type and mask_info.same_acquisition(info):
            return maskfile
    return None


def _output_name(infile: str, info: ShortNameInfo, out_ext: str) -> str:
    basename = os.path.basename(infile)
    if info.file_ext:
        basename = basename[: -len(info.file_ext) - 1]
    return f"{basename}.{out_ext}"


def _apply_mask(
    infile: str,
    sel_maskfiles: list[str],
    mask_values: list[list[int]],
    outfile: Path,
    out_format: str,
    compress: str,
) -> None:
    import rasterio

    with rasterio.open(infile) as src:
        nodata = src.nodata if src.nodata is not None else default_nodata(src.dtypes[0])
        profile = {
            "driver": out_format,
            "dtype": src.dtypes[0],
            "width": src.width,
            "height": src.height,
            "count": src.count,
            "crs": src.crs,
            "transform": src.transform,
            "nodata": nodata,
        }
        if out_format == "GTiff":
            profile["compress"] = compress.lower()

        mask_srcs = [rasterio.open(m) for m in sel_maskfiles]
        try:
            for msrc in mask_srcs:
                if (msrc.width, msrc.height) != (src.width, src.height):
                    raise ValidationError(
                        f"Mask {msrc.name} ({msrc.width}x{msrc.height}) does not match "
                        f"the grid of {infile} ({src.width}x{src.height})."
                    )

            with rasterio.open(str(outfile), "w", **profile) as dst:
                for _, window in src.block_windows(1):
                    data = src.read(window=window)
                    layers = [msrc.read(1, window=window) for msrc in mask_srcs]
                    valid = compute_valid(layers, mask_values, [m.nodata for m in mask_srcs])
                    data[:, ~valid] = nodata
                    dst.write(data, window=window)
        finally:
            for msrc in mask_srcs:
                msrc.close()


def s2_mask(
    infiles: Sequence[str | Path],
    maskfiles: Sequence[str | Path],
    mask_type: str = "cloud_medium_proba",
    outdir: str | Path = "./masked",
    format: str | None = None,
    subdirs: bool | None = None,
    compress: str | None = None,
) -> list[str]:
    """
    Apply cloud masks to Sentinel-2 products.

    Args:
        infiles: Products already converted from SAFE (see s2_translate),
                 named with the short-name convention
        maskfiles: Files holding the cloud information (SCL products, short
                   names); they need not be in the same order as infiles
        mask_type: One of
            - "cloud_high_proba": no data, cloud (high probability)
            - "cloud_medium_proba": no data, cloud (high or medium probability)
            - "cloud_low_proba": no data, cloud (any probability)
            - "cloud_and_shadow": as above, plus cloud shadow
            - "cloud_shadow_cirrus": as above, plus thin cirrus
            - "opaque_clouds": not implemented yet
        outdir: Output directory, created if missing; a relative path is
                expanded from the common parent directory of infiles
        format: Output format (default: format of each input, GTiff for VRT)
        subdirs: Put each product type in its own subdirectory; None (default)
                 does so only when inputs have more than one product type
        compress: Compression for GTiff outputs (default from settings)

    Returns:
        List of the created files

    Raises:
        ValidationError: If inputs are missing, the mask type is not
                         available or an input has no matching mask
        FormatError: If format is not a GDAL driver
        NameParseError: If a file name does not follow the short-name convention
    """
    import rasterio

    infiles = [str(f) for f in infiles]
    maskfiles = [str(f) for f in maskfiles]

    missing = [f for f in infiles if not os.path.exists(f)]
    if len(missing) == len(infiles):
        raise ValidationError(
            "The input files do not exist locally; please check file names and paths."
        )
    if missing:
        missing_list = '", "'.join(missing)
        raise ValidationError(
            f'Some of the input files ("{missing_list}") do not exist locally; '
            "please check file names and paths."
        )

    if format is not None:
        check_format(format)

    req_masks = required_masks(mask_type)
    compress = (compress or get_settings().compress).upper()

    infiles_meta = [parse_shortname(f) for f in infiles]
    maskfiles_meta = [parse_shortname(f) for f in maskfiles]

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

    outfiles: list[str] = []
    for infile, info in zip(infiles, infiles_meta):
        if format is not None:
            sel_format = format
        else:
            with rasterio.open(infile) as src:
                sel_format = src.driver
        if sel_format == "VRT":
            sel_format = "GTiff"
        out_ext = driver_extension(sel_format)

        sel_maskfiles = []
        for mask_prod in req_masks:
            maskfile = _find_maskfile(info, mask_prod, maskfiles, maskfiles_meta)
            if maskfile is None:
                raise ValidationError(
                    f"No {mask_prod} file matches {os.path.basename(infile)}."
                )
            sel_maskfiles.append(maskfile)

        out_subdir = outdir / info.prod_type if subdirs else outdir
        outfile = out_subdir / _output_name(infile, info, out_ext)

        logger.debug("Masking %s with %s", infile, ", ".join(sel_maskfiles))
        _apply_mask(
            infile,
            sel_maskfiles,
            [req_masks[m] for m in req_masks],
            outfile,
            sel_format,
            compress,
        )
        outfiles.append(str(outfile))

    logger.info("%d files were masked (%s).", len(outfiles), mask_type)
    return outfiles
