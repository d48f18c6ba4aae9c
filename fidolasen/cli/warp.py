"""
Warp CLI command

Clips, reprojects or aligns a raster. With ``--grid`` the output only
takes the grid of the reference raster (see gdalwarp_grid).
"""

import argparse

from fidolasen.core.exceptions import ValidationError
from fidolasen.processing.warp import SOURCE_EXTENT, gdal_warp, gdalwarp_grid


def run_warp(args: argparse.Namespace) -> None:
    """Run the warp command"""
    if args.grid:
        if args.ref is None:
            raise ValidationError("--grid requires a reference raster (--ref).")
        gdalwarp_grid(args.src, args.dst, ref=args.ref, of=args.of, overwrite=True)
    else:
        mask = SOURCE_EXTENT if args.mask == "source" else args.mask
        gdal_warp(
            args.src,
            args.dst,
            of=args.of,
            ref=args.ref,
            mask=mask,
            tr=args.tr,
            t_srs=args.t_srs,
            r=args.r,
            dstnodata=args.dstnodata,
        )
    print(args.dst)
