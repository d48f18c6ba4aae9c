"""
fidolasen CLI Entry Points

Provides command-line interface for:
- info: Show metadata of a SAFE product
- translate: Convert SAFE products into GDAL formats
- mask: Apply cloud masks to converted products
- merge: Mosaic tiles of the same acquisition
- warp: Clip, reproject and warp rasters
- abs2rel / rel2abs: Rewrite source paths of VRT files
"""

import argparse
import logging
import sys

from fidolasen.core.exceptions import FidolasenError
from fidolasen.processing.mask import MASK_TYPES

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser of the fidolasen command."""
    parser = argparse.ArgumentParser(
        prog="fidolasen",
        description="fidolasen - Sentinel-2 SAFE products as analysis-ready rasters",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  fidolasen info S2A_MSIL1C_...SAFE                    Show product metadata
  fidolasen translate S2A_MSIL2A_...SAFE -p BOA SCL    Convert to VRT
  fidolasen mask *_BOA_10.tif --masks *_SCL_10.tif     Mask clouds
  fidolasen warp in.tif out.tif --ref grid.tif         Warp on a reference grid
  fidolasen abs2rel product.vrt                        Make VRT paths relative
        """,
    )

    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Info command
    info_parser = subparsers.add_parser("info", help="Show metadata of a SAFE product")
    info_parser.add_argument("safe", help="SAFE directory or main XML file")
    info_parser.add_argument(
        "--key", "-k", action="append", help="Information to show (repeatable, default: all)"
    )

    # Translate command
    translate_parser = subparsers.add_parser(
        "translate", help="Convert SAFE products into GDAL formats"
    )
    translate_parser.add_argument("safe", nargs="+", help="SAFE directories")
    translate_parser.add_argument("--outdir", "-o", default=".", help="Output directory")
    translate_parser.add_argument(
        "--prod-type", "-p", nargs="+", help="Product types (default: TOA for L1C, BOA for L2A)"
    )
    translate_parser.add_argument(
        "--res", default="10m", choices=["10m", "20m", "60m"], help="Resolution (default: 10m)"
    )
    translate_parser.add_argument("--format", "-f", default="VRT", help="Output format")
    translate_parser.add_argument("--compress", help="GTiff compression")
    translate_parser.add_argument("--tmpdir", help="Directory of intermediate VRTs")
    translate_parser.add_argument("--utmzone", type=int, help="UTM zone of the outputs")
    translate_parser.add_argument(
        "--subdirs", action="store_true", default=None, help="One subdirectory per product type"
    )
    translate_parser.add_argument(
        "--abs-paths", action="store_true", help="Keep absolute source paths in VRT outputs"
    )

    # Mask command
    mask_parser = subparsers.add_parser("mask", help="Apply cloud masks to converted products")
    mask_parser.add_argument("infiles", nargs="+", help="Products to mask")
    mask_parser.add_argument("--masks", "-m", nargs="+", required=True, help="SCL files")
    mask_parser.add_argument(
        "--mask-type",
        default="cloud_medium_proba",
        choices=list(MASK_TYPES),
        help="Classes to mask (default: cloud_medium_proba)",
    )
    mask_parser.add_argument("--outdir", "-o", default="./masked", help="Output directory")
    mask_parser.add_argument("--format", "-f", help="Output format")
    mask_parser.add_argument("--compress", help="GTiff compression")
    mask_parser.add_argument(
        "--subdirs", action="store_true", default=None, help="One subdirectory per product type"
    )

    # Merge command
    merge_parser = subparsers.add_parser("merge", help="Mosaic tiles of the same acquisition")
    merge_parser.add_argument("infiles", nargs="+", help="Tile products")
    merge_parser.add_argument("--outdir", "-o", default=".", help="Output directory")
    merge_parser.add_argument("--format", "-f", help="Output format")
    merge_parser.add_argument("--compress", help="GTiff compression")
    merge_parser.add_argument("--tmpdir", help="Directory of intermediate files")
    merge_parser.add_argument(
        "--subdirs", action="store_true", default=None, help="One subdirectory per product type"
    )
    merge_parser.add_argument(
        "--abs-paths", action="store_true", help="Keep absolute source paths in VRT outputs"
    )

    # Warp command
    warp_parser = subparsers.add_parser("warp", help="Clip, reproject and warp rasters")
    warp_parser.add_argument("src", help="Input raster")
    warp_parser.add_argument("dst", help="Output raster")
    warp_parser.add_argument("--of", help="Output format")
    warp_parser.add_argument("--ref", help="Reference raster")
    warp_parser.add_argument(
        "--mask", help="Vector or raster file defining the extent ('source': source extent)"
    )
    warp_parser.add_argument(
        "--tr", type=float, nargs=2, metavar=("XRES", "YRES"), help="Output resolution"
    )
    warp_parser.add_argument("--t-srs", help="Target coordinate system")
    warp_parser.add_argument("--r", help="Resampling method")
    warp_parser.add_argument("--dstnodata", type=float, help="Output nodata value")
    warp_parser.add_argument(
        "--grid", action="store_true", help="Only align on the grid of --ref (keep source extent)"
    )

    # VRT path commands
    for name, help_text in (
        ("abs2rel", "Make source paths of a VRT relative"),
        ("rel2abs", "Make source paths of a VRT absolute"),
    ):
        vrt_parser = subparsers.add_parser(name, help=help_text)
        vrt_parser.add_argument("in_vrt", help="Input VRT")
        vrt_parser.add_argument("out_vrt", nargs="?", help="Output VRT (default: overwrite)")

    return parser


def main(argv: list[str] | None = None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(message)s" if not args.verbose else "%(levelname)s: %(message)s"
    )

    try:
        if args.command == "info":
            from fidolasen.cli.info import run_info

            run_info(args)
        elif args.command == "translate":
            from fidolasen.cli.translate import run_translate

            run_translate(args)
        elif args.command == "mask":
            from fidolasen.cli.mask import run_mask

            run_mask(args)
        elif args.command == "merge":
            from fidolasen.cli.merge import run_merge

            run_merge(args)
        elif args.command == "warp":
            from fidolasen.cli.warp import run_warp

            run_warp(args)
        elif args.command in ("abs2rel", "rel2abs"):
            from fidolasen.cli.vrt import run_vrt_paths

            run_vrt_paths(args)
        else:
            parser.print_help()
            sys.exit(1)
    except FidolasenError as e:
        logger.error("Error: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
