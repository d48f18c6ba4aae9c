"""
abs2rel / rel2abs CLI commands
"""

import argparse

from fidolasen.io.vrt_paths import gdal_abs2rel, gdal_rel2abs


def run_vrt_paths(args: argparse.Namespace) -> None:
    """Rewrite the source paths of a VRT (command name selects the direction)"""
    convert = gdal_abs2rel if args.command == "abs2rel" else gdal_rel2abs
    print(convert(args.in_vrt, args.out_vrt))
