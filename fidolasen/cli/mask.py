"""
Mask CLI command
"""

import argparse

from fidolasen.processing.mask import s2_mask


def run_mask(args: argparse.Namespace) -> None:
    """Run the mask command"""
    created = s2_mask(
        args.infiles,
        args.masks,
        mask_type=args.mask_type,
        outdir=args.outdir,
        format=args.format,
        subdirs=args.subdirs,
        compress=args.compress,
    )
    for path in created:
        print(path)
