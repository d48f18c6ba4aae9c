"""
Translate CLI command

Converts SAFE products into rasters named with the short-name convention.
"""

import argparse

from fidolasen.processing.translate import s2_translate


def run_translate(args: argparse.Namespace) -> None:
    """Run the translate command"""
    created = []
    for safe in args.safe:
        created.extend(
            s2_translate(
                safe,
                outdir=args.outdir,
                subdirs=args.subdirs,
                tmpdir=args.tmpdir,
                prod_type=args.prod_type,
                res=args.res,
                format=args.format,
                compress=args.compress,
                vrt_rel_paths=not args.abs_paths,
                utmzone=args.utmzone,
            )
        )

    for path in created:
        print(path)
