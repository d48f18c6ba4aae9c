"""
Merge CLI command
"""

import argparse

from fidolasen.processing.merge import s2_merge


def run_merge(args: argparse.Namespace) -> None:
    """Run the merge command"""
    created = s2_merge(
        args.infiles,
        outdir=args.outdir,
        subdirs=args.subdirs,
        tmpdir=args.tmpdir,
        format=args.format,
        compress=args.compress,
        vrt_rel_paths=not args.abs_paths,
    )
    for path in created:
        print(path)
