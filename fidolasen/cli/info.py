"""
Info CLI command

Shows the metadata of a SAFE product: naming version, level, tiles,
UTM zones, metadata files and band files.
"""

import argparse

from fidolasen.naming.safe import INFO_KEYS, s2_get_metadata


def run_info(args: argparse.Namespace) -> None:
    """Run the info command"""
    keys = args.key or list(INFO_KEYS)
    meta = s2_get_metadata(args.safe, keys)

    for key in keys:
        value = meta[key]
        if key == "nameinfo":
            print("Name:")
            for name_key, name_value in value.items():
                print(f"  {name_key}: {name_value}")
        elif key == "jp2list":
            print(f"Band files: {len(value)}")
            if not value.empty:
                print(value[["tile", "type", "band", "res"]].to_string(index=False))
        elif isinstance(value, list):
            print(f"{key}: {', '.join(str(v) for v in value)}")
        else:
            print(f"{key}: {value}")
