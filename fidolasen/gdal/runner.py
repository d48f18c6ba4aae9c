"""
Execution of GDAL command-line utilities.

Keyword options are translated to GDAL flags the same way for every
utility:

    >>> gdal_args(of="GTiff", tr=(10, 10), co=["COMPRESS=DEFLATE", "TILED=YES"], overwrite=True)
    ['-of', 'GTiff', '-tr', '10', '10', '-co', 'COMPRESS=DEFLATE', '-co', 'TILED=YES', '-overwrite']
"""

import logging
import os
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import Any, Sequence

from fidolasen.config import get_settings
from fidolasen.core.exceptions import GDALError

logger = logging.getLogger(__name__)

GDAL_UTILITIES = ("gdalbuildvrt", "gdal_translate", "gdalwarp")

# Flags given once per value (-co A=1 -co B=2)
_REPEATED_FLAGS = {"co", "oo", "wo", "to", "doo", "mo", "dsco", "lco"}


def _format_value(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def gdal_args(**options: Any) -> list[str]:
    """
    Translate keyword options into GDAL command-line arguments.

    Rules:
        - None or False: option omitted
        - True: bare flag (-overwrite)
        - list/tuple: values follow the flag (-te xmin ymin xmax ymax),
          except for creation/open/warp options which repeat the flag
        - anything else: single value
    """
    args: list[str] = []
    for key, value in options.items():
        if value is None or value is False:
            continue
        flag = f"-{key}"
        if value is True:
            args.append(flag)
        elif isinstance(value, (list, tuple)):
            if key in _REPEATED_FLAGS:
                for v in value:
                    args.extend([flag, _format_value(v)])
            else:
                args.append(flag)
                args.extend(_format_value(v) for v in value)
        else:
            args.extend([flag, _format_value(value)])
    return args


def find_utility(tool: str) -> str | None:
    """Full path of a GDAL utility, or None if it cannot be found."""
    gdal_dir = get_settings().gdal_dir
    if gdal_dir:
        return shutil.which(tool, path=gdal_dir)
    return shutil.which(tool)


def check_gdal(abort: bool = True) -> bool:
    """
    Check that the GDAL utilities used by fidolasen are installed.

    Args:
        abort: Raise if a utility is missing (otherwise log a warning)

    Returns:
        True if every utility was found

    Raises:
        GDALError: If a utility is missing and abort is True
    """
    missing = [tool for tool in GDAL_UTILITIES if find_utility(tool) is None]
    if not missing:
        return True

    message = (
        f"GDAL utilities not found: {', '.join(missing)}. "
        "Install GDAL or set FIDOLASEN_GDAL_DIR to the directory containing them."
    )
    if abort:
        raise GDALError(message)
    logger.warning(message)
    return False


def run_gdal(tool: str, args: Sequence[str]) -> subprocess.CompletedProcess:
    """
    Run a GDAL utility and wait for it to finish.

    Args:
        tool: Utility name (e.g. "gdalwarp")
        args: Command-line arguments

    Returns:
        The completed process (stdout/stderr captured as text)

    Raises:
        GDALError: If the utility is missing or exits with non-zero status
    """
    executable = find_utility(tool)
    if executable is None:
        raise GDALError(f"GDAL utility not found: {tool}")

    command = [executable, *[os.fspath(a) for a in args]]
    logger.debug("Running: %s", shlex.join(command))

    proc = subprocess.run(command, capture_output=True, text=True)
    if proc.returncode != 0:
        raise GDALError(
            f"{tool} exited with status {proc.returncode}: {proc.stderr.strip()}",
            command=command,
            stderr=proc.stderr,
        )
    if proc.stderr:
        logger.debug("%s: %s", tool, proc.stderr.strip())
    return proc


def gdalbuildvrt(dst: str | Path, srcs: Sequence[str | Path], **options: Any):
    """Run gdalbuildvrt (options as in :func:`gdal_args`)."""
    return run_gdal("gdalbuildvrt", [*gdal_args(**options), dst, *srcs])


def gdal_translate(src: str | Path, dst: str | Path, **options: Any):
    """Run gdal_translate (options as in :func:`gdal_args`)."""
    return run_gdal("gdal_translate", [*gdal_args(**options), src, dst])


def gdalwarp(src: str | Path, dst: str | Path, **options: Any):
    """Run gdalwarp (options as in :func:`gdal_args`)."""
    return run_gdal("gdalwarp", [*gdal_args(**options), src, dst])
