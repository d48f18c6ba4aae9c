"""
Absolute/relative source paths in GDAL virtual rasters (VRT).

Relative paths let a VRT follow its sources when the directory tree is
mounted at a different point; absolute paths let the VRT itself be moved.
"""

import logging
import os
import re
from pathlib import Path

from fidolasen.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

_ABS_PATH_RE = re.compile(r'^(?P<head>.* relativeToVRT=")0(?P<mid>">)(?P<path>[^<]*)(?P<tail></.*)$')
_REL_PATH_RE = re.compile(r'^(?P<head>.* relativeToVRT=")1(?P<mid>">)(?P<path>[^<]*)(?P<tail></.*)$')


def _read_vrt_lines(in_vrt: Path) -> list[str]:
    if not in_vrt.is_file():
        raise ValidationError(f"Input file does not exist: {in_vrt}")
    return in_vrt.read_text(encoding="utf-8").splitlines()


def _write_vrt_lines(lines: list[str], out_vrt: Path) -> None:
    out_vrt.write_text("\n".join(lines) + "\n", encoding="utf-8")


def abs2rel(abs_path: str, start: str) -> str:
    """
    Express an absolute path relative to a directory.

    The path is returned unchanged if it is already relative or if the two
    paths only share the filesystem root (or lie on different drives).
    """
    if not os.path.isabs(abs_path):
        return abs_path
    start = os.path.abspath(start)
    try:
        common = os.path.commonpath([os.path.abspath(abs_path), start])
    except ValueError:
        return abs_path
    if common == os.path.dirname(common):
        # only the root is shared
        return abs_path
    return os.path.relpath(abs_path, start)


def gdal_abs2rel(in_vrt: str | Path, out_vrt: str | Path | None = None) -> Path:
    """
    Replace absolute source paths of a VRT with paths relative to the VRT.

    Only paths sharing a parent directory (other than the root) with the
    VRT are converted; their relativeToVRT flag is set to "1".

    Args:
        in_vrt: VRT file to read
        out_vrt: Output VRT (default: overwrite in_vrt)

    Returns:
        Path of the written VRT

    Raises:
        ValidationError: If in_vrt does not exist
    """
    in_vrt = Path(in_vrt)
    out_vrt = Path(out_vrt) if out_vrt is not None else in_vrt
    vrt_dir = os.path.dirname(os.path.abspath(in_vrt))

    lines = _read_vrt_lines(in_vrt)
    converted = 0
    for i, line in enumerate(lines):
        m = _ABS_PATH_RE.match(line)
        if m is None:
            continue
        abs_path = m.group("path")
        rel_path = abs2rel(abs_path, vrt_dir)
        if rel_path != abs_path:
            lines[i] = f"{m.group('head')}1{m.group('mid')}{rel_path}{m.group('tail')}"
            converted += 1

    _write_vrt_lines(lines, out_vrt)
    logger.debug("Converted %d absolute paths in %s", converted, out_vrt)
    return out_vrt


def gdal_rel2abs(in_vrt: str | Path, out_vrt: str | Path | None = None) -> Path:
    """
    Replace relative source paths of a VRT with absolute paths.

    Relative paths are expanded from the VRT directory, following symbolic
    links; their relativeToVRT flag is set to "0".

    Args:
        in_vrt: VRT file to read
        out_vrt: Output VRT (default: overwrite in_vrt)

    Returns:
        Path of the written VRT

    Raises:
        ValidationError: If in_vrt does not exist
    """
    in_vrt = Path(in_vrt)
    out_vrt = Path(out_vrt) if out_vrt is not None else in_vrt
    vrt_dir = os.path.dirname(os.path.abspath(in_vrt))

    lines = _read_vrt_lines(in_vrt)
    converted = 0
    for i, line in enumerate(lines):
        m = _REL_PATH_RE.match(line)
        if m is None:
            continue
        abs_path = os.path.realpath(os.path.join(vrt_dir, m.group("path")))
        lines[i] = f"{m.group('head')}0{m.group('mid')}{abs_path}{m.group('tail')}"
        converted += 1

    _write_vrt_lines(lines, out_vrt)
    logger.debug("Converted %d relative paths in %s", converted, out_vrt)
    return out_vrt
