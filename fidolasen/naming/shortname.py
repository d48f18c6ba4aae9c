"""
Short names of converted Sentinel-2 products.

Files produced by fidolasen follow a compact naming convention which
encodes the acquisition metadata:

    S2A1C_20170603_022_32TQQ_TOA_20.tif
    | ||  |        |   |     |   |  |
    | ||  |        |   |     |   |  file extension
    | ||  |        |   |     |   resolution (10, 20, 60)
    | ||  |        |   |     product type (TOA, BOA, SCL, TCI, ...)
    | ||  |        |   tile (empty for merged products)
    | ||  |        relative orbit
    | ||  sensing date
    | |level (1C, 2A)
    | mission (A, B)
"""

import logging
import os
import re
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any, Sequence

from fidolasen.core.exceptions import NameParseError, ValidationError

logger = logging.getLogger(__name__)

_SHORTNAME_PATTERNS = {
    "tile": re.compile(
        r"^S2(?P<mission>[AB])(?P<level>[12][AC])_(?P<sensing_date>[0-9]{8})_"
        r"(?P<id_orbit>[0-9]{3})_(?P<id_tile>[A-Z0-9]{5})_(?P<prod_type>[A-Z0-9]{3})_"
        r"(?P<res>[126]0)\.?(?P<file_ext>.*)$"
    ),
    "merged": re.compile(
        r"^S2(?P<mission>[AB])(?P<level>[12][AC])_(?P<sensing_date>[0-9]{8})_"
        r"(?P<id_orbit>[0-9]{3})__(?P<prod_type>[A-Z0-9]{3})_"
        r"(?P<res>[126]0)\.?(?P<file_ext>.*)$"
    ),
}

# Product types available for each processing level
PROD_TYPES = {
    "1C": ["TOA", "TCI"],
    "2A": ["BOA", "TCI", "SCL", "AOT", "WVP", "CLD", "SNW"],
}

RESOLUTIONS = ["10m", "20m", "60m"]


@dataclass(frozen=True)
class ShortNameInfo:
    """
    Metadata encoded in a short name.

    Attributes:
        type: "tile" or "merged"
        mission: Satellite ("A" or "B")
        level: Processing level ("1C" or "2A")
        sensing_date: Acquisition date
        id_orbit: Relative orbit ("022")
        id_tile: Tile ID ("32TQQ"), None for merged products
        prod_type: Product type ("TOA", "BOA", "SCL", ...)
        res: Resolution with unit ("10m")
        file_ext: File extension without dot ("" if missing)
    """

    type: str
    mission: str
    level: str
    sensing_date: date
    id_orbit: str
    id_tile: str | None
    prod_type: str
    res: str
    file_ext: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def same_acquisition(self, other: "ShortNameInfo") -> bool:
        """True if both names refer to the same scene (any product type)."""
        return (
            self.type == other.type
            and self.mission == other.mission
            and self.level == other.level
            and self.sensing_date == other.sensing_date
            and self.id_orbit == other.id_orbit
            and self.id_tile == other.id_tile
            and self.res == other.res
        )


def parse_shortname(name: str) -> ShortNameInfo:
    """
    Extract metadata from a short name (or the path of a file with one).

    Args:
        name: File name or path; only the basename is parsed

    Returns:
        ShortNameInfo

    Raises:
        NameParseError: If the name matches neither the tile nor the merged pattern

    Examples:
        >>> info = parse_shortname("/path/of/the/product/S2A1C_20170603_022_32TQQ_TOA_20.tif")
        >>> info.id_tile, info.res, info.file_ext
        ('32TQQ', '20m', 'tif')
    """
    basename = os.path.basename(str(name).rstrip("/\\"))

    for name_type, pattern in _SHORTNAME_PATTERNS.items():
        m = pattern.match(basename)
        if m:
            groups = m.groupdict()
            return ShortNameInfo(
                type=name_type,
                mission=groups["mission"],
                level=groups["level"],
                sensing_date=datetime.strptime(groups["sensing_date"], "%Y%m%d").date(),
                id_orbit=groups["id_orbit"],
                id_tile=groups.get("id_tile"),
                prod_type=groups["prod_type"],
                res=f"{groups['res']}m",
                file_ext=groups["file_ext"],
            )

    raise NameParseError(f'"{basename}" was not recognised.')


def get_elements(names: str | Sequence[str], format: str = "list"):
    """
    Extract metadata from one or more short names.

    Args:
        names: A short name or a sequence of them
        format: "list" (default) or "dataframe"

    Returns:
        A ShortNameInfo for a single string; otherwise a list of
        ShortNameInfo, or a pandas.DataFrame (one row per name,
        indexed by basename) when format="dataframe".

    Raises:
        NameParseError: If any name is not recognised

    Examples:
        >>> get_elements(["S2A1C_20170603_022_32TQQ_TOA_20.tif",
        ...               "S2A2A_20170603_022__BOA_10.vrt"], format="dataframe")
    """
    single = isinstance(names, (str, os.PathLike))
    name_list = [names] if single else list(names)
    parsed = [parse_shortname(n) for n in name_list]

    if format == "dataframe":
        import pandas as pd

        return pd.DataFrame(
            [p.to_dict() for p in parsed],
            index=[os.path.basename(str(n)) for n in name_list],
        )

    if format != "list":
        logger.warning(
            "Argument must be one between 'dataframe' and 'list'. Returning a list."
        )

    if single:
        return parsed[0]
    return parsed


def build_shortname(
    mission: str,
    level: str,
    sensing_date: date,
    id_orbit: str,
    id_tile: str | None,
    prod_type: str,
    res: str,
    ext: str | None = None,
) -> str:
    """
    Compose a short name from its elements.

    An empty or None tile yields a merged name.

    Examples:
        >>> build_shortname("A", "2A", date(2017, 6, 3), "022", "32TQQ", "BOA", "10m", "tif")
        'S2A2A_20170603_022_32TQQ_BOA_10.tif'
    """
    if level not in PROD_TYPES:
        raise ValidationError(f'Level "{level}" is not recognised (accepted: 1C, 2A).')
    if prod_type not in PROD_TYPES[level]:
        raise ValidationError(
            f'Product type "{prod_type}" is not available for level {level} '
            f"(accepted: {', '.join(PROD_TYPES[level])})."
        )
    if res not in RESOLUTIONS:
        raise ValidationError(
            f'"res" value "{res}" is not recognised (accepted: {", ".join(RESOLUTIONS)}).'
        )

    name = (
        f"S2{mission}{level}_{sensing_date:%Y%m%d}_{int(id_orbit):03d}_"
        f"{id_tile or ''}_{prod_type}_{res[:2]}"
    )
    if ext:
        name = f"{name}.{ext.lstrip('.')}"
    return name


def merged_name(info: ShortNameInfo, ext: str | None = None) -> str:
    """Short name of the mosaic which a tile product belongs to."""
    return build_shortname(
        info.mission,
        info.level,
        info.sensing_date,
        info.id_orbit,
        None,
        info.prod_type,
        info.res,
        ext if ext is not None else info.file_ext,
    )
