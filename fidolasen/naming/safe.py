"""
Sentinel-2 SAFE product metadata.

Reads the information encoded in the names of SAFE products, of their
granules and of the band files they contain. Both the compact naming
(products generated after 2016-12-06) and the old long naming are
recognised. Nothing is read from the XML files except their location.
"""

import logging
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable

from fidolasen.core.exceptions import NameParseError, ValidationError
from fidolasen.naming.shortname import build_shortname

logger = logging.getLogger(__name__)

_DT = r"\d{8}T\d{6}"

_PRODUCT_PATTERNS = {
    "compact": re.compile(
        rf"^S2(?P<mission>[AB])_MSIL(?P<level>[12][AC])_(?P<sensing_datetime>{_DT})_"
        rf"N(?P<id_baseline>\d{{4}})_R(?P<id_orbit>\d{{3}})_T(?P<id_tile>[A-Z0-9]{{5}})_"
        rf"(?P<creation_datetime>{_DT})(?:\.SAFE)?$"
    ),
    "old": re.compile(
        rf"^S2(?P<mission>[AB])_(?:OPER|USER)_PRD_MSIL(?P<level>[12][AC])_[A-Z0-9_]{{4}}_"
        rf"(?P<creation_datetime>{_DT})_R(?P<id_orbit>\d{{3}})_"
        rf"V(?P<sensing_datetime>{_DT})_(?P<stop_datetime>{_DT})(?:\.SAFE)?$"
    ),
}

_MAIN_XML_PATTERNS = {
    "compact": re.compile(r"^MTD_MSIL(?P<level>[12][AC])\.xml$"),
    "old": re.compile(
        rf"^S2(?P<mission>[AB])_(?:OPER|USER)_MTD_SAFL(?P<level>[12][AC])_[A-Z0-9_]{{4}}_"
        rf"{_DT}_R(?P<id_orbit>\d{{3}})_V{_DT}_{_DT}\.xml$"
    ),
}

_GRANULE_PATTERNS = {
    "compact": re.compile(
        rf"^L(?P<level>[12][AC])_T(?P<id_tile>[A-Z0-9]{{5}})_A(?P<id_orbit_abs>\d{{6}})_"
        rf"(?P<datetime>{_DT})$"
    ),
    "old": re.compile(
        rf"^S2(?P<mission>[AB])_(?:OPER|USER)_MSI_L(?P<level>[12][AC])_TL_[A-Z0-9_]{{4}}_"
        rf"(?P<datetime>{_DT})_A(?P<id_orbit_abs>\d{{6}})_T(?P<id_tile>[A-Z0-9]{{5}})"
        rf"_N(?P<id_baseline>\d{{2}}\.\d{{2}})$"
    ),
}

_GRANULE_XML_PATTERNS = {
    "compact": re.compile(r"^MTD_TL\.xml$"),
    "old": re.compile(r"^S2[AB]_(?:OPER|USER)_MTD_L[12][AC]_TL_.*\.xml$"),
}

_BANDS = r"B0[1-9]|B1[0-2]|B8A"

_JP2_PATTERNS = {
    "compact": re.compile(
        rf"^(?:L2A_)?T(?P<id_tile>[A-Z0-9]{{5}})_{_DT}_"
        rf"(?P<band>{_BANDS}|TCI|SCL|AOT|WVP)(?:_(?P<res>[126]0m))?\.jp2$"
    ),
    "compact_qi": re.compile(r"^MSK_(?P<band>CLD|SNW)PRB_(?P<res>[126]0m)\.jp2$"),
    "old": re.compile(
        rf"^S2[AB]_(?:OPER|USER)_(?P<type>MSI|TCI|SCL|AOT|WVP|CLD|SNW)_L[12][AC]_TL_"
        rf"[A-Z0-9_]{{4}}_{_DT}_A\d{{6}}_T(?P<id_tile>[A-Z0-9]{{5}})"
        rf"(?:_(?P<band>{_BANDS}))?(?:_(?P<res>[126]0m))?\.jp2$"
    ),
}

JP2LIST_COLUMNS = ["layer", "tile", "type", "band", "res", "relpath"]

INFO_KEYS = (
    "nameinfo",
    "version",
    "level",
    "xml_main",
    "xml_granules",
    "tiles",
    "utm",
    "jp2list",
)


def _parse_datetime(value: str) -> datetime:
    return datetime.strptime(value, "%Y%m%dT%H%M%S")


def parse_product_name(name: str) -> dict[str, Any]:
    """
    Extract metadata from the name of a SAFE product.

    Args:
        name: Product name or path (with or without the .SAFE suffix)

    Returns:
        Dictionary with version ("compact" or "old"), mission, level,
        sensing_datetime, id_orbit, id_tile (None for old products),
        id_baseline and creation_datetime

    Raises:
        NameParseError: If the name is not a Sentinel-2 product name

    Examples:
        >>> info = parse_product_name(
        ...     "S2A_MSIL1C_20170603T101031_N0205_R022_T32TQQ_20170603T101026.SAFE")
        >>> info["version"], info["level"], info["id_tile"]
        ('compact', '1C', '32TQQ')
    """
    basename = Path(str(name).rstrip("/\\")).name

    for version, pattern in _PRODUCT_PATTERNS.items():
        m = pattern.match(basename)
        if m is None:
            continue
        groups = m.groupdict()
        return {
            "version": version,
            "mission": groups["mission"],
            "level": groups["level"],
            "sensing_datetime": _parse_datetime(groups["sensing_datetime"]),
            "id_orbit": groups["id_orbit"],
            "id_tile": groups.get("id_tile"),
            "id_baseline": groups.get("id_baseline"),
            "creation_datetime": _parse_datetime(groups["creation_datetime"]),
        }

    raise NameParseError(f'"{basename}" is not a recognised Sentinel-2 product name.')


def parse_granule_name(name: str) -> dict[str, Any]:
    """
    Extract metadata from the name of a granule directory.

    Args:
        name: Granule directory name or path

    Returns:
        Dictionary with version, level, id_tile and id_orbit_abs

    Raises:
        NameParseError: If the name is not a granule name
    """
    basename = Path(str(name).rstrip("/\\")).name

    for version, pattern in _GRANULE_PATTERNS.items():
        m = pattern.match(basename)
        if m:
            return {
                "version": version,
                "level": m.group("level"),
                "id_tile": m.group("id_tile"),
                "id_orbit_abs": m.group("id_orbit_abs"),
            }

    raise NameParseError(f'"{basename}" is not a recognised Sentinel-2 granule name.')


def _parse_jp2_name(filename: str, granule_tile: str | None) -> dict[str, str] | None:
    m = _JP2_PATTERNS["compact"].match(filename)
    if m:
        band = m.group("band")
        return {
            "tile": m.group("id_tile"),
            "type": "MSI" if band.startswith("B") else band,
            "band": band,
            "res": m.group("res") or "",
        }

    m = _JP2_PATTERNS["compact_qi"].match(filename)
    if m and granule_tile:
        return {
            "tile": granule_tile,
            "type": m.group("band"),
            "band": m.group("band"),
            "res": m.group("res"),
        }

    m = _JP2_PATTERNS["old"].match(filename)
    if m:
        jp2_type = m.group("type")
        return {
            "tile": m.group("id_tile"),
            "type": jp2_type,
            "band": m.group("band") or jp2_type,
            "res": m.group("res") or "",
        }

    return None


class SafeProduct:
    """
    A Sentinel-2 SAFE product on disk.

    The product can be referenced by its SAFE directory or by the main XML
    file inside it. Information derived from names only (``nameinfo``,
    ``version``, ``level``) is available even if the path does not exist;
    everything else requires the directory.

    Attributes:
        path: Path of the SAFE directory

    Examples:
        >>> product = SafeProduct("/data/S2A_MSIL2A_20170603T101031_N0205_R022_T32TQQ_20170603T101026.SAFE")
        >>> product.level
        '2A'
        >>> product.utm
        [32]
        >>> product.jp2list[product.jp2list.type == "SCL"]
    """

    def __init__(self, path: str | Path):
        path = Path(path)
        if path.is_file() or path.suffix.lower() == ".xml":
            path = path.parent
        self.path = path
        self._nameinfo = parse_product_name(path.name)

    def __repr__(self) -> str:
        return f"<SafeProduct: {self.path.name}>"

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def nameinfo(self) -> dict[str, Any]:
        return dict(self._nameinfo)

    @property
    def version(self) -> str:
        return self._nameinfo["version"]

    @property
    def level(self) -> str:
        return self._nameinfo["level"]

    @property
    def mission(self) -> str:
        return self._nameinfo["mission"]

    @property
    def sensing_date(self) -> date:
        return self._nameinfo["sensing_datetime"].date()

    @property
    def id_orbit(self) -> str:
        return self._nameinfo["id_orbit"]

    def _require_dir(self) -> None:
        if not self.path.is_dir():
            raise ValidationError(f"SAFE directory does not exist: {self.path}")

    @property
    def xml_main(self) -> Path:
        """Path of the product metadata file."""
        self._require_dir()
        pattern = _MAIN_XML_PATTERNS[self.version]
        for f in sorted(self.path.iterdir()):
            if f.is_file() and pattern.match(f.name):
                return f
        raise ValidationError(f"Main XML file not found in {self.path}")

    @property
    def granules(self) -> list[Path]:
        """Granule directories, sorted by name."""
        self._require_dir()
        granule_dir = self.path / "GRANULE"
        if not granule_dir.is_dir():
            return []
        granules = []
        for d in sorted(granule_dir.iterdir()):
            if not d.is_dir():
                continue
            try:
                parse_granule_name(d.name)
            except NameParseError:
                logger.debug("Skipping unrecognised granule directory: %s", d)
                continue
            granules.append(d)
        return granules

    @property
    def xml_granules(self) -> list[Path]:
        """Metadata files of the granules (one per granule)."""
        pattern = _GRANULE_XML_PATTERNS[self.version]
        xml_files = []
        for granule in self.granules:
            matches = [f for f in sorted(granule.iterdir()) if f.is_file() and pattern.match(f.name)]
            if matches:
                xml_files.append(matches[0])
            else:
                logger.warning("No metadata file in granule %s", granule.name)
        return xml_files

    @property
    def tiles(self) -> list[str]:
        """Tile IDs of the granules (in granule order, without duplicates)."""
        if self.path.is_dir():
            tiles = [parse_granule_name(g.name)["id_tile"] for g in self.granules]
        else:
            tiles = []
        if not tiles and self._nameinfo["id_tile"]:
            tiles = [self._nameinfo["id_tile"]]
        return list(dict.fromkeys(tiles))

    @property
    def utm(self) -> list[int]:
        """UTM zones of the tiles (in tile order, without duplicates)."""
        return list(dict.fromkeys(int(tile[:2]) for tile in self.tiles))

    @property
    def jp2list(self):
        """
        Table of the band files of the product.

        Returns:
            pandas.DataFrame with columns layer, tile, type, band, res, relpath
            (relpath is relative to the SAFE directory)
        """
        import pandas as pd

        rows = []
        for granule in self.granules:
            granule_tile = parse_granule_name(granule.name)["id_tile"]
            for jp2 in sorted(granule.rglob("*.jp2")):
                parsed = _parse_jp2_name(jp2.name, granule_tile)
                if parsed is None:
                    continue
                rows.append(
                    {
                        "layer": jp2.name,
                        **parsed,
                        "relpath": jp2.relative_to(self.path).as_posix(),
                    }
                )
        return pd.DataFrame(rows, columns=JP2LIST_COLUMNS)

    def get(self, info: Iterable[str]) -> dict[str, Any]:
        """Collect the requested information keys into a dict."""
        result = {}
        for key in info:
            if key not in INFO_KEYS:
                raise ValidationError(
                    f'Information "{key}" is not recognised (accepted: {", ".join(INFO_KEYS)}).'
                )
            result[key] = getattr(self, key)
        return result


def s2_get_metadata(path: str | Path, info: str | Iterable[str] = INFO_KEYS) -> Any:
    """
    Get information about a Sentinel-2 SAFE product.

    Args:
        path: SAFE directory or its main XML file
        info: A key or a list of keys among nameinfo, version, level, xml_main,
              xml_granules, tiles, utm, jp2list

    Returns:
        The value for a single key, otherwise a dict keyed by info name

    Examples:
        >>> s2_get_metadata(safe_path, "level")
        '1C'
        >>> meta = s2_get_metadata(safe_path, ["xml_granules", "utm", "jp2list"])
    """
    product = SafeProduct(path)
    if isinstance(info, str):
        return product.get([info])[info]
    return product.get(info)


def s2_shortname(
    granule: str | Path,
    prod_type: str,
    res: str = "10m",
    ext: str | None = None,
) -> str:
    """
    Short name of a granule for a product type and resolution.

    Args:
        granule: Granule directory (inside GRANULE/ of a SAFE product)
                 or its metadata file
        prod_type: Product type (TOA, BOA, TCI, SCL, AOT, WVP, CLD, SNW)
        res: Output resolution ("10m", "20m" or "60m")
        ext: Optional file extension

    Returns:
        Short name, e.g. "S2A1C_20170603_022_32TQQ_TOA_10"

    Raises:
        NameParseError: If the granule or its product are not recognised
        ValidationError: If prod_type is not available for the product level
    """
    granule = Path(granule)
    if granule.suffix.lower() == ".xml":
        granule = granule.parent
    granule_info = parse_granule_name(granule.name)
    product = SafeProduct(granule.parent.parent)

    return build_shortname(
        product.mission,
        product.level,
        product.sensing_date,
        product.id_orbit,
        granule_info["id_tile"],
        prod_type,
        res,
        ext,
    )
