"""
Sample data generator for fidolasen tutorials and tests.

Creates small synthetic products named with the short-name convention
(BOA reflectances and matching SCL classifications) and empty SAFE
directory trees reproducing the layout of real Sentinel-2 products.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from fidolasen.naming.shortname import build_shortname

logger = logging.getLogger(__name__)

SAMPLE_DATETIME = datetime(2017, 6, 3, 10, 10, 31)
SAMPLE_ORBIT = "022"
SAMPLE_ORBIT_ABS = "010285"

# Lower-left corner of each sample tile (UTM coordinates, zone from the tile ID)
_TILE_ORIGINS: dict[str, tuple[float, float]] = {
    "32TQQ": (699960.0, 4490220.0),
    "32TPQ": (599980.0, 4490220.0),
    "33TUL": (199980.0, 4490220.0),
}

# SCL classes drawn for sample scenes, with their frequency
_SCL_CLASSES: dict[int, float] = {
    3: 0.05,  # cloud shadow
    4: 0.35,  # vegetation
    5: 0.25,  # bare soil
    6: 0.10,  # water
    7: 0.05,  # unclassified
    8: 0.08,  # cloud medium probability
    9: 0.08,  # cloud high probability
    10: 0.04,  # thin cirrus
}


def create_sample_data(
    output_dir: str | Path,
    tiles: tuple[str, ...] = ("32TQQ",),
    size: int = 32,
    res: int = 10,
) -> dict[str, list[str]]:
    """
    Create synthetic BOA and SCL GeoTIFFs for the given tiles.

    Each BOA product has 4 uint16 bands with nodata 65535; the SCL product
    has one uint8 band with nodata 0, whose last column is nodata.

    Args:
        output_dir: Directory to write the products (created if missing)
        tiles: Tile IDs (must be among the sample tiles)
        size: Width and height in pixels
        res: Pixel size in metres

    Returns:
        {"BOA": [paths], "SCL": [paths]}, one path per tile

    Examples:
        >>> files = create_sample_data("/tmp/fidolasen_sample")
        >>> [Path(f).name for f in files["BOA"]]
        ['S2A2A_20170603_022_32TQQ_BOA_10.tif']
    """
    import numpy as np
    import rasterio
    from rasterio.crs import CRS
    from rasterio.transform import from_origin

    out_path = Path(output_dir)
    out_path.mkdir(parents=True, exist_ok=True)

    rng = np.random.default_rng(42)  # Reproducible
    created: dict[str, list[str]] = {"BOA": [], "SCL": []}

    for tile in tiles:
        west, south = _TILE_ORIGINS[tile]
        transform = from_origin(west, south + size * res, res, res)
        crs = CRS.from_epsg(32600 + int(tile[:2]))

        base_profile: dict[str, Any] = {
            "driver": "GTiff",
            "width": size,
            "height": size,
            "crs": crs,
            "transform": transform,
        }

        boa = rng.integers(0, 10000, (4, size, size), dtype=np.uint16)
        scl = rng.choice(
            list(_SCL_CLASSES), size=(size, size), p=list(_SCL_CLASSES.values())
        ).astype(np.uint8)
        scl[:, -1] = 0

        for prod_type, data, nodata in (("BOA", boa, 65535), ("SCL", scl[None], 0)):
            name = build_shortname(
                "A",
                "2A",
                SAMPLE_DATETIME.date(),
                SAMPLE_ORBIT,
                tile,
                prod_type,
                f"{res}m",
                "tif",
            )
            filepath = out_path / name
            profile = {
                **base_profile,
                "count": data.shape[0],
                "dtype": data.dtype.name,
                "nodata": nodata,
            }
            with rasterio.open(str(filepath), "w", **profile) as dst:
                dst.write(data)
            logger.debug("Created sample product: %s", filepath)
            created[prod_type].append(str(filepath))

    logger.info("Created %d sample products in %s", len(tiles) * 2, out_path)
    return created


def _safe_layout(level: str, version: str, tiles: tuple[str, ...]) -> tuple[str, str, dict]:
    """Names of a SAFE product, its main XML file and its granules with band files."""
    sensing = f"{SAMPLE_DATETIME:%Y%m%dT%H%M%S}"
    creation = "20170603T101026"
    processing = "20170603T133409"

    if level == "1C":
        bands = [f"B{i:02d}" for i in range(1, 13)] + ["B8A", "TCI"]
    else:
        bands = {
            "R10m": ["AOT", "B02", "B03", "B04", "B08", "TCI", "WVP"],
            "R20m": [
                "AOT", "B02", "B03", "B04", "B05", "B06", "B07",
                "B8A", "B11", "B12", "SCL", "TCI", "WVP",
            ],
            "R60m": [
                "AOT", "B01", "B02", "B03", "B04", "B05", "B06", "B07",
                "B8A", "B09", "B11", "B12", "SCL", "TCI", "WVP",
            ],
        }  # fmt: skip

    granules: dict[str, dict[str, list[str]]] = {}
    if version == "compact":
        safe_name = f"S2A_MSIL{level}_{sensing}_N0205_R{SAMPLE_ORBIT}_T{tiles[0]}_{creation}.SAFE"
        main_xml = f"MTD_MSIL{level}.xml"
        for tile in tiles:
            granule = f"L{level}_T{tile}_A{SAMPLE_ORBIT_ABS}_{creation}"
            files: dict[str, list[str]] = {".": ["MTD_TL.xml"]}
            if level == "1C":
                files["IMG_DATA"] = [f"T{tile}_{sensing}_{b}.jp2" for b in bands]
            else:
                for res_dir, res_bands in bands.items():
                    res = res_dir[1:]
                    files[f"IMG_DATA/{res_dir}"] = [
                        f"L2A_T{tile}_{sensing}_{b}_{res}.jp2" for b in res_bands
                    ]
                files["QI_DATA"] = ["MSK_CLDPRB_20m.jp2", "MSK_SNWPRB_20m.jp2"]
            granules[granule] = files
    else:
        agency = "OPER" if level == "1C" else "USER"
        stamp = f"{creation}_R{SAMPLE_ORBIT}_V{sensing}_{sensing}"
        safe_name = f"S2A_{agency}_PRD_MSIL{level}_PDMC_{stamp}.SAFE"
        main_xml = f"S2A_{agency}_MTD_SAFL{level}_PDMC_{stamp}.xml"
        for tile in tiles:
            suffix = f"L{level}_TL_SGS__{processing}_A{SAMPLE_ORBIT_ABS}_T{tile}"
            granule = f"S2A_{agency}_MSI_{suffix}_N02.05"
            files = {".": [f"S2A_{agency}_MTD_{suffix}.xml"]}
            if level == "1C":
                files["IMG_DATA"] = [
                    f"S2A_OPER_MSI_{suffix}_{b}.jp2" for b in bands if b.startswith("B")
                ]
            else:
                # band files carry the MSI type, other layers their own type
                for res_dir, res_bands in bands.items():
                    res = res_dir[1:]
                    files[f"IMG_DATA/{res_dir}"] = [
                        f"S2A_USER_MSI_{suffix}_{b}_{res}.jp2"
                        if b.startswith("B")
                        else f"S2A_USER_{b}_{suffix}_{res}.jp2"
                        for b in res_bands
                        if b != "TCI"
                    ]
                files["QI_DATA"] = [
                    f"S2A_USER_{qi}_{suffix}_{res}.jp2"
                    for qi in ("CLD", "SNW")
                    for res in ("20m", "60m")
                ]
            granules[granule] = files

    return safe_name, main_xml, granules


def create_sample_safe(
    output_dir: str | Path,
    level: str = "2A",
    version: str = "compact",
    tiles: tuple[str, ...] = ("32TQQ",),
) -> str:
    """
    Create an empty SAFE directory tree.

    Band and metadata files are created empty: the tree can be explored
    with SafeProduct but not converted with GDAL.

    Args:
        output_dir: Parent directory of the SAFE
        level: "1C" or "2A"
        version: "compact" (single granule expected) or "old" naming
        tiles: Tile IDs of the granules

    Returns:
        Path of the SAFE directory
    """
    safe_name, main_xml, granules = _safe_layout(level, version, tiles)
    safe_dir = Path(output_dir) / safe_name
    safe_dir.mkdir(parents=True, exist_ok=True)
    (safe_dir / main_xml).touch()

    for granule, files in granules.items():
        for subdir, names in files.items():
            dir_path = safe_dir / "GRANULE" / granule / subdir
            dir_path.mkdir(parents=True, exist_ok=True)
            for name in names:
                (dir_path / name).touch()

    logger.debug("Created sample SAFE: %s", safe_dir)
    return str(safe_dir)
