"""
fidolasen - Sentinel-2 SAFE products as analysis-ready rasters

Converts SAFE products into GDAL formats with compact, parseable file
names, applies cloud masks from the Scene Classification Layer and
warps the results on a common grid.

Quick Start:
    >>> import fidolasen as fs
    >>>
    >>> # Metadata of a SAFE product
    >>> fs.s2_get_metadata("S2A_MSIL2A_20170603T101031_N0205_R022_T32TQQ_20170603T101026.SAFE")
    >>>
    >>> # BOA and SCL rasters at 10 m
    >>> outs = fs.s2_translate(safe_dir, prod_type=["BOA", "SCL"], format="GTiff")
    >>>
    >>> # Mask clouds
    >>> boa = [f for f in outs if "_BOA_" in f]
    >>> scl = [f for f in outs if "_SCL_" in f]
    >>> fs.s2_mask(boa, scl, mask_type="cloud_and_shadow")
"""

from fidolasen.config import Settings, configure, get_settings
from fidolasen.core import (
    FidolasenError,
    FormatError,
    GDALError,
    NameParseError,
    ValidationError,
)
from fidolasen.gdal import check_gdal
from fidolasen.grid import BBox
from fidolasen.io import (
    RasterInfo,
    check_format,
    driver_extension,
    gdal_abs2rel,
    gdal_rel2abs,
    read_raster_info,
)
from fidolasen.naming import (
    SafeProduct,
    ShortNameInfo,
    build_shortname,
    get_elements,
    parse_shortname,
    s2_get_metadata,
    s2_shortname,
)
from fidolasen.processing import (
    SOURCE_EXTENT,
    gdal_warp,
    gdalwarp_grid,
    s2_mask,
    s2_merge,
    s2_translate,
)

__version__ = "0.1.0"

__all__ = [
    "BBox",
    "FidolasenError",
    "FormatError",
    "GDALError",
    "NameParseError",
    "RasterInfo",
    "SOURCE_EXTENT",
    "SafeProduct",
    "Settings",
    "ShortNameInfo",
    "ValidationError",
    "__version__",
    "build_shortname",
    "check_format",
    "check_gdal",
    "configure",
    "driver_extension",
    "gdal_abs2rel",
    "gdal_rel2abs",
    "gdal_warp",
    "gdalwarp_grid",
    "get_elements",
    "get_settings",
    "parse_shortname",
    "read_raster_info",
    "s2_get_metadata",
    "s2_mask",
    "s2_merge",
    "s2_shortname",
    "s2_translate",
]
