"""
GDAL driver lookup.
"""

import logging

from fidolasen.core.exceptions import FormatError

logger = logging.getLogger(__name__)

# Extensions for drivers whose GDAL metadata lists none, or several
_DRIVER_EXTENSIONS = {
    "GTiff": "tif",
    "COG": "tif",
    "VRT": "vrt",
    "ENVI": "dat",
    "HFA": "img",
    "JP2OpenJPEG": "jp2",
    "netCDF": "nc",
    "PNG": "png",
    "JPEG": "jpg",
}


def available_drivers() -> dict[str, str]:
    """Short name to long name of every driver in the GDAL installation."""
    import rasterio

    with rasterio.Env() as env:
        return env.drivers()


def check_format(fmt: str) -> str:
    """
    Verify that an output format is a GDAL driver.

    Args:
        fmt: Short driver name (e.g. "GTiff", "ENVI", "VRT")

    Returns:
        The format name, unchanged

    Raises:
        FormatError: If the driver is not in the GDAL installation
    """
    if fmt not in available_drivers():
        raise FormatError(
            f'Format "{fmt}" is not recognised; please use one of the formats '
            "supported by your GDAL installation.\n\n"
            "To list them, use the following command:\n"
            "gdalinfo --formats"
        )
    return fmt


def driver_extension(fmt: str) -> str:
    """
    File extension (without dot) used for outputs written with a driver.

    Examples:
        >>> driver_extension("ENVI")
        'dat'
        >>> driver_extension("GTiff")
        'tif'
    """
    if fmt in _DRIVER_EXTENSIONS:
        return _DRIVER_EXTENSIONS[fmt]

    from rasterio.drivers import raster_driver_extensions

    for ext, driver in raster_driver_extensions().items():
        if driver == fmt:
            return ext

    logger.debug("No extension known for driver %s", fmt)
    return fmt.lower()
