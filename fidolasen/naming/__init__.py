"""
fidolasen Naming Module

Parsing and composition of Sentinel-2 product and file names.
"""

from fidolasen.naming.safe import (
    SafeProduct,
    parse_granule_name,
    parse_product_name,
    s2_get_metadata,
    s2_shortname,
)
from fidolasen.naming.shortname import (
    ShortNameInfo,
    build_shortname,
    get_elements,
    merged_name,
    parse_shortname,
)

__all__ = [
    "SafeProduct",
    "ShortNameInfo",
    "build_shortname",
    "get_elements",
    "merged_name",
    "parse_granule_name",
    "parse_product_name",
    "parse_shortname",
    "s2_get_metadata",
    "s2_shortname",
]
