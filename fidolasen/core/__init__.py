"""
fidolasen Core Module

Exceptions shared by all modules.
"""

from fidolasen.core.exceptions import (
    FidolasenError,
    FormatError,
    GDALError,
    NameParseError,
    ValidationError,
)

__all__ = [
    "FidolasenError",
    "FormatError",
    "GDALError",
    "NameParseError",
    "ValidationError",
]
