"""
fidolasen Exceptions

Exception hierarchy for error handling.
"""


class FidolasenError(Exception):
    """Base exception for fidolasen"""

    pass


class ValidationError(FidolasenError):
    """Invalid arguments or missing input files"""

    pass


class NameParseError(FidolasenError):
    """Product or file name does not follow a known naming convention"""

    pass


class FormatError(FidolasenError):
    """Output format is not a GDAL driver"""

    pass


class GDALError(FidolasenError):
    """GDAL utilities missing or external command failed"""

    def __init__(self, message: str, command: list[str] | None = None, stderr: str = ""):
        super().__init__(message)
        self.command = command or []
        self.stderr = stderr
