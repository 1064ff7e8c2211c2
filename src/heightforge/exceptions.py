"""Custom exceptions for terrain generation and export."""


class HeightForgeError(Exception):
    """Base exception for heightforge errors."""

    pass


class InvalidDimensionsError(HeightForgeError, ValueError):
    """Raised when a height field is created with fewer than 2 samples per axis."""

    pass


class MeshNotGeneratedError(HeightForgeError):
    """Raised when mesh data is requested before generate_mesh() has run."""

    pass


class ExportError(HeightForgeError):
    """Raised when a geometry or image file cannot be written."""

    pass
