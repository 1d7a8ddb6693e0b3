"""Exceptions raised by the attitude filter."""


class DegenerateInputError(ValueError):
    """Input cannot produce a finite rotation (zero-length or non-finite vector)."""


class EmptyBufferError(DegenerateInputError):
    """Statistics were requested from a window holding no samples."""
