"""Exceptions raised by the raster editor."""


class RasterEditorError(Exception):
    """Base class for editor failures."""


class LayerError(RasterEditorError, ValueError):
    """A structural layer operation was rejected.

    The layer stack is left exactly as it was before the call.
    """


class ImageDecodeError(RasterEditorError, ValueError):
    """Input bytes could not be turned into an RGBA image."""


class EditorNotLoadedError(RasterEditorError, RuntimeError):
    """An editing call was made before an image was loaded."""
