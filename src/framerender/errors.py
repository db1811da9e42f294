"""
Exception hierarchy for framerender.

Input problems are raised before any canvas work. A missing texture is
recoverable and normally only reported; encode and persist failures end a
single render request.
"""


class FrameRenderError(Exception):
    """Base exception for all framerender errors."""


class InputValidationError(FrameRenderError, ValueError):
    """Design or material data cannot be rendered."""


class CurveValidationError(InputValidationError):
    """A curve has too few points for the way it is consumed."""

    def __init__(self, name, count, minimum, closed):
        self.name = name
        self.count = count
        self.minimum = minimum
        self.closed = closed
        kind = "closed" if closed else "open"
        super().__init__(
            f"Curve '{name}' has {count} points, a {kind} curve needs at least {minimum}"
        )


class TextureUnavailableError(FrameRenderError):
    """Texture image is missing or cannot be decoded."""

    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"Texture unavailable '{path}': {reason}")


class EncodeError(FrameRenderError):
    """Canvas could not be serialized as PNG."""


class PersistError(FrameRenderError):
    """Encoded image could not be written to its published location."""

    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to publish '{path}': {reason}")


class RenderStateError(FrameRenderError):
    """A raster step was run out of order."""


class RenderCancelledError(FrameRenderError):
    """The caller's deadline passed or the render was cancelled."""

    def __init__(self, stage):
        self.stage = stage
        super().__init__(f"Render cancelled before stage '{stage}'")
