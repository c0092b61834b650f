"""Error kinds raised by the mipmap atlas pipeline.

AIDEV-NOTE: Every error is raised at the point of failure and unwound to
app.main, which reports it and exits non-zero. Nothing here is retried.
"""

from pathlib import Path


class MipAtlasError(Exception):
    """Base class for pipeline failures.

    Carries the pipeline stage that failed and, once known, the input file
    that was being processed.
    """

    stage = "pipeline"

    def __init__(self, message: str, path: "str | Path | None" = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path is not None:
            return f"{self.stage} failed for {self.path}: {self.message}"
        return f"{self.stage} failed: {self.message}"


class DeviceInitError(MipAtlasError):
    """No compatible compute device, or its capabilities could not be queried."""

    stage = "device initialisation"


class InputResolutionError(MipAtlasError):
    """No usable input path could be resolved."""

    stage = "input resolution"


class ImageLoadError(MipAtlasError):
    """Decode failure or unsupported channel/bit-depth combination."""

    stage = "image load"


class GenerationError(MipAtlasError):
    """A resize or copy failed while building the chain or composing the atlas."""

    stage = "mipmap generation"


class OutputWriteError(MipAtlasError):
    """Encoding or saving an output image failed."""

    stage = "output write"


class PrimitiveError(MipAtlasError):
    """A device command was rejected or failed."""

    stage = "device command"


class StreamError(PrimitiveError):
    """A command failed while the execution stream was draining."""

    stage = "execution stream"
