"""Resize and copy primitives executed on a device's execution stream.

AIDEV-NOTE: Both primitives validate their arguments on the host and raise
PrimitiveError immediately; the pixel work itself is enqueued and runs
later, in stream order. Failures during execution surface at the next
synchronize().
"""

import numpy as np
from PIL import Image

from mipatlas.device import DeviceContext, DeviceImage
from mipatlas.errors import PrimitiveError
from mipatlas.models import FilterMode


def full_rect(image: DeviceImage) -> "tuple[int, int, int, int]":
    """Region covering a whole image as (left, top, right, bottom)."""
    return (0, 0, image.width, image.height)


def resize(
    context: DeviceContext,
    src: DeviceImage,
    src_rect: "tuple[int, int, int, int]",
    dst_width: int,
    dst_height: int,
    filter_mode: FilterMode,
) -> DeviceImage:
    """Resample ``src_rect`` of ``src`` into a new ``dst_width`` x ``dst_height`` buffer.

    Args:
        context: Device context whose stream runs the command
        src: Source buffer
        src_rect: (left, top, right, bottom) region of the source to sample
        dst_width: Target width, at least 1
        dst_height: Target height, at least 1
        filter_mode: Nearest, linear or cubic resampling

    Returns:
        The destination buffer; its pixels are valid once the stream
        reaches the command.

    Raises:
        PrimitiveError: If the arguments are invalid or allocation fails
    """
    if src.released:
        raise PrimitiveError("Resize source has been released")
    if filter_mode not in context.info.filters:
        raise PrimitiveError(f"Device '{context.info.name}' has no {filter_mode.value} filter")
    if dst_width < 1 or dst_height < 1:
        raise PrimitiveError(f"Cannot resize to {dst_width}x{dst_height}")

    left, top, right, bottom = src_rect
    if not (0 <= left < right <= src.width and 0 <= top < bottom <= src.height):
        raise PrimitiveError(
            f"Source region {src_rect} outside {src.width}x{src.height} image"
        )

    dst = context.allocate(dst_width, dst_height)

    def run_resize():
        region = Image.fromarray(np.ascontiguousarray(src.pixels))
        resized = region.resize(
            (dst_width, dst_height),
            resample=filter_mode.resample,
            box=(left, top, right, bottom),
        )
        dst.pixels[...] = np.asarray(resized, dtype=np.uint8)

    context.stream.enqueue(
        f"resize {right - left}x{bottom - top} -> {dst_width}x{dst_height} ({filter_mode.value})",
        run_resize,
    )
    return dst


def copy_region(
    context: DeviceContext,
    src: DeviceImage,
    dst: DeviceImage,
    dst_offset: "tuple[int, int]",
) -> None:
    """Blit all of ``src`` into ``dst`` with its top-left corner at ``dst_offset``.

    No resampling; both buffers are RGBA8.

    Raises:
        PrimitiveError: If either buffer is released or the destination
            region falls outside ``dst``
    """
    if src.released or dst.released:
        raise PrimitiveError("Copy between released buffers")

    x, y = dst_offset
    if x < 0 or y < 0 or x + src.width > dst.width or y + src.height > dst.height:
        raise PrimitiveError(
            f"{src.width}x{src.height} region at ({x}, {y}) falls outside "
            f"{dst.width}x{dst.height} destination"
        )

    def run_copy():
        dst.pixels[y : y + src.height, x : x + src.width] = src.pixels

    context.stream.enqueue(
        f"copy {src.width}x{src.height} -> ({x}, {y})",
        run_copy,
    )
