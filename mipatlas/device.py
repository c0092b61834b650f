"""Compute device selection, pixel buffers and the device context.

AIDEV-NOTE: The "device" is in-process: buffers are numpy arrays laid out
with a row pitch, and commands run on the context's ExecutionStream. The
context is created once per batch and passed explicitly to every primitive.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

import numpy as np
from PIL import Image

from mipatlas.errors import DeviceInitError, PrimitiveError
from mipatlas.models import CHANNEL_COUNT, FilterMode, MipmapConfig
from mipatlas.stream_handler import ExecutionStream


@dataclass(frozen=True)
class DeviceInfo:
    """Capabilities reported by a compute device."""

    name: str
    max_image_dimension: int
    row_alignment: int
    filters: "tuple[FilterMode, ...]" = tuple(FilterMode)


def available_devices(config: MipmapConfig) -> "list[DeviceInfo]":
    """Enumerate compute devices usable by the pipeline."""
    return [
        DeviceInfo(
            name="cpu",
            max_image_dimension=config.max_image_dimension,
            row_alignment=config.row_alignment,
        )
    ]


def aligned_pitch(width: int, alignment: int) -> int:
    """Bytes per storage row: ``width * 4`` rounded up to ``alignment``."""
    row_bytes = width * CHANNEL_COUNT
    return -(-row_bytes // alignment) * alignment


class DeviceImage:
    """An RGBA8 pixel buffer owned by a device context.

    Rows are ``pitch`` bytes apart, so the storage may be wider than
    ``width * 4``. ``pixels`` is a (height, width, 4) view of the visible
    region.
    """

    def __init__(self, context: "DeviceContext", width: int, height: int, pitch: int):
        self.context = context
        self.width = width
        self.height = height
        self.pitch = pitch
        self._storage: Optional[np.ndarray] = np.zeros((height, pitch), dtype=np.uint8)

    @property
    def released(self) -> bool:
        return self._storage is None

    @property
    def size(self) -> "tuple[int, int]":
        return (self.width, self.height)

    @property
    def pixels(self) -> np.ndarray:
        if self._storage is None:
            raise PrimitiveError(f"{self.width}x{self.height} buffer used after release")
        return np.ndarray(
            shape=(self.height, self.width, CHANNEL_COUNT),
            dtype=np.uint8,
            buffer=self._storage,
            strides=(self.pitch, CHANNEL_COUNT, 1),
        )

    def release(self) -> None:
        """Free the storage. Releasing twice is a no-op."""
        if self._storage is None:
            return
        self._storage = None
        self.context._on_release(self)

    def __enter__(self) -> "DeviceImage":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self.released else f"pitch={self.pitch}"
        return f"DeviceImage({self.width}x{self.height}, {state})"


class DeviceContext:
    """Process-wide device state: selected device plus its execution stream."""

    def __init__(self, info: DeviceInfo, config: MipmapConfig):
        self.info = info
        self.config = config
        self.stream = ExecutionStream(name=f"{info.name}:stream0")
        self.live_images = 0
        self.is_open = False

    def open(self) -> None:
        self.stream.start()
        self.is_open = True

    def close(self) -> None:
        if not self.is_open:
            return
        self.stream.stop()
        self.is_open = False

    # -------------------------------------------------------------
    # Buffer management
    # -------------------------------------------------------------

    def allocate(self, width: int, height: int) -> DeviceImage:
        """Allocate a zero-filled RGBA8 buffer.

        Raises:
            PrimitiveError: If the size is invalid, exceeds the device limit,
                or the allocation fails
        """
        if width < 1 or height < 1:
            raise PrimitiveError(f"Cannot allocate {width}x{height} buffer")
        limit = self.info.max_image_dimension
        if width > limit or height > limit:
            raise PrimitiveError(
                f"{width}x{height} exceeds device limit of {limit}px per axis"
            )

        pitch = aligned_pitch(width, self.info.row_alignment)
        try:
            image = DeviceImage(self, width, height, pitch)
        except MemoryError as e:
            raise PrimitiveError(f"Out of memory allocating {width}x{height}") from e

        self.live_images += 1
        return image

    def _on_release(self, image: DeviceImage) -> None:
        self.live_images -= 1

    def upload(self, image: Image.Image) -> DeviceImage:
        """Copy an RGBA host image into a new device buffer."""
        if image.mode != "RGBA":
            raise PrimitiveError(f"Upload expects RGBA, got {image.mode}")
        width, height = image.size
        device_image = self.allocate(width, height)
        device_image.pixels[...] = np.asarray(image, dtype=np.uint8)
        return device_image

    def download(self, image: DeviceImage) -> Image.Image:
        """Wait for pending commands, then copy a device buffer to the host."""
        self.stream.synchronize()
        return Image.fromarray(np.ascontiguousarray(image.pixels))

    def synchronize(self) -> None:
        self.stream.synchronize()


@contextmanager
def open_device(config: Optional[MipmapConfig] = None) -> Iterator[DeviceContext]:
    """Select the configured device, start its stream, and close it on exit.

    Raises:
        DeviceInitError: If no compatible device is found or its
            capabilities are unusable
    """
    config = config or MipmapConfig()

    devices = available_devices(config)
    matches = [info for info in devices if info.name == config.device]
    if not matches:
        names = ", ".join(info.name for info in devices) or "none"
        raise DeviceInitError(
            f"No compatible device named '{config.device}' (available: {names})"
        )
    info = matches[0]

    if info.max_image_dimension < 1:
        raise DeviceInitError(
            f"Device '{info.name}' reports max image dimension {info.max_image_dimension}"
        )
    if info.row_alignment < 1:
        raise DeviceInitError(
            f"Device '{info.name}' reports row alignment {info.row_alignment}"
        )

    context = DeviceContext(info, config)
    context.open()
    try:
        yield context
    finally:
        context.close()
