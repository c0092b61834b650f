"""Data models and constants for the mipmap atlas generator."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, Optional

from PIL import Image

if TYPE_CHECKING:
    from mipatlas.device import DeviceImage

# AIDEV-NOTE: Pixel layout is fixed - 4 channels, 8 bits each (RGBA8)
CHANNEL_COUNT = 4

DEFAULT_INPUT = "data/source.png"
OUTPUT_SUFFIX = "_mipmap"

# Configuration file path
CONFIG_FILE = Path.home() / ".mipatlas_config.json"


class FilterMode(Enum):
    """Resampling filters supported by the resize primitive."""

    NEAREST = "nearest"
    LINEAR = "linear"
    CUBIC = "cubic"

    @property
    def resample(self) -> Image.Resampling:
        """Pillow resampling filter implementing this mode."""
        filters = {
            FilterMode.NEAREST: Image.Resampling.NEAREST,
            FilterMode.LINEAR: Image.Resampling.BILINEAR,
            FilterMode.CUBIC: Image.Resampling.BICUBIC,
        }
        return filters[self]

    @classmethod
    def from_mode_arg(cls, value: Optional[str]) -> "FilterMode":
        """Map the command-line mode value to a filter.

        "1" selects nearest, "2" selects cubic; anything else (including
        "3", letters or no value at all) falls back to linear.
        """
        if value == "1":
            return cls.NEAREST
        if value == "2":
            return cls.CUBIC
        return cls.LINEAR


class PipelineState(Enum):
    """Stages one image passes through. FAILED is terminal."""

    LOADED = "loaded"
    CHAIN_BUILT = "chain_built"
    COMPOSED = "composed"
    SAVED = "saved"
    FAILED = "failed"


@dataclass
class MipmapConfig:
    """Generator settings persisted by ConfigManager."""

    # Input / output naming
    default_input: str = DEFAULT_INPUT
    output_suffix: str = OUTPUT_SUFFIX
    default_filter: FilterMode = FilterMode.LINEAR

    # Device selection and capabilities
    device: str = "cpu"
    max_image_dimension: int = 16384  # px, per axis
    row_alignment: int = 64  # bytes, storage pitch is rounded up to this

    # Host barrier between the resize and copy phases
    sync_after_build: bool = True


# --- Mip chain models ---


@dataclass
class MipLevel:
    """One resampled image at chain position ``index`` (0 = first halving)."""

    index: int
    image: "DeviceImage"

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def release(self) -> None:
        self.image.release()


class MipChain:
    """Owning, ordered sequence of mip levels.

    AIDEV-NOTE: The chain owns every level appended to it. ``release()``
    frees all of them and is what the builder calls on any failure path;
    using the chain as a context manager releases it on exit.
    """

    def __init__(self) -> None:
        self._levels: "list[MipLevel]" = []

    def append(self, level: MipLevel) -> None:
        if level.index != len(self._levels):
            raise ValueError(
                f"Level {level.index} appended at position {len(self._levels)}"
            )
        self._levels.append(level)

    def release(self) -> None:
        """Release every level and empty the chain."""
        for level in self._levels:
            level.release()
        self._levels.clear()

    def sizes(self) -> "list[tuple[int, int]]":
        return [(level.width, level.height) for level in self._levels]

    @property
    def total_height(self) -> int:
        return sum(level.height for level in self._levels)

    def __len__(self) -> int:
        return len(self._levels)

    def __iter__(self) -> Iterator[MipLevel]:
        return iter(self._levels)

    def __getitem__(self, index: int) -> MipLevel:
        return self._levels[index]

    def __enter__(self) -> "MipChain":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


@dataclass(frozen=True)
class LevelPlacement:
    """Where a mip level landed inside the atlas (pixels)."""

    index: int
    x: int
    y: int
    width: int
    height: int


@dataclass
class AtlasImage:
    """The source image plus its full mip chain packed into one buffer."""

    image: "DeviceImage"
    source_width: int
    source_height: int
    placements: "list[LevelPlacement]" = field(default_factory=list)

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def release(self) -> None:
        self.image.release()


@dataclass
class ProcessedAtlas:
    """Result of running the pipeline on one input image."""

    input_path: Path
    output_path: Path
    filter_mode: FilterMode

    # Source and atlas dimensions (pixels)
    source_width: int = 0
    source_height: int = 0
    atlas_width: int = 0
    atlas_height: int = 0

    level_sizes: "list[tuple[int, int]]" = field(default_factory=list)
    placements: "list[LevelPlacement]" = field(default_factory=list)

    # Extra files written alongside the atlas
    gray_path: Optional[Path] = None
    level_paths: "list[Path]" = field(default_factory=list)

    state: PipelineState = PipelineState.SAVED
