"""Integer dimension arithmetic for mip chains and atlas layout.

AIDEV-NOTE: Everything here is pure and shared by the builder, the composer
and the tests, so the layout can be checked without touching a device.
"""

from typing import Iterator


def mip_level_sizes(width: int, height: int) -> Iterator["tuple[int, int]"]:
    """Yield (w, h) for every level of the chain, largest first.

    Level k is ``W // 2^(k+1)`` x ``H // 2^(k+1)``, clamped to at least 1
    per axis. The sequence ends with the first level where both sides are
    <= 1, which is always yielded (a 1x1 source gives a single 1x1 level).

    Args:
        width: Source width in pixels (>= 1)
        height: Source height in pixels (>= 1)
    """
    if width < 1 or height < 1:
        raise ValueError(f"Source must be at least 1x1, got {width}x{height}")

    step = 2
    while True:
        w = max(1, width // step)
        h = max(1, height // step)
        yield w, h
        if w <= 1 and h <= 1:
            return
        step *= 2


def level_offsets(
    source_width: int, level_sizes: "list[tuple[int, int]]"
) -> "list[tuple[int, int]]":
    """Atlas offsets for each level: x = source width, y = heights stacked so far."""
    offsets = []
    y = 0
    for _, h in level_sizes:
        offsets.append((source_width, y))
        y += h
    return offsets


def atlas_size(
    source_width: int,
    source_height: int,
    level_sizes: "list[tuple[int, int]]",
) -> "tuple[int, int]":
    """Atlas dimensions for a source and its chain.

    Normally ``W + W // 2`` by ``H``. When the stacked levels would not fit
    (very elongated or 1-pixel-wide sources) the strip widens to the widest
    level and the atlas grows to the stacked height.
    """
    strip_width = source_width // 2
    widest = max((w for w, _ in level_sizes), default=0)
    stacked = sum(h for _, h in level_sizes)
    return (
        source_width + max(strip_width, widest),
        max(source_height, stacked),
    )
