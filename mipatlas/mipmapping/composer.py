"""Atlas packing: the source on the left, its mip chain stacked on the right.

Layout (fixed):

    +-------------+-------+
    |             | mip 0 |
    |   source    +---+---+
    |   W x H     | 1 |
    |             +-+-+
    |             |2|
    +-------------+-+

Levels narrower than the W // 2 strip are left-aligned; the rest of their
row is left untouched.
"""

from typing import Callable

from mipatlas.device import DeviceContext, DeviceImage
from mipatlas.errors import GenerationError, PrimitiveError
from mipatlas.models import AtlasImage, LevelPlacement, MipChain

from . import primitives
from .utils import atlas_size, level_offsets

CopyFn = Callable[[DeviceContext, DeviceImage, DeviceImage, "tuple[int, int]"], None]


class AtlasComposer:
    """Packs a source image and its mip chain into a single atlas buffer."""

    def __init__(
        self,
        context: DeviceContext,
        copy_region: CopyFn = primitives.copy_region,
    ):
        self.context = context
        self.copy_region = copy_region

    def compose(
        self,
        source: DeviceImage,
        chain: MipChain,
        release_chain: bool = True,
    ) -> AtlasImage:
        """Allocate the atlas and copy the source and every level into it.

        Args:
            source: Full-resolution source image
            chain: Levels to place, in chain order
            release_chain: Release the chain once copied. Pass False to keep
                the levels for diagnostics; the caller then owns them.

        Returns:
            AtlasImage owned by the caller

        Raises:
            GenerationError: If allocation or any copy fails
        """
        sizes = chain.sizes()
        width, height = atlas_size(source.width, source.height, sizes)

        try:
            atlas = self.context.allocate(width, height)
        except PrimitiveError as e:
            if release_chain:
                chain.release()
            raise GenerationError(f"Could not allocate {width}x{height} atlas: {e}") from e

        placements = []
        composed = False
        try:
            self.copy_region(self.context, source, atlas, (0, 0))

            for level, (x, y) in zip(chain, level_offsets(source.width, sizes)):
                self.copy_region(self.context, level.image, atlas, (x, y))
                placements.append(
                    LevelPlacement(
                        index=level.index,
                        x=x,
                        y=y,
                        width=level.width,
                        height=level.height,
                    )
                )

            self.context.synchronize()
            composed = True
        except PrimitiveError as e:
            raise GenerationError(f"Atlas composition failed: {e}") from e
        finally:
            if not composed:
                self.context.stream.wait_idle()
                atlas.release()
            if release_chain:
                chain.release()

        return AtlasImage(
            image=atlas,
            source_width=source.width,
            source_height=source.height,
            placements=placements,
        )
