"""Mip chain generation.

Each level is resampled directly from the full-resolution source rather
than from the previous level, so filter error does not compound down the
chain.
"""

from typing import Callable

from mipatlas.device import DeviceContext, DeviceImage
from mipatlas.errors import GenerationError, PrimitiveError
from mipatlas.models import FilterMode, MipChain, MipLevel

from . import primitives
from .utils import mip_level_sizes

ResizeFn = Callable[
    [DeviceContext, DeviceImage, "tuple[int, int, int, int]", int, int, FilterMode],
    DeviceImage,
]


class MipChainBuilder:
    """Builds the ordered chain of mip levels for one source image."""

    def __init__(
        self,
        context: DeviceContext,
        resize: ResizeFn = primitives.resize,
        sync_after_build: bool | None = None,
    ):
        self.context = context
        self.resize = resize
        if sync_after_build is None:
            sync_after_build = context.config.sync_after_build
        self.sync_after_build = sync_after_build

    def build(self, source: DeviceImage, filter_mode: FilterMode) -> MipChain:
        """Resample ``source`` into every level down to 1x1.

        Args:
            source: Full-resolution RGBA8 source on the device
            filter_mode: Resampling filter for every level

        Returns:
            MipChain owning one level per halving, ending at 1x1

        Raises:
            GenerationError: If any resize fails. Levels allocated before the
                failure are released first.
        """
        chain = MipChain()
        src_rect = primitives.full_rect(source)
        built = False

        try:
            for index, (width, height) in enumerate(
                mip_level_sizes(source.width, source.height)
            ):
                image = self.resize(
                    self.context, source, src_rect, width, height, filter_mode
                )
                chain.append(MipLevel(index=index, image=image))

            # AIDEV-NOTE: Stream order already puts every resize ahead of the
            # composer's copies; this barrier only makes resize failures
            # surface here instead of during composition.
            if self.sync_after_build:
                self.context.synchronize()
            built = True
        except PrimitiveError as e:
            raise GenerationError(
                f"Resize failed building level {len(chain)} of "
                f"{source.width}x{source.height} chain: {e}"
            ) from e
        finally:
            if not built:
                # Queued resizes still write into these levels
                self.context.stream.wait_idle()
                chain.release()

        return chain
