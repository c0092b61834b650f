"""Main processor orchestrating the per-image pipeline and the batch driver.

AIDEV-NOTE: One image goes Loaded -> ChainBuilt -> Composed -> Saved. Any
error moves it to FAILED and propagates; the batch driver does not catch it,
so images after a failing one are never processed.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from mipatlas.device import DeviceContext
from mipatlas.errors import (
    GenerationError,
    MipAtlasError,
    OutputWriteError,
    PrimitiveError,
)
from mipatlas.models import (
    FilterMode,
    MipChain,
    MipmapConfig,
    PipelineState,
    ProcessedAtlas,
)

from .builder import MipChainBuilder
from .codec import load_image, save_gray_image, save_image, to_luminance
from .composer import AtlasComposer


@dataclass(frozen=True)
class ImageJob:
    """One input image and where its atlas goes."""

    input_path: Path
    output_path: Path


class MipmapProcessor:
    """Turns source images into mipmap atlases on a device context."""

    def __init__(
        self,
        context: DeviceContext,
        config: MipmapConfig | None = None,
        builder: MipChainBuilder | None = None,
        composer: AtlasComposer | None = None,
    ):
        self.context = context
        self.config = config or context.config
        self.builder = builder or MipChainBuilder(
            context, sync_after_build=self.config.sync_after_build
        )
        self.composer = composer or AtlasComposer(context)
        self.state: PipelineState | None = None

    def process(
        self,
        job: ImageJob,
        filter_mode: FilterMode,
        write_gray: bool = False,
        levels_dir: str | Path | None = None,
    ) -> ProcessedAtlas:
        """Execute the complete pipeline for one image.

        Args:
            job: Input path and output path
            filter_mode: Resampling filter for every mip level
            write_gray: Also write a grayscale PGM of the atlas next to it
            levels_dir: If set, keep the chain and write each level there

        Returns:
            ProcessedAtlas describing what was written

        Raises:
            MipAtlasError: Any pipeline failure, tagged with the input path
        """
        self.state = None
        try:
            return self._run(job, filter_mode, write_gray, levels_dir)
        except MipAtlasError as e:
            self.state = PipelineState.FAILED
            if e.path is None:
                e.path = job.input_path
            raise

    def _run(
        self,
        job: ImageJob,
        filter_mode: FilterMode,
        write_gray: bool,
        levels_dir: str | Path | None,
    ) -> ProcessedAtlas:
        print(f"Loading {job.input_path}...")
        host_image = load_image(job.input_path)
        width, height = host_image.size
        self.state = PipelineState.LOADED
        print(f"Loaded image with size: {width}x{height} pixels.")

        try:
            source = self.context.upload(host_image)
        except PrimitiveError as e:
            raise GenerationError(f"cannot upload source image: {e}") from e

        with source:
            print(f"Building mip chain ({filter_mode.value} filter)...")
            chain = self.builder.build(source, filter_mode)
            self.state = PipelineState.CHAIN_BUILT
            level_sizes = chain.sizes()
            print(f"Built {len(chain)} mip levels.")

            keep_chain = levels_dir is not None
            with chain:
                atlas = self.composer.compose(source, chain, release_chain=not keep_chain)

                with atlas.image:
                    self.state = PipelineState.COMPOSED
                    print(f"Composed atlas of {atlas.width}x{atlas.height} pixels.")

                    level_paths = []
                    if keep_chain:
                        level_paths = self._save_levels(chain, job.input_path, Path(levels_dir))

                    atlas_host = self.context.download(atlas.image)

        output_path = save_image(atlas_host, job.output_path)
        gray_path = None
        if write_gray:
            gray_path = save_gray_image(
                to_luminance(atlas_host), job.output_path.with_suffix(".pgm")
            )

        self.state = PipelineState.SAVED
        print(f"✓ Saved atlas to {output_path}")

        return ProcessedAtlas(
            input_path=job.input_path,
            output_path=output_path,
            filter_mode=filter_mode,
            source_width=width,
            source_height=height,
            atlas_width=atlas.width,
            atlas_height=atlas.height,
            level_sizes=level_sizes,
            placements=atlas.placements,
            gray_path=gray_path,
            level_paths=level_paths,
            state=self.state,
        )

    def _save_levels(self, chain: MipChain, input_path: Path, levels_dir: Path) -> "list[Path]":
        """Write every level of a retained chain as ``<stem>_mip<k>.png``."""
        try:
            levels_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputWriteError(f"cannot create levels directory: {e}", path=levels_dir) from e

        paths = []
        for level in chain:
            level_path = levels_dir / f"{input_path.stem}_mip{level.index}.png"
            paths.append(save_image(self.context.download(level.image), level_path))
        print(f"Saved {len(paths)} mip levels to {levels_dir}")
        return paths

    def process_batch(
        self,
        jobs: Iterable[ImageJob],
        filter_mode: FilterMode,
        write_gray: bool = False,
        levels_dir: str | Path | None = None,
    ) -> "list[ProcessedAtlas]":
        """Process jobs one after another. The first failure aborts the batch."""
        results = []
        for job in jobs:
            results.append(self.process(job, filter_mode, write_gray, levels_dir))
        print(f"Processed {len(results)} image(s).")
        return results
