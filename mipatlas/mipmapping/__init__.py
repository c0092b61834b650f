"""Mipmap chain generation and atlas packing.

AIDEV-NOTE: This package handles the pipeline from a source image to a
packed mipmap atlas. Organized into modular components:
- processor: MipmapProcessor orchestrator and batch driver
- builder: MipChainBuilder, one level per halving down to 1x1
- composer: AtlasComposer, fixed source + stacked-levels layout
- primitives: resize / copy commands on the execution stream
- codec: image file loading and saving
- utils: level size and atlas layout arithmetic
"""

from .builder import MipChainBuilder
from .composer import AtlasComposer
from .processor import ImageJob, MipmapProcessor

__all__ = ["AtlasComposer", "ImageJob", "MipChainBuilder", "MipmapProcessor"]
