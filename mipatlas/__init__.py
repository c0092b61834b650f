"""Mipmap atlas generator: packs an image and its full mip chain into one PNG."""

__version__ = "0.1.0"
