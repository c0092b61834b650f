"""Loading and saving images on disk.

AIDEV-NOTE: Colour images always travel as RGBA8 and are written as PNG.
The single-channel path (8-bit grayscale) is written as PGM.
"""

from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from mipatlas.errors import ImageLoadError, OutputWriteError

# Pillow modes with 8 bits per channel that convert cleanly to RGBA
SUPPORTED_MODES = {"1", "L", "LA", "P", "PA", "RGB", "RGBA", "CMYK", "YCbCr"}


def load_image(file_path: str | Path) -> Image.Image:
    """Load an image file as RGBA.

    Args:
        file_path: Path to image file (PNG, JPG, etc.)

    Returns:
        PIL Image in RGBA mode

    Raises:
        ImageLoadError: If the file is missing, cannot be decoded, or uses
            more than 8 bits per channel
    """
    path = Path(file_path)
    if not path.is_file():
        raise ImageLoadError("file not found", path=path)

    try:
        with Image.open(path) as image:
            image.load()
            if image.mode not in SUPPORTED_MODES:
                raise ImageLoadError(
                    f"unsupported pixel format '{image.mode}' (need 8 bits per channel)",
                    path=path,
                )
            if image.mode != "RGBA":
                return image.convert("RGBA")
            return image.copy()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ImageLoadError(f"cannot decode image: {e}", path=path) from e


def load_gray_image(file_path: str | Path) -> np.ndarray:
    """Load an 8-bit single-channel image as a (height, width) uint8 array.

    Raises:
        ImageLoadError: If the file cannot be decoded or is not 8-bit grayscale
    """
    path = Path(file_path)
    if not path.is_file():
        raise ImageLoadError("file not found", path=path)

    try:
        with Image.open(path) as image:
            if image.mode != "L":
                raise ImageLoadError(
                    f"expected 8-bit grayscale, got '{image.mode}'", path=path
                )
            return np.array(image, dtype=np.uint8)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ImageLoadError(f"cannot decode image: {e}", path=path) from e


def save_image(image: Image.Image, file_path: str | Path) -> Path:
    """Encode an RGBA image as PNG.

    Raises:
        OutputWriteError: If the image is not RGBA or cannot be written
    """
    path = Path(file_path)
    if image.mode != "RGBA":
        raise OutputWriteError(f"expected RGBA image, got '{image.mode}'", path=path)

    try:
        image.save(path, format="PNG")
    except (OSError, ValueError) as e:
        raise OutputWriteError(f"failed to save result image: {e}", path=path) from e
    return path


def save_gray_image(pixels: np.ndarray, file_path: str | Path) -> Path:
    """Encode a (height, width) uint8 array as a binary PGM file.

    Raises:
        OutputWriteError: If the array is not 2-D uint8 or cannot be written
    """
    path = Path(file_path)
    if pixels.ndim != 2 or pixels.dtype != np.uint8:
        raise OutputWriteError(
            f"expected 2-D uint8 pixels, got {pixels.ndim}-D {pixels.dtype}", path=path
        )

    try:
        # Pillow's PPM plugin writes mode L as P5 (PGM)
        Image.fromarray(pixels).save(path, format="PPM")
    except (OSError, ValueError) as e:
        raise OutputWriteError(f"failed to save result image: {e}", path=path) from e
    return path


def to_luminance(image: Image.Image) -> np.ndarray:
    """Grayscale (ITU-R 601-2 luma) pixels of an image."""
    return np.asarray(image.convert("L"), dtype=np.uint8)
