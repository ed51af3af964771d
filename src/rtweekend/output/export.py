"""PNG files in and out, through Pillow.

Images are written as 8-bit RGB with row 0 at the top, after the encoding
pipeline in rtweekend.output.encode.
"""

from __future__ import annotations

from os import PathLike
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from rtweekend.output.encode import ToneMapMethod, encode_image

if TYPE_CHECKING:
    from rtweekend.core.progressive import ProgressiveRenderer


def save_png(
    renderer: ProgressiveRenderer,
    filepath: str | PathLike[str],
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 1.0,
    exposure: float = 1.0,
) -> None:
    """Write the renderer's current image. See save_png_from_array."""
    save_png_from_array(
        renderer.get_image_numpy(), filepath, tone_map=tone_map, gamma=gamma, exposure=exposure
    )


def save_png_from_array(
    image: npt.NDArray[np.floating],
    filepath: str | PathLike[str],
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 1.0,
    exposure: float = 1.0,
) -> None:
    """Encode a linear (H, W, 3) image and write it as PNG.

    Args:
        image: Linear colours, row 0 at the top. Values outside [0, 1] are
            clamped by the encoder.
        filepath: Destination; the PNG format is used whatever the suffix.
        tone_map: "none", "reinhard" or "exposure".
        gamma: Applied after tone mapping. 1.0 writes linear values.
        exposure: Only used by the "exposure" operator.

    Raises:
        ValueError: If the array does not have shape (H, W, 3).
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {image.shape}")

    pixels = encode_image(image, tone_map=tone_map, gamma=gamma, exposure=exposure)
    PILImage.fromarray(pixels).save(filepath, format="PNG")


def load_png(filepath: str | PathLike[str]) -> npt.NDArray[np.uint8]:
    """Read a PNG back as an (H, W, 3) uint8 array."""
    with PILImage.open(filepath) as png:
        return np.asarray(png.convert("RGB"), dtype=np.uint8)


def compute_rmse(image_a: npt.NDArray[np.floating], image_b: npt.NDArray[np.floating]) -> float:
    """Root mean squared difference of two same-shaped images.

    Raises:
        ValueError: If the shapes differ.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = np.asarray(image_a, dtype=np.float64) - np.asarray(image_b, dtype=np.float64)
    return float(np.sqrt(np.mean(np.square(diff))))
