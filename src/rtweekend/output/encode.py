"""Colour-to-pixel encoding.

Turns the integrator's linear float image into 8-bit RGB:
1. Tone mapping (optional, for colours above 1)
2. Gamma correction (default 1.0, i.e. linear values are written as-is)
3. Quantization: each channel maps to min(int(c * 256), 255), clamped at 0

The quantization keeps full-intensity 1.0 at 255 while giving each of the 256
levels an equally wide slice of [0, 1).
"""

from __future__ import annotations

from typing import Literal, get_args

import numpy as np
import numpy.typing as npt

# Type alias for tone mapping options
ToneMapMethod = Literal["none", "reinhard", "exposure"]
TONE_MAP_METHODS: tuple[str, ...] = get_args(ToneMapMethod)


def tone_map_reinhard(
    image: npt.NDArray[np.floating],
) -> npt.NDArray[np.float64]:
    """Apply Reinhard tone mapping: L / (1 + L).

    Args:
        image: Linear image array of shape (H, W, 3).

    Returns:
        Tone mapped image in [0, 1) range.
    """
    image = np.maximum(image, 0.0)
    return image / (1.0 + image)


def tone_map_exposure(
    image: npt.NDArray[np.floating],
    exposure: float = 1.0,
) -> npt.NDArray[np.float64]:
    """Apply exposure-based tone mapping: 1 - exp(-c * exposure).

    Args:
        image: Linear image array of shape (H, W, 3).
        exposure: Exposure value (default 1.0). Higher values brighten the image.

    Returns:
        Tone mapped image in [0, 1) range.
    """
    image = np.maximum(image, 0.0)
    return 1.0 - np.exp(-image * exposure)


def apply_tone_map(
    image: npt.NDArray[np.floating],
    tone_map: ToneMapMethod = "none",
    exposure: float = 1.0,
) -> npt.NDArray[np.float64]:
    """Apply the named tone mapping operator.

    Raises:
        ValueError: If the method is unknown.
    """
    if tone_map == "none":
        return np.asarray(image, dtype=np.float64)
    elif tone_map == "reinhard":
        return tone_map_reinhard(image)
    elif tone_map == "exposure":
        return tone_map_exposure(image, exposure)
    raise ValueError(f"Unknown tone mapping method: {tone_map}")


def apply_gamma(
    image: npt.NDArray[np.floating],
    gamma: float = 1.0,
) -> npt.NDArray[np.float64]:
    """Apply gamma encoding: out = in^(1/gamma).

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma value. 1.0 leaves the image unchanged; 2.2 approximates
            sRGB.

    Returns:
        Gamma encoded image. Values are clamped to [0, 1] first unless gamma
        is 1.0.

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"gamma must be positive, got {gamma}")

    image = np.asarray(image, dtype=np.float64)
    if gamma == 1.0:
        return image

    # Clamp to [0, 1] before gamma to avoid NaN from negative values
    image = np.clip(image, 0.0, 1.0)
    return np.power(image, 1.0 / gamma)


def colour_to_rgb8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Quantize linear colour values to 8 bits per channel.

    Each channel maps to min(int(c * 256), 255), clamped at 0. NaN maps to 0.

    Args:
        image: Colour array of any shape, last axis RGB.

    Returns:
        Array of the same shape with dtype uint8.
    """
    scaled = np.nan_to_num(np.asarray(image, dtype=np.float64) * 256.0, nan=0.0)
    return np.clip(np.floor(scaled), 0.0, 255.0).astype(np.uint8)


def encode_image(
    image: npt.NDArray[np.floating],
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 1.0,
    exposure: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Run the full pipeline: tone map, gamma, quantize.

    Args:
        image: Linear image array of shape (H, W, 3).
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma correction value (default 1.0, linear).
        exposure: Exposure value for exposure tone mapping (default 1.0).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    result = apply_tone_map(image, tone_map, exposure)
    result = apply_gamma(result, gamma)
    return colour_to_rgb8(result)
