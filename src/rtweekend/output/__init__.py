"""Output module: turning the float image buffer into files.

Components:
    encode: Tone mapping, gamma and 8-bit quantization
    export: PNG writing through Pillow, plus image comparison
"""

from rtweekend.output.encode import (
    TONE_MAP_METHODS,
    ToneMapMethod,
    apply_gamma,
    apply_tone_map,
    colour_to_rgb8,
    encode_image,
    tone_map_exposure,
    tone_map_reinhard,
)
from rtweekend.output.export import (
    compute_rmse,
    load_png,
    save_png,
    save_png_from_array,
)

__all__ = [
    "TONE_MAP_METHODS",
    "ToneMapMethod",
    "apply_gamma",
    "apply_tone_map",
    "colour_to_rgb8",
    "encode_image",
    "tone_map_exposure",
    "tone_map_reinhard",
    "compute_rmse",
    "load_png",
    "save_png",
    "save_png_from_array",
]
