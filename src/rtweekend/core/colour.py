"""Linear RGB colour helpers.

Colours share the ``vec3`` representation with positions and directions, read
as (r, g, b). Values are nominally in [0, 1] but are never clamped here;
clamping and gamma belong to the image encoder (``rtweekend.output``).
Component-wise products (tinting) use Taichi's element-wise ``*``.
"""

import math

import taichi as ti

from rtweekend.core.ray import vec3

BLACK = vec3(0.0, 0.0, 0.0)
WHITE = vec3(1.0, 1.0, 1.0)

# Top of the screen-space sky gradient
SKY_BLUE = vec3(0.5, 0.7, 1.0)

# Returned for rays that escape a scene with no Background geometry
MISS_COLOUR = vec3(1.0, 0.0, 1.0)


@ti.func
def blend(start: vec3, end: vec3, a: ti.f64) -> vec3:
    """Linearly interpolate between two colours, a = 0 gives start."""
    return (1.0 - a) * start + a * end


def validate_colour(
    colour: tuple[float, float, float],
    name: str = "colour",
    *,
    upper: float | None = 1.0,
) -> tuple[float, float, float]:
    """Check an RGB triple and return it as a tuple of floats.

    Args:
        colour: The (R, G, B) values.
        name: Parameter name used in error messages.
        upper: Maximum allowed component, or None for no upper bound.

    Returns:
        The colour as a tuple of three floats.

    Raises:
        ValueError: If the colour does not have three components, or a
            component is negative, non-finite or above ``upper``.
    """
    values = tuple(float(c) for c in colour)
    if len(values) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(values)}")

    for i, component in enumerate(values):
        if not math.isfinite(component):
            raise ValueError(f"{name} component {i} = {component} is not finite")
        if component < 0.0 or (upper is not None and component > upper):
            bound = f"[0, {upper}]" if upper is not None else "[0, inf)"
            raise ValueError(f"{name} component {i} = {component} is outside {bound}")
    return values  # type: ignore[return-value]
