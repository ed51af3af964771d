"""Gradient materials: view-dependent sky and normal visualization.

Neither material scatters. Both produce a colour directly from the hit:

- ScreenSpaceGradient blends from white to sky blue by the ray's vertical
  direction. Attached to the Background it acts as an ambient sky term.
- NormalSpaceGradient maps the unit surface normal to RGB, which is mainly a
  debugging aid.

Neither has parameters, so there is no registry for them.
"""

import taichi as ti

from rtweekend.core.colour import SKY_BLUE, WHITE, blend
from rtweekend.core.ray import normalize, vec3


@ti.func
def screen_space_gradient(ray_direction: vec3) -> vec3:
    """Sky colour for a ray direction.

    The unit direction's y component is mapped from [-1, 1] to a blend factor
    in [0, 1]: a = 0 gives white and a = 1 gives (0.5, 0.7, 1.0).

    Args:
        ray_direction: The incoming ray direction (any non-zero length).

    Returns:
        The gradient colour.
    """
    a = (normalize(ray_direction).y + 1.0) * 0.5
    return blend(WHITE, SKY_BLUE, a)


@ti.func
def normal_space_gradient(normal: vec3) -> vec3:
    """Visualize a unit normal as a colour: (normal + 1) * 0.5 per channel."""
    return (normal + 1.0) * 0.5
