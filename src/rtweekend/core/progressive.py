"""Batched, resumable rendering on top of the integrator kernels.

A ProgressiveRenderer owns the image size and the bounce budget. Each call to
render() adds samples to the running per-pixel average held by the integrator,
so an image can be refined in several passes. Work is split into batches: one
kernel launch per batch, with a progress report after each.

The scene and a camera of matching size must already be set up:

    >>> scene = create_three_spheres_scene(SceneManager())
    >>> scene.set_camera(three_spheres_camera(400, 225))
    >>> renderer = ProgressiveRenderer(400, 225)
    >>> renderer.render(100, batch_size=10)
    >>> renderer.save_image("three_spheres.png")
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from os import PathLike

import numpy as np
import numpy.typing as npt

from rtweekend.core import integrator
from rtweekend.core.integrator import DEFAULT_MAX_BOUNCES

# Called with (samples accumulated so far, samples expected when the call ends)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """Accumulates samples per pixel across any number of render calls.

    The accumulation buffers are module-level Taichi fields in the
    integrator, so creating a renderer (or resizing one) takes them over.
    Only one renderer should be in use at a time.

    Attributes:
        max_bounces: Scattering events allowed per ray.
    """

    def __init__(self, width: int, height: int, max_bounces: int = DEFAULT_MAX_BOUNCES) -> None:
        """Allocate the accumulation buffers for a width x height image.

        Raises:
            ValueError: If the size is out of range or max_bounces is negative.
        """
        if max_bounces < 0:
            raise ValueError(f"max_bounces must be non-negative, got {max_bounces}")
        self.max_bounces = max_bounces
        self._size = (0, 0)
        self.resize(width, height)

    @property
    def width(self) -> int:
        return self._size[0]

    @property
    def height(self) -> int:
        return self._size[1]

    @property
    def sample_count(self) -> int:
        """Samples per pixel accumulated since the last reset."""
        return integrator.get_total_samples()

    def reset(self) -> None:
        """Discard accumulated samples and keep the current size."""
        integrator.clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Reallocate the buffers for a new size, discarding samples.

        The camera has to be set up for the new size before the next render.
        """
        integrator.setup_render_target(width, height)
        self._size = (width, height)

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Add num_samples samples per pixel, batch_size per kernel launch.

        Args:
            num_samples: Samples per pixel to add. Zero or less does nothing.
            batch_size: Samples per launch. Larger batches cost less overhead
                but report progress less often.
            callback: Called after every batch with (current, target).

        Raises:
            ValueError: If batch_size < 1.
            RuntimeError: If no camera is set up for this image size.
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Iterator[tuple[int, int]]:
        """Generator form of render(): nothing is traced until iterated.

        Yields:
            (current, target) sample counts after each batch.
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")

        done = 0
        target = self.sample_count + max(num_samples, 0)
        while done < num_samples:
            batch = min(batch_size, num_samples - done)
            integrator.render_image(batch, self.max_bounces)
            done += batch
            yield self.sample_count, target

    # =========================================================================
    # Output
    # =========================================================================

    def get_image_numpy(self) -> npt.NDArray[np.float64]:
        """The linear (height, width, 3) average, unclamped."""
        return integrator.get_image_numpy()

    def get_image_uint8(self, gamma: float = 1.0) -> npt.NDArray[np.uint8]:
        """The image after gamma and 8-bit quantization."""
        from rtweekend.output.encode import encode_image

        return encode_image(self.get_image_numpy(), gamma=gamma)

    def save_image(self, filepath: str | PathLike[str], gamma: float = 1.0) -> None:
        """Write the image to a PNG file."""
        from rtweekend.output.export import save_png

        save_png(self, filepath, gamma=gamma)

    def __repr__(self) -> str:
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
