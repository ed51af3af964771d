"""Camera module: primary ray generation.

Components:
    lens: Thin-lens look-at camera with optional depth of field
"""

from .lens import (
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    CameraConfig,
    clear_camera,
    get_camera_basis,
    get_camera_image_size,
    get_camera_info,
    get_camera_origin,
    is_camera_ready,
    screen_to_world,
    screen_to_world_sampled,
    setup_camera,
)

__all__ = [
    "MAX_IMAGE_WIDTH",
    "MAX_IMAGE_HEIGHT",
    "CameraConfig",
    "setup_camera",
    "clear_camera",
    "is_camera_ready",
    "screen_to_world",
    "screen_to_world_sampled",
    "get_camera_origin",
    "get_camera_basis",
    "get_camera_info",
    "get_camera_image_size",
]
