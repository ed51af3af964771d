"""Scene description files.

A scene file is the JSON form of SceneManager.to_dict():

    {
        "camera": {"look_from": [0, 0, 0], "look_at": [0, 0, -1], ...} | null,
        "materials": [
            {"type": "lambertian", "colour": [0.8, 0.8, 0.0], "albedo": 0.5},
            {"type": "screen_space_gradient"}
        ],
        "geometries": [
            {"shape": "sphere", "centre": [0, -100.5, -1], "radius": 100, "material": 0},
            {"shape": "background", "material": 1}
        ]
    }

Materials are referenced by their position in the "materials" list.
"""

import json
from os import PathLike

from rtweekend.scene.manager import SceneManager


def save_scene(scene: SceneManager, path: str | PathLike[str]) -> None:
    """Write a scene to a JSON file.

    Args:
        scene: The scene to save.
        path: Destination file path.
    """
    with open(path, "w", encoding="utf-8") as f:
        json.dump(scene.to_dict(), f, indent=2)
        f.write("\n")


def load_scene(path: str | PathLike[str], scene: SceneManager | None = None) -> SceneManager:
    """Read a scene from a JSON file.

    Args:
        path: Source file path.
        scene: Scene manager to load into. A new one is created if None.

    Returns:
        The populated scene manager. If the file has a camera entry, the
        camera is set up as well.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not valid JSON or describes an invalid scene.
    """
    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"{path}: invalid JSON: {e}") from e

    if scene is None:
        scene = SceneManager()
    scene.from_dict(data)
    return scene
