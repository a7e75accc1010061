from .cursor import ByteCursor
from .binary import (
    read_cameras_binary,
    read_images_binary,
    read_points3D_binary,
    read_cameras_binary_file,
    read_images_binary_file,
    read_points3D_binary_file,
    read_binary_model,
)
from .fetch import fetch_file
from ..utils import find_model_path

__all__ = [
    "ByteCursor",
    "read_cameras_binary",
    "read_images_binary",
    "read_points3D_binary",
    "read_cameras_binary_file",
    "read_images_binary_file",
    "read_points3D_binary_file",
    "read_binary_model",
    "read_model",
    "fetch_file",
]


def read_model(path: str, only_3d_features: bool = False):
    """
    Reads a COLMAP binary model from a project directory.

    Looks for the model files in 'sparse/0', 'sparse' and the directory
    itself, in that order.

    Args:
        path: Project or model directory.
        only_3d_features: If True, discards 2D features in images that don't
                          correspond to a 3D point (point3D_id == -1).

    Returns:
        (cameras, images, points3D) id-keyed mappings.

    Raises:
        FileNotFoundError: If no directory holding all three .bin files is found.
        DecodeError: If any of the files cannot be decoded.
    """
    model_dir = find_model_path(path)
    if model_dir is None:
        raise FileNotFoundError(f"Could not find a COLMAP binary model in '{path}'")
    return read_binary_model(model_dir, only_3d_features=only_3d_features)
