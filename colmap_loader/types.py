from enum import Enum
from typing import Dict, List

from .errors import UnknownCameraModelError

# A special value representing an invalid point3D ID
INVALID_POINT3D_ID = -1

class CameraModelType(Enum):
    """Enumeration of camera model types supported by COLMAP."""
    SIMPLE_PINHOLE = 0
    PINHOLE = 1
    SIMPLE_RADIAL = 2
    RADIAL = 3
    OPENCV = 4
    OPENCV_FISHEYE = 5
    FULL_OPENCV = 6
    FOV = 7
    SIMPLE_RADIAL_FISHEYE = 8
    RADIAL_FISHEYE = 9
    THIN_PRISM_FISHEYE = 10

class CameraModel:
    """Camera model information."""

    __slots__ = ('model_id', 'model_name', 'num_params')

    model_id: int
    model_name: str
    num_params: int

    def __init__(self, model_id: int, model_name: str, num_params: int):
        """Initialize a camera model.

        Args:
            model_id: Numeric ID of the camera model
            model_name: String name of the camera model
            num_params: Number of parameters for this model
        """
        self.model_id = model_id
        self.model_name = model_name
        self.num_params = num_params

    def __repr__(self) -> str:
        return f"CameraModel(model_id={self.model_id}, model_name='{self.model_name}', num_params={self.num_params})"

CAMERA_MODELS: List[CameraModel] = [
    CameraModel(CameraModelType.SIMPLE_PINHOLE.value, "SIMPLE_PINHOLE", 3),
    CameraModel(CameraModelType.PINHOLE.value, "PINHOLE", 4),
    CameraModel(CameraModelType.SIMPLE_RADIAL.value, "SIMPLE_RADIAL", 4),
    CameraModel(CameraModelType.RADIAL.value, "RADIAL", 5),
    CameraModel(CameraModelType.OPENCV.value, "OPENCV", 8),
    CameraModel(CameraModelType.OPENCV_FISHEYE.value, "OPENCV_FISHEYE", 8),
    CameraModel(CameraModelType.FULL_OPENCV.value, "FULL_OPENCV", 12),
    CameraModel(CameraModelType.FOV.value, "FOV", 5),
    CameraModel(CameraModelType.SIMPLE_RADIAL_FISHEYE.value, "SIMPLE_RADIAL_FISHEYE", 4),
    CameraModel(CameraModelType.RADIAL_FISHEYE.value, "RADIAL_FISHEYE", 5),
    CameraModel(CameraModelType.THIN_PRISM_FISHEYE.value, "THIN_PRISM_FISHEYE", 12)
]

MAX_CAMERA_PARAMS = max(model.num_params for model in CAMERA_MODELS)
CAMERA_MODEL_IDS: Dict[int, CameraModel] = {model.model_id: model for model in CAMERA_MODELS}
CAMERA_MODEL_NAMES: Dict[str, CameraModel] = {model.model_name: model for model in CAMERA_MODELS}


def get_camera_model(model_id: int) -> CameraModel:
    """Look up a camera model by its numeric ID.

    Raises:
        UnknownCameraModelError: If the ID is not one of the known models.
    """
    try:
        return CAMERA_MODEL_IDS[model_id]
    except KeyError:
        raise UnknownCameraModelError(model_id) from None


def get_camera_model_by_name(model_name: str) -> CameraModel:
    """Look up a camera model by its name (e.g. 'PINHOLE')."""
    try:
        return CAMERA_MODEL_NAMES[model_name]
    except KeyError:
        raise UnknownCameraModelError(model_name) from None
