__version__ = "0.2.0"

__all__ = [
    # Core classes
    "Camera",
    "Image",
    "Point3D",
    "ColmapLoader",
    "ColmapData",
    "LoaderConfig",
    # Types & Constants
    "CameraModel",
    "CameraModelType",
    "CAMERA_MODELS",
    "CAMERA_MODEL_IDS",
    "CAMERA_MODEL_NAMES",
    "INVALID_POINT3D_ID",
    "get_camera_model",
    "get_camera_model_by_name",
    # Errors
    "ColmapError",
    "DecodeError",
    "BufferTruncatedError",
    "RecordCountMismatchError",
    "UnknownCameraModelError",
    "CapabilityError",
    "FetchError",
    # IO Functions
    "read_cameras_binary",
    "read_images_binary",
    "read_points3D_binary",
    "read_model",
    # Geometry
    "CameraPose",
    "CameraFrustum",
    "get_camera_poses",
    "create_camera_frustum",
    "get_point_cloud",
    # Utility functions
    "qvec2rotmat",
    "rotmat2qvec",
    "find_model_path",
    "detect_model_format",
]

from .camera import Camera
from .image import Image
from .point3d import Point3D
from .types import (
    CameraModel,
    CameraModelType,
    CAMERA_MODELS,
    CAMERA_MODEL_IDS,
    CAMERA_MODEL_NAMES,
    INVALID_POINT3D_ID,
    get_camera_model,
    get_camera_model_by_name,
)
from .errors import (
    ColmapError,
    DecodeError,
    BufferTruncatedError,
    RecordCountMismatchError,
    UnknownCameraModelError,
    CapabilityError,
    FetchError,
)
from .io import read_cameras_binary, read_images_binary, read_points3D_binary, read_model
from .geometry import (
    CameraPose,
    CameraFrustum,
    get_camera_poses,
    create_camera_frustum,
    get_point_cloud,
)
from .config import LoaderConfig
from .loader import ColmapLoader, ColmapData
from .utils import (
    qvec2rotmat,
    rotmat2qvec,
    find_model_path,
    detect_model_format,
)
