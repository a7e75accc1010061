import numpy as np
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Tuple, Union

from .image import Image
from .camera import Camera
from .point3d import Point3D
from .errors import CapabilityError
from .utils import rotmat2qvec

# Models whose first parameters are (f, cx, cy)
SINGLE_FOCAL_MODELS = ("SIMPLE_PINHOLE", "SIMPLE_RADIAL", "RADIAL")
# Models whose first parameters are (fx, fy, cx, cy)
DUAL_FOCAL_MODELS = ("PINHOLE", "OPENCV", "OPENCV_FISHEYE", "FULL_OPENCV")

# Apex, then image corners (0,0), (w,0), (0,h), (w,h)
FRUSTUM_FACES = np.array([
    [0, 2, 1],
    [0, 3, 1],
    [0, 4, 1],
    [1, 2, 3],
    [3, 4, 2],
], dtype=np.uint16)


@dataclass(frozen=True, eq=False)
class CameraPose:
    """World-space pose of the camera that took an image.

    Attributes:
        image_id: ID of the source image.
        position: Camera center in world coordinates, shape (3,).
        rotation: Camera-to-world rotation, shape (3, 3).
        qvec: `rotation` as a (w, x, y, z) quaternion.
    """
    image_id: int
    position: np.ndarray
    rotation: np.ndarray
    qvec: np.ndarray


def get_camera_pose(image: Image) -> CameraPose:
    """Derive the world-space pose from an image's world-to-camera qvec/tvec."""
    R_T = image.get_rotation_matrix().T
    return CameraPose(image_id=image.id,
                      position=-R_T @ image.tvec,
                      rotation=R_T,
                      qvec=rotmat2qvec(R_T))


def get_camera_poses(images: Union[Mapping[int, Image], Iterable[Image]]) -> List[CameraPose]:
    """Compute a CameraPose for every image."""
    if isinstance(images, Mapping):
        images = images.values()
    return [get_camera_pose(image) for image in images]


@dataclass(frozen=True, eq=False)
class CameraFrustum:
    """Pyramid outlining a camera's field of view.

    `vertices` are in camera coordinates: the apex at the origin and the
    four image corners on the z=1 plane. `scale` is the size the pyramid
    should be drawn at.
    """
    camera_id: int
    vertices: np.ndarray # (5, 3)
    faces: np.ndarray    # (5, 3) vertex indices
    scale: float = 0.25

    def to_world(self, pose: CameraPose) -> np.ndarray:
        """Scaled vertices placed at `pose`, shape (5, 3)."""
        return (self.vertices * self.scale) @ pose.rotation.T + pose.position


def _frustum_intrinsics(camera: Camera) -> np.ndarray:
    p = camera.params
    if camera.model in SINGLE_FOCAL_MODELS:
        fx = fy = p[0]
        cx, cy = p[1], p[2]
    elif camera.model in DUAL_FOCAL_MODELS:
        fx, fy, cx, cy = p[0], p[1], p[2], p[3]
    else:
        raise CapabilityError(f"Camera model '{camera.model}' is not supported for frustum construction")
    if fx == 0 or fy == 0:
        raise CapabilityError(f"Camera {camera.id} has a zero focal length; cannot build a frustum")

    return np.array([
        [fx, 0.0, cx],
        [0.0, fy, cy],
        [0.0, 0.0, 1.0],
    ], dtype=np.float64)


def create_camera_frustum(camera: Camera, scale: float = 0.25) -> CameraFrustum:
    """Build the viewing pyramid for a camera.

    Raises:
        CapabilityError: If the camera model is not a pinhole-family model,
            or its focal length is zero.
    """
    K_inv = np.linalg.inv(_frustum_intrinsics(camera))
    w, h = camera.width, camera.height

    pixels = np.array([
        [0, 0, 0],
        [0, 0, 1],
        [w, 0, 1],
        [0, h, 1],
        [w, h, 1],
    ], dtype=np.float64)

    return CameraFrustum(camera_id=camera.id,
                         vertices=pixels @ K_inv.T,
                         faces=FRUSTUM_FACES.copy(),
                         scale=scale)


def get_point_cloud(points3D: Union[Mapping[int, Point3D], Iterable[Point3D]]) -> Tuple[np.ndarray, np.ndarray]:
    """Flatten points into (positions, colors) float32 arrays of shape (M, 3).

    Colors are scaled to [0, 1].
    """
    if isinstance(points3D, Mapping):
        points3D = points3D.values()
    points = list(points3D)

    positions = np.empty((len(points), 3), dtype=np.float32)
    colors = np.empty((len(points), 3), dtype=np.float32)
    for i, point in enumerate(points):
        positions[i] = point.xyz
        colors[i] = point.rgb / 255.0

    return positions, colors
