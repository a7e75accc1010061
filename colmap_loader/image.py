import numpy as np
from typing import Tuple, List, Union, Sequence
from numpy.typing import NDArray

from .utils import qvec2rotmat
from .types import INVALID_POINT3D_ID


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


class Image:
    """
    Represents image extrinsic parameters and features.
    Features (`xys`, `point3D_ids`) are provided as read-only NumPy arrays.

    The pose (`qvec`, `tvec`) is stored the way COLMAP stores it: as the
    world-to-camera transform, x_cam = R(qvec) @ x_world + tvec.
    """

    __slots__ = ('id', 'name', 'camera_id', 'qvec', 'tvec', 'xys', 'point3D_ids')

    id: int
    name: str
    camera_id: int

    xys: NDArray[np.float64] # Shape: (N, 2), dtype=float64
    point3D_ids: NDArray[np.int64] # Shape: (N,), dtype=int64, -1 = no 3D point

    qvec: NDArray[np.float64] # Shape: (4,), dtype=float64 [w, x, y, z]
    tvec: NDArray[np.float64] # Shape: (3,), dtype=float64 [x, y, z]

    def __init__(self, id: int, name: str, camera_id: int,
                 qvec: Union[NDArray[np.float64], Sequence[float]],
                 tvec: Union[NDArray[np.float64], Sequence[float]],
                 xys: Union[NDArray[np.float64], Sequence[Tuple[float, float]]] = (),
                 point3D_ids: Union[NDArray[np.int64], Sequence[int]] = ()):
        """
        Initializes an Image instance.

        Args:
            id: Unique image identifier.
            name: Image file name.
            camera_id: ID of the camera used for this image.
            qvec: Quaternion rotation [w, x, y, z] (4,).
            tvec: Translation vector [x, y, z] (3,).
            xys: (N, 2) 2D feature points.
            point3D_ids: (N,) corresponding 3D point IDs.
        """
        qvec_arr = np.array(qvec, dtype=np.float64)
        tvec_arr = np.array(tvec, dtype=np.float64)
        xys_arr = np.array(xys, dtype=np.float64)
        ids_arr = np.array(point3D_ids, dtype=np.int64)
        if xys_arr.size == 0:
            xys_arr = xys_arr.reshape(0, 2)

        if qvec_arr.shape != (4,) or tvec_arr.shape != (3,):
             raise ValueError("qvec must have shape (4,) and tvec shape (3,)")
        if xys_arr.ndim != 2 or xys_arr.shape[1] != 2:
             raise ValueError("xys must be an Nx2 array")
        if ids_arr.ndim != 1 or ids_arr.shape[0] != xys_arr.shape[0]:
            raise ValueError(f"Number of 2D points ({xys_arr.shape[0]}) does not match number of 3D point IDs ({ids_arr.shape[0]})")

        self.id = int(id)
        self.name = name
        self.camera_id = int(camera_id)
        self.qvec = _frozen(qvec_arr)
        self.tvec = _frozen(tvec_arr)
        self.xys = _frozen(xys_arr)
        self.point3D_ids = _frozen(ids_arr)

    def get_rotation_matrix(self) -> np.ndarray:
        """Get the world-to-camera rotation matrix from the quaternion."""
        return qvec2rotmat(self.qvec)

    def get_world_to_camera_matrix(self) -> np.ndarray:
        """Get world-to-camera transformation matrix.

        Returns:
            4x4 transformation matrix
        """
        transform = np.eye(4, dtype=np.float64)
        transform[:3, :3] = self.get_rotation_matrix()
        transform[:3, 3] = self.tvec
        return transform

    def get_camera_to_world_matrix(self) -> np.ndarray:
        """Get camera-to-world transformation matrix.

        Returns:
            4x4 transformation matrix
        """
        # Rigid inverse: C2W = [R.T | -R.T @ t]
        R_T = self.get_rotation_matrix().T

        transform = np.eye(4, dtype=np.float64)
        transform[:3, :3] = R_T
        transform[:3, 3] = -R_T @ self.tvec
        return transform

    def get_camera_center(self) -> np.ndarray:
        """Get camera center in world coordinates.

        Returns:
            Camera center as (x, y, z)
        """
        # C = -R' * t
        R = self.get_rotation_matrix()
        return -R.T @ self.tvec

    def num_observations(self) -> int:
        """Counts the number of 2D features in this image."""
        return self.xys.shape[0]

    def num_valid_observations(self) -> int:
        """Counts the number of 2D features with valid 3D correspondences."""
        return int(np.sum(self.point3D_ids != INVALID_POINT3D_ID))

    def get_valid_points3D(self) -> List[Tuple[int, Tuple[float, float]]]:
        """
        Returns (point3D_id, (x, y)) for every feature that has a 3D point.
        """
        valid_mask = self.point3D_ids != INVALID_POINT3D_ID
        valid_ids = self.point3D_ids[valid_mask]
        valid_xys = self.xys[valid_mask]
        return [(int(p3d_id), (float(xy[0]), float(xy[1]))) for p3d_id, xy in zip(valid_ids, valid_xys)]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Image):
            return NotImplemented

        if self.xys.shape != other.xys.shape or self.point3D_ids.shape != other.point3D_ids.shape:
             return False

        return self.id == other.id and \
               self.name == other.name and \
               self.camera_id == other.camera_id and \
               np.array_equal(self.qvec, other.qvec) and \
               np.array_equal(self.tvec, other.tvec) and \
               np.array_equal(self.xys, other.xys) and \
               np.array_equal(self.point3D_ids, other.point3D_ids)

    def __hash__(self) -> int:
        return hash((self.id, self.name))

    def __repr__(self) -> str:
        num_feats = self.num_observations()
        return f"Image(id={self.id}, name='{self.name}', camera_id={self.camera_id}, {num_feats} features)"
