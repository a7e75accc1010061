import numpy as np
from numpy.typing import NDArray
from typing import Tuple, List, Union, Sequence


class Point3D:
    """
    Represents a 3D point with color and track information.
    Track information (`image_ids`, `point2D_idxs`) is provided as read-only
    NumPy arrays of equal length.
    """

    __slots__ = ('id', 'xyz', 'rgb', 'error', 'image_ids', 'point2D_idxs')

    id: int
    error: float  # Reprojection error

    image_ids: NDArray[np.int64]    # Shape: (T,)
    point2D_idxs: NDArray[np.int64] # Shape: (T,)

    rgb: NDArray[np.uint8]          # Shape: (3,) [r, g, b]
    xyz: NDArray[np.float64]        # Shape: (3,) [x, y, z]

    def __init__(self, id: int,
                 xyz: Union[NDArray[np.float64], Tuple[float, float, float]],
                 rgb: Union[NDArray[np.uint8], Tuple[int, int, int]],
                 error: float,
                 image_ids: Union[NDArray[np.int64], Sequence[int]] = (),
                 point2D_idxs: Union[NDArray[np.int64], Sequence[int]] = ()):
        """
        Initialize a 3D point.

        Args:
            id: Unique point identifier.
            xyz: (3,) 3D coordinates [x, y, z].
            rgb: (3,) RGB color [r, g, b] (0-255).
            error: Reprojection error.
            image_ids: (T,) image IDs where this point is visible.
            point2D_idxs: (T,) corresponding 2D point indices.
        """
        xyz_arr = np.array(xyz, dtype=np.float64)
        rgb_arr = np.array(rgb, dtype=np.uint8)
        image_ids_arr = np.array(image_ids, dtype=np.int64).reshape(-1)
        point2D_idxs_arr = np.array(point2D_idxs, dtype=np.int64).reshape(-1)

        if xyz_arr.shape != (3,): raise ValueError("xyz must have shape (3,)")
        if rgb_arr.shape != (3,): raise ValueError("rgb must have shape (3,)")
        if image_ids_arr.shape != point2D_idxs_arr.shape:
            raise ValueError(f"Number of image IDs ({image_ids_arr.shape[0]}) does not match number of point2D indices ({point2D_idxs_arr.shape[0]})")

        for arr in (xyz_arr, rgb_arr, image_ids_arr, point2D_idxs_arr):
            arr.setflags(write=False)

        self.id = int(id)
        self.xyz = xyz_arr
        self.rgb = rgb_arr
        self.error = float(error)
        self.image_ids = image_ids_arr
        self.point2D_idxs = point2D_idxs_arr

    def get_track(self) -> List[Tuple[int, int]]:
        """Returns the observation track as a list of (image_id, point2D_idx) pairs."""
        return [(int(img_id), int(p2d_idx))
                for img_id, p2d_idx in zip(self.image_ids, self.point2D_idxs)]

    def get_track_length(self) -> int:
        """Get the number of images that observe this point."""
        return len(self.image_ids)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point3D):
            return NotImplemented

        if self.image_ids.shape != other.image_ids.shape:
             return False

        return bool(self.id == other.id and \
                    np.array_equal(self.xyz, other.xyz) and \
                    np.array_equal(self.rgb, other.rgb) and \
                    self.error == other.error and \
                    np.array_equal(self.image_ids, other.image_ids) and \
                    np.array_equal(self.point2D_idxs, other.point2D_idxs))

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        xyz_str = np.array2string(self.xyz, precision=3, separator=', ', suppress_small=True)
        return f"Point3D(id={self.id}, xyz={xyz_str}, track_length={self.get_track_length()}, error={self.error:.2f})"
