import numpy as np
from typing import Optional, Union, List, Sequence
from numpy.typing import NDArray

from .types import CameraModelType, get_camera_model_by_name


class Camera:
    """
    Represents a camera in a COLMAP reconstruction, holding intrinsic parameters.
    Instances are immutable once created: `params` is a read-only array.
    """

    __slots__ = ('id', 'model', 'width', 'height', 'params', '_calibration_matrix')

    id: int
    model: str
    width: int
    height: int
    params: NDArray[np.float64] # Shape (N,) where N is the number of parameters

    def __init__(self, id: int, model: str, width: int, height: int,
                 params: Union[NDArray[np.float64], List[float], Sequence[float]]):
        """
        Initializes a Camera instance.

        Args:
            id: Unique camera identifier.
            model: Camera model name (must be a valid COLMAP model name).
            width: Image width in pixels.
            height: Image height in pixels.
            params: Numpy array or list of camera intrinsic parameters.

        Raises:
            UnknownCameraModelError: If the model name is unknown.
            ValueError: If the dimensions are negative or the number of
                        parameters does not match the specified model.
        """
        expected_params = get_camera_model_by_name(model).num_params

        if width < 0 or height < 0:
            raise ValueError("Camera width and height must be non-negative integers.")

        params_array = np.array(params, dtype=np.float64).reshape(-1)
        if params_array.shape[0] != expected_params:
            raise ValueError(
                f"Camera model '{model}' expects {expected_params} parameters, "
                f"but received array of length {params_array.shape[0]}."
            )
        params_array.setflags(write=False)

        self.id = int(id)
        self.model = model
        self.width = int(width)
        self.height = int(height)
        self.params = params_array
        self._calibration_matrix: Optional[np.ndarray] = None

    def get_model_id(self) -> int:
        """Returns the numeric ID of the camera model."""
        return get_camera_model_by_name(self.model).model_id

    def get_num_params(self) -> int:
        """Returns the number of parameters for this camera model."""
        return get_camera_model_by_name(self.model).num_params

    def get_calibration_matrix(self) -> np.ndarray:
        """
        Calculates and returns the 3x3 camera calibration matrix (K).
        Handles every COLMAP camera model. Caches the result.
        """
        if self._calibration_matrix is not None:
            return self._calibration_matrix.copy()

        K = np.eye(3, dtype=np.float64)
        p = self.params
        model_type = self.get_model_id()

        if model_type in (CameraModelType.SIMPLE_PINHOLE.value,     # f, cx, cy
                          CameraModelType.SIMPLE_RADIAL.value,      # f, cx, cy, k1
                          CameraModelType.RADIAL.value,             # f, cx, cy, k1, k2
                          CameraModelType.SIMPLE_RADIAL_FISHEYE.value,
                          CameraModelType.RADIAL_FISHEYE.value):
            K[0, 0] = K[1, 1] = p[0]; K[0, 2] = p[1]; K[1, 2] = p[2]
        else:
            # fx, fy, cx, cy, [distortion...]
            K[0, 0] = p[0]; K[1, 1] = p[1]; K[0, 2] = p[2]; K[1, 2] = p[3]

        self._calibration_matrix = K
        return K.copy()

    def get_distortion_params(self) -> np.ndarray:
        """
        Returns the distortion parameters as a NumPy array (empty for pinhole models).
        """
        p = self.params
        model_type = self.get_model_id()

        if model_type in (CameraModelType.SIMPLE_PINHOLE.value, CameraModelType.PINHOLE.value):
            return p[len(p):]
        elif model_type in (CameraModelType.SIMPLE_RADIAL.value, CameraModelType.SIMPLE_RADIAL_FISHEYE.value,
                            CameraModelType.RADIAL.value, CameraModelType.RADIAL_FISHEYE.value):
            return p[3:] # k1 or k1, k2
        else:
            return p[4:]

    def has_distortion(self) -> bool:
        """Checks if the camera model includes distortion parameters."""
        model_type = self.get_model_id()
        return model_type not in (CameraModelType.SIMPLE_PINHOLE.value, CameraModelType.PINHOLE.value)

    def __repr__(self) -> str:
        params_str = np.array2string(self.params, precision=3, separator=', ', suppress_small=True)
        return (f"Camera(id={self.id}, model='{self.model}', "
                f"width={self.width}, height={self.height}, "
                f"params={params_str})")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Camera):
            return NotImplemented
        return self.id == other.id and \
               self.model == other.model and \
               self.width == other.width and \
               self.height == other.height and \
               np.array_equal(self.params, other.params)

    def __hash__(self) -> int:
        return hash((self.id, self.model, self.width, self.height, self.params.tobytes()))
