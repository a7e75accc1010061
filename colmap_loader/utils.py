import os
import numpy as np
from typing import Optional

BINARY_MODEL_FILES = ("cameras.bin", "images.bin", "points3D.bin")


def detect_model_format(path: str) -> str:
    """Detect COLMAP model format in a directory ('.bin' or '')."""
    if not os.path.isdir(path):
        return ""

    if all(os.path.isfile(os.path.join(path, name)) for name in BINARY_MODEL_FILES):
        return ".bin"

    return ""


def find_model_path(base_path: str) -> Optional[str]:
    """Find a COLMAP model in common directories.

    Args:
        base_path: Base directory to search in

    Returns:
        Path to the directory containing the model files, or None if not found
    """
    # common model locations
    candidates = [
        os.path.join(base_path, "sparse", "0"),
        os.path.join(base_path, "sparse"),
        base_path
    ]

    for candidate in candidates:
        if os.path.exists(candidate) and detect_model_format(candidate):
            return candidate

    return None


def qvec2rotmat(qvec: np.ndarray) -> np.ndarray:
    """Convert quaternion to rotation matrix.

    The quaternion is not normalised first; a non-unit input yields a
    non-orthonormal matrix.

    Args:
        qvec: Quaternion as (w, x, y, z)

    Returns:
        3x3 rotation matrix
    """
    qvec = np.asarray(qvec, dtype=np.float64)
    if qvec.shape != (4,):
        raise ValueError("qvec must have shape (4,)")

    w, x, y, z = qvec
    R = np.zeros((3, 3), dtype=np.float64)

    R[0, 0] = 1 - 2 * y**2 - 2 * z**2
    R[0, 1] = 2 * x * y - 2 * w * z
    R[0, 2] = 2 * x * z + 2 * w * y

    R[1, 0] = 2 * x * y + 2 * w * z
    R[1, 1] = 1 - 2 * x**2 - 2 * z**2
    R[1, 2] = 2 * y * z - 2 * w * x

    R[2, 0] = 2 * x * z - 2 * w * y
    R[2, 1] = 2 * y * z + 2 * w * x
    R[2, 2] = 1 - 2 * x**2 - 2 * y**2

    return R


def rotmat2qvec(R: np.ndarray) -> np.ndarray:
    """Convert rotation matrix to quaternion.

    Args:
        R: 3x3 rotation matrix

    Returns:
        Quaternion as (w, x, y, z) with w >= 0
    """
    R = np.asarray(R, dtype=np.float64)
    if R.shape != (3, 3):
        raise ValueError("R must have shape (3, 3)")

    trace = np.trace(R)
    q = np.zeros(4, dtype=np.float64)

    if trace > 0:
        s = 0.5 / np.sqrt(trace + 1.0)
        q[0] = 0.25 / s # w
        q[1] = (R[2, 1] - R[1, 2]) * s # x
        q[2] = (R[0, 2] - R[2, 0]) * s # y
        q[3] = (R[1, 0] - R[0, 1]) * s # z
    elif R[0, 0] > R[1, 1] and R[0, 0] > R[2, 2]:
        s = 2.0 * np.sqrt(1.0 + R[0, 0] - R[1, 1] - R[2, 2])
        q[0] = (R[2, 1] - R[1, 2]) / s
        q[1] = 0.25 * s
        q[2] = (R[0, 1] + R[1, 0]) / s
        q[3] = (R[0, 2] + R[2, 0]) / s
    elif R[1, 1] > R[2, 2]:
        s = 2.0 * np.sqrt(1.0 + R[1, 1] - R[0, 0] - R[2, 2])
        q[0] = (R[0, 2] - R[2, 0]) / s
        q[1] = (R[0, 1] + R[1, 0]) / s
        q[2] = 0.25 * s
        q[3] = (R[1, 2] + R[2, 1]) / s
    else:
        s = 2.0 * np.sqrt(1.0 + R[2, 2] - R[0, 0] - R[1, 1])
        q[0] = (R[1, 0] - R[0, 1]) / s
        q[1] = (R[0, 2] + R[2, 0]) / s
        q[2] = (R[1, 2] + R[2, 1]) / s
        q[3] = 0.25 * s

    if q[0] < 0:
        q = -q

    return q
