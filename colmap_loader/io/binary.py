import os
import logging
import numpy as np
import concurrent.futures
from types import MappingProxyType
from typing import Tuple, Mapping, Dict, Optional

from .cursor import ByteCursor, BufferLike
from ..image import Image
from ..camera import Camera
from ..point3d import Point3D
from ..types import CAMERA_MODEL_IDS, INVALID_POINT3D_ID
from ..utils import BINARY_MODEL_FILES
from ..errors import (
    DecodeError,
    UnknownCameraModelError,
    RecordCountMismatchError,
)

logger = logging.getLogger(__name__)

# Fixed-size record headers, all little-endian.
#   camera: camera_id, model_id, width, height               -> 24 bytes
#   image:  image_id, qw, qx, qy, qz, tx, ty, tz, camera_id  -> 64 bytes
#   point:  point3D_id, x, y, z, r, g, b, error              -> 43 bytes
CAMERA_HEADER_FORMAT = "iiqq"
IMAGE_HEADER_FORMAT = "idddddddi"
POINT3D_HEADER_FORMAT = "QdddBBBd"

POINT2D_DTYPE = np.dtype([("x", "<f8"), ("y", "<f8"), ("point3D_id", "<i8")])
TRACK_ELEMENT_DTYPE = np.dtype([("image_id", "<i4"), ("point2D_idx", "<i4")])

CamerasMapping = Mapping[int, Camera]
ImagesMapping = Mapping[int, Image]
Points3DMapping = Mapping[int, Point3D]


def _check_trailing(cursor: ByteCursor) -> None:
    if not cursor.at_end():
        logger.warning("%s: %d trailing bytes after the last record were ignored",
                       cursor.source, cursor.remaining)


def read_cameras_binary(buffer: BufferLike, source: str = "cameras.bin") -> CamerasMapping:
    """Decode the contents of a COLMAP cameras.bin file.

    Args:
        buffer: Raw file contents.
        source: Name used in error messages.

    Returns:
        Read-only mapping from camera ID to Camera.

    Raises:
        BufferTruncatedError: If the buffer ends inside a record.
        UnknownCameraModelError: If a record uses a model ID not in the registry.
        RecordCountMismatchError: If the number of distinct cameras differs from the header.
    """
    cursor = ByteCursor(buffer, source)
    cameras: Dict[int, Camera] = {}

    num_cameras = cursor.read_one("Q")

    for _ in range(num_cameras):
        record_offset = cursor.offset
        cam_id, model_id, width, height = cursor.read(CAMERA_HEADER_FORMAT)

        # The parameter count depends on the model, so it has to be looked up mid-record
        if model_id not in CAMERA_MODEL_IDS:
            raise UnknownCameraModelError(model_id, source, record_offset + 4)
        camera_model = CAMERA_MODEL_IDS[model_id]

        num_params = camera_model.num_params
        params = cursor.read("d" * num_params)

        try:
            cameras[cam_id] = Camera(id=cam_id, model=camera_model.model_name,
                                     width=width, height=height, params=params)
        except ValueError as e:
            raise DecodeError(f"invalid camera {cam_id}: {e}", source, record_offset) from e

    if len(cameras) != num_cameras:
        raise RecordCountMismatchError(num_cameras, len(cameras), source, cursor.offset)

    _check_trailing(cursor)
    logger.debug("%s: decoded %d cameras", source, len(cameras))
    return MappingProxyType(cameras)


def read_images_binary(buffer: BufferLike, source: str = "images.bin",
                       only_3d_features: bool = False) -> ImagesMapping:
    """Decode the contents of a COLMAP images.bin file.

    Args:
        buffer: Raw file contents.
        source: Name used in error messages.
        only_3d_features: If True, discards 2D features that don't
                          correspond to a 3D point (point3D_id == -1).

    Returns:
        Read-only mapping from image ID to Image.

    Raises:
        BufferTruncatedError: If the buffer ends inside a record, including
                              a name without a null terminator.
    """
    cursor = ByteCursor(buffer, source)
    images: Dict[int, Image] = {}

    num_reg_images = cursor.read_one("Q")

    for _ in range(num_reg_images):
        record_offset = cursor.offset
        img_id, qw, qx, qy, qz, tx, ty, tz, cam_id = cursor.read(IMAGE_HEADER_FORMAT)

        name = cursor.read_cstring()

        num_points2D = cursor.read_one("Q")
        points2D = cursor.read_array(POINT2D_DTYPE, num_points2D)

        if only_3d_features:
            points2D = points2D[points2D["point3D_id"] != INVALID_POINT3D_ID]

        xys = np.empty((points2D.shape[0], 2), dtype=np.float64)
        xys[:, 0] = points2D["x"]
        xys[:, 1] = points2D["y"]

        try:
            images[img_id] = Image(id=img_id, name=name, camera_id=cam_id,
                                   qvec=(qw, qx, qy, qz), tvec=(tx, ty, tz),
                                   xys=xys, point3D_ids=points2D["point3D_id"])
        except ValueError as e:
            raise DecodeError(f"invalid image {img_id}: {e}", source, record_offset) from e

    _check_trailing(cursor)
    logger.debug("%s: decoded %d images", source, len(images))
    return MappingProxyType(images)


def read_points3D_binary(buffer: BufferLike, source: str = "points3D.bin") -> Points3DMapping:
    """Decode the contents of a COLMAP points3D.bin file.

    Args:
        buffer: Raw file contents.
        source: Name used in error messages.

    Returns:
        Read-only mapping from point3D ID to Point3D.

    Raises:
        BufferTruncatedError: If the buffer ends inside a record.
    """
    cursor = ByteCursor(buffer, source)
    points3D: Dict[int, Point3D] = {}

    num_points = cursor.read_one("Q")

    for _ in range(num_points):
        record_offset = cursor.offset
        p3d_id, x, y, z, r, g, b, error = cursor.read(POINT3D_HEADER_FORMAT)

        track_len = cursor.read_one("Q")
        track = cursor.read_array(TRACK_ELEMENT_DTYPE, track_len)

        try:
            points3D[p3d_id] = Point3D(id=p3d_id, xyz=(x, y, z), rgb=(r, g, b), error=error,
                                       image_ids=track["image_id"],
                                       point2D_idxs=track["point2D_idx"])
        except ValueError as e:
            raise DecodeError(f"invalid point {p3d_id}: {e}", source, record_offset) from e

    _check_trailing(cursor)
    logger.debug("%s: decoded %d points", source, len(points3D))
    return MappingProxyType(points3D)


def _read_file(path: str) -> bytes:
    with open(path, "rb") as fid:
        return fid.read()


def read_cameras_binary_file(path: str) -> CamerasMapping:
    return read_cameras_binary(_read_file(path), source=os.path.basename(path))


def read_images_binary_file(path: str, only_3d_features: bool = False) -> ImagesMapping:
    return read_images_binary(_read_file(path), source=os.path.basename(path),
                              only_3d_features=only_3d_features)


def read_points3D_binary_file(path: str) -> Points3DMapping:
    return read_points3D_binary(_read_file(path), source=os.path.basename(path))


def read_binary_model(path: str, only_3d_features: bool = False,
                      max_workers: Optional[int] = 3) -> Tuple[CamerasMapping, ImagesMapping, Points3DMapping]:
    """Read a COLMAP binary model from a directory.

    The three files are decoded concurrently; if any of them fails the
    error is raised and nothing is returned.

    Args:
        path: Directory containing cameras.bin, images.bin and points3D.bin
        only_3d_features: Passed on to read_images_binary.
        max_workers: Thread pool size.

    Returns:
        Tuple of (cameras, images, points3D) mappings
    """
    cameras_path, images_path, points3D_path = (os.path.join(path, name) for name in BINARY_MODEL_FILES)

    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_cameras = executor.submit(read_cameras_binary_file, cameras_path)
        future_images = executor.submit(read_images_binary_file, images_path, only_3d_features)
        future_points3D = executor.submit(read_points3D_binary_file, points3D_path)

        # .result() re-raises any exception from the worker
        cameras = future_cameras.result()
        images = future_images.result()
        points3D = future_points3D.result()

    logger.info("Read binary model from %s: %d cameras, %d images, %d points",
                path, len(cameras), len(images), len(points3D))
    return cameras, images, points3D
