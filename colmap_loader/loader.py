import asyncio
import logging
import functools
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Tuple

import numpy as np
import httpx

from .image import Image
from .camera import Camera
from .point3d import Point3D
from .config import LoaderConfig
from .errors import ColmapError
from .io.fetch import ProgressCallback, fetch_file
from .io.binary import read_cameras_binary, read_images_binary, read_points3D_binary
from .geometry import CameraPose, CameraFrustum, get_camera_poses, create_camera_frustum, get_point_cloud

logger = logging.getLogger(__name__)

CAMERAS_FILE = "cameras.bin"
IMAGES_FILE = "images.bin"
POINTS3D_FILE = "points3D.bin"


@dataclass
class ColmapData:
    """Everything decoded from one model, plus poses derived from the images."""
    cameras: Mapping[int, Camera]
    images: Mapping[int, Image]
    points3D: Mapping[int, Point3D]
    camera_poses: List[CameraPose]
    frustum_scale: float = 0.25

    def create_camera_frustum(self, camera: Camera) -> CameraFrustum:
        return create_camera_frustum(camera, scale=self.frustum_scale)

    def get_point_cloud(self) -> Tuple[np.ndarray, np.ndarray]:
        return get_point_cloud(self.points3D)


@dataclass
class LoadProgress:
    """Per-file byte counts, summed into a single (loaded, total) pair."""
    files: Dict[str, Tuple[int, int]] = field(default_factory=dict)

    def update(self, filename: str, loaded: int, total: int) -> Tuple[int, int]:
        self.files[filename] = (loaded, total)
        return self.loaded, self.total

    @property
    def loaded(self) -> int:
        return sum(loaded for loaded, _ in self.files.values())

    @property
    def total(self) -> int:
        return sum(total for _, total in self.files.values())


class ColmapLoader:
    """
    Fetches cameras.bin, images.bin and points3D.bin from a directory or
    base URL and decodes them into a ColmapData result.

    If any fetch or decode fails the whole load fails; there is no partial
    result.
    """

    def __init__(self, config: Optional[LoaderConfig] = None, client: Optional[httpx.AsyncClient] = None):
        """
        Args:
            config: Fetch and decode settings. Defaults to LoaderConfig().
            client: Shared AsyncClient for URL fetches. When given, the
                    client's own timeout and headers apply and
                    `config.timeout` and `config.headers` are ignored.
        """
        self.config = config or LoaderConfig()
        self.client = client

    def _file_progress(self, progress: LoadProgress, filename: str,
                       on_progress: Optional[ProgressCallback]) -> Optional[ProgressCallback]:
        if on_progress is None:
            return None

        def report(loaded: int, total: int) -> None:
            on_progress(*progress.update(filename, loaded, total))

        return report

    async def _fetch_all(self, base: str, on_progress: Optional[ProgressCallback]) -> Dict[str, bytes]:
        progress = LoadProgress()
        filenames = (CAMERAS_FILE, IMAGES_FILE, POINTS3D_FILE)
        tasks = [
            asyncio.ensure_future(fetch_file(
                base, filename,
                client=self.client,
                on_progress=self._file_progress(progress, filename, on_progress),
                chunk_size=self.config.chunk_size,
                timeout=self.config.timeout,
                headers=self.config.headers,
            ))
            for filename in filenames
        ]
        try:
            buffers = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            # Let cancelled fetches unwind before propagating
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return dict(zip(filenames, buffers))

    async def _decode(self, func: Callable, buffer: bytes, source: str):
        if self.config.decode_in_threads:
            return await asyncio.to_thread(functools.partial(func, buffer, source))
        return func(buffer, source)

    async def load(self, base: str, on_progress: Optional[ProgressCallback] = None) -> ColmapData:
        """Fetch and decode a model.

        Args:
            base: Directory or http(s) base URL containing the three .bin files.
            on_progress: Called with (bytes_loaded, bytes_total) summed over
                         the three files.

        Raises:
            FetchError: If any file could not be fetched.
            DecodeError: If any file could not be decoded.
        """
        logger.info("Loading COLMAP model from %s", base)
        try:
            buffers = await self._fetch_all(base, on_progress)

            cameras, images, points3D = await asyncio.gather(
                self._decode(read_cameras_binary, buffers[CAMERAS_FILE], CAMERAS_FILE),
                self._decode(read_images_binary, buffers[IMAGES_FILE], IMAGES_FILE),
                self._decode(read_points3D_binary, buffers[POINTS3D_FILE], POINTS3D_FILE),
            )
        except ColmapError as e:
            logger.error("Failed to load COLMAP model from %s: %s", base, e)
            raise

        data = ColmapData(cameras=cameras, images=images, points3D=points3D,
                          camera_poses=get_camera_poses(images),
                          frustum_scale=self.config.frustum_scale)
        logger.info("Loaded %d cameras, %d images, %d points from %s",
                    len(cameras), len(images), len(points3D), base)
        return data

    def load_sync(self, base: str, on_progress: Optional[ProgressCallback] = None) -> ColmapData:
        """Blocking wrapper around load()."""
        return asyncio.run(self.load(base, on_progress))
