import os
import gzip
import struct
import unittest

import httpx
import numpy as np

import colmap_loader
from colmap_loader import ColmapLoader, LoaderConfig
from colmap_loader.errors import (
    FetchError,
    BufferTruncatedError,
    UnknownCameraModelError,
)
from colmap_loader.io import read_binary_model, fetch_file
from .mock_data import MockDataTest, encode_camera_record


class TestReadModel(unittest.TestCase):
    """Tests for reading a model from a local directory."""

    def setUp(self):
        self.mock_data = MockDataTest()
        self.test_dir = self.mock_data.setup(subdir=os.path.join("sparse", "0"))
        self.model_dir = os.path.join(self.test_dir, "sparse", "0")

    def tearDown(self):
        self.mock_data.cleanup()

    def test_load_binary_model(self):
        cameras, images, points3D = colmap_loader.read_model(self.test_dir)

        self.assertEqual(len(cameras), 2)
        self.assertEqual(len(images), 3)
        self.assertEqual(len(points3D), 2)

        self.assertEqual(cameras[1], self.mock_data.cameras[1])
        self.assertEqual(images[1].name, "image1.jpg")
        self.assertEqual(images[1].camera_id, 1)
        np.testing.assert_array_equal(points3D[1].xyz, [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(points3D[1].rgb, [255, 0, 0])
        self.assertEqual(points3D[1].get_track_length(), 2)

    def test_only_3d_features(self):
        _, images, _ = read_binary_model(self.model_dir, only_3d_features=True)
        self.assertEqual(images[1].num_observations(), 1)

    def test_missing_model(self):
        with self.assertRaises(FileNotFoundError):
            colmap_loader.read_model(os.path.join(self.test_dir, "nothing_here"))

    def test_decode_error_propagates(self):
        with open(os.path.join(self.model_dir, "points3D.bin"), "wb") as f:
            f.write(struct.pack("<Q", 5))

        with self.assertRaises(BufferTruncatedError) as ctx:
            read_binary_model(self.model_dir)
        self.assertEqual(ctx.exception.source, "points3D.bin")


class TestColmapLoaderLocal(unittest.IsolatedAsyncioTestCase):
    """Tests for the async loader reading from a directory."""

    def setUp(self):
        self.mock_data = MockDataTest()
        self.test_dir = self.mock_data.setup()

    def tearDown(self):
        self.mock_data.cleanup()

    async def test_load(self):
        data = await ColmapLoader().load(self.test_dir)

        self.assertEqual(dict(data.cameras), self.mock_data.cameras)
        self.assertEqual(dict(data.images), self.mock_data.images)
        self.assertEqual(dict(data.points3D), self.mock_data.points3D)

        self.assertEqual(sorted(pose.image_id for pose in data.camera_poses), [1, 2, 3])
        pose = next(p for p in data.camera_poses if p.image_id == 1)
        np.testing.assert_allclose(pose.position, [0.0, 0.0, 0.0])
        np.testing.assert_allclose(pose.rotation, np.eye(3))

        frustum = data.create_camera_frustum(data.cameras[1])
        self.assertEqual(frustum.vertices.shape, (5, 3))

        positions, colors = data.get_point_cloud()
        self.assertEqual(positions.shape, (2, 3))

    async def test_progress_is_summed(self):
        reports = []
        config = LoaderConfig(chunk_size=16, decode_in_threads=False)
        await ColmapLoader(config).load(self.test_dir, on_progress=lambda loaded, total: reports.append((loaded, total)))

        total_size = sum(len(data) for data in self.mock_data.contents.values())
        self.assertGreater(len(reports), 3)
        self.assertEqual(reports[-1], (total_size, total_size))

        loaded_values = [loaded for loaded, _ in reports]
        self.assertEqual(loaded_values, sorted(loaded_values))

    async def test_missing_file(self):
        os.remove(os.path.join(self.test_dir, "images.bin"))
        with self.assertRaises(FetchError) as ctx:
            await ColmapLoader().load(self.test_dir)
        self.assertIn("images.bin", str(ctx.exception))

    async def test_decode_failure(self):
        with open(os.path.join(self.test_dir, "cameras.bin"), "wb") as f:
            f.write(struct.pack("<Q", 1) + encode_camera_record(1, 999, 1, 1, []))

        with self.assertRaises(UnknownCameraModelError) as ctx:
            await ColmapLoader().load(self.test_dir)
        self.assertEqual(ctx.exception.source, "cameras.bin")


class TestColmapLoaderSync(unittest.TestCase):

    def setUp(self):
        self.mock_data = MockDataTest()
        self.test_dir = self.mock_data.setup()

    def tearDown(self):
        self.mock_data.cleanup()

    def test_load_sync(self):
        data = ColmapLoader().load_sync(self.test_dir)
        self.assertEqual(len(data.images), 3)


class TestColmapLoaderHttp(unittest.IsolatedAsyncioTestCase):
    """Tests for the async loader fetching over HTTP."""

    def setUp(self):
        self.mock_data = MockDataTest()
        self.mock_data.setup()
        self.requested = []

    def tearDown(self):
        self.mock_data.cleanup()

    def _handler(self, missing=()):
        def handle(request: httpx.Request) -> httpx.Response:
            self.requested.append(request.url.path)
            filename = request.url.path.rsplit("/", 1)[-1]
            if filename in missing or filename not in self.mock_data.contents:
                return httpx.Response(404)
            return httpx.Response(200, content=self.mock_data.contents[filename])
        return handle

    async def test_load_from_url(self):
        async with httpx.AsyncClient(transport=httpx.MockTransport(self._handler())) as client:
            reports = []
            data = await ColmapLoader(client=client).load(
                "http://example.com/models/south-building/",
                on_progress=lambda loaded, total: reports.append((loaded, total)))

        self.assertEqual(sorted(self.requested), [
            "/models/south-building/cameras.bin",
            "/models/south-building/images.bin",
            "/models/south-building/points3D.bin",
        ])
        self.assertEqual(dict(data.cameras), self.mock_data.cameras)
        self.assertEqual(dict(data.points3D), self.mock_data.points3D)

        total_size = sum(len(d) for d in self.mock_data.contents.values())
        self.assertEqual(reports[-1], (total_size, total_size))

    async def test_http_error(self):
        async with httpx.AsyncClient(transport=httpx.MockTransport(self._handler(missing=("points3D.bin",)))) as client:
            with self.assertRaises(FetchError) as ctx:
                await ColmapLoader(client=client).load("https://example.com/model")

        self.assertIn("404", str(ctx.exception))
        self.assertEqual(ctx.exception.source, "https://example.com/model/points3D.bin")

    async def test_gzip_progress_counts_bytes_received(self):
        body = b"\x00" * 100000
        encoded = gzip.compress(body)

        def handle(request):
            return httpx.Response(200, content=encoded, headers={"Content-Encoding": "gzip"})

        reports = []
        async with httpx.AsyncClient(transport=httpx.MockTransport(handle)) as client:
            data = await fetch_file("http://example.com", "images.bin", client=client,
                                    on_progress=lambda loaded, total: reports.append((loaded, total)))

        self.assertEqual(data, body)
        self.assertTrue(reports)
        for loaded, total in reports:
            self.assertEqual(total, len(encoded))
            self.assertLessEqual(loaded, total)
        self.assertEqual(reports[-1], (len(encoded), len(encoded)))

    async def test_progress_without_content_length(self):
        body = self.mock_data.contents["cameras.bin"]

        async def chunks():
            yield body[:10]
            yield body[10:]

        def handle(request):
            return httpx.Response(200, content=chunks())

        reports = []
        async with httpx.AsyncClient(transport=httpx.MockTransport(handle)) as client:
            data = await fetch_file("http://example.com", "cameras.bin", client=client,
                                    on_progress=lambda loaded, total: reports.append((loaded, total)))

        self.assertEqual(data, body)
        self.assertEqual(reports[-1], (len(body), 0))
        self.assertTrue(all(total == 0 for _, total in reports))

    async def test_transport_error(self):
        def fail(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(fail)) as client:
            with self.assertRaises(FetchError):
                await fetch_file("http://example.com", "cameras.bin", client=client)


if __name__ == "__main__":
    unittest.main()
