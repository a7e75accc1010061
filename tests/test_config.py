import unittest

from colmap_loader.config import LoaderConfig


class TestLoaderConfig(unittest.TestCase):

    def test_defaults(self):
        config = LoaderConfig.from_env({})
        self.assertEqual(config, LoaderConfig())
        self.assertEqual(config.timeout, 30.0)
        self.assertEqual(config.chunk_size, 64 * 1024)
        self.assertEqual(config.frustum_scale, 0.25)
        self.assertTrue(config.decode_in_threads)
        self.assertEqual(config.headers, {})

    def test_env_overrides(self):
        config = LoaderConfig.from_env({
            "COLMAP_LOADER_TIMEOUT": "2.5",
            "COLMAP_LOADER_CHUNK_SIZE": "1024",
            "COLMAP_LOADER_FRUSTUM_SCALE": "1",
            "COLMAP_LOADER_DECODE_IN_THREADS": "no",
            "UNRELATED": "x",
        })
        self.assertEqual(config.timeout, 2.5)
        self.assertEqual(config.chunk_size, 1024)
        self.assertEqual(config.frustum_scale, 1.0)
        self.assertFalse(config.decode_in_threads)

    def test_invalid_env_value(self):
        with self.assertRaises(ValueError) as ctx:
            LoaderConfig.from_env({"COLMAP_LOADER_CHUNK_SIZE": "lots"})
        self.assertIn("COLMAP_LOADER_CHUNK_SIZE", str(ctx.exception))

        with self.assertRaises(ValueError):
            LoaderConfig.from_env({"COLMAP_LOADER_DECODE_IN_THREADS": "maybe"})

    def test_out_of_range_env_value(self):
        with self.assertRaises(ValueError) as ctx:
            LoaderConfig.from_env({"COLMAP_LOADER_CHUNK_SIZE": "0"})
        self.assertIn("COLMAP_LOADER_CHUNK_SIZE", str(ctx.exception))
        self.assertIn("chunk_size must be positive", str(ctx.exception))

    def test_validation(self):
        with self.assertRaises(ValueError):
            LoaderConfig(chunk_size=0)
        with self.assertRaises(ValueError):
            LoaderConfig(timeout=-1.0)
        self.assertIsNone(LoaderConfig(timeout=None).timeout)


if __name__ == "__main__":
    unittest.main()
