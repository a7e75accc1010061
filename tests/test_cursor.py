import struct
import unittest
import numpy as np

from colmap_loader.io.cursor import ByteCursor
from colmap_loader.errors import BufferTruncatedError


class TestByteCursor(unittest.TestCase):
    """Tests for the bounds-checked buffer reader."""

    def test_sequential_reads(self):
        buffer = struct.pack("<QidB", 7, -3, 2.5, 200)
        cursor = ByteCursor(buffer, "test.bin")

        self.assertEqual(cursor.read_one("Q"), 7)
        self.assertEqual(cursor.offset, 8)
        self.assertEqual(cursor.read("id"), (-3, 2.5))
        self.assertEqual(cursor.read_one("B"), 200)
        self.assertTrue(cursor.at_end())
        self.assertEqual(cursor.remaining, 0)

    def test_little_endian(self):
        cursor = ByteCursor(b"\x01\x00\x00\x00")
        self.assertEqual(cursor.read_one("i"), 1)

    def test_read_past_end(self):
        cursor = ByteCursor(b"\x01\x02\x03", "short.bin")
        with self.assertRaises(BufferTruncatedError) as ctx:
            cursor.read_one("i")

        self.assertEqual(ctx.exception.source, "short.bin")
        self.assertEqual(ctx.exception.offset, 0)
        self.assertIn("short.bin", str(ctx.exception))
        # A failed read does not move the cursor
        self.assertEqual(cursor.offset, 0)

    def test_truncation_is_eof_error(self):
        with self.assertRaises(EOFError):
            ByteCursor(b"").read_one("Q")

    def test_read_cstring(self):
        cursor = ByteCursor(b"abc\x00\x00rest")
        self.assertEqual(cursor.read_cstring(), "abc")
        self.assertEqual(cursor.offset, 4)
        self.assertEqual(cursor.read_cstring(), "")
        self.assertEqual(cursor.offset, 5)

    def test_unterminated_cstring(self):
        cursor = ByteCursor(b"\x00\x00\x00\x00name", "images.bin")
        cursor.read_one("i")
        with self.assertRaises(BufferTruncatedError) as ctx:
            cursor.read_cstring()
        self.assertEqual(ctx.exception.offset, 4)

    def test_cstring_non_utf8_bytes(self):
        cursor = ByteCursor(b"caf\xe9\x00")
        name = cursor.read_cstring()
        self.assertEqual(name.encode("utf-8", errors="surrogateescape"), b"caf\xe9")

    def test_read_array(self):
        dtype = np.dtype([("a", "<i4"), ("b", "<i4")])
        buffer = struct.pack("<Q", 2) + struct.pack("<iiii", 1, 0, 2, 5)
        cursor = ByteCursor(buffer)

        count = cursor.read_one("Q")
        arr = cursor.read_array(dtype, count)
        np.testing.assert_array_equal(arr["a"], [1, 2])
        np.testing.assert_array_equal(arr["b"], [0, 5])
        self.assertTrue(cursor.at_end())

        # The result owns its memory
        self.assertTrue(arr.flags.owndata)

    def test_read_array_empty_and_truncated(self):
        cursor = ByteCursor(b"\x00" * 12)
        self.assertEqual(cursor.read_array(np.dtype("<f8"), 0).shape, (0,))
        self.assertEqual(cursor.offset, 0)

        with self.assertRaises(BufferTruncatedError):
            cursor.read_array(np.dtype("<f8"), 2)

    def test_huge_count_fails_without_allocating(self):
        cursor = ByteCursor(b"\x00" * 16)
        with self.assertRaises(BufferTruncatedError):
            cursor.read_array(np.dtype("<f8"), 2 ** 40)

    def test_accepts_memoryview(self):
        data = bytearray(struct.pack("<ii", 4, 5))
        cursor = ByteCursor(memoryview(data)[4:])
        self.assertEqual(cursor.read_one("i"), 5)


if __name__ == "__main__":
    unittest.main()
