from typing import Optional, Union


class ColmapError(Exception):
    """Base class for all errors raised by colmap_loader."""


class DecodeError(ColmapError, ValueError):
    """A binary model file could not be decoded.

    Attributes:
        source: Name of the file being decoded (e.g. 'images.bin'), if known.
        offset: Byte offset at which decoding failed, if known.
        detail: Description of the failure without the location prefix.
    """

    def __init__(self, detail: str, source: Optional[str] = None, offset: Optional[int] = None):
        self.detail = detail
        self.source = source
        self.offset = offset
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.source is None and self.offset is None:
            return self.detail
        location = self.source or "<buffer>"
        if self.offset is not None:
            location += f" at byte {self.offset}"
        return f"Error reading {location}: {self.detail}"


class BufferTruncatedError(DecodeError, EOFError):
    """A read would run past the end of the buffer."""


class RecordCountMismatchError(DecodeError):
    """The number of decoded records differs from the count in the file header."""

    def __init__(self, expected: int, actual: int, source: Optional[str] = None, offset: Optional[int] = None):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"header declares {expected} records but {actual} were decoded", source, offset)


class UnknownCameraModelError(DecodeError, LookupError):
    """A camera model ID or name is not in the registry."""

    def __init__(self, model: Union[int, str], source: Optional[str] = None, offset: Optional[int] = None):
        self.model = model
        super().__init__(f"unknown camera model {model!r}", source, offset)


class CapabilityError(ColmapError, NotImplementedError):
    """An operation is not supported for the given camera model."""


class FetchError(ColmapError, OSError):
    """A model file could not be fetched.

    Attributes:
        source: Path or URL of the file that failed.
    """

    def __init__(self, message: str, source: Optional[str] = None):
        self.source = source
        super().__init__(message)
