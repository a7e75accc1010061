"""
Loader configuration.

Defaults live on LoaderConfig; LoaderConfig.from_env() applies overrides
from COLMAP_LOADER_* environment variables.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping, Optional, TypeVar

logger = logging.getLogger(__name__)

ENV_PREFIX = "COLMAP_LOADER_"

T = TypeVar("T")


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


@dataclass
class LoaderConfig:
    """Settings for fetching and decoding a model."""

    timeout: Optional[float] = 30.0  # seconds, per HTTP request
    chunk_size: int = 64 * 1024      # bytes per read
    headers: Dict[str, str] = field(default_factory=dict)
    frustum_scale: float = 0.25
    decode_in_threads: bool = True

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be positive or None")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LoaderConfig":
        """Build a config from defaults plus COLMAP_LOADER_* overrides."""
        environ = os.environ if environ is None else environ
        overrides = {}

        def take(name: str, parse: Callable[[str], T]) -> None:
            key = ENV_PREFIX + name.upper()
            if key not in environ:
                return
            try:
                overrides[name] = parse(environ[key])
            except ValueError as e:
                raise ValueError(f"Invalid value for {key}: {e}") from e
            logger.debug("Config override %s=%r", key, overrides[name])

        take("timeout", float)
        take("chunk_size", int)
        take("frustum_scale", float)
        take("decode_in_threads", _parse_bool)

        try:
            return cls(**overrides)
        except ValueError as e:
            keys = ", ".join(ENV_PREFIX + name.upper() for name in overrides)
            raise ValueError(f"Invalid value in {keys}: {e}") from e
