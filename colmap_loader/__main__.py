import sys
import logging
import argparse
import dataclasses
from collections import Counter
from typing import List, Optional

import numpy as np

from .config import LoaderConfig
from .errors import ColmapError
from .loader import ColmapLoader, ColmapData
from .log import setup_logging

logger = logging.getLogger("colmap_loader")


def summarize(data: ColmapData) -> List[str]:
    """Human readable summary lines for a loaded model."""
    track_lengths = [p.get_track_length() for p in data.points3D.values()]
    errors = [p.error for p in data.points3D.values()]
    observations = [img.num_valid_observations() for img in data.images.values()]
    models = Counter(cam.model for cam in data.cameras.values())

    lines = [
        f"cameras:  {len(data.cameras)}",
        f"images:   {len(data.images)}",
        f"points3D: {len(data.points3D)}",
    ]
    if track_lengths:
        lines.append(f"mean track length: {np.mean(track_lengths):.2f}")
        lines.append(f"mean reprojection error: {np.mean(errors):.4f}")
    if observations:
        lines.append(f"mean observations per image: {np.mean(observations):.1f}")
    for model, count in sorted(models.items()):
        lines.append(f"model {model}: {count}")
    return lines


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="colmap_loader",
        description="Load a COLMAP binary model and print a summary.")
    parser.add_argument("base", help="Directory or http(s) base URL holding cameras.bin, images.bin, points3D.bin")
    parser.add_argument("--timeout", type=float, default=None, help="HTTP timeout in seconds")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    setup_logging(debug=args.verbose)

    try:
        config = LoaderConfig.from_env()
        if args.timeout is not None:
            config = dataclasses.replace(config, timeout=args.timeout)
        data = ColmapLoader(config).load_sync(args.base)
    except (ColmapError, ValueError) as e:
        logger.error("%s", e)
        return 1

    for line in summarize(data):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
