"""Command-line jobs.

Paths are read from the environment when a job asks for them, so values
from a ``.env`` file loaded in ``main`` take effect.
"""

from __future__ import annotations

import logging
import os
import pathlib


def configure_logging() -> None:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def static_dir() -> pathlib.Path:
    return pathlib.Path(os.environ.get("ASSETSYNC_STATIC_DIR", "static"))


def store_path(base: pathlib.Path | None = None) -> pathlib.Path:
    return (base or static_dir()) / os.environ.get("ASSETSYNC_STORE_FILE", "images.json")


def progress_path(base: pathlib.Path | None = None) -> pathlib.Path:
    return (base or static_dir()) / os.environ.get("ASSETSYNC_PROGRESS_FILE", "sync-progress.json")


def econ_dir() -> pathlib.Path:
    default = static_dir() / "panorama" / "images" / "econ"
    return pathlib.Path(os.environ.get("ASSETSYNC_ECON_DIR", default))


def panorama_dir() -> pathlib.Path:
    default = static_dir() / "panorama" / "images"
    return pathlib.Path(os.environ.get("ASSETSYNC_PANORAMA_DIR", default))
