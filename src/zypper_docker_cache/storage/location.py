from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TextIO

from zypper_docker_cache.config import CACHE_FILE_NAME

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_DIR = "/tmp"
_FILE_MODE = 0o666


@dataclass
class ResolvedLocation:
    """An opened cache file; the holder must close ``stream`` after reading."""

    path: str
    stream: TextIO

    def __enter__(self) -> ResolvedLocation:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stream.close()


def candidate_directories(
    *,
    environ: Mapping[str, str] | None = None,
    fallback_dir: str = DEFAULT_FALLBACK_DIR,
) -> list[str]:
    """Return the directories to try, in priority order.

    Candidates are ``$HOME/.cache`` and then ``fallback_dir``. Each candidate
    is split on ``:`` after joining, so a compound ``HOME`` value yields
    several directories tried left to right.
    """
    env = os.environ if environ is None else environ
    candidates: list[str] = []
    home = env.get("HOME", "")
    if home:
        candidates.append(os.path.join(home, ".cache"))
    candidates.append(fallback_dir)

    directories: list[str] = []
    for candidate in candidates:
        directories.extend(part for part in candidate.split(":") if part)
    return directories


def resolve_cache_location(
    file_name: str = CACHE_FILE_NAME,
    *,
    environ: Mapping[str, str] | None = None,
    fallback_dir: str = DEFAULT_FALLBACK_DIR,
) -> ResolvedLocation | None:
    """Open (creating if needed) the cache file in the first usable directory.

    Existing content is never truncated. Returns ``None`` when no candidate
    directory can hold the file.
    """
    if not file_name.strip():
        raise ValueError("file_name must not be empty")

    for directory in candidate_directories(environ=environ, fallback_dir=fallback_dir):
        path = os.path.abspath(os.path.join(directory, file_name))
        try:
            fd = os.open(path, os.O_RDWR | os.O_CREAT, _FILE_MODE)
        except OSError as exc:
            logger.info("cache_location skip path=%s reason=%s", path, exc.strerror or exc)
            continue
        stream = os.fdopen(fd, "r+", encoding="utf-8")
        logger.info("cache_location resolved path=%s", path)
        return ResolvedLocation(path=path, stream=stream)

    logger.warning("cache_location unavailable file_name=%s", file_name)
    return None
