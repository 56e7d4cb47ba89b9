"""zypper-docker image classification cache package."""

from .config import AppConfig, load_config
from .errors import (
    DockerCommandError,
    ImageOverwriteError,
    ImageReferenceError,
    ZypperDockerError,
)
from .schemas import CacheRecord, Classification, ImageSummary

__all__ = [
    "AppConfig",
    "CacheRecord",
    "Classification",
    "DockerCommandError",
    "ImageOverwriteError",
    "ImageReferenceError",
    "ImageSummary",
    "ZypperDockerError",
    "load_config",
]
