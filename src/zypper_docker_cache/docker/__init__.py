"""Docker CLI collaborator used to probe and resolve images."""

from .client import DockerClient

__all__ = ["DockerClient"]
