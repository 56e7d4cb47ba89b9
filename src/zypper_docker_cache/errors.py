from __future__ import annotations


class ZypperDockerError(Exception):
    """Base class for errors raised while talking to docker."""


class ImageReferenceError(ZypperDockerError, LookupError):
    """Raised when an image reference cannot be resolved to an image id."""

    def __init__(self, reference: str, detail: str = "") -> None:
        self.reference = reference
        self.detail = detail.strip()
        message = f"Cannot resolve image reference: {reference}"
        if self.detail:
            message = f"{message} ({self.detail})"
        super().__init__(message)


class DockerCommandError(ZypperDockerError):
    """Raised when the docker CLI cannot be run or fails unexpectedly."""

    def __init__(self, command: str, detail: str = "") -> None:
        self.command = command
        self.detail = detail.strip()
        message = f"docker command failed: {command}"
        if self.detail:
            message = f"{message} ({self.detail})"
        super().__init__(message)


class ImageOverwriteError(ZypperDockerError):
    """Raised when a target repository/tag is already taken by a local image."""

    def __init__(self, repo: str, tag: str) -> None:
        self.repo = repo
        self.tag = tag
        super().__init__(
            f"Cannot overwrite an existing image ({repo}:{tag}). "
            "Please use a different repository/tag."
        )
