from __future__ import annotations

import json
import logging
import shlex
import subprocess
from collections.abc import Callable, Sequence
from typing import Any

from pydantic import ValidationError

from zypper_docker_cache.config import DockerConfig
from zypper_docker_cache.errors import DockerCommandError, ImageReferenceError
from zypper_docker_cache.schemas import ImageSummary

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess[str]]


class DockerClient:
    """Thin wrapper over the docker CLI for probing and resolving images."""

    def __init__(
        self,
        *,
        binary: str = "docker",
        probe_binary: str = "zypper",
        timeout_seconds: float = 60.0,
        runner: Runner | None = None,
    ) -> None:
        if not binary.strip():
            raise ValueError("docker binary is empty.")
        if not probe_binary.strip():
            raise ValueError("probe binary is empty.")
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0.")

        self.binary = binary
        self.probe_binary = probe_binary
        self.timeout_seconds = timeout_seconds
        self.runner = runner or subprocess.run

    @classmethod
    def from_config(cls, config: DockerConfig, *, runner: Runner | None = None) -> DockerClient:
        return cls(
            binary=config.binary,
            probe_binary=config.probe_binary,
            timeout_seconds=config.timeout_seconds,
            runner=runner,
        )

    def image_has_binary(self, image_id: str, binary: str | None = None) -> bool:
        target = binary or self.probe_binary
        args = [
            "run",
            "--rm",
            "--entrypoint",
            "/bin/sh",
            image_id,
            "-c",
            f"command -v {shlex.quote(target)}",
        ]
        try:
            completed = self._run(args)
        except DockerCommandError as exc:
            logger.warning("docker probe failed image=%s binary=%s error=%s", image_id, target, exc)
            return False

        found = completed.returncode == 0
        logger.info("docker probe image=%s binary=%s found=%s", image_id, target, found)
        return found

    def resolve_image_id(self, reference: str) -> str:
        completed = self._run(["image", "inspect", "--format", "{{.Id}}", reference])
        image_id = completed.stdout.strip()
        if completed.returncode != 0 or not image_id:
            raise ImageReferenceError(reference, completed.stderr or "")
        return image_id

    def list_images(self) -> list[ImageSummary]:
        completed = self._run(["image", "ls", "--no-trunc", "--format", "{{json .}}"])
        if completed.returncode != 0:
            raise DockerCommandError("image ls", completed.stderr or "")

        images: list[ImageSummary] = []
        for line in completed.stdout.splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                summary = ImageSummary.model_validate(self._decode_line(line))
            except ValidationError as exc:
                raise DockerCommandError("image ls", f"unexpected output: {exc}") from exc
            if summary.is_dangling:
                continue
            images.append(summary)
        return images

    def image_exists(self, repo: str, tag: str) -> bool:
        """Return whether a local image is tagged ``repo:tag``."""
        for image in self.list_images():
            if image.repository == repo and image.tag == tag:
                return True
        return False

    def _run(self, args: Sequence[str]) -> subprocess.CompletedProcess[str]:
        command = [self.binary, *args]
        try:
            return self.runner(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except FileNotFoundError as exc:
            raise DockerCommandError(" ".join(args), f"{self.binary} not found") from exc
        except subprocess.TimeoutExpired as exc:
            raise DockerCommandError(
                " ".join(args), f"timed out after {self.timeout_seconds}s"
            ) from exc
        except OSError as exc:
            raise DockerCommandError(" ".join(args), str(exc)) from exc

    @staticmethod
    def _decode_line(line: str) -> dict[str, Any]:
        try:
            payload = json.loads(line)
        except json.JSONDecodeError as exc:
            raise DockerCommandError("image ls", f"invalid JSON line: {line}") from exc
        if not isinstance(payload, dict):
            raise DockerCommandError("image ls", f"invalid JSON line: {line}")
        return payload
