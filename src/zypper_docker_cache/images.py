from __future__ import annotations

from typing import Protocol

from zypper_docker_cache.errors import ImageOverwriteError

DEFAULT_TAG = "latest"


class _ImageLookup(Protocol):
    def image_exists(self, repo: str, tag: str) -> bool: ...


def parse_image_name(name: str) -> tuple[str, str]:
    """Split an image name into repository and tag.

    ``suse/sles11sp3:1.0.0`` -> ``("suse/sles11sp3", "1.0.0")``
    ``suse/sles11sp3`` -> ``("suse/sles11sp3", "latest")``
    """
    repo, sep, tag = name.partition(":")
    if not sep:
        tag = DEFAULT_TAG
    return repo, tag


def prevent_image_overwrite(client: _ImageLookup, name: str) -> tuple[str, str]:
    """Return the parsed ``(repo, tag)`` of ``name`` if no local image uses it.

    Raises ``ImageOverwriteError`` when the name is taken. Listing failures
    from ``client`` propagate.
    """
    repo, tag = parse_image_name(name)
    if not repo:
        raise ValueError("image name must include a repository")
    if client.image_exists(repo, tag):
        raise ImageOverwriteError(repo, tag)
    return repo, tag
