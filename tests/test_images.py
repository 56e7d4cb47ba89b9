from __future__ import annotations

import pytest

from zypper_docker_cache.errors import DockerCommandError, ImageOverwriteError
from zypper_docker_cache.images import parse_image_name, prevent_image_overwrite


class _FakeLookup:
    def __init__(self, existing: set[tuple[str, str]], error: str | None = None) -> None:
        self.existing = existing
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def image_exists(self, repo: str, tag: str) -> bool:
        self.calls.append((repo, tag))
        if self.error is not None:
            raise DockerCommandError("image ls", self.error)
        return (repo, tag) in self.existing


def test_parse_image_name() -> None:
    assert parse_image_name("suse/sles11sp3:1.0.0") == ("suse/sles11sp3", "1.0.0")
    assert parse_image_name("suse/sles11sp3") == ("suse/sles11sp3", "latest")
    assert parse_image_name("opensuse:13.2:extra") == ("opensuse", "13.2:extra")


def test_prevent_image_overwrite_allows_free_name() -> None:
    lookup = _FakeLookup({("opensuse", "latest")})

    assert prevent_image_overwrite(lookup, "opensuse:patched") == ("opensuse", "patched")
    assert lookup.calls == [("opensuse", "patched")]


def test_prevent_image_overwrite_rejects_taken_name() -> None:
    lookup = _FakeLookup({("opensuse", "latest")})

    with pytest.raises(ImageOverwriteError, match="Cannot overwrite an existing image"):
        prevent_image_overwrite(lookup, "opensuse")


def test_prevent_image_overwrite_propagates_list_failure() -> None:
    lookup = _FakeLookup(set(), error="List Failed")

    with pytest.raises(DockerCommandError, match="List Failed"):
        prevent_image_overwrite(lookup, "opensuse:new")


def test_prevent_image_overwrite_requires_repository() -> None:
    with pytest.raises(ValueError):
        prevent_image_overwrite(_FakeLookup(set()), ":tag")
