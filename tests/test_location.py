from __future__ import annotations

import pytest

from zypper_docker_cache.storage.location import candidate_directories, resolve_cache_location


def test_resolve_prefers_home_cache_directory(tmp_path) -> None:
    home = tmp_path / "home"
    (home / ".cache").mkdir(parents=True)
    fallback = tmp_path / "tmp"
    fallback.mkdir()

    resolved = resolve_cache_location(
        "cache.json", environ={"HOME": str(home)}, fallback_dir=str(fallback)
    )

    assert resolved is not None
    with resolved:
        assert resolved.path == str(home / ".cache" / "cache.json")
    assert (home / ".cache" / "cache.json").exists()
    assert not (fallback / "cache.json").exists()


def test_resolve_falls_back_when_home_cache_is_missing(tmp_path) -> None:
    home = tmp_path / "home-without-cache-dir"
    home.mkdir()
    fallback = tmp_path / "tmp"
    fallback.mkdir()

    resolved = resolve_cache_location(
        "cache.json", environ={"HOME": str(home)}, fallback_dir=str(fallback)
    )

    assert resolved is not None
    with resolved:
        assert resolved.path == str(fallback / "cache.json")


def test_resolve_splits_compound_home_value(tmp_path) -> None:
    missing = tmp_path / "missing"
    home = tmp_path / "home"
    (home / ".cache").mkdir(parents=True)

    # "<missing>:<home>" joined with ".cache" yields "<missing>" and "<home>/.cache".
    resolved = resolve_cache_location(
        "cache.json",
        environ={"HOME": f"{missing}:{home}"},
        fallback_dir=str(tmp_path / "no-fallback"),
    )

    assert resolved is not None
    with resolved:
        assert resolved.path == str(home / ".cache" / "cache.json")


def test_resolve_keeps_existing_content(tmp_path) -> None:
    cache_dir = tmp_path / "home" / ".cache"
    cache_dir.mkdir(parents=True)
    target = cache_dir / "cache.json"
    target.write_text('{"suse": ["1"]}', encoding="utf-8")

    resolved = resolve_cache_location("cache.json", environ={"HOME": str(tmp_path / "home")})

    assert resolved is not None
    with resolved:
        assert resolved.stream.read() == '{"suse": ["1"]}'
    assert target.read_text(encoding="utf-8") == '{"suse": ["1"]}'


def test_resolve_returns_none_when_nothing_is_writable(tmp_path) -> None:
    resolved = resolve_cache_location(
        "cache.json",
        environ={"HOME": str(tmp_path / "nohome")},
        fallback_dir=str(tmp_path / "notmp"),
    )

    assert resolved is None


def test_candidate_directories_skip_unset_home() -> None:
    assert candidate_directories(environ={}, fallback_dir="/a:/b") == ["/a", "/b"]
    assert candidate_directories(environ={"HOME": "/h"}) == ["/h/.cache", "/tmp"]


def test_resolve_rejects_empty_file_name() -> None:
    with pytest.raises(ValueError):
        resolve_cache_location("  ")
