from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import typer

from zypper_docker_cache import AppConfig, ImageReferenceError, ImageSummary, load_config
from zypper_docker_cache.docker import DockerClient
from zypper_docker_cache.errors import DockerCommandError, ImageOverwriteError
from zypper_docker_cache.images import prevent_image_overwrite
from zypper_docker_cache.storage import CacheIssue, FlushResult, ImageCache

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = typer.Typer(help="Classify local docker images as SUSE-based, with an on-disk cache")
cache_app = typer.Typer(help="Cache maintenance commands")
app.add_typer(cache_app, name="cache")

_ISSUE_MESSAGES = {
    CacheIssue.LOCATION_UNAVAILABLE: "could not find a writable location for the cache",
    CacheIssue.DECODE_FAILURE: "cache file was empty or unreadable, starting with an empty cache",
    CacheIssue.WRITE_FAILURE: "could not write to the cache file",
}


def _config_option() -> Any:
    return typer.Option(
        None,
        "--config",
        help="Optional JSON/YAML config file path.",
        exists=True,
        dir_okay=False,
        readable=True,
    )


@app.command("images")
def list_images(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Ignore the cached classifications and probe every image again.",
    ),
    config_path: Path | None = _config_option(),
) -> None:
    """List local images based on openSUSE/SLE."""
    client, cache = _open(config_path)
    if force:
        _warn_flush(cache.reset())

    try:
        images = client.list_images()
    except DockerCommandError as exc:
        typer.echo(f"Cannot proceed safely: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    before = cache.last_flush
    suse_images = [image for image in images if cache.is_suse(image.id)]
    if cache.last_flush is not before:
        _warn_flush(cache.last_flush)
    typer.echo(_render_image_table(suse_images))


@app.command("check")
def check_image(
    image: str = typer.Argument(..., help="Image reference (repository[:tag] or id)."),
    config_path: Path | None = _config_option(),
) -> None:
    """Report whether an image is SUSE-based and whether it was superseded."""
    client, cache = _open(config_path)
    try:
        image_id = client.resolve_image_id(image)
    except (ImageReferenceError, DockerCommandError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    suse = cache.is_suse(image_id)
    _warn_flush(cache.last_flush)
    typer.echo(
        f"image={image} id={image_id} "
        f"suse={str(suse).lower()} outdated={str(cache.is_image_outdated(image_id)).lower()}"
    )


@app.command("record-update")
def record_update(
    outdated_image: str = typer.Argument(..., help="Reference of the image that was patched."),
    updated_image_id: str = typer.Argument(..., help="Id of the image produced by the patch."),
    config_path: Path | None = _config_option(),
) -> None:
    """Record that an image was patched/updated into a new image."""
    client, cache = _open(config_path)
    try:
        updated_id = client.resolve_image_id(updated_image_id)
        cache.update_after_update(outdated_image, updated_id)
    except (ImageReferenceError, DockerCommandError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    _warn_flush(cache.last_flush)
    typer.echo(f"outdated={outdated_image} updated={updated_id}")


@app.command("check-target")
def check_target(
    name: str = typer.Argument(..., help="Target image name (repository[:tag])."),
    config_path: Path | None = _config_option(),
) -> None:
    """Fail when a local image already uses the given repository/tag."""
    client = DockerClient.from_config(_load_app_config(config_path).docker)
    try:
        repo, tag = prevent_image_overwrite(client, name)
    except DockerCommandError as exc:
        typer.echo(f"Cannot proceed safely: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    except (ImageOverwriteError, ValueError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"repository={repo} tag={tag} available=true")


@cache_app.command("show")
def cache_show(config_path: Path | None = _config_option()) -> None:
    """Show where the cache lives and how much it holds."""
    _, cache = _open(config_path)
    typer.echo(
        f"location={cache.location or '-'} "
        f"valid={str(cache.valid).lower()} "
        f"suse={len(cache.suse)} other={len(cache.other)} outdated={len(cache.outdated)}"
    )


@cache_app.command("reset")
def cache_reset(config_path: Path | None = _config_option()) -> None:
    """Forget all classifications; update history is kept."""
    _, cache = _open(config_path)
    _warn_flush(cache.reset())
    typer.echo("cache reset")


def _load_app_config(config_path: Path | None) -> AppConfig:
    try:
        return load_config(config_path) if config_path is not None else AppConfig()
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc


def _open(config_path: Path | None) -> tuple[DockerClient, ImageCache]:
    config = _load_app_config(config_path)
    client = DockerClient.from_config(config.docker)
    cache = ImageCache.load(
        prober=client.image_has_binary,
        resolver=client.resolve_image_id,
        file_name=config.cache.file_name,
        fallback_dir=config.cache.fallback_dir,
    )
    if cache.load_issue is not None:
        typer.echo(f"warning: {_ISSUE_MESSAGES[cache.load_issue]}", err=True)
    return client, cache


def _warn_flush(result: FlushResult | None) -> None:
    if result is None or result.ok or result.issue is None:
        return
    typer.echo(f"warning: {_ISSUE_MESSAGES[result.issue]}: {result.detail}", err=True)


def _render_image_table(images: list[ImageSummary]) -> str:
    headers = ("REPOSITORY", "TAG", "IMAGE ID", "CREATED", "SIZE")
    rows = [
        (image.repository, image.tag, _short_id(image.id), image.created_since, image.size)
        for image in images
    ]

    widths = [
        max([len(headers[column]), *(len(row[column]) for row in rows)])
        for column in range(len(headers))
    ]

    def _line(values: tuple[str, ...]) -> str:
        return "   ".join(value.ljust(widths[index]) for index, value in enumerate(values)).rstrip()

    body = [_line(headers)]
    body.extend(_line(row) for row in rows)
    return "\n".join(body)


def _short_id(image_id: str) -> str:
    _, _, digest = image_id.rpartition(":")
    return digest[:12]


def main() -> None:
    """CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()
