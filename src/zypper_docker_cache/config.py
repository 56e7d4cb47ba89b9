from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

CACHE_FILE_NAME = "docker-zypper.json"


class CacheConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    file_name: str = CACHE_FILE_NAME
    fallback_dir: str = "/tmp"

    @field_validator("file_name")
    @classmethod
    def validate_file_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("cache.file_name must not be empty")
        if "/" in normalized or "\\" in normalized:
            raise ValueError("cache.file_name must be a bare file name")
        return normalized


class DockerConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    binary: str = "docker"
    probe_binary: str = "zypper"
    timeout_seconds: float = Field(default=60.0, gt=0.0)

    @field_validator("binary", "probe_binary")
    @classmethod
    def validate_binaries(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("docker binary fields must not be empty")
        return normalized


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    cache: CacheConfig = Field(default_factory=CacheConfig)
    docker: DockerConfig = Field(default_factory=DockerConfig)


def load_config(path: str | Path) -> AppConfig:
    raw = Path(path).read_text(encoding="utf-8")
    payload = _parse_yaml_or_json(raw)
    try:
        return AppConfig.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc


def _parse_yaml_or_json(raw: str) -> dict[str, Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        try:
            parsed = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise ValueError(f"Configuration is neither JSON nor YAML: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ValueError("Configuration root must be an object.")
    return parsed
