from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Classification(StrEnum):
    SUSE_BASE = "suse"
    OTHER_BASE = "other"


class CacheRecord(BaseModel):
    """On-disk layout of the image cache file."""

    model_config = ConfigDict(extra="ignore")

    suse: list[str] = Field(default_factory=list)
    other: list[str] = Field(default_factory=list)
    outdated: list[str] = Field(default_factory=list)

    @field_validator("suse", "other", "outdated", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:
        if value is None:
            return []
        return value


class ImageSummary(BaseModel):
    """One row of `docker image ls --format {{json .}}`."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    repository: str = Field(alias="Repository")
    tag: str = Field(alias="Tag")
    id: str = Field(alias="ID")
    created_since: str = Field(default="", alias="CreatedSince")
    size: str = Field(default="", alias="Size")

    @property
    def is_dangling(self) -> bool:
        return self.repository == "<none>" or self.tag == "<none>"
