from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum

from pydantic import ValidationError

from zypper_docker_cache.config import CACHE_FILE_NAME
from zypper_docker_cache.schemas import CacheRecord, Classification
from zypper_docker_cache.storage.location import DEFAULT_FALLBACK_DIR, resolve_cache_location

logger = logging.getLogger(__name__)

Prober = Callable[[str], bool]
Resolver = Callable[[str], str]


class CacheIssue(StrEnum):
    LOCATION_UNAVAILABLE = "location_unavailable"
    DECODE_FAILURE = "decode_failure"
    WRITE_FAILURE = "write_failure"


@dataclass(frozen=True)
class FlushResult:
    ok: bool
    issue: CacheIssue | None = None
    detail: str = ""


_SKIPPED = FlushResult(ok=True, detail="cache is not persisted")


class ImageCache:
    """Memoizes SUSE classification of images, mirrored to one JSON file.

    A handle without a backing file (``valid`` is False) still answers
    queries by probing every time, but never reads or writes the file.
    """

    def __init__(
        self,
        *,
        prober: Prober,
        resolver: Resolver,
        location: str | None = None,
        record: CacheRecord | None = None,
        load_issue: CacheIssue | None = None,
    ) -> None:
        self.prober = prober
        self.resolver = resolver
        self.location = location
        self.valid = location is not None
        self.load_issue = load_issue
        self.last_flush: FlushResult | None = None

        self._classes: dict[str, Classification] = {}
        self._outdated: list[str] = []
        if record is not None:
            self._apply_record(record)

    @classmethod
    def load(
        cls,
        *,
        prober: Prober,
        resolver: Resolver,
        file_name: str = CACHE_FILE_NAME,
        environ: Mapping[str, str] | None = None,
        fallback_dir: str = DEFAULT_FALLBACK_DIR,
    ) -> ImageCache:
        resolved = resolve_cache_location(file_name, environ=environ, fallback_dir=fallback_dir)
        if resolved is None:
            logger.warning("image_cache disabled reason=%s", CacheIssue.LOCATION_UNAVAILABLE)
            return cls(
                prober=prober,
                resolver=resolver,
                load_issue=CacheIssue.LOCATION_UNAVAILABLE,
            )

        with resolved:
            try:
                record = CacheRecord.model_validate_json(resolved.stream.read())
            except (ValidationError, OSError, UnicodeDecodeError) as exc:
                logger.warning("image_cache decode failed path=%s error=%s", resolved.path, exc)
                return cls(
                    prober=prober,
                    resolver=resolver,
                    location=resolved.path,
                    load_issue=CacheIssue.DECODE_FAILURE,
                )

        logger.info(
            "image_cache loaded path=%s suse=%d other=%d outdated=%d",
            resolved.path,
            len(record.suse),
            len(record.other),
            len(record.outdated),
        )
        return cls(prober=prober, resolver=resolver, location=resolved.path, record=record)

    @property
    def suse(self) -> list[str]:
        return [key for key, value in self._classes.items() if value is Classification.SUSE_BASE]

    @property
    def other(self) -> list[str]:
        return [key for key, value in self._classes.items() if value is Classification.OTHER_BASE]

    @property
    def outdated(self) -> list[str]:
        return list(self._outdated)

    def __len__(self) -> int:
        return len(self._classes)

    def id_exists(self, image_id: str) -> tuple[bool, bool]:
        """Return ``(known, is_suse)`` for ``image_id`` without probing."""
        classification = self._classes.get(image_id)
        if classification is None:
            return False, False
        return True, classification is Classification.SUSE_BASE

    def is_image_outdated(self, image_id: str) -> bool:
        return image_id in self._outdated

    def is_suse(self, image_id: str) -> bool:
        if not image_id:
            raise ValueError("image_id must not be empty")

        if self.valid:
            exists, suse = self.id_exists(image_id)
            if exists:
                logger.info("image_cache hit id=%s suse=%s", image_id, suse)
                return suse

        logger.info("image_cache miss id=%s", image_id)
        suse = self.prober(image_id)
        if self.valid:
            self._classify(image_id, suse)
            self.flush()
        return suse

    def update_after_update(self, outdated_ref: str, updated_image_id: str) -> None:
        """Record that ``outdated_ref`` was patched into ``updated_image_id``.

        Resolution errors from the resolver propagate untouched.
        """
        if not updated_image_id:
            raise ValueError("updated_image_id must not be empty")

        outdated_id = self.resolver(outdated_ref)

        if outdated_id not in self._outdated:
            self._outdated.append(outdated_id)
            self.flush()

        if self._classes.get(updated_image_id) is not Classification.SUSE_BASE:
            self._classify(updated_image_id, True)
            self.flush()

    def reset(self) -> FlushResult:
        """Forget every classification; outdated records survive."""
        self._classes.clear()
        logger.info("image_cache reset path=%s", self.location)
        return self.flush()

    def flush(self) -> FlushResult:
        if not self.valid or self.location is None:
            return _SKIPPED

        payload = json.dumps(self.to_record().model_dump(mode="json"), ensure_ascii=False)
        try:
            fd = os.open(self.location, os.O_WRONLY | os.O_TRUNC)
            with os.fdopen(fd, "w", encoding="utf-8") as fp:
                fp.write(payload)
                fp.write("\n")
        except OSError as exc:
            logger.warning("image_cache write failed path=%s error=%s", self.location, exc)
            self.last_flush = FlushResult(ok=False, issue=CacheIssue.WRITE_FAILURE, detail=str(exc))
            return self.last_flush

        self.last_flush = FlushResult(ok=True)
        return self.last_flush

    def to_record(self) -> CacheRecord:
        return CacheRecord(suse=self.suse, other=self.other, outdated=self.outdated)

    def _classify(self, image_id: str, suse: bool) -> None:
        # Re-classifying an id keeps its original position.
        self._classes[image_id] = Classification.SUSE_BASE if suse else Classification.OTHER_BASE

    def _apply_record(self, record: CacheRecord) -> None:
        for image_id in record.suse:
            self._classes.setdefault(image_id, Classification.SUSE_BASE)
        for image_id in record.other:
            self._classes.setdefault(image_id, Classification.OTHER_BASE)
        for image_id in record.outdated:
            if image_id not in self._outdated:
                self._outdated.append(image_id)
