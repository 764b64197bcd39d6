"""File-backed profile store."""

from __future__ import annotations

import logging
import os
import tempfile
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, List, Optional

import orjson
from pydantic import ValidationError

from app.directory.errors import ProfileNotFoundError, ProfileValidationError, StorageError
from app.directory.models import Profile
from app.directory.operations import (
    DeleteProfile,
    InsertProfile,
    ProfileOperation,
    UpdateProfile,
)

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProfileIdFactory:
    """Issues ``user_<epoch-ms>`` ids, strictly increasing within the process."""

    def __init__(
        self, clock: Callable[[], float] = time.time, prefix: str = "user_"
    ) -> None:
        self._clock = clock
        self._prefix = prefix
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            millis = int(self._clock() * 1000)
            if millis <= self._last:
                millis = self._last + 1
            self._last = millis
        return f"{self._prefix}{millis}"


def _index_of(profiles: List[Profile], profile_id: str) -> Optional[int]:
    for index, profile in enumerate(profiles):
        if profile.id == profile_id:
            return index
    return None


def _raw_id(record: Any) -> Optional[str]:
    if isinstance(record, dict):
        value = record.get("id")
        return value if isinstance(value, str) else None
    return None


@dataclass(slots=True)
class ProfileFile:
    """Decoded file contents: valid profiles plus raw records that failed validation."""

    profiles: List[Profile] = field(default_factory=list)
    invalid: List[Any] = field(default_factory=list)

    def drop_invalid(self, profile_id: str) -> bool:
        before = len(self.invalid)
        self.invalid = [record for record in self.invalid if _raw_id(record) != profile_id]
        return len(self.invalid) != before


class JsonProfileStore:
    """
    Stores every profile in a single JSON array on disk.

    Each mutation reads the whole collection, applies one typed operation and
    writes the whole collection back. Records that fail validation are left
    out of reads but written back unchanged, and can still be deleted or
    overwritten by id. The lock only serializes callers sharing this
    instance; separate processes writing the same file still race.
    """

    def __init__(
        self,
        path: str | Path,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self.path = Path(path)
        self._clock = clock or utcnow
        self._id_factory = id_factory or ProfileIdFactory()
        self._lock = threading.Lock()

    # -- reads -------------------------------------------------------------

    def list_all(self) -> List[Profile]:
        """Return every profile, newest ``createdAt`` first. Empty on read failure."""
        try:
            profiles = self._read().profiles
        except StorageError as e:
            logger.error(f"Could not read profiles from {self.path}: {e}")
            return []

        ordered = sorted(
            enumerate(profiles),
            key=lambda pair: (
                pair[1].created_at is not None,
                pair[1].created_at or _EPOCH,
                pair[0],
            ),
            reverse=True,
        )
        return [profile for _, profile in ordered]

    def get_by_id(self, profile_id: str) -> Optional[Profile]:
        try:
            profiles = self._read().profiles
        except StorageError as e:
            logger.error(f"Could not read profile {profile_id} from {self.path}: {e}")
            return None
        index = _index_of(profiles, profile_id)
        return profiles[index] if index is not None else None

    # -- writes ------------------------------------------------------------

    def next_id(self) -> str:
        return self._id_factory()

    def upsert(self, profile: Profile) -> Profile:
        """Insert a new profile or overwrite the one sharing its id."""
        with self._lock:
            contents = self._read()
            exists = (
                profile.id is not None
                and _index_of(contents.profiles, profile.id) is not None
            )
            operation: ProfileOperation = (
                UpdateProfile(profile) if exists else InsertProfile(profile)
            )
            return self._apply_locked(contents, operation)

    def delete(self, profile_id: str) -> bool:
        """Remove the profile; ``False`` when no such id exists."""
        return self.apply(DeleteProfile(profile_id))

    def apply(self, operation: ProfileOperation):
        with self._lock:
            return self._apply_locked(self._read(), operation)

    def _apply_locked(self, contents: ProfileFile, operation: ProfileOperation):
        profiles = contents.profiles
        now = self._clock()

        if isinstance(operation, InsertProfile):
            profile_id = operation.profile.id or self.next_id()
            if _index_of(profiles, profile_id) is not None:
                raise ProfileValidationError(f"Profile id already exists: {profile_id}")
            if contents.drop_invalid(profile_id):
                logger.warning(f"Replacing invalid stored record {profile_id}")
            stored = operation.profile.model_copy(
                update={"id": profile_id, "created_at": now, "updated_at": now}
            )
            profiles.append(stored)
            self._write(contents)
            logger.info(f"Inserted profile {profile_id}")
            return stored

        if isinstance(operation, UpdateProfile):
            profile_id = operation.profile.id
            index = _index_of(profiles, profile_id) if profile_id else None
            if index is None:
                raise ProfileNotFoundError(profile_id or "")
            existing = profiles[index]
            updated_at = now
            if existing.updated_at is not None and existing.updated_at > now:
                updated_at = existing.updated_at
            stored = operation.profile.model_copy(
                update={
                    "created_at": existing.created_at or now,
                    "updated_at": updated_at,
                }
            )
            profiles[index] = stored
            self._write(contents)
            logger.info(f"Updated profile {profile_id}")
            return stored

        if isinstance(operation, DeleteProfile):
            index = _index_of(profiles, operation.profile_id)
            if index is not None:
                del profiles[index]
            elif not contents.drop_invalid(operation.profile_id):
                logger.debug(f"Delete skipped, no profile {operation.profile_id}")
                return False
            self._write(contents)
            logger.info(f"Deleted profile {operation.profile_id}")
            return True

        raise TypeError(f"Unsupported profile operation: {operation!r}")

    # -- file access -------------------------------------------------------

    def _ensure_file(self) -> None:
        if self.path.exists():
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_bytes(b"[]")
        except OSError as e:
            raise StorageError(f"Cannot initialise {self.path}: {e}") from e
        logger.info(f"Initialised empty profile store at {self.path}")

    def _read(self) -> ProfileFile:
        self._ensure_file()
        try:
            raw = self.path.read_bytes()
        except OSError as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e

        contents = ProfileFile()
        if not raw.strip():
            return contents
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise StorageError(f"Corrupt profile file {self.path}: {e}") from e
        if not isinstance(data, list):
            raise StorageError(f"Profile file {self.path} does not hold a JSON array")

        for position, item in enumerate(data):
            try:
                profile = Profile.model_validate(item)
            except ValidationError as e:
                logger.error(f"Skipping invalid profile record #{position} in {self.path}: {e}")
                contents.invalid.append(item)
                continue
            if not profile.id:
                logger.error(f"Skipping profile record #{position} without id in {self.path}")
                contents.invalid.append(item)
                continue
            contents.profiles.append(profile)
        return contents

    def _write(self, contents: ProfileFile) -> None:
        records = [profile.to_record() for profile in contents.profiles]
        records.extend(contents.invalid)
        payload = orjson.dumps(records, option=orjson.OPT_INDENT_2)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "wb", dir=self.path.parent, prefix=f".{self.path.name}.", delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(f"Cannot write {self.path}: {e}") from e
