"""Typed mutations applied to the profile collection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from app.directory.models import Profile


@dataclass(slots=True, frozen=True)
class InsertProfile:
    profile: Profile


@dataclass(slots=True, frozen=True)
class UpdateProfile:
    profile: Profile


@dataclass(slots=True, frozen=True)
class DeleteProfile:
    profile_id: str


ProfileOperation = Union[InsertProfile, UpdateProfile, DeleteProfile]
