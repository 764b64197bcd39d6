"""Admin editing workflow: form state to stored profile and back."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Union

from pydantic import Field, ValidationError

from app.directory.errors import (
    DirectoryError,
    ProfileNotFoundError,
    ProfileValidationError,
)
from app.directory.images import ImageInput, InlineImage, UrlImage, parse_stored_image
from app.directory.models import CamelModel, Profile, Role
from app.directory.store import JsonProfileStore

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "email", "department", "year_or_position")


class ProfileForm(CamelModel):
    """Raw admin form state; every field always holds a defined value."""

    id: str = ""
    name: str = ""
    email: str = ""
    phone: str = ""
    role: Role = "student"
    department: str = ""
    year_or_position: str = ""
    summary: str = ""
    skills: str = Field(default="", description="Comma-separated")
    projects: str = Field(default="", description="Comma-separated")
    publications: str = Field(default="", description="Comma-separated")
    location: str = ""
    image: ImageInput = Field(default_factory=UrlImage)


def split_list(text: Optional[str]) -> List[str]:
    """Split comma-separated text into trimmed, non-empty entries."""
    if not text:
        return []
    return [item.strip() for item in text.split(",") if item.strip()]


def _optional(text: str) -> Optional[str]:
    text = text.strip()
    return text or None


def build_profile(form: ProfileForm, new_id: Callable[[], str]) -> Profile:
    """Normalize form state into a profile ready for the store."""
    missing = [name for name in REQUIRED_FIELDS if not getattr(form, name).strip()]
    if missing:
        raise ProfileValidationError(f"Missing required fields: {', '.join(missing)}")

    try:
        return Profile(
            id=form.id.strip() or new_id(),
            name=form.name.strip(),
            email=form.email.strip(),
            phone=_optional(form.phone),
            role=form.role,
            department=form.department.strip(),
            year_or_position=form.year_or_position.strip(),
            summary=_optional(form.summary),
            skills=split_list(form.skills),
            projects=split_list(form.projects),
            publications=split_list(form.publications),
            image=form.image.to_field(),
            location=_optional(form.location),
        )
    except ValidationError as e:
        raise ProfileValidationError(str(e)) from e


def hydrate_form(profile: Profile) -> ProfileForm:
    """Load an existing profile into form state with explicit fallbacks."""
    return ProfileForm(
        id=profile.id or "",
        name=profile.name or "",
        email=profile.email or "",
        phone=profile.phone or "",
        role=profile.role or "student",
        department=profile.department or "",
        year_or_position=profile.year_or_position or "",
        summary=profile.summary or "",
        skills=", ".join(profile.skills or []),
        projects=", ".join(profile.projects or []),
        publications=", ".join(profile.publications or []),
        location=profile.location or "",
        image=parse_stored_image(profile.image),
    )


def save_form(store: JsonProfileStore, form: ProfileForm) -> Profile:
    return store.upsert(build_profile(form, store.next_id))


class ProfileEditor:
    """
    Stateful add/edit form bound to a store.

    After a successful save the form returns to the empty default and
    ``on_saved`` is called so the caller can reload its collection.
    """

    SAVED_MESSAGE = "Profile saved successfully!"
    FAILED_MESSAGE = "Failed to save profile. Please try again."

    def __init__(
        self,
        store: JsonProfileStore,
        on_saved: Optional[Callable[[Profile], None]] = None,
    ) -> None:
        self.store = store
        self.on_saved = on_saved
        self.form = ProfileForm()
        self.selected_id: Optional[str] = None
        self.message: Optional[str] = None

    @property
    def image_mode(self) -> str:
        return self.form.image.kind

    def reset(self) -> None:
        self.form = ProfileForm()
        self.selected_id = None
        self.message = None

    def select(self, profile_id: str) -> ProfileForm:
        if not profile_id:
            self.reset()
            return self.form
        profile = self.store.get_by_id(profile_id)
        if profile is None:
            raise ProfileNotFoundError(profile_id)
        self.form = hydrate_form(profile)
        self.selected_id = profile_id
        self.message = None
        return self.form

    def update(self, **changes) -> ProfileForm:
        """Apply field edits; ``None`` values are stored as empty strings."""
        cleaned = {key: ("" if value is None else value) for key, value in changes.items()}
        self.form = self.form.model_copy(update=cleaned)
        return self.form

    def set_image(self, image: Union[UrlImage, InlineImage]) -> None:
        self.form = self.form.model_copy(update={"image": image})

    def submit(self) -> bool:
        try:
            saved = save_form(self.store, self.form)
        except DirectoryError as e:
            logger.error(f"Error saving profile: {e}")
            self.message = self.FAILED_MESSAGE
            return False

        self.reset()
        self.message = self.SAVED_MESSAGE
        if self.on_saved is not None:
            self.on_saved(saved)
        return True
