"""Profile data models for the campus directory."""

from datetime import datetime, timezone
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Role = Literal["student", "teacher", "staff"]
ROLES: List[str] = ["student", "teacher", "staff"]


class CamelModel(BaseModel):
    """Base model using camelCase keys on the wire and on disk."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Profile(CamelModel):
    """A directory entry for one student, teacher or staff member."""

    id: Optional[str] = Field(default=None, description="Stable unique identifier")
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    phone: Optional[str] = None
    role: Role
    department: str
    year_or_position: str
    summary: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    projects: List[str] = Field(default_factory=list)
    publications: List[str] = Field(default_factory=list)
    image: Optional[str] = Field(
        default=None, description="External URL or base64 data URL"
    )
    location: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("skills", "projects", "publications", mode="before")
    @classmethod
    def materialize_list(cls, value: Any) -> Any:
        # anything that is not already a list reads as empty
        if not isinstance(value, list):
            return []
        return value

    @field_validator("created_at", "updated_at")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def to_record(self) -> dict:
        """Serialize to the camelCase JSON-ready shape used on disk and in responses."""
        return self.model_dump(mode="json", by_alias=True)


class SiteSettings(CamelModel):
    """Site copy shown in the directory header, hero and footer."""

    site_title: str = "Campus Directory"
    site_subtitle: str = "Academic profiles hub"
    hero_title: str = "Welcome to Campus Directory"
    hero_description: str = (
        "Explore and connect with students, teachers, and staff across our "
        "campus. Find experts in various fields and expand your academic network."
    )
    footer_text: str = "© 2024 Campus Directory. All rights reserved."
