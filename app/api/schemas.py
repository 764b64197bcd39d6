# app/api/schemas.py
from typing import List, Optional

from pydantic import ConfigDict

from app.directory.models import CamelModel, Profile


class DirectoryPageModel(CamelModel):
    total: int
    shown: int
    has_more: bool
    profiles: List[Profile]


class DeleteResponseModel(CamelModel):
    success: bool
    message: str


class FilterOptionsModel(CamelModel):
    departments: List[str]
    roles: List[str]
    alphabet: List[str]


class SiteSettingsUpdateModel(CamelModel):
    # partial update; only the keys sent are echoed back
    model_config = ConfigDict(extra="forbid")

    site_title: Optional[str] = None
    site_subtitle: Optional[str] = None
    hero_title: Optional[str] = None
    hero_description: Optional[str] = None
    footer_text: Optional[str] = None
