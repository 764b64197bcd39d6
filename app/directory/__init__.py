"""Profile storage, search and admin editing for the campus directory."""

from app.directory.models import Profile, SiteSettings
from app.directory.query import DirectoryQuery, DirectoryView, filter_profiles
from app.directory.store import JsonProfileStore
from app.directory.workflow import ProfileEditor, ProfileForm

__all__ = [
    "DirectoryQuery",
    "DirectoryView",
    "JsonProfileStore",
    "Profile",
    "ProfileEditor",
    "ProfileForm",
    "SiteSettings",
    "filter_profiles",
]
