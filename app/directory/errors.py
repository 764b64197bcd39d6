"""Exceptions raised by the directory core."""


class DirectoryError(Exception):
    """Base class for directory failures."""


class ProfileValidationError(DirectoryError):
    """Malformed or missing required profile input."""


class ProfileNotFoundError(DirectoryError):
    """Operation targeted an id that is not in the collection."""

    def __init__(self, profile_id: str):
        super().__init__(f"Profile not found: {profile_id}")
        self.profile_id = profile_id


class StorageError(DirectoryError):
    """Reading or writing the profile collection failed."""
