from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Centralized application settings leveraging environment overrides.
    """

    app_name: str = "Campus Directory"
    environment: str = Field("local", validation_alias="ENVIRONMENT")
    allow_origins: List[str] = Field(default_factory=lambda: ["*"])
    host: str = "127.0.0.1"
    port: int = Field(8000, ge=1, le=65535)
    log_level: str = "INFO"

    data_path: str = "data/profiles.json"
    site_settings_path: str = "site.yaml"
    max_payload_bytes: int = Field(8 * 1024 * 1024, ge=1024)  # inline images

    # Single admin credential pair
    admin_email: str = "admin@campus.edu"
    admin_password: str = "admin123"

    initial_page_size: int = Field(6, ge=1)
    page_increment: int = Field(3, ge=1)
    departments: List[str] = Field(
        default_factory=lambda: [
            "Computer Science",
            "Mathematics",
            "Physics",
            "Electronics",
            "Economics",
            "IT Services",
        ]
    )

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
