"""Request-scoped access to the store, settings and admin capability."""

import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from app.config import Settings
from app.directory.models import SiteSettings
from app.directory.store import JsonProfileStore

logger = logging.getLogger(__name__)

security = HTTPBasic(auto_error=False)


def get_store(request: Request) -> JsonProfileStore:
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_site_settings(request: Request) -> SiteSettings:
    return request.app.state.site


def require_admin(
    credentials: Optional[HTTPBasicCredentials] = Depends(security),
    settings: Settings = Depends(get_app_settings),
) -> str:
    """Allow the request only for the configured admin credential pair."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "unauthorized", "details": "Admin credentials required."},
            headers={"WWW-Authenticate": "Basic"},
        )

    email_ok = secrets.compare_digest(
        credentials.username.encode("utf-8"), settings.admin_email.encode("utf-8")
    )
    password_ok = secrets.compare_digest(
        credentials.password.encode("utf-8"), settings.admin_password.encode("utf-8")
    )
    if not (email_ok and password_ok):
        logger.warning(f"Rejected admin login for {credentials.username!r}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "unauthorized", "details": "Invalid admin credentials."},
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username
