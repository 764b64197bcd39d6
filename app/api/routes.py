"""HTTP route handlers for the directory API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Type

import anyio
import orjson
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from app.config import Settings
from app.directory.errors import ProfileNotFoundError
from app.directory.models import ROLES, Profile, SiteSettings
from app.directory.query import ALPHABET, DirectoryQuery, filter_profiles, paginate
from app.directory.store import JsonProfileStore
from app.directory.workflow import ProfileForm, hydrate_form, save_form

from .dependencies import (
    get_app_settings,
    get_site_settings,
    get_store,
    require_admin,
)
from .schemas import (
    DeleteResponseModel,
    DirectoryPageModel,
    FilterOptionsModel,
    SiteSettingsUpdateModel,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _load_request_model(
    http_request: Request, model_cls: Type[BaseModel], settings: Settings
) -> BaseModel:
    header_length = http_request.headers.get("content-length")
    if header_length:
        try:
            content_length = int(header_length)
        except ValueError:
            content_length = None
        else:
            if (
                content_length is not None
                and content_length > settings.max_payload_bytes
            ):
                raise HTTPException(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    detail={
                        "error": "payload_too_large",
                        "limit_bytes": settings.max_payload_bytes,
                    },
                )

    body_bytes = await http_request.body()
    if body_bytes and len(body_bytes) > settings.max_payload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail={
                "error": "payload_too_large",
                "limit_bytes": settings.max_payload_bytes,
            },
        )

    if not body_bytes:
        data: Dict[str, Any] = {}
    else:
        try:
            data = orjson.loads(body_bytes)
        except orjson.JSONDecodeError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"error": "invalid_json", "details": str(exc)},
            ) from exc

    try:
        return model_cls.model_validate(data)
    except ValidationError as exc:
        raise RequestValidationError(
            exc.errors(include_url=False, include_context=False)
        ) from exc


async def load_profile_request(http_request: Request) -> Profile:
    settings = get_app_settings(http_request)
    return await _load_request_model(http_request, Profile, settings)


async def load_form_request(http_request: Request) -> ProfileForm:
    settings = get_app_settings(http_request)
    return await _load_request_model(http_request, ProfileForm, settings)


async def load_site_update(http_request: Request) -> SiteSettingsUpdateModel:
    settings = get_app_settings(http_request)
    return await _load_request_model(http_request, SiteSettingsUpdateModel, settings)


def _saved_response(profile: Profile) -> JSONResponse:
    content = profile.to_record()
    content["message"] = "Profile saved successfully"
    return JSONResponse(content=content)


# -- public directory -------------------------------------------------------


@router.get("/profiles", tags=["profiles"])
async def list_profiles(store: JsonProfileStore = Depends(get_store)):
    profiles = await anyio.to_thread.run_sync(store.list_all)
    return JSONResponse(content=[profile.to_record() for profile in profiles])


@router.get("/profiles/search", tags=["profiles"], response_model=DirectoryPageModel)
async def search_profiles(
    q: str = "",
    department: str = "",
    role: str = "",
    alpha: str = Query("", max_length=1, description="First letter of the name"),
    more: int = Query(0, ge=0, description="Number of load-more requests so far"),
    store: JsonProfileStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    profiles = await anyio.to_thread.run_sync(store.list_all)
    query = DirectoryQuery(search=q, department=department, role=role, alpha=alpha)
    page = paginate(
        filter_profiles(profiles, query),
        load_more=more,
        initial=settings.initial_page_size,
        increment=settings.page_increment,
    )
    response = DirectoryPageModel(
        total=page.total,
        shown=page.shown,
        has_more=page.has_more,
        profiles=page.profiles,
    )
    return JSONResponse(content=response.model_dump(mode="json", by_alias=True))


@router.get("/profiles/{profile_id}", tags=["profiles"])
async def get_profile(profile_id: str, store: JsonProfileStore = Depends(get_store)):
    profile = await anyio.to_thread.run_sync(store.get_by_id, profile_id)
    if profile is None:
        raise ProfileNotFoundError(profile_id)
    return JSONResponse(content=profile.to_record())


@router.get("/filters", tags=["profiles"], response_model=FilterOptionsModel)
async def filter_options(settings: Settings = Depends(get_app_settings)):
    return FilterOptionsModel(
        departments=list(settings.departments),
        roles=list(ROLES),
        alphabet=list(ALPHABET),
    )


# -- admin mutations --------------------------------------------------------


@router.post("/profiles", tags=["admin"], dependencies=[Depends(require_admin)])
async def save_profile(
    profile: Profile = Depends(load_profile_request),
    store: JsonProfileStore = Depends(get_store),
):
    stored = await anyio.to_thread.run_sync(store.upsert, profile)
    return _saved_response(stored)


@router.delete(
    "/profiles",
    tags=["admin"],
    response_model=DeleteResponseModel,
    dependencies=[Depends(require_admin)],
)
async def delete_profile(
    profile_id: Optional[str] = Query(None, alias="id"),
    store: JsonProfileStore = Depends(get_store),
):
    if not profile_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "missing_id", "details": "Missing profile id"},
        )
    deleted = await anyio.to_thread.run_sync(store.delete, profile_id)
    if not deleted:
        raise ProfileNotFoundError(profile_id)
    return DeleteResponseModel(success=True, message="Profile deleted successfully")


@router.post("/admin/profiles", tags=["admin"], dependencies=[Depends(require_admin)])
async def submit_profile_form(
    form: ProfileForm = Depends(load_form_request),
    store: JsonProfileStore = Depends(get_store),
):
    stored = await anyio.to_thread.run_sync(save_form, store, form)
    return _saved_response(stored)


@router.get(
    "/admin/profiles/{profile_id}/form",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)
async def edit_profile_form(
    profile_id: str, store: JsonProfileStore = Depends(get_store)
):
    profile = await anyio.to_thread.run_sync(store.get_by_id, profile_id)
    if profile is None:
        raise ProfileNotFoundError(profile_id)
    form = hydrate_form(profile)
    return JSONResponse(content=form.model_dump(mode="json", by_alias=True))


# -- site settings ----------------------------------------------------------


@router.get("/settings", tags=["settings"])
async def read_site_settings(site: SiteSettings = Depends(get_site_settings)):
    return JSONResponse(content=site.model_dump(by_alias=True))


@router.post("/settings", tags=["settings"], dependencies=[Depends(require_admin)])
async def save_site_settings(
    update: SiteSettingsUpdateModel = Depends(load_site_update),
):
    # Not persisted: the reply only echoes what was sent.
    content = update.model_dump(by_alias=True, exclude_unset=True)
    content["message"] = "Settings saved successfully!"
    logger.info(f"Site settings update echoed: {sorted(content)}")
    return JSONResponse(content=content)
