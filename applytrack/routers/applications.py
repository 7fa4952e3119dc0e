"""Application tracking REST endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from applytrack.config import settings
from applytrack.models.application import (
    Application,
    ApplyRequest,
    DetailsUpdateRequest,
    StatusUpdateRequest,
)
from applytrack.models.note import ApplicationNote, NoteCreateRequest
from applytrack.models.stats import Dashboard
from applytrack.services.lifecycle_service import lifecycle_service

router = APIRouter(prefix="/api/applications", tags=["applications"])


def current_user(request: Request) -> str:
    """The identity provider in front of us sets this header; we trust it."""
    user_id = request.headers.get(settings.user_header, "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail=f"Missing {settings.user_header} header")
    return user_id


@router.post("/", response_model=Application, status_code=201)
async def apply(body: ApplyRequest, user_id: str = Depends(current_user)) -> Application:
    return lifecycle_service.apply(user_id, body.job_id)


@router.get("/", response_model=list[Application])
async def list_applications(
    status: str | None = None, user_id: str = Depends(current_user)
) -> list[Application]:
    return lifecycle_service.list_applications(user_id, status)


@router.get("/dashboard", response_model=Dashboard)
async def dashboard(user_id: str = Depends(current_user)) -> Dashboard:
    return lifecycle_service.get_dashboard(user_id)


@router.get("/{application_id}", response_model=Application)
async def get_application(application_id: str, user_id: str = Depends(current_user)) -> Application:
    return lifecycle_service.get_application(application_id, user_id)


@router.post("/{application_id}/status", response_model=Application)
async def update_status(
    application_id: str, body: StatusUpdateRequest, user_id: str = Depends(current_user)
) -> Application:
    return lifecycle_service.update_status(
        application_id,
        user_id,
        body.status,
        body.transition_fields(),
        note=body.note,
        note_type=body.note_type,
    )


@router.patch("/{application_id}", response_model=Application)
async def update_details(
    application_id: str, body: DetailsUpdateRequest, user_id: str = Depends(current_user)
) -> Application:
    return lifecycle_service.update_details(
        application_id, user_id, body.model_dump(exclude_unset=True)
    )


@router.post("/{application_id}/notes", response_model=ApplicationNote, status_code=201)
async def add_note(
    application_id: str, body: NoteCreateRequest, user_id: str = Depends(current_user)
) -> ApplicationNote:
    return lifecycle_service.add_note(application_id, user_id, body.note_type, body.content)


@router.get("/{application_id}/notes", response_model=list[ApplicationNote])
async def list_notes(
    application_id: str, user_id: str = Depends(current_user)
) -> list[ApplicationNote]:
    return lifecycle_service.list_notes(application_id, user_id)
