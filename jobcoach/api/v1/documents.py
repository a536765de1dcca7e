from datetime import datetime, timezone

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from jobcoach.api.v1.deps import current_user, gateway_failure
from jobcoach.auth.context import CurrentUser
from jobcoach.core.services import AppServices, get_services, require
from jobcoach.db import tables
from jobcoach.db.gateway import Filter, GatewayError
from jobcoach.parsing.parse import UnsupportedDocumentError
from jobcoach.schemas.api import JobDescriptionRequest
from jobcoach.schemas.entities import JobDescription
from jobcoach.utils.text import sanitize_text

router = APIRouter()


@router.post("/documents/cv")
async def upload_cv(
    file: UploadFile = File(...),
    title: str | None = Form(default=None),
    user: CurrentUser = Depends(current_user),
    services: AppServices = Depends(get_services),
):
    intake = require(services.cv_intake, "Database")
    content = await file.read()
    try:
        document = await intake.store(user.id, file.filename or "", content, title=title)
    except UnsupportedDocumentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except GatewayError as exc:
        raise gateway_failure(exc) from exc
    return {
        "id": document.id,
        "title": document.title,
        "file_type": document.file_type,
        "word_count": len(document.content.split()),
        "created_at": document.created_at,
    }


@router.get("/documents/cv")
async def list_cvs(user: CurrentUser = Depends(current_user), services: AppServices = Depends(get_services)):
    gateway = require(services.gateway, "Database")
    try:
        rows = await gateway.select(
            tables.CV_DOCUMENTS,
            Filter().eq("user_id", user.id),
            columns="id, title, file_type, created_at",
        )
    except GatewayError as exc:
        raise gateway_failure(exc) from exc
    return {"documents": rows}


@router.post("/documents/job-description")
async def create_job_description(
    payload: JobDescriptionRequest,
    user: CurrentUser = Depends(current_user),
    services: AppServices = Depends(get_services),
):
    gateway = require(services.gateway, "Database")
    now = datetime.now(timezone.utc).isoformat()
    try:
        rows = await gateway.insert(
            tables.JOB_DESCRIPTIONS,
            {
                "user_id": user.id,
                "title": sanitize_text(payload.title).strip(),
                "company": sanitize_text(payload.company).strip() if payload.company else None,
                "description": sanitize_text(payload.description).strip(),
                "requirements": sanitize_text(payload.requirements).strip() if payload.requirements else None,
                "created_at": now,
                "updated_at": now,
            },
        )
    except GatewayError as exc:
        raise gateway_failure(exc) from exc
    if not rows:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Job description was not saved.")
    return JobDescription.model_validate(rows[0]).model_dump(mode="json")
