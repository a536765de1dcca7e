import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from pydantic import BaseModel

from jobcoach.ai.features import AIResponseError, analyze_cv, generate_interview_questions, optimize_cv
from jobcoach.api.v1.deps import gateway_failure, optional_user
from jobcoach.auth.context import CurrentUser
from jobcoach.core.rate_limit import client_ip, rate_limit
from jobcoach.core.services import AppServices, get_services, require
from jobcoach.db import tables
from jobcoach.db.gateway import DataGateway, Filter, GatewayError
from jobcoach.schemas.api import AnalysisRequest, InterviewQuestionsRequest
from jobcoach.schemas.entities import CVAnalysis, CVOptimization, InterviewQuestionSet
from jobcoach.services.usage import Feature, UsageLimitExceeded

router = APIRouter()
logger = logging.getLogger(__name__)


def _session_id(user: CurrentUser | None, x_session_id: str | None) -> str:
    session_id = (x_session_id or "").strip()
    if session_id:
        return session_id[:200]
    if user is not None:
        return f"user-{user.id}"
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="X-Session-Id header is required for guest requests.",
    )


def _raise_ai_http_error(exc: AIResponseError) -> None:
    code = status.HTTP_503_SERVICE_UNAVAILABLE if exc.code == "llm_unavailable" else status.HTTP_502_BAD_GATEWAY
    raise HTTPException(status_code=code, detail=str(exc)) from exc


async def _owned_row(gateway: DataGateway, table: str, row_id: str, user: CurrentUser | None) -> dict[str, Any]:
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sign in to use saved documents.")
    rows = await gateway.select(table, Filter().eq("id", row_id).eq("user_id", user.id), limit=1)
    if not rows:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found.")
    return rows[0]


async def _cv_text(gateway: DataGateway, user: CurrentUser | None, doc_id: str | None, text: str | None) -> str:
    if doc_id:
        return str((await _owned_row(gateway, tables.CV_DOCUMENTS, doc_id, user)).get("content") or "")
    if text and text.strip():
        return text
    raise HTTPException(status_code=422, detail="Provide cv_document_id or cv_text.")


async def _job(
    gateway: DataGateway,
    user: CurrentUser | None,
    job_id: str | None,
    text: str | None,
) -> dict[str, Any]:
    if job_id:
        return await _owned_row(gateway, tables.JOB_DESCRIPTIONS, job_id, user)
    if text and text.strip():
        return {"description": text}
    raise HTTPException(status_code=422, detail="Provide job_description_id or job_description.")


async def _gate(
    services: AppServices,
    request: Request,
    feature: Feature,
    user: CurrentUser | None,
    session_id: str,
) -> None:
    usage = require(services.usage, "Database")
    try:
        await usage.ensure_allowed(feature, user=user, session_id=session_id, ip_address=client_ip(request))
    except UsageLimitExceeded as exc:
        raise HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=str(exc)) from exc


async def _persist(gateway: DataGateway, table: str, row: dict[str, Any], model: type[BaseModel]) -> str | None:
    rows = await gateway.insert(table, {**row, "created_at": datetime.now(timezone.utc).isoformat()})
    if not rows:
        return None
    return model.model_validate(rows[0]).id


async def _record(
    services: AppServices,
    request: Request,
    feature: Feature,
    user: CurrentUser | None,
    session_id: str,
    data: dict[str, Any],
) -> None:
    await services.usage.record_activity(
        feature,
        user=user,
        session_id=session_id,
        activity_data=data,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


@router.post("/analysis/cv-match")
@rate_limit()
async def cv_match(
    request: Request,
    payload: AnalysisRequest,
    x_session_id: str | None = Header(default=None, alias="X-Session-Id"),
    user: CurrentUser | None = Depends(optional_user),
    services: AppServices = Depends(get_services),
):
    gateway = require(services.gateway, "Database")
    generator = require(services.text_generator, "AI service")
    session_id = _session_id(user, x_session_id)
    try:
        await _gate(services, request, "cv_analysis", user, session_id)
        cv_text = await _cv_text(gateway, user, payload.cv_document_id, payload.cv_text)
        job = await _job(gateway, user, payload.job_description_id, payload.job_description)
        try:
            result = await analyze_cv(generator, cv_text, job["description"], requirements=job.get("requirements"))
        except AIResponseError as exc:
            _raise_ai_http_error(exc)

        analysis_id = None
        if user is not None and payload.cv_document_id:
            analysis_id = await _persist(
                gateway,
                tables.CV_ANALYSES,
                {
                    "user_id": user.id,
                    "cv_document_id": payload.cv_document_id,
                    "job_description_id": payload.job_description_id,
                    "analysis_result": result.model_dump(mode="json"),
                    "match_score": result.match_score,
                },
                CVAnalysis,
            )
        await _record(services, request, "cv_analysis", user, session_id, {"match_score": result.match_score})
    except GatewayError as exc:
        raise gateway_failure(exc) from exc
    logger.info("cv_match_completed user_id=%s score=%s", user.id if user else None, result.match_score)
    return {"id": analysis_id, "result": result.model_dump(mode="json")}


@router.post("/analysis/interview-questions")
@rate_limit()
async def interview_questions(
    request: Request,
    payload: InterviewQuestionsRequest,
    x_session_id: str | None = Header(default=None, alias="X-Session-Id"),
    user: CurrentUser | None = Depends(optional_user),
    services: AppServices = Depends(get_services),
):
    gateway = require(services.gateway, "Database")
    generator = require(services.text_generator, "AI service")
    session_id = _session_id(user, x_session_id)
    try:
        await _gate(services, request, "interview_questions", user, session_id)
        job = await _job(gateway, user, payload.job_description_id, payload.job_description)
        cv_text = None
        if payload.cv_document_id:
            cv_text = await _cv_text(gateway, user, payload.cv_document_id, None)
        try:
            questions = await generate_interview_questions(
                generator,
                job["description"],
                job_title=payload.job_title or job.get("title"),
                cv_text=cv_text,
            )
        except AIResponseError as exc:
            _raise_ai_http_error(exc)

        record_id = None
        if user is not None and payload.job_description_id:
            record_id = await _persist(
                gateway,
                tables.INTERVIEW_QUESTIONS,
                {
                    "user_id": user.id,
                    "job_description_id": payload.job_description_id,
                    "questions": questions.model_dump(mode="json"),
                },
                InterviewQuestionSet,
            )
        await _record(services, request, "interview_questions", user, session_id, {"count": questions.total()})
    except GatewayError as exc:
        raise gateway_failure(exc) from exc
    return {"id": record_id, "result": questions.model_dump(mode="json")}


@router.post("/analysis/cv-optimization")
@rate_limit()
async def cv_optimization(
    request: Request,
    payload: AnalysisRequest,
    x_session_id: str | None = Header(default=None, alias="X-Session-Id"),
    user: CurrentUser | None = Depends(optional_user),
    services: AppServices = Depends(get_services),
):
    gateway = require(services.gateway, "Database")
    generator = require(services.text_generator, "AI service")
    session_id = _session_id(user, x_session_id)
    try:
        await _gate(services, request, "cv_optimization", user, session_id)
        cv_text = await _cv_text(gateway, user, payload.cv_document_id, payload.cv_text)
        job_description = None
        if payload.job_description_id or payload.job_description:
            job_description = (await _job(gateway, user, payload.job_description_id, payload.job_description))[
                "description"
            ]
        try:
            suggestions = await optimize_cv(generator, cv_text, job_description)
        except AIResponseError as exc:
            _raise_ai_http_error(exc)

        record_id = None
        if user is not None and payload.cv_document_id:
            record_id = await _persist(
                gateway,
                tables.CV_OPTIMIZATIONS,
                {
                    "user_id": user.id,
                    "cv_document_id": payload.cv_document_id,
                    "job_description_id": payload.job_description_id,
                    "optimization_suggestions": suggestions.model_dump(mode="json"),
                },
                CVOptimization,
            )
        await _record(
            services,
            request,
            "cv_optimization",
            user,
            session_id,
            {"suggestions": len(suggestions.suggestions)},
        )
    except GatewayError as exc:
        raise gateway_failure(exc) from exc
    return {"id": record_id, "result": suggestions.model_dump(mode="json")}
