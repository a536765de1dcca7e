from __future__ import annotations

from pydantic import BaseModel, Field


class SignUpRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=8, max_length=200)
    full_name: str | None = Field(default=None, max_length=200)


class SignInRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=1, max_length=200)


class ResetPasswordRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    redirect_to: str | None = Field(default=None, max_length=500)


class JobDescriptionRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    company: str | None = Field(default=None, max_length=200)
    description: str = Field(min_length=20, max_length=50000)
    requirements: str | None = Field(default=None, max_length=20000)


class AnalysisRequest(BaseModel):
    cv_document_id: str | None = None
    cv_text: str | None = Field(default=None, max_length=50000)
    job_description_id: str | None = None
    job_description: str | None = Field(default=None, max_length=50000)


class InterviewQuestionsRequest(BaseModel):
    job_description_id: str | None = None
    job_description: str | None = Field(default=None, max_length=50000)
    job_title: str | None = Field(default=None, max_length=200)
    cv_document_id: str | None = None


class CheckoutRequest(BaseModel):
    success_url: str | None = Field(default=None, max_length=500)
    cancel_url: str | None = Field(default=None, max_length=500)
