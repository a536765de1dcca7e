from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from jobcoach.schemas.ai import CVAnalysisResult, CVOptimizationSuggestions, InterviewQuestions

SubscriptionStatus = Literal["free", "premium"]
PaymentStatus = Literal["pending", "succeeded", "failed", "canceled", "refunded"]
PaymentType = Literal["subscription", "one_time"]
ActivityType = Literal["cv_analysis", "interview_questions", "cv_optimization", "login", "logout"]


class UsageLimits(BaseModel):
    cv_analysis: int = 1
    interview_questions: int = 5
    cv_optimization: int = 1


class _Row(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Profile(_Row):
    id: str
    email: str
    full_name: str | None = None
    avatar_url: str | None = None
    subscription_status: SubscriptionStatus = "free"
    stripe_customer_id: str | None = None
    stripe_subscription_id: str | None = None
    usage_limits: UsageLimits = Field(default_factory=UsageLimits)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_premium(self) -> bool:
        return self.subscription_status == "premium"


class CVDocument(_Row):
    id: str
    user_id: str
    title: str
    content: str
    file_url: str | None = None
    file_type: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class JobDescription(_Row):
    id: str
    user_id: str | None = None
    title: str
    company: str | None = None
    description: str
    requirements: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CVAnalysis(_Row):
    id: str
    user_id: str
    cv_document_id: str | None = None
    job_description_id: str | None = None
    analysis_result: CVAnalysisResult
    match_score: int | None = None
    created_at: datetime | None = None


class InterviewQuestionSet(_Row):
    id: str
    user_id: str
    job_description_id: str | None = None
    questions: InterviewQuestions
    created_at: datetime | None = None


class CVOptimization(_Row):
    id: str
    user_id: str
    cv_document_id: str | None = None
    job_description_id: str | None = None
    optimization_suggestions: CVOptimizationSuggestions
    created_at: datetime | None = None


class PaymentRecord(_Row):
    id: str | None = None
    user_id: str
    stripe_payment_intent_id: str | None = None
    stripe_subscription_id: str | None = None
    stripe_customer_id: str | None = None
    amount: float
    currency: str = "usd"
    status: PaymentStatus
    payment_type: PaymentType
    metadata: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserSession(_Row):
    id: str | None = None
    user_id: str | None = None
    session_id: str
    ip_address: str | None = None
    user_agent: str | None = None
    activity_type: ActivityType
    activity_data: dict[str, Any] | None = None
    created_at: datetime | None = None
