PROFILES = "profiles"
CV_DOCUMENTS = "cv_documents"
JOB_DESCRIPTIONS = "job_descriptions"
CV_ANALYSES = "cv_analyses"
INTERVIEW_QUESTIONS = "interview_questions"
CV_OPTIMIZATIONS = "cv_optimizations"
PAYMENT_RECORDS = "payment_records"
USER_SESSIONS = "user_sessions"

ALL_TABLES = (
    PROFILES,
    CV_DOCUMENTS,
    JOB_DESCRIPTIONS,
    CV_ANALYSES,
    INTERVIEW_QUESTIONS,
    CV_OPTIMIZATIONS,
    PAYMENT_RECORDS,
    USER_SESSIONS,
)

CV_UPLOADS_BUCKET = "cv-uploads"
