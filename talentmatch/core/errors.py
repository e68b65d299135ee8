# talentmatch/core/errors.py
"""
Error taxonomy shared by the API layer and the matching core.

Every error carries a stable ``code`` and an HTTP-ish ``status_code`` so that
route handlers never have to translate exceptions by hand; the app installs a
single handler that renders ``{"error": code, "message": message}``.
"""


class TalentMatchError(Exception):
    code = "internal_error"
    status_code = 500

    def __init__(self, message: str = "", *, code: str | None = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        if code:
            self.code = code


# ---------- NotFound (terminal, never retried) ----------
class NotFoundError(TalentMatchError):
    code = "not_found"
    status_code = 404


class JobNotFoundError(NotFoundError):
    code = "job_not_found"

    def __init__(self, job_id):
        super().__init__(f"Job {job_id} not found")
        self.job_id = job_id


class CandidateNotFoundError(NotFoundError):
    code = "candidate_not_found"

    def __init__(self, candidate_id):
        super().__init__(f"Candidate {candidate_id} not found")
        self.candidate_id = candidate_id


class EmbeddingNotFoundError(NotFoundError):
    # data-integrity fault: every job is stored with a vector
    code = "embedding_not_found"

    def __init__(self, namespace: str, ref_id):
        super().__init__(f"No embedding for {ref_id} in namespace {namespace}")
        self.namespace = namespace
        self.ref_id = ref_id


class ResumeNotFoundError(NotFoundError):
    code = "resume_not_found"


class BookmarkNotFoundError(NotFoundError):
    code = "bookmark_not_found"


class ScheduledCallNotFoundError(NotFoundError):
    code = "scheduled_call_not_found"


# ---------- Upstream failures (isolated per candidate) ----------
class UpstreamUnavailableError(TalentMatchError):
    code = "upstream_unavailable"
    status_code = 502


class ResumeFetchError(UpstreamUnavailableError):
    code = "resume_fetch_failed"


class LLMUnavailableError(UpstreamUnavailableError):
    code = "llm_unavailable"


class CallDispatchError(UpstreamUnavailableError):
    code = "call_dispatch_failed"


class MalformedAnalysisError(TalentMatchError):
    code = "malformed_response"
    status_code = 502


class AnalysisTimeoutError(TalentMatchError):
    code = "analysis_timeout"
    status_code = 504


# ---------- Client errors ----------
class IntegrityViolationError(TalentMatchError):
    code = "conflict"
    status_code = 409


class ValidationFailedError(TalentMatchError):
    code = "validation_failed"
    status_code = 422


class AuthenticationError(TalentMatchError):
    code = "unauthorized"
    status_code = 401
