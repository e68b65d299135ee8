from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    APP_NAME: str = "TalentMatch"
    APP_ENV: str = "dev"
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    SECRET_KEY: str = "change_me_please"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Async driver; alembic swaps it for the sync one
    DATABASE_URL: str = "sqlite+aiosqlite:///./talentmatch.db"

    BACKEND_CORS_ORIGINS: str = "http://localhost:5173"

    # LLM provider
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"

    # Sentence encoder used for the vector store
    EMBEDDING_MODEL: str = "sentence-transformers/all-MiniLM-L6-v2"
    TALENT_NAMESPACE: str = "talent-pool"
    JOB_NAMESPACE: str = "job-pool"

    # Resume object storage
    AWS_REGION: str = "us-east-1"
    AWS_BUCKET_NAME: str = ""
    RESUME_URL_EXPIRY_SECONDS: int = 3600
    RESUME_FETCH_TIMEOUT_SECONDS: float = 30.0

    # Ranking / analysis
    MAX_TOP_K: int = 50
    MIN_ANALYSIS_BATCH: int = 10
    WARMUP_CANDIDATES: int = 10
    ANALYSIS_CONCURRENCY: int = 3
    ANALYSIS_TIMEOUT_SECONDS: float = 300.0
    STALE_PENDING_SECONDS: int = 900
    MAX_ANALYSIS_ATTEMPTS: int = 3
    JOB_CACHE_TTL_SECONDS: float = 5.0
    EMBEDDING_CACHE_TTL_SECONDS: float = 60.0

    # Voice calls
    VAPI_API_KEY: str = ""
    VAPI_BASE_URL: str = "https://api.vapi.ai"
    VAPI_PHONE_NUMBER_ID: str = ""
    CALL_SCHEDULER_ENABLED: bool = True
    CALL_TICK_SECONDS: float = 60.0
    MAX_CONCURRENT_CALLS: int = 5
    CALL_DURATION_MINUTES: int = 10
    ORPHANED_CLAIM_MINUTES: int = 5

    @model_validator(mode="after")
    def _analysis_ends_before_it_goes_stale(self):
        # a pending record may only be reclaimed once its owner has given up
        if self.ANALYSIS_TIMEOUT_SECONDS >= self.STALE_PENDING_SECONDS:
            raise ValueError("ANALYSIS_TIMEOUT_SECONDS must be lower than STALE_PENDING_SECONDS")
        if self.MAX_ANALYSIS_ATTEMPTS < 1:
            raise ValueError("MAX_ANALYSIS_ATTEMPTS must be at least 1")
        return self

settings = Settings()
