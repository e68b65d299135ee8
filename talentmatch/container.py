# talentmatch/container.py
"""
Wiring of the long-lived services. ``create_app`` builds one per process and
hangs it on ``app.state.container``; tests pass their own with fakes swapped in.
"""
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from talentmatch.calls.scheduler import CallAdmissionScheduler
from talentmatch.calls.voice import VapiVoiceClient
from talentmatch.core.cache import TTLCache
from talentmatch.core.config import Settings
from talentmatch.db.analysis_store import AnalysisStore
from talentmatch.db.call_store import CallStore
from talentmatch.db.repositories import BookmarkRepository, CandidateRepository, JobRepository, MemberRepository
from talentmatch.db.session import build_engine, build_sessionmaker
from talentmatch.matching.analyzer import MatchAnalyzer
from talentmatch.matching.llm import LLMAnalysisClient
from talentmatch.matching.ranking import RankingOrchestrator
from talentmatch.matching.resume import HttpResumeFetcher, S3ResumeResolver
from talentmatch.nlp.embeddings import SentenceEncoder, VectorStore


@dataclass
class Container:
    settings: Settings
    engine: AsyncEngine
    sessions: async_sessionmaker[AsyncSession]
    encoder: object
    vectors: VectorStore
    jobs: JobRepository
    candidates: CandidateRepository
    members: MemberRepository
    bookmarks: BookmarkRepository
    analyses: AnalysisStore
    calls: CallStore
    resolver: object
    analyzer: MatchAnalyzer
    orchestrator: RankingOrchestrator
    scheduler: CallAdmissionScheduler


def build_container(
    settings: Settings,
    *,
    engine: AsyncEngine | None = None,
    encoder=None,
    resolver=None,
    fetcher=None,
    llm=None,
    dialer=None,
    clock=None,
) -> Container:
    engine = engine or build_engine(settings.DATABASE_URL)
    sessions = build_sessionmaker(engine)
    clock_kw = {"clock": clock} if clock else {}

    vectors = VectorStore(sessions, model_name=settings.EMBEDDING_MODEL)
    jobs = JobRepository(sessions)
    candidates = CandidateRepository(sessions)
    members = MemberRepository(sessions)
    bookmarks = BookmarkRepository(sessions)
    analyses = AnalysisStore(sessions, **clock_kw)
    calls = CallStore(sessions)

    resolver = resolver or S3ResumeResolver(
        bucket_name=settings.AWS_BUCKET_NAME,
        region=settings.AWS_REGION,
        expiry_seconds=settings.RESUME_URL_EXPIRY_SECONDS,
    )
    analyzer = MatchAnalyzer(
        jobs=jobs,
        candidates=candidates,
        store=analyses,
        resolver=resolver,
        fetcher=fetcher or HttpResumeFetcher(timeout=settings.RESUME_FETCH_TIMEOUT_SECONDS),
        llm=llm or LLMAnalysisClient(api_key=settings.OPENAI_API_KEY, model=settings.OPENAI_MODEL),
        stale_pending_seconds=settings.STALE_PENDING_SECONDS,
        timeout=settings.ANALYSIS_TIMEOUT_SECONDS,
        max_attempts=settings.MAX_ANALYSIS_ATTEMPTS,
    )
    orchestrator = RankingOrchestrator(
        jobs=jobs,
        candidates=candidates,
        bookmarks=bookmarks,
        members=members,
        store=analyses,
        vectors=vectors,
        analyzer=analyzer,
        job_cache=TTLCache(settings.JOB_CACHE_TTL_SECONDS),
        embedding_cache=TTLCache(settings.EMBEDDING_CACHE_TTL_SECONDS),
        talent_namespace=settings.TALENT_NAMESPACE,
        job_namespace=settings.JOB_NAMESPACE,
        max_top_k=settings.MAX_TOP_K,
        min_batch=settings.MIN_ANALYSIS_BATCH,
        concurrency=settings.ANALYSIS_CONCURRENCY,
    )
    scheduler = CallAdmissionScheduler(
        store=calls,
        dialer=dialer or VapiVoiceClient(
            api_key=settings.VAPI_API_KEY,
            phone_number_id=settings.VAPI_PHONE_NUMBER_ID,
            base_url=settings.VAPI_BASE_URL,
        ),
        max_concurrent=settings.MAX_CONCURRENT_CALLS,
        tick_seconds=settings.CALL_TICK_SECONDS,
        orphan_minutes=settings.ORPHANED_CLAIM_MINUTES,
        **clock_kw,
    )
    return Container(
        settings=settings,
        engine=engine,
        sessions=sessions,
        encoder=encoder or SentenceEncoder(settings.EMBEDDING_MODEL),
        vectors=vectors,
        jobs=jobs,
        candidates=candidates,
        members=members,
        bookmarks=bookmarks,
        analyses=analyses,
        calls=calls,
        resolver=resolver,
        analyzer=analyzer,
        orchestrator=orchestrator,
        scheduler=scheduler,
    )
