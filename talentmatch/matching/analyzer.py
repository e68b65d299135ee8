# talentmatch/matching/analyzer.py
"""
End-to-end analysis of one (job, candidate) pair.

Safe to call concurrently for the same pair: the first caller to insert the
pending placeholder does the work, everyone else gets the existing record
back without touching the LLM. Each run is bounded by ``timeout``, and a
worker whose record was reclaimed in the meantime writes nothing.
"""
import asyncio
import logging

from pydantic import ValidationError

from talentmatch.core.errors import AnalysisTimeoutError, MalformedAnalysisError, ResumeNotFoundError
from talentmatch.db.analysis_store import AnalysisStore
from talentmatch.db.repositories import CandidateRepository, JobRepository
from talentmatch.matching.llm import extract_json
from talentmatch.matching.scoring import LlmReportStrategy, MatchInputs, ScoringStrategy
from talentmatch.models.analysis import AnalysisStatus, JobAnalysis
from talentmatch.schemas.analysis import MatchReport

logger = logging.getLogger(__name__)

SNIPPET_CHARS = 500


class MatchAnalyzer:
    def __init__(
        self,
        jobs: JobRepository,
        candidates: CandidateRepository,
        store: AnalysisStore,
        resolver,
        fetcher,
        llm,
        strategy: ScoringStrategy | None = None,
        stale_pending_seconds: float = 900,
        timeout: float | None = 300.0,
        max_attempts: int = 3,
    ):
        self.jobs = jobs
        self.candidates = candidates
        self.store = store
        self.resolver = resolver
        self.fetcher = fetcher
        self.llm = llm
        self.strategy = strategy or LlmReportStrategy()
        self.stale_pending_seconds = stale_pending_seconds
        self.timeout = timeout
        self.max_attempts = max_attempts

    async def analyze(self, job_id: str, candidate_id: str, job=None) -> JobAnalysis:
        job = job or await self.jobs.require(job_id)
        candidate = await self.candidates.require(candidate_id)

        record, owned = await self._claim(job_id, candidate_id)
        if not owned:
            return record

        attempt = record.attempts
        logger.info("[ANALYSIS] start job=%s candidate=%s attempt=%s", job_id, candidate_id, attempt)
        try:
            report = await asyncio.wait_for(self._run(job, candidate), timeout=self.timeout)
            score = report.percentage_match_score
            rank = await self.store.count_higher(job_id, score, exclude_id=record.id) + 1
            written = await self.store.complete(record.id, attempt, report.to_data(), score, rank)
        except asyncio.TimeoutError as e:
            await self.store.mark_failed(record.id, attempt, "timed out")
            logger.warning("[ANALYSIS] timed out job=%s candidate=%s after %ss", job_id, candidate_id, self.timeout)
            raise AnalysisTimeoutError(f"Analysis of candidate {candidate_id} timed out") from e
        except Exception as e:
            await self.store.mark_failed(record.id, attempt, f"{e.__class__.__name__}: {e}")
            logger.warning("[ANALYSIS] failed job=%s candidate=%s: %s", job_id, candidate_id, e)
            raise

        if not written:
            logger.warning(
                "[ANALYSIS] attempt %s superseded job=%s candidate=%s; result dropped",
                attempt, job_id, candidate_id,
            )
        else:
            logger.info("[ANALYSIS] done job=%s candidate=%s score=%.2f rank=%s", job_id, candidate_id, score, rank)
        return await self.store.get_by_id(record.id)

    def is_exhausted(self, record: JobAnalysis) -> bool:
        """A failed record that used up its attempts; it is never analysed again."""
        return record.status == AnalysisStatus.FAILED.value and record.attempts >= self.max_attempts

    def needs_analysis(self, record: JobAnalysis | None) -> bool:
        if record is None:
            return True
        if record.status == AnalysisStatus.FAILED.value:
            return not self.is_exhausted(record)
        return self.store.is_stale(record, self.stale_pending_seconds)

    # ---------- Helper Functions ----------
    async def _claim(self, job_id: str, candidate_id: str) -> tuple[JobAnalysis, bool]:
        """
        Returns ``(record, True)`` when this caller now owns the pending record,
        or ``(record, False)`` for a record that is complete, exhausted or being
        worked on elsewhere.
        """
        existing = await self.store.get(job_id, candidate_id)
        if existing is None:
            return await self.store.claim(job_id, candidate_id)
        if not self.needs_analysis(existing):
            return existing, False

        reclaimed = await self.store.reclaim(existing)
        if reclaimed is None:
            logger.info("[ANALYSIS] retry already taken job=%s candidate=%s", job_id, candidate_id)
            return await self.store.get(job_id, candidate_id), False
        logger.info("[ANALYSIS] retrying %s record job=%s candidate=%s", existing.status, job_id, candidate_id)
        return reclaimed, True

    async def _run(self, job, candidate) -> MatchReport:
        url = await self.resolver.get_fetchable_url(candidate.resume_key)
        if not url:
            raise ResumeNotFoundError(f"No resume available for candidate {candidate.id}")

        document = await self.fetcher.fetch(url, key=candidate.resume_key)
        text = await self.llm.analyse(job, document)
        if not text or not text.strip():
            raise MalformedAnalysisError("LLM returned empty content")

        try:
            payload = extract_json(text)
            if not isinstance(payload, dict):
                raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
            inputs = MatchInputs.from_llm_payload(payload)
        except (ValueError, KeyError, ValidationError) as e:
            logger.error(
                "[ANALYSIS] malformed LLM output job=%s candidate=%s: %s | raw=%r",
                job.id, candidate.id, e, text[:SNIPPET_CHARS],
            )
            raise MalformedAnalysisError(f"Could not parse analysis: {e}") from e

        self._attach_expectations(inputs, job)
        return self.strategy.report(inputs)

    @staticmethod
    def _attach_expectations(inputs: MatchInputs, job) -> None:
        expected = {
            str(s.get("name", "")).strip().lower(): s
            for s in (job.expected_skills or [])
        }
        for skill in inputs.per_skill:
            exp = expected.get(skill.skill.strip().lower())
            if exp is None:
                continue
            skill.expected_score = exp.get("score", skill.expected_score)
            skill.years_experience = exp.get("years_experience", skill.years_experience)
            skill.mandatory = bool(exp.get("mandatory", False))
        cultural = job.expected_cultural_fit or {}
        for trait in inputs.per_trait:
            if trait.trait in cultural:
                trait.expected_score = cultural[trait.trait]
