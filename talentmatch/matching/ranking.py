# talentmatch/matching/ranking.py
"""
Hybrid ranking of candidates for a job.

Vector similarity picks which candidates are worth an LLM analysis; the
analysis records are the only thing ever sorted. Pages are always cut from
the live, re-read list of complete records ordered by score (ties by
candidate id), so over a fixed set of records consecutive pages never overlap.
The stored ``rank`` is advisory and never used for ordering.
"""
import logging

import numpy as np

from talentmatch.core.cache import Cache
from talentmatch.core.errors import AnalysisTimeoutError, EmbeddingNotFoundError
from talentmatch.core.pool import run_bounded
from talentmatch.db.analysis_store import AnalysisStore
from talentmatch.db.repositories import BookmarkRepository, CandidateRepository, JobRepository, MemberRepository
from talentmatch.matching.analyzer import MatchAnalyzer
from talentmatch.matching.scoring import LocalArithmeticStrategy, MatchInputs
from talentmatch.models.analysis import JobAnalysis
from talentmatch.models.job import Job
from talentmatch.nlp.embeddings import VectorStore
from talentmatch.schemas.search import LocalMatch, RankedCandidate, RankedPage

logger = logging.getLogger(__name__)


def sort_records(records: list[JobAnalysis]) -> list[JobAnalysis]:
    complete = [r for r in records if r.is_complete and r.percentage_match_score is not None]
    return sorted(complete, key=lambda r: (-r.percentage_match_score, r.candidate_id))


class RankingOrchestrator:
    def __init__(
        self,
        jobs: JobRepository,
        candidates: CandidateRepository,
        bookmarks: BookmarkRepository,
        members: MemberRepository,
        store: AnalysisStore,
        vectors: VectorStore,
        analyzer: MatchAnalyzer,
        job_cache: Cache,
        embedding_cache: Cache,
        talent_namespace: str = "talent-pool",
        job_namespace: str = "job-pool",
        max_top_k: int = 50,
        min_batch: int = 10,
        concurrency: int = 3,
    ):
        self.jobs = jobs
        self.candidates = candidates
        self.bookmarks = bookmarks
        self.members = members
        self.store = store
        self.vectors = vectors
        self.analyzer = analyzer
        self.job_cache = job_cache
        self.embedding_cache = embedding_cache
        self.talent_namespace = talent_namespace
        self.job_namespace = job_namespace
        self.max_top_k = max_top_k
        self.min_batch = min_batch
        self.concurrency = concurrency

    # ---------- cached loads ----------
    async def load_job(self, job_id: str) -> Job:
        job = self.job_cache.get(job_id)
        if job is None:
            job = await self.jobs.require(job_id)
            self.job_cache.set(job_id, job)
        return job

    async def load_job_vector(self, job: Job) -> np.ndarray:
        vec = self.embedding_cache.get(job.id)
        if vec is None:
            fetched = await self.vectors.fetch(self.job_namespace, [job.id])
            if job.id not in fetched:
                raise EmbeddingNotFoundError(self.job_namespace, job.id)
            vec = fetched[job.id]
            self.embedding_cache.set(job.id, vec)
        return vec

    # ---------- ranked page ----------
    async def get_ranked_page(
        self,
        job_id: str,
        requester_id: str | None,
        start: int = 0,
        limit: int = 10,
        only_bookmarked: bool = False,
    ) -> RankedPage:
        start, limit = max(0, start), max(0, limit)
        end = start + limit
        job = await self.load_job(job_id)
        records = await self.store.list_for_job(job_id)
        complete_count = sum(1 for r in records if r.is_complete)

        if only_bookmarked or complete_count >= end:
            logger.info("[SEARCH] job=%s %s complete analyses cover [%s, %s)", job_id, complete_count, start, end)
        else:
            analysed = await self._gap_fill(job, records, end - complete_count)
            if analysed:
                records = await self.store.list_for_job(job_id)
                complete_count = sum(1 for r in records if r.is_complete)

        ranked = sort_records(records)
        bookmarks = await self.bookmarks.list_for_job(job_id)
        if only_bookmarked:
            marked = {b.candidate_id for b in bookmarks}
            ranked = [r for r in ranked if r.candidate_id in marked]

        org_count = await self.vectors.count(self.talent_namespace, {"organisation_id": job.organisation_id})
        total = min(self.max_top_k, org_count)
        if total == 0 and not ranked:
            return RankedPage(candidates=[], total_candidates=0, load_more_exists=False)

        page = ranked[start:end]
        candidates = await self._join(page, bookmarks, requester_id)

        # exhausted failures will never complete, so they count as explored
        exhausted = sum(1 for r in records if self.analyzer.is_exhausted(r))
        more_sorted = len(ranked) > end
        unexplored = not only_bookmarked and complete_count + exhausted < total
        return RankedPage(
            candidates=candidates,
            total_candidates=total,
            load_more_exists=more_sorted or unexplored,
        )

    async def acknowledge(self, job_id: str, candidate_ids: list[str]) -> int:
        """Run after the response is sent; a failure only costs the 'new' badge."""
        try:
            n = await self.store.acknowledge(job_id, candidate_ids)
        except Exception:  # noqa: BLE001
            logger.exception("[SEARCH] acknowledge failed job=%s", job_id)
            return 0
        logger.debug("[SEARCH] acknowledged %s analyses job=%s", n, job_id)
        return n

    # ---------- gap fill ----------
    async def _gap_fill(self, job: Job, records: list[JobAnalysis], shortfall: int, minimum: int | None = None) -> int:
        vector = await self.load_job_vector(job)
        matches = await self.vectors.query(
            self.talent_namespace,
            vector,
            top_k=self.max_top_k,
            filter={"organisation_id": job.organisation_id},
        )
        if not matches:
            logger.info("[SEARCH] job=%s no candidates in vector store", job.id)
            return 0

        # failed pairs with attempts left and stale-pending pairs are eligible again
        taken = {r.candidate_id for r in records if not self.analyzer.needs_analysis(r)}
        remaining = [m.id for m in matches if m.id not in taken]
        batch = self.min_batch if minimum is None else minimum
        selected = remaining[:max(batch, shortfall)]
        if not selected:
            return 0

        logger.info("[SEARCH] job=%s analysing %s candidates (shortfall=%s)", job.id, len(selected), shortfall)
        await self._analyse_many(job, selected)
        return len(selected)

    async def _analyse_many(self, job: Job, candidate_ids: list[str]) -> list:
        results = await run_bounded(
            candidate_ids,
            lambda cid: self.analyzer.analyze(job.id, cid, job=job),
            concurrency=self.concurrency,
        )
        for cid, res in zip(candidate_ids, results):
            if isinstance(res, AnalysisTimeoutError):
                logger.warning("[SEARCH] analysis timed out job=%s candidate=%s", job.id, cid)
            elif isinstance(res, BaseException):
                logger.warning("[SEARCH] analysis failed job=%s candidate=%s: %s", job.id, cid, res)
        return results

    async def warm_up(self, job_id: str, count: int) -> int:
        """Pre-analyse the ``count`` nearest candidates of a freshly created job."""
        job = await self.load_job(job_id)
        records = await self.store.list_for_job(job_id)
        analysed = await self._gap_fill(job, records, count, minimum=count)
        logger.info("[SEARCH] warm-up job=%s analysed=%s", job_id, analysed)
        return analysed

    # ---------- join ----------
    async def _join(self, page: list[JobAnalysis], bookmarks, requester_id: str | None) -> list[RankedCandidate]:
        profiles = await self.candidates.get_many([r.candidate_id for r in page])
        by_candidate: dict[str, list] = {}
        for b in bookmarks:
            by_candidate.setdefault(b.candidate_id, []).append(b)

        identities: dict[str, str] = {}
        out = []
        for r in page:
            c = profiles.get(r.candidate_id)
            if c is None:
                continue
            marks = by_candidate.get(r.candidate_id, [])
            mine = next((b for b in marks if requester_id and b.member_id == requester_id), None)
            bookmarked_by = []
            for b in marks:
                if b.member_id not in identities:
                    identities[b.member_id] = await self.members.display_identity(b.member_id)
                bookmarked_by.append(identities[b.member_id])
            out.append(RankedCandidate(
                candidate_id=c.id,
                name=c.name,
                email=c.email,
                designation=c.designation or "",
                current_location=c.current_location or "",
                years_of_experience=c.years_of_experience,
                total_bookmarks=c.total_bookmarks or 0,
                percentage_match_score=r.percentage_match_score,
                rank=r.rank,
                newly_analysed=bool(r.newly_analysed),
                analysis=r.data,
                is_bookmarked=bool(marks),
                is_bookmarked_by_me=mine is not None,
                bookmark_id=mine.id if mine else None,
                bookmarked_by=bookmarked_by,
            ))
        return out

    # ---------- local arithmetic ranking ----------
    async def get_local_ranking(self, job_id: str, limit: int | None = None) -> list[LocalMatch]:
        """Score every candidate of the job's organisation without the LLM."""
        job = await self.load_job(job_id)
        strategy = LocalArithmeticStrategy()
        out = []
        for c in await self.candidates.list_for_org(job.organisation_id):
            inputs = MatchInputs.from_profiles(
                job.expected_skills,
                job.expected_cultural_fit,
                c.skills,
                c.cultural_fit.as_dict() if c.cultural_fit else None,
            )
            report = strategy.report(inputs)
            out.append(LocalMatch(
                candidate_id=c.id,
                name=c.name,
                designation=c.designation or "",
                skill_similarity=round(report.percentage_skill_match / 100, 4),
                cultural_fit_similarity=round(report.percentage_cultural_fit_match / 100, 4),
                percentage_match_score=report.percentage_match_score,
                analysis=report.to_data(),
            ))
        out.sort(key=lambda m: (-m.percentage_match_score, m.candidate_id))
        return out[:limit] if limit else out
