"""
Shared fixtures: a temp-file SQLite database and deterministic fakes for
every outside collaborator (LLM, resume storage, encoder, dialer, clock).
"""
import asyncio
import json
from contextlib import asynccontextmanager
from datetime import datetime, timedelta

import numpy as np
import pytest

from talentmatch.container import build_container
from talentmatch.core.config import Settings
from talentmatch.core.errors import ResumeFetchError
from talentmatch.db.session import create_all
from talentmatch.matching.resume import ResumeDocument, filename_from_key
from talentmatch.matching.scoring import CULTURAL_FIT_TRAITS


class FakeLLM:
    """Answers with a report whose skill/trait scores depend on the resume file name."""

    def __init__(self, scores=None, default=3.0, delay=0.0, delays=None, replies=None):
        self.scores = scores or {}
        self.default = default
        self.delay = delay
        self.delays = delays or {}
        self.replies = list(replies or [])
        self.calls = 0
        self.seen = []

    async def analyse(self, job, document):
        self.calls += 1
        self.seen.append(document.filename)
        await asyncio.sleep(self.delays.get(document.filename, self.delay))
        if self.replies:
            return self.replies.pop(0)
        score = self.scores.get(document.filename, self.default)
        payload = {
            "perSkillMatch": [
                {"skill": s["name"], "candidateScore": score} for s in job.expected_skills
            ],
            "perCulturalFitMatch": [
                {"trait": t, "candidateScore": score} for t in CULTURAL_FIT_TRAITS
            ],
            "summary": f"fake analysis of {document.filename}",
        }
        return "Here you go:\n```json\n" + json.dumps(payload) + "\n```"


class FakeResolver:
    def __init__(self):
        self.deleted = []

    async def get_fetchable_url(self, reference):
        if not reference:
            return None
        return f"https://files.test/{reference}?sig=abc"

    async def delete(self, reference):
        if reference:
            self.deleted.append(reference)


class FakeFetcher:
    def __init__(self, fail_for=()):
        self.fail_for = set(fail_for)

    async def fetch(self, url, key=None):
        name = filename_from_key(key or url)
        if name in self.fail_for:
            raise ResumeFetchError("Resume download failed with status 403")
        return ResumeDocument(content=b"%PDF-1.4 fake", filename=name, content_type="application/pdf")


class FakeEncoder:
    def __init__(self):
        self.calls = 0

    async def encode(self, texts):
        self.calls += 1
        return np.asarray(
            [[1.0, (len(t) % 7) / 10.0, 0.5, 0.25] for t in texts],
            dtype=np.float32,
        )


class FakeDialer:
    def __init__(self, fail=False):
        self.fail = fail
        self.dispatched = []

    async def dispatch(self, assistant_id, phone_number, metadata=None):
        if self.fail:
            from talentmatch.core.errors import CallDispatchError
            raise CallDispatchError("Voice platform rejected the call with status 500")
        self.dispatched.append((assistant_id, phone_number, metadata))
        return {"id": f"call-{len(self.dispatched)}", "status": "queued"}


class FakeClock:
    def __init__(self, now=None):
        self.now = now or datetime(2026, 3, 2, 9, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class Fakes:
    def __init__(self, **llm_kwargs):
        self.llm = FakeLLM(**llm_kwargs)
        self.resolver = FakeResolver()
        self.fetcher = FakeFetcher()
        self.encoder = FakeEncoder()
        self.dialer = FakeDialer()


def make_settings(tmp_path, **overrides) -> Settings:
    values = dict(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        CALL_SCHEDULER_ENABLED=False,
        WARMUP_CANDIDATES=0,
        ANALYSIS_TIMEOUT_SECONDS=30.0,
        SECRET_KEY="test-secret",
        LOG_LEVEL="WARNING",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def services(tmp_path):
    """
    Factory for an async context yielding ``(container, fakes)`` over a fresh
    database. Use inside a coroutine driven by ``asyncio.run``.
    """

    @asynccontextmanager
    async def _make(llm=None, clock=None, **overrides):
        fakes = Fakes()
        if llm is not None:
            fakes.llm = llm
        container = build_container(
            make_settings(tmp_path, **overrides),
            encoder=fakes.encoder,
            resolver=fakes.resolver,
            fetcher=fakes.fetcher,
            llm=fakes.llm,
            dialer=fakes.dialer,
            clock=clock,
        )
        await create_all(container.engine)
        try:
            yield container, fakes
        finally:
            await container.engine.dispose()

    return _make


# ---------- seeding helpers ----------
JOB_SKILLS = [
    {"name": "python", "score": 4, "years_experience": 3, "mandatory": True},
    {"name": "sql", "score": 3, "years_experience": 1, "mandatory": False},
]


async def add_job(container, org="org-1", vector=(1.0, 0.0, 0.0, 0.0), skills=None, with_vector=True):
    job = await container.jobs.create({
        "organisation_id": org,
        "title": "Backend Engineer",
        "description": "Build APIs in Python.",
        "expected_skills": skills if skills is not None else JOB_SKILLS,
        "expected_cultural_fit": {t: 3.0 for t in CULTURAL_FIT_TRAITS},
    })
    if with_vector:
        await container.vectors.upsert(
            container.settings.JOB_NAMESPACE, job.id, np.asarray(vector, dtype=np.float32), {"organisation_id": org}
        )
    return job


async def add_candidate(container, slug, org="org-1", vector=(1.0, 0.0, 0.0, 0.0), resume=True):
    candidate = await container.candidates.create(
        {
            "name": slug.title(),
            "email": f"{slug}@example.com",
            "organisation_id": org,
            "resume_key": f"resumes/{slug}.pdf" if resume else None,
            "designation": "Engineer",
        },
        skills=[{"name": "python", "score": 4, "years_experience": 3}],
        cultural_fit={t: 3.0 for t in CULTURAL_FIT_TRAITS},
    )
    await container.vectors.upsert(
        container.settings.TALENT_NAMESPACE, candidate.id, np.asarray(vector, dtype=np.float32), {"organisation_id": org}
    )
    return candidate


def ranked_vector(i: int):
    """Vectors whose cosine similarity to (1, 0, 0, 0) strictly decreases with ``i``."""
    return (1.0, 0.1 * i, 0.0, 0.0)


async def add_complete(container, job_id, candidate_id, score):
    record, _ = await container.analyses.claim(job_id, candidate_id)
    higher = await container.analyses.count_higher(job_id, score, exclude_id=record.id)
    await container.analyses.complete(record.id, record.attempts, {"percentageMatchScore": score}, score, higher + 1)
    return await container.analyses.get_by_id(record.id)
