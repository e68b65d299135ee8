# talentmatch/matching/llm.py
import json
import logging
import re
from typing import Any

from openai import AsyncOpenAI, OpenAIError

from talentmatch.core.errors import LLMUnavailableError, MalformedAnalysisError
from talentmatch.matching.scoring import CULTURAL_FIT_TRAITS

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)

SYSTEM_PROMPT = (
    "You are an experienced technical recruiter. You compare a candidate's resume "
    "against a job description and answer with JSON only."
)


def build_analysis_prompt(job) -> str:
    skills = [s.get("name") for s in (job.expected_skills or []) if s.get("name")]
    shape = {
        "perSkillMatch": [{"skill": "<skill name>", "candidateScore": "0-5 or null if absent"}],
        "perCulturalFitMatch": [{"trait": t, "candidateScore": "0-5"} for t in CULTURAL_FIT_TRAITS],
        "summary": "<two sentences>",
    }
    return (
        f"Job title: {job.title}\n"
        f"Job description:\n{job.description}\n\n"
        f"Score the attached resume against each of these skills: {', '.join(skills) or 'those named in the description'}.\n"
        f"Score each cultural-fit trait from 0 to 5.\n"
        f"Return a JSON object shaped like:\n{json.dumps(shape, indent=2)}"
    )


def extract_json(text: str) -> Any:
    """
    Parse the JSON object out of an LLM answer.
    A fenced ```json block wins; otherwise the whole text is parsed.
    Raises ``ValueError`` on anything unparseable.
    """
    if not text or not text.strip():
        raise ValueError("empty content")
    m = _FENCED_JSON.search(text)
    candidate = m.group(1) if m else text
    return json.loads(candidate.strip())


class LLMAnalysisClient:
    """Thin async wrapper over the OpenAI files + chat completions APIs."""

    def __init__(self, api_key: str, model: str, client: AsyncOpenAI | None = None):
        self.model = model
        self._api_key = api_key
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    async def upload_document(self, content: bytes, filename: str, mime_type: str) -> str:
        try:
            uploaded = await self.client.files.create(file=(filename, content, mime_type), purpose="user_data")
        except OpenAIError as e:
            logger.exception("[LLM] file upload failed for %s", filename)
            raise LLMUnavailableError(f"Document upload failed: {e.__class__.__name__}") from e
        return uploaded.id

    async def complete_chat(self, messages: list[dict]) -> str:
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=0.2,
            )
        except OpenAIError as e:
            logger.exception("[LLM] chat completion failed")
            raise LLMUnavailableError(f"Chat completion failed: {e.__class__.__name__}") from e
        if not resp.choices:
            raise MalformedAnalysisError("LLM returned no choices")
        return resp.choices[0].message.content or ""

    async def analyse(self, job, document) -> str:
        """Upload the resume and ask for the match report; returns the raw answer text."""
        file_id = await self.upload_document(document.content, document.filename, document.content_type)
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "file", "file": {"file_id": file_id}},
                    {"type": "text", "text": build_analysis_prompt(job)},
                ],
            },
        ]
        return await self.complete_chat(messages)
