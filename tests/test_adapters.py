"""
Test cases for the outside-world adapters: resume storage, resume download,
LLM client, voice platform and the vector store.
"""
import asyncio
import json
import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import numpy as np
import pytest
from botocore.exceptions import ClientError
from openai import OpenAIError

from conftest import add_job
from talentmatch.calls.voice import VapiVoiceClient
from talentmatch.core.errors import CallDispatchError, LLMUnavailableError, ResumeFetchError
from talentmatch.matching.llm import LLMAnalysisClient, build_analysis_prompt, extract_json
from talentmatch.matching.resume import HttpResumeFetcher, ResumeDocument, S3ResumeResolver, filename_from_key


class TestExtractJson:
    def test_fenced_block_wins(self):
        text = 'Sure!\n```json\n{"a": 1}\n```\nLet me know if you need more.'
        assert extract_json(text) == {"a": 1}

    def test_bare_fence_and_plain_json(self):
        assert extract_json('```\n{"b": [1, 2]}\n```') == {"b": [1, 2]}
        assert extract_json(' {"c": null} ') == {"c": None}

    @pytest.mark.parametrize("text", ["", "   ", "no json at all", "```json\n{broken\n```"])
    def test_unparseable_raises_value_error(self, text):
        with pytest.raises(ValueError):
            extract_json(text)


class TestFilenameFromKey:
    @pytest.mark.parametrize("key, expected", [
        ("resumes/org-1/ada.pdf", "ada.pdf"),
        ("https://bucket.s3.amazonaws.com/resumes/ada.docx?X-Amz-Signature=abc", "ada.docx"),
        ("ada.pdf?v=2", "ada.pdf"),
        (None, "resume.pdf"),
        ("resumes/", "resumes"),
    ])
    def test_last_segment(self, key, expected):
        assert filename_from_key(key) == expected


class TestS3ResumeResolver:
    def test_presigns_keys(self):
        client = MagicMock()
        client.generate_presigned_url.return_value = "https://signed.example/ada.pdf?sig=1"
        resolver = S3ResumeResolver("resumes-bucket", "eu-west-1", expiry_seconds=120, client=client)

        url = asyncio.run(resolver.get_fetchable_url("resumes/ada.pdf"))

        assert url == "https://signed.example/ada.pdf?sig=1"
        client.generate_presigned_url.assert_called_once_with(
            "get_object",
            Params={"Bucket": "resumes-bucket", "Key": "resumes/ada.pdf"},
            ExpiresIn=120,
        )

    def test_urls_and_empty_references(self):
        client = MagicMock()
        resolver = S3ResumeResolver("resumes-bucket", "eu-west-1", client=client)
        assert asyncio.run(resolver.get_fetchable_url("https://cdn.example/ada.pdf")) == "https://cdn.example/ada.pdf"
        assert asyncio.run(resolver.get_fetchable_url(None)) is None
        client.generate_presigned_url.assert_not_called()

    def test_presign_error_is_logged_not_raised(self, caplog):
        client = MagicMock()
        client.generate_presigned_url.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "GeneratePresignedUrl"
        )
        resolver = S3ResumeResolver("resumes-bucket", "eu-west-1", client=client)
        with caplog.at_level(logging.ERROR):
            assert asyncio.run(resolver.get_fetchable_url("resumes/ada.pdf")) is None
        assert "presigned URL" in caplog.text

    def test_missing_bucket(self):
        resolver = S3ResumeResolver("", "eu-west-1", client=MagicMock())
        assert asyncio.run(resolver.get_fetchable_url("resumes/ada.pdf")) is None

    def test_delete(self):
        client = MagicMock()
        resolver = S3ResumeResolver("resumes-bucket", "eu-west-1", client=client)
        asyncio.run(resolver.delete("resumes/ada.pdf"))
        asyncio.run(resolver.delete("https://cdn.example/ada.pdf"))
        client.delete_object.assert_called_once_with(Bucket="resumes-bucket", Key="resumes/ada.pdf")


class TestHttpResumeFetcher:
    def _fetcher(self, handler):
        return HttpResumeFetcher(timeout=5, transport=httpx.MockTransport(handler))

    def test_downloads_document(self):
        def handler(request):
            assert request.url.path == "/resumes/ada.pdf"
            return httpx.Response(200, content=b"%PDF-1.7", headers={"content-type": "application/pdf"})

        doc = asyncio.run(self._fetcher(handler).fetch("https://files.test/resumes/ada.pdf?sig=1"))
        assert doc == ResumeDocument(content=b"%PDF-1.7", filename="ada.pdf", content_type="application/pdf")

    def test_key_names_the_file(self):
        def handler(request):
            return httpx.Response(200, content=b"text", headers={"content-type": "text/plain; charset=utf-8"})

        doc = asyncio.run(self._fetcher(handler).fetch("https://files.test/x?sig=1", key="resumes/ada.txt"))
        assert doc.filename == "ada.txt"
        assert doc.content_type == "text/plain"

    def test_error_status(self):
        def handler(request):
            return httpx.Response(403, text="expired")

        with pytest.raises(ResumeFetchError, match="403"):
            asyncio.run(self._fetcher(handler).fetch("https://files.test/ada.pdf"))

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ResumeFetchError, match="ConnectError"):
            asyncio.run(self._fetcher(handler).fetch("https://files.test/ada.pdf"))


class TestLLMAnalysisClient:
    def _client(self, reply="```json\n{}\n```"):
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(
            files=SimpleNamespace(create=AsyncMock(return_value=SimpleNamespace(id="file-123"))),
            chat=SimpleNamespace(completions=SimpleNamespace(
                create=AsyncMock(return_value=SimpleNamespace(choices=[SimpleNamespace(message=message)]))
            )),
        )

    def _job(self):
        return SimpleNamespace(
            title="Backend Engineer",
            description="Build APIs.",
            expected_skills=[{"name": "python"}, {"name": "sql"}],
        )

    def test_uploads_then_asks(self):
        openai_client = self._client(reply="the answer")
        llm = LLMAnalysisClient(api_key="sk-test", model="gpt-test", client=openai_client)
        doc = ResumeDocument(content=b"%PDF", filename="ada.pdf", content_type="application/pdf")

        assert asyncio.run(llm.analyse(self._job(), doc)) == "the answer"

        openai_client.files.create.assert_awaited_once_with(
            file=("ada.pdf", b"%PDF", "application/pdf"), purpose="user_data"
        )
        kwargs = openai_client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-test"
        user = kwargs["messages"][1]["content"]
        assert user[0] == {"type": "file", "file": {"file_id": "file-123"}}
        assert "python, sql" in user[1]["text"]

    def test_provider_errors_become_unavailable(self):
        openai_client = self._client()
        openai_client.files.create.side_effect = OpenAIError("quota exceeded")
        llm = LLMAnalysisClient(api_key="sk-test", model="gpt-test", client=openai_client)
        doc = ResumeDocument(content=b"%PDF", filename="ada.pdf", content_type="application/pdf")
        with pytest.raises(LLMUnavailableError) as e:
            asyncio.run(llm.analyse(self._job(), doc))
        assert "quota" not in e.value.message

    def test_prompt_lists_traits(self):
        prompt = build_analysis_prompt(self._job())
        assert "leadership_score" in prompt
        assert "Backend Engineer" in prompt


class TestVapiVoiceClient:
    def test_posts_call(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"id": "vapi-call-1", "status": "queued"})

        client = VapiVoiceClient("key-1", "phone-1", base_url="https://vapi.test/", transport=httpx.MockTransport(handler))
        result = asyncio.run(client.dispatch("assistant-1", "+14155550100", {"jobId": "j"}))

        assert result["id"] == "vapi-call-1"
        assert seen["auth"] == "Bearer key-1"
        assert seen["body"] == {
            "assistantId": "assistant-1",
            "phoneNumberId": "phone-1",
            "customer": {"number": "+14155550100"},
            "metadata": {"jobId": "j"},
        }

    @pytest.mark.parametrize("response", [
        httpx.Response(500, text="boom"),
        httpx.Response(200, json={"status": "queued"}),
    ])
    def test_failures(self, response):
        client = VapiVoiceClient("key-1", "phone-1", transport=httpx.MockTransport(lambda request: response))
        with pytest.raises(CallDispatchError):
            asyncio.run(client.dispatch("assistant-1", "+14155550100"))


class TestVectorStore:
    def test_query_count_delete(self, services):
        async def scenario():
            async with services() as (c, _):
                ns = "talent-pool"
                await c.vectors.upsert(ns, "near", np.array([1, 0.1, 0, 0]), {"organisation_id": "org-1"})
                await c.vectors.upsert(ns, "far", np.array([0, 1, 0, 0]), {"organisation_id": "org-1"})
                await c.vectors.upsert(ns, "other-org", np.array([1, 0, 0, 0]), {"organisation_id": "org-2"})
                await c.vectors.upsert(ns, "short", np.array([1, 0]), {"organisation_id": "org-1"})

                matches = await c.vectors.query(ns, np.array([1, 0, 0, 0]), top_k=5, filter={"organisation_id": "org-1"})
                assert [m.id for m in matches] == ["near", "far"]
                assert matches[0].score == pytest.approx(1 / np.sqrt(1.01), rel=1e-5)
                assert matches[1].score == pytest.approx(0.0)

                assert await c.vectors.count(ns, {"organisation_id": "org-1"}) == 3
                assert await c.vectors.count(ns) == 4

                await c.vectors.upsert(ns, "near", np.array([0, 0, 1, 0]), {"organisation_id": "org-1"})
                assert await c.vectors.count(ns) == 4
                fetched = await c.vectors.fetch(ns, ["near", "missing"])
                assert list(fetched) == ["near"]
                assert fetched["near"].tolist() == [0, 0, 1, 0]

                await c.vectors.delete(ns, ["near", "far"])
                assert await c.vectors.count(ns, {"organisation_id": "org-1"}) == 1
                assert await c.vectors.query(ns, np.array([1, 0, 0, 0]), top_k=0) == []

        asyncio.run(scenario())

    def test_job_vectors_live_in_their_own_namespace(self, services):
        async def scenario():
            async with services() as (c, _):
                job = await add_job(c)
                assert await c.vectors.count(c.settings.TALENT_NAMESPACE) == 0
                assert job.id in await c.vectors.fetch(c.settings.JOB_NAMESPACE, [job.id])

        asyncio.run(scenario())
