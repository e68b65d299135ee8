# talentmatch/matching/resume.py
import asyncio
import logging
from dataclasses import dataclass
from urllib.parse import urlparse

import boto3
import httpx
from botocore.exceptions import BotoCoreError, ClientError

from talentmatch.core.errors import ResumeFetchError

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "resume.pdf"
DEFAULT_CONTENT_TYPE = "application/pdf"
EXPECTED_CONTENT_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
}


@dataclass
class ResumeDocument:
    content: bytes
    filename: str
    content_type: str


def filename_from_key(key: str | None) -> str:
    """Last path segment of a key or URL, query string dropped."""
    if not key:
        return DEFAULT_FILENAME
    path = urlparse(key).path if "://" in key else key.split("?", 1)[0]
    name = path.rstrip("/").rsplit("/", 1)[-1]
    return name or DEFAULT_FILENAME


class S3ResumeResolver:
    """Turns a stored resume key into a short-lived presigned GET URL."""

    def __init__(self, bucket_name: str, region: str, expiry_seconds: int = 3600, client=None):
        self.bucket_name = bucket_name
        self.expiry_seconds = expiry_seconds
        self._client = client
        self._region = region

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client("s3", region_name=self._region)
        return self._client

    def _presign(self, key: str) -> str | None:
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": key},
                ExpiresIn=self.expiry_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("[RESUME] error creating presigned URL for %s: %s", key, e)
            return None

    async def get_fetchable_url(self, reference: str | None) -> str | None:
        if not reference:
            return None
        # already a URL (legacy rows stored the public link)
        if reference.startswith(("http://", "https://")):
            return reference
        if not self.bucket_name:
            logger.error("[RESUME] AWS_BUCKET_NAME not configured")
            return None
        return await asyncio.to_thread(self._presign, reference)

    def _delete(self, key: str) -> None:
        self.client.delete_object(Bucket=self.bucket_name, Key=key)

    async def delete(self, reference: str | None) -> None:
        if not reference or reference.startswith(("http://", "https://")) or not self.bucket_name:
            return
        try:
            await asyncio.to_thread(self._delete, reference)
        except (ClientError, BotoCoreError) as e:
            # the database rows are already gone; a dangling object is only logged
            logger.error("[RESUME] failed to delete object %s: %s", reference, e)


class HttpResumeFetcher:
    def __init__(self, timeout: float = 30.0, transport: httpx.AsyncBaseTransport | None = None):
        self.timeout = timeout
        self.transport = transport

    async def fetch(self, url: str, key: str | None = None) -> ResumeDocument:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport, follow_redirects=True) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            raise ResumeFetchError(f"Resume download failed: {e.__class__.__name__}") from e

        if not response.is_success:
            raise ResumeFetchError(f"Resume download failed with status {response.status_code}")

        content_type = response.headers.get("content-type", "").split(";", 1)[0].strip() or DEFAULT_CONTENT_TYPE
        if content_type not in EXPECTED_CONTENT_TYPES:
            logger.warning("[RESUME] unexpected content type %s for %s", content_type, filename_from_key(key or url))
        return ResumeDocument(
            content=response.content,
            filename=filename_from_key(key or url),
            content_type=content_type,
        )
