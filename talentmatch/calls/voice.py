# talentmatch/calls/voice.py
import logging

import httpx

from talentmatch.core.errors import CallDispatchError

logger = logging.getLogger(__name__)


class VapiVoiceClient:
    """Outbound phone calls through the Vapi REST API."""

    def __init__(self, api_key: str, phone_number_id: str, base_url: str = "https://api.vapi.ai",
                 timeout: float = 30.0, transport: httpx.AsyncBaseTransport | None = None):
        self.api_key = api_key
        self.phone_number_id = phone_number_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def dispatch(self, assistant_id: str, phone_number: str, metadata: dict | None = None) -> dict:
        """Start a call; returns the provider's call object (has an ``id``)."""
        body = {
            "assistantId": assistant_id,
            "phoneNumberId": self.phone_number_id,
            "customer": {"number": phone_number},
            "metadata": metadata or {},
        }
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
                response = await client.post("/call", json=body, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise CallDispatchError(f"Voice platform rejected the call with status {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise CallDispatchError(f"Voice platform unreachable: {e.__class__.__name__}") from e

        data = response.json()
        if not data.get("id"):
            raise CallDispatchError("Voice platform response carried no call id")
        return data
