"""HTTP client for the article generation service."""

from dataclasses import dataclass

import httpx

from news_writer.services.jobs import GenerationClient
from news_writer.services.prompts import PromptPreviewClient


@dataclass
class HttpxGenerationClient(GenerationClient, PromptPreviewClient):
    """HTTPX-backed generation service client."""

    base_url: str
    http_client: httpx.AsyncClient
    api_token: str | None = None
    timeout: float = 15.0

    @classmethod
    def create(
        cls,
        base_url: str,
        api_token: str | None = None,
        timeout: float = 15.0,
    ) -> "HttpxGenerationClient":
        """Create a generation client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            api_token=api_token,
            timeout=timeout,
        )

    async def submit(self, payload: dict[str, object]) -> dict[str, object]:
        """Submit a generation request."""
        url = f"{self.base_url}/api/ai/news/generate"
        response = await self.http_client.post(
            url, json=payload, headers=self._headers(), timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()

    async def get_job(self, job_id: str) -> dict[str, object]:
        """Fetch the current state of a generation job."""
        url = f"{self.base_url}/api/ai/news/jobs/{job_id}"
        response = await self.http_client.get(
            url, headers=self._headers(), timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()

    async def preview_prompt(self, payload: dict[str, object]) -> dict[str, object]:
        """Ask the service how it would assemble the prompt."""
        url = f"{self.base_url}/api/ai/news/preview"
        response = await self.http_client.post(
            url, json=payload, headers=self._headers(), timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    def _headers(self) -> dict[str, str]:
        if not self.api_token:
            return {}
        return {"Authorization": f"Bearer {self.api_token}"}
