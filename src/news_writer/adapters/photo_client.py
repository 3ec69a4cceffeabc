"""HTTP photo metadata lookup."""

from dataclasses import dataclass

import httpx

from news_writer.services.photos import PhotoLookup


@dataclass
class HttpxPhotoClient(PhotoLookup):
    """Photo lookup against the photo library API."""

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
    ) -> "HttpxPhotoClient":
        """Create a photo client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            api_token=api_token,
            timeout=timeout,
        )

    async def get_photo(self, photo_id: str) -> dict[str, object]:
        """Fetch photo metadata by id."""
        headers = {}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        response = await self.http_client.get(
            f"{self.base_url}/api/photos/{photo_id}",
            headers=headers,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
