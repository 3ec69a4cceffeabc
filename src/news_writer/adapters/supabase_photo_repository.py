"""Supabase-backed photo metadata lookup."""

from dataclasses import dataclass

from supabase import Client

from news_writer.services.photos import PhotoLookup


@dataclass
class SupabasePhotoLookup(PhotoLookup):
    """Read photo rows straight from the photos table."""

    client: Client

    async def get_photo(self, photo_id: str) -> dict[str, object]:
        """Return the photo row for an id."""
        response = (
            self.client.table("photos")
            .select("*")
            .eq("id", photo_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            raise RuntimeError(f"Photo {photo_id} not found")
        return response.data[0]
