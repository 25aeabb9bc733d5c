"""Supabase implementation of the key-value store."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client, create_client

from calorie_logger.services.store import KeyValueStore


@dataclass
class SupabaseKeyValueStore(KeyValueStore):
    """Key-value store backed by a two-column Supabase table."""

    client: Client
    table: str = "kv_store"

    @classmethod
    def create(cls, url: str, service_key: str, table: str) -> "SupabaseKeyValueStore":
        """Create a store with a new Supabase client."""
        return cls(client=create_client(url, service_key), table=table)

    def get(self, key: str) -> str | None:
        """Return the stored text for a key."""
        response = (
            self.client.table(self.table)
            .select("value")
            .eq("key", key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        value = response.data[0].get("value")
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        """Upsert text under a key."""
        self.client.table(self.table).upsert(
            {
                "key": key,
                "value": value,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            }
        ).execute()

    def remove(self, key: str) -> None:
        """Delete a key."""
        self.client.table(self.table).delete().eq("key", key).execute()
