"""Supabase-backed key-value storage."""

from dataclasses import dataclass

from supabase import Client

from carbcal.services.logs import KeyValueStorage


@dataclass
class SupabaseKeyValueStorage(KeyValueStorage):
    """Stores values as rows of a ``key``/``value`` table."""

    client: Client
    table: str = "app_state"

    def get(self, key: str) -> str | None:
        """Return the stored value for ``key``."""
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
        """Insert or replace the row for ``key``."""
        self.client.table(self.table).upsert(
            {"key": key, "value": value}, on_conflict="key"
        ).execute()
