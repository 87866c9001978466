import hashlib
from typing import Awaitable, Callable, Optional

import structlog
from supabase import AsyncClient

from coursegen.core.settings import settings
from coursegen.infrastructure.supabase.client import get_async_supabase_client

logger = structlog.get_logger(__name__)


def input_hash(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


class SupabaseChapterCache:
    """
    Session-scoped memo stored in the `memory_store` table.
    Rows are keyed by (session_id, sha256(input)); the newest row wins on read.
    """

    def __init__(
        self,
        session_id: str,
        table: Optional[str] = None,
        client_provider: Callable[[], Awaitable[AsyncClient]] = get_async_supabase_client,
    ):
        self.session_id = session_id
        self.table = table or settings.SUPABASE_MEMORY_TABLE
        self._client_provider = client_provider

    async def get(self, key: str) -> str | None:
        client = await self._client_provider()
        try:
            res = await (
                client.table(self.table)
                .select("output")
                .eq("session_id", self.session_id)
                .eq("input_hash", input_hash(key))
                .order("created_at", desc=True)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("memory_store_read_failed", table=self.table, key=key, error=str(e))
            raise e
        rows = res.data or []
        if not rows:
            return None
        output = rows[0].get("output")
        return output if isinstance(output, str) else None

    async def put(self, key: str, value: str) -> None:
        client = await self._client_provider()
        payload = {
            "session_id": self.session_id,
            "input": key,
            "input_hash": input_hash(key),
            "output": value,
        }
        try:
            await client.table(self.table).insert(payload).execute()
        except Exception as e:
            logger.error("memory_store_write_failed", table=self.table, key=key, error=str(e))
            raise e
