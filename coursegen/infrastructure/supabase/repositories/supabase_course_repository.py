from typing import Any, Awaitable, Callable, Mapping, Optional

import structlog
from supabase import AsyncClient

from coursegen.core.settings import settings
from coursegen.domain.schemas.course_schemas import ContentTree
from coursegen.infrastructure.supabase.client import get_async_supabase_client

logger = structlog.get_logger(__name__)


class SupabaseCourseRepository:
    """Stores generated course trees in the `education_content` table."""

    def __init__(
        self,
        table: Optional[str] = None,
        client_provider: Callable[[], Awaitable[AsyncClient]] = get_async_supabase_client,
    ):
        self.table = table or settings.SUPABASE_CONTENT_TABLE
        self._client_provider = client_provider

    async def persist(self, content_tree: ContentTree, document_metadata: Mapping[str, Any]) -> str:
        client = await self._client_provider()
        row = {
            "main_topic": content_tree.main_topic,
            "document_id": document_metadata.get("documentId"),
            "document_name": document_metadata.get("documentName"),
            "document_url": document_metadata.get("documentUrl"),
            "session_id": document_metadata.get("sessionId"),
            "content": content_tree.to_payload(),
        }
        try:
            res = await client.table(self.table).insert(row).execute()
        except Exception as e:
            logger.error("course_persist_failed", table=self.table, main_topic=content_tree.main_topic, error=str(e))
            raise e

        rows = res.data or []
        record_id = str(rows[0].get("id")) if rows and rows[0].get("id") is not None else ""
        logger.info("course_persisted", table=self.table, record_id=record_id, main_topic=content_tree.main_topic)
        return record_id
