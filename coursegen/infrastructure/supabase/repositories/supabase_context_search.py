from typing import Any, Awaitable, Callable, Dict, List, Optional

import structlog
from langchain_core.embeddings import Embeddings
from supabase import AsyncClient

from coursegen.core.settings import settings
from coursegen.domain.schemas.course_schemas import Chunk
from coursegen.infrastructure.supabase.client import get_async_supabase_client

logger = structlog.get_logger(__name__)


class SupabaseContextSearch:
    """
    Semantic context retrieval over the `match_documents` RPC.
    Failures are logged and surface as an empty result.
    """

    def __init__(
        self,
        embeddings: Embeddings,
        match_function: Optional[str] = None,
        match_threshold: Optional[float] = None,
        filter_conditions: Optional[Dict[str, Any]] = None,
        client_provider: Callable[[], Awaitable[AsyncClient]] = get_async_supabase_client,
    ):
        self.embeddings = embeddings
        self.match_function = match_function or settings.SUPABASE_MATCH_FUNCTION
        self.match_threshold = settings.SUPABASE_MATCH_THRESHOLD if match_threshold is None else match_threshold
        self.filter_conditions = dict(filter_conditions or {})
        self._client_provider = client_provider

    @staticmethod
    def _to_chunk(row: Dict[str, Any]) -> Chunk:
        metadata = dict(row.get("metadata") or {})
        if row.get("id") is not None:
            metadata.setdefault("id", row["id"])
        if row.get("similarity") is not None:
            metadata["similarity"] = row["similarity"]
        return Chunk(text=str(row.get("content") or ""), metadata=metadata)

    async def search(self, query: str, k: int) -> List[Chunk]:
        if not query or k <= 0:
            return []
        try:
            vector = await self.embeddings.aembed_query(query)
            client = await self._client_provider()
            rpc_params = {
                "query_embedding": vector,
                "match_threshold": self.match_threshold,
                "match_count": k,
                "filter": self.filter_conditions,
            }
            res = await client.rpc(self.match_function, rpc_params).execute()
        except Exception as e:
            logger.error("context_search_failed", rpc=self.match_function, query=query[:120], error=str(e))
            return []
        return [self._to_chunk(row) for row in (res.data or []) if row.get("content")]
