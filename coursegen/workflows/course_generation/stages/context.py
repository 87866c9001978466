import structlog

from coursegen.core.settings import settings
from coursegen.domain.ports import ContextSearchPort
from coursegen.workflows.course_generation.state import PipelineState

logger = structlog.get_logger(__name__)


class ContextRetrievalStage:
    """Supplies background chunks for the topic; never fails the pipeline."""

    def __init__(self, search: ContextSearchPort, top_k: int = settings.CONTEXT_TOP_K):
        self.search = search
        self.top_k = top_k

    async def __call__(self, state: PipelineState) -> PipelineState:
        if state.context_chunks:
            logger.info("context_supplied", chunks=len(state.context_chunks))
            return state

        try:
            chunks = list(await self.search.search(state.topic, self.top_k) or [])
        except Exception as e:
            logger.warning("context_retrieval_failed", topic=state.topic, error=str(e))
            chunks = []

        logger.info("context_retrieved", topic=state.topic, chunks=len(chunks))
        return state.model_copy(update={"context_chunks": chunks})
