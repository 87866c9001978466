import uuid
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

import structlog
from langgraph.graph import END, StateGraph
from pydantic import ValidationError
from structlog.contextvars import bind_contextvars, unbind_contextvars

from coursegen.domain.exceptions import describe_error
from coursegen.infrastructure.container import CourseContainer
from coursegen.workflows.course_generation.stages.content import ChapterContentStage
from coursegen.workflows.course_generation.stages.context import ContextRetrievalStage
from coursegen.workflows.course_generation.stages.toc import TocGenerationStage
from coursegen.workflows.course_generation.state import PipelineState

logger = structlog.get_logger(__name__)

Stage = Callable[[PipelineState], Awaitable[PipelineState]]


def guarded_node(name: str, stage: Stage) -> Callable[[PipelineState], Awaitable[Dict[str, Any]]]:
    """Wraps a stage so that a raised exception becomes `state.error` instead of escaping the graph."""

    async def node(state: PipelineState) -> Dict[str, Any]:
        if not isinstance(state, PipelineState):
            state = PipelineState.model_validate(state)
        try:
            updated = await stage(state)
        except Exception as e:
            logger.error("pipeline_stage_failed", stage=name, error=describe_error(e), exc_info=True)
            updated = state.model_copy(update={"error": f"{name} failed: {describe_error(e)}"})
        return updated.as_update()

    return node


def route_after_toc(state: Union[PipelineState, Mapping[str, Any]]) -> str:
    error = state.get("error") if isinstance(state, Mapping) else state.error
    if error:
        return "failed"
    return "continue"


def build_course_graph(container: CourseContainer):
    config = container.settings
    retrieve_context = ContextRetrievalStage(container.context_search, top_k=config.CONTEXT_TOP_K)
    generate_toc = TocGenerationStage(
        container.outline_completion,
        cache=container.chapter_cache,
        char_budget=config.CONTEXT_CHAR_BUDGET,
        timeout_seconds=config.LLM_CALL_TIMEOUT_SECONDS,
    )
    generate_chapter_content = ChapterContentStage(
        container.lesson_completion,
        container.context_search,
        container.chapter_cache,
        variant=config.LESSON_SCHEMA_VARIANT,
        max_parallel=config.CONTENT_SUBTOPIC_MAX_PARALLEL,
        chapter_top_k=config.CHAPTER_CONTEXT_TOP_K,
        char_budget=config.CONTEXT_CHAR_BUDGET,
        timeout_seconds=config.LLM_CALL_TIMEOUT_SECONDS,
    )

    workflow = StateGraph(PipelineState)

    workflow.add_node("retrieve_context", guarded_node("retrieve_context", retrieve_context))
    workflow.add_node("generate_toc", guarded_node("generate_toc", generate_toc))
    workflow.add_node("generate_chapter_content", guarded_node("generate_chapter_content", generate_chapter_content))

    workflow.set_entry_point("retrieve_context")
    workflow.add_edge("retrieve_context", "generate_toc")
    workflow.add_conditional_edges(
        "generate_toc",
        route_after_toc,
        {"continue": "generate_chapter_content", "failed": END},
    )
    workflow.add_edge("generate_chapter_content", END)

    return workflow.compile()


def _initial_state(initial: Union[PipelineState, Mapping[str, Any]]) -> PipelineState:
    if isinstance(initial, PipelineState):
        return initial
    return PipelineState.model_validate(dict(initial))


async def run(
    initial: Union[PipelineState, Mapping[str, Any]],
    *,
    container: Optional[CourseContainer] = None,
) -> PipelineState:
    """
    Runs context retrieval, outline generation and chapter content generation.
    Never raises: failures are reported through the returned state's `error`.
    """
    try:
        state = _initial_state(initial)
    except (ValidationError, TypeError, ValueError) as e:
        logger.error("pipeline_input_invalid", error=str(e))
        topic = initial.get("topic") if isinstance(initial, Mapping) else None
        return PipelineState(topic=topic if isinstance(topic, str) else "", error=f"Invalid pipeline input: {e}")

    run_id = str(uuid.uuid4())
    bind_contextvars(run_id=run_id)
    logger.info("pipeline_started", topic=state.topic, supplied_chunks=len(state.context_chunks))
    try:
        graph = build_course_graph(container or CourseContainer())
        result = await graph.ainvoke(state.as_update())
        final = result if isinstance(result, PipelineState) else PipelineState.model_validate(result)
    except Exception as e:
        logger.error("pipeline_failed", error=describe_error(e), exc_info=True)
        final = state.model_copy(update={"error": f"Pipeline failed: {describe_error(e)}"})
    finally:
        unbind_contextvars("run_id")

    if final.failed:
        logger.warning("pipeline_finished_with_error", topic=final.topic, error=final.error)
    else:
        logger.info("pipeline_completed", topic=final.topic, main_topic=final.main_topic)
    return final
