"""
FastAPI Router — Chat • Chat History • Analytics • Quick Actions
================================================================

Purpose
-------
Defines the HTTP API of the portal support assistant (all routes under
``/api``):
- Chat: one conversation turn (state inference, optional page retrieval,
  reply composition, persistence, analytics) and history retrieval
- Analytics: event ingestion, HST range reports, AI prose summary, data
  status and development seeding
- Quick actions: the predefined starter messages

Key Notes
---------
- Input validation via Pydantic models in `backend.api.models` (camelCase JSON).
- Collaborators (Redis-backed stores, scraper, LLM client, analytics sink) are
  provided through FastAPI dependencies so they can be overridden in tests.
- Degraded paths (LLM down, page fetch failed, Redis down) still answer;
  only unexpected errors produce a 500, with a contact-info message on chat.
"""

import logging
from functools import lru_cache
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from backend.api.analytics_tracker import AnalyticsTracker, EventSink
from backend.api.knowledge_base import QUICK_ACTIONS, TECHNICAL_TROUBLE_RESPONSE, canned_response
from backend.api.llm_pipeline import LLM_Pipeline
from backend.api.models import (
    AnalyticsEventIn,
    AnalyticsSnapshot,
    ChatHistoryResponse,
    ChatRequest,
    ChatResponse,
    QuickAction,
    SeedRequest,
)
from backend.api.prompt_utilities import describe_page
from backend.api.response_composer import ResponseComposer, generate_analytics_summary
from backend.api.scraper import PageScraper
from backend.api.state_classifier import ConversationState, analyze
from backend.api.utils import extract_url
from backend.cache.content_cache import ContentCache
from backend.cache.conversation_store import ConversationStore
from backend.cache.redis_client import get_redis
from backend.database.core.funcs import get_analytics_report, get_analytics_status, record_analytics_event, seed_test_data

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")
"""Creates the FastAPI router in which we define its routes"""


# -----------------------
# Dependencies
# -----------------------
def get_conversation_store() -> ConversationStore:
    return ConversationStore(get_redis())


def get_content_cache() -> ContentCache:
    return ContentCache(get_redis())


def get_scraper(cache: ContentCache = Depends(get_content_cache)) -> PageScraper:
    return PageScraper(cache)


@lru_cache(maxsize=1)
def get_llm() -> LLM_Pipeline:
    return LLM_Pipeline()


def record_event(event: AnalyticsEventIn) -> dict:
    return record_analytics_event(event=event)


def get_event_sink() -> EventSink:
    """Where analytics events go; the relational store by default."""
    return record_event


# -----------------------
# Chat
# -----------------------
@router.post('/chat', response_model=ChatResponse, response_model_exclude_none=True)
def chat(
    data: ChatRequest,
    store: ConversationStore = Depends(get_conversation_store),
    scraper: PageScraper = Depends(get_scraper),
    llm: LLM_Pipeline = Depends(get_llm),
    sink: EventSink = Depends(get_event_sink),
):
    """Answer one user message.

    Request body:
        ChatRequest {message, messages, chatId}

    Behavior:
        - Empty message: the initial greeting, free-text input shown, no LLM call.
        - The first URL in the message is retrieved (cache first) and described
          as page context; it is removed from the text sent to the model.
        - The state is inferred from the history plus this message.
        - The reply is composed, the conversation saved under ``chatId`` and
          message events recorded; ``session_completed`` is recorded on the
          turn that first reaches ``process_complete``.

    Response:
        200: {message, options?, showInput?, image?}
        500: contact-info message with ``showInput: false``
    """
    try:
        if not data.message.strip():
            return ChatResponse(message=canned_response(ConversationState.INITIAL), show_input=True)

        history = [message.model_dump(by_alias=True, exclude_none=True) for message in data.messages]
        url, user_query = extract_url(data.message)

        page_context = None
        if url:
            logger.info("URL found: %s", url)
            page = scraper.fetch(url)
            page_context = describe_page(page)

        previous = analyze(history)
        insights = analyze(history + [{"role": "user", "content": data.message}])
        logger.info(
            "Chat %s: state=%s step=%d resolved=%s",
            data.chat_id, insights.state.value, insights.assistant_step, insights.resolved_state.value,
        )

        tracker = None
        if data.chat_id:
            tracker = AnalyticsTracker(sink, session_id=data.chat_id, message_count=len(history))
            if not history:
                tracker.init_session(data.chat_id)

        composer = ResponseComposer(llm, store, tracker)
        response = composer.compose(
            insights.resolved_state,
            data.message,
            history,
            chat_id=data.chat_id,
            user_query=user_query,
            page_context=page_context,
            insights=insights,
        )

        if (
            tracker is not None
            and insights.resolved_state is ConversationState.PROCESS_COMPLETE
            and previous.resolved_state is not ConversationState.PROCESS_COMPLETE
        ):
            tracker.track_session_completed()

        return response
    except Exception as e:
        logger.exception("Error in portal support: %s", e)
        return JSONResponse(status_code=500, content={"message": TECHNICAL_TROUBLE_RESPONSE, "showInput": False})


def _is_message_list(value) -> bool:
    return isinstance(value, list) and all(isinstance(item, dict) for item in value)


@router.get('/chat', response_model=ChatHistoryResponse)
def chat_history(
    chat_id: Optional[str] = Query(None, alias="chatId"),
    store: ConversationStore = Depends(get_conversation_store),
):
    """Stored messages of a conversation (``messages: null`` if none)."""
    if not chat_id:
        raise HTTPException(status_code=400, detail="Chat ID is required")

    messages = store.load(chat_id)
    if messages is not None and not _is_message_list(messages):
        logger.warning("Conversation %s has an unexpected shape (%s), ignoring it", chat_id, type(messages).__name__)
        messages = None
    return ChatHistoryResponse(messages=messages)


# -----------------------
# Analytics
# -----------------------
@router.post('/analytics')
def track_analytics(data: AnalyticsEventIn, sink: EventSink = Depends(get_event_sink)):
    """Record one analytics event and fold it into the day's aggregate."""
    try:
        event = sink(data)
        return {"success": True, "event": event}
    except Exception as e:
        logger.error("Analytics tracking error: %s", e)
        return JSONResponse(status_code=500, content={"error": "Failed to record analytics"})


@router.get('/analytics')
def analytics_report(
    filter: Literal["day", "week", "month", "year", "custom"] = "day",
    period: Literal["current", "last", "all"] = "current",
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
):
    """Aggregated analytics of an HST window (see `date_ranges.date_range`)."""
    try:
        return get_analytics_report(filter=filter, period=period, start_date=start_date, end_date=end_date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Analytics fetch error: %s", e)
        return JSONResponse(status_code=500, content={"error": "Failed to fetch analytics"})


@router.post('/analytics/summary')
def analytics_summary(data: AnalyticsSnapshot, llm: LLM_Pipeline = Depends(get_llm)):
    """One paragraph of AI-written prose about an analytics report."""
    summary = generate_analytics_summary(llm, data)
    if not summary:
        return JSONResponse(status_code=500, content={"error": "Failed to generate summary"})
    return {"summary": summary}


@router.get('/analytics/test')
def analytics_status():
    """How much analytics data exists and which days it covers."""
    try:
        return get_analytics_status()
    except Exception as e:
        logger.error("Analytics status error: %s", e)
        return JSONResponse(status_code=500, content={"error": "Failed to check data"})


@router.post('/analytics/test')
def analytics_seed(data: Optional[SeedRequest] = None):
    """Fill the last ``days`` HST days with random aggregates (development only)."""
    days = data.days if data else 7
    try:
        seeded = seed_test_data(days=days)
    except Exception as e:
        logger.error("Test data creation error: %s", e)
        return JSONResponse(status_code=500, content={"error": "Failed to create test data"})
    return {"success": True, "message": f"Created test data for {days} days", "summaries": seeded}


# -----------------------
# Quick actions
# -----------------------
@router.get('/quick_actions', response_model=list[QuickAction])
def quick_actions():
    """The predefined starter messages of the home screen."""
    return QUICK_ACTIONS
