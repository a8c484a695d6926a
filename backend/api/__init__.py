"""
API Package — FastAPI Router • Models • State Inference • Retrieval • Composition
================================================================================

Mission
-------
This package defines the backend's HTTP interface and the conversation logic
behind it: a support assistant that walks UHCC continuing-education students
through the six-step username/password recovery procedure of the non-credit
portal.

Contents
--------
- fast_api
    FastAPI router (prefix ``/api``):
      • POST /chat: one conversation turn; GET /chat?chatId=: stored history
      • POST /analytics: event ingestion; GET /analytics: HST range report
      • POST /analytics/summary: AI prose summary of a report
      • GET/POST /analytics/test: data status / development seeding
      • GET /quick_actions: predefined starter messages

- models
    Pydantic data contracts (camelCase JSON): ChatRequest, ChatResponse,
    ConversationMessage, ReplyOption, AnalyticsEventIn, AnalyticsSnapshot,
    QuickAction, RateLimitResult.

- state_classifier
    Keyword-rule inference of the recovery step from the message history:
      • classify(messages): ordered (predicate, state) cascade
      • assistant_step(messages): step instructed by the last assistant message
      • analyze(messages): both passes resolved, plus emails and frustration

- knowledge_base
    The recovery procedure, contact info, canned per-state replies and quick
    actions.

- scraper
    Page Retriever: cache-first fetch + text extraction of pasted URLs.

- response_composer
    Reply composition with canned fallback, suggested reply options,
    persistence and message analytics; analytics prose summary.

- prompt_utilities / llm_pipeline
    Prompt builders and the LangChain completion client.

- analytics_tracker / rate_limit / utils
    Caller-owned event tracker, Redis sliding-window gate, URL and JSON
    extraction helpers.

Operational Notes
-----------------
- No failure of the LLM, the page fetch or Redis fails a chat turn; each
  degrades to a fallback and is logged.
- Conversation state is never stored; it is recomputed on every turn.
"""
