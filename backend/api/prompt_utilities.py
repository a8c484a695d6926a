"""
Prompt Builders (System Prompt • Suggested Options • Analytics Prose)
=====================================================================

Purpose
-------
Turns conversation state, page context and history into the message lists
sent to the completion service, and converts plain role dicts into LangChain
message objects.

Key Functions
-------------
- describe_page          : Short context phrase for a scraped portal page.
- build_system_prompt    : Support-specialist system prompt for one turn.
- build_chat_messages    : System prompt + history + the user's query.
- build_options_prompt   : Prompt asking for 2-3 suggested user replies as JSON.
- build_analytics_messages: Prompt for the one-paragraph analytics summary.
- to_langchain_messages  : ``{"role", "content"}`` dicts → LangChain messages.
"""

import json
from datetime import datetime
from typing import Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from backend.api.knowledge_base import CONTACT_INFO, PORTAL_KNOWLEDGE, PORTAL_LINK
from backend.api.models import AnalyticsSnapshot
from backend.api.state_classifier import ConversationInsights, ConversationState
from backend.cache.content_cache import ScrapedPage
from backend.database.core.date_ranges import HST

OPTION_COLORS = {
    "green": "bg-green-50 border-green-200 hover:border-green-400",
    "yellow": "bg-yellow-50 border-yellow-200 hover:border-yellow-400",
    "red": "bg-red-50 border-red-200 hover:border-red-400",
    "blue": "bg-blue-50 border-blue-200 hover:border-blue-400",
}

PAGE_CONTEXT_RULES = [
    (lambda c: "validation error" in c and "invalid email" in c,
     "I can see you're getting the validation error about invalid email/password. "),
    (lambda c: "existing student record" in c,
     "Perfect! I can see the page is telling you there's an existing student record - that's exactly what we want! "),
    (lambda c: "forgot" in c and "username" in c, "Good, you're on the forgot username page. "),
    (lambda c: "forgot" in c and "password" in c, "Great, you're on the forgot password page. "),
    (lambda c: "reset" in c and "password" in c, "I see you're on the password reset page. "),
    (lambda c: "login" in c or "logon" in c, "I can see the login page. "),
    (lambda c: "contact information" in c,
     "I see the contact information form - this means your email isn't in the system yet. "),
]
"""Ordered ``(predicate on lower-cased content, phrase)`` pairs; first match wins."""


def describe_page(page: Optional[ScrapedPage]) -> Optional[str]:
    """
    Map scraped page content to a one-sentence context phrase.

    Returns None when there is no page, the fetch failed, the page has no
    content, or nothing recognizable is on it.
    """
    if page is None or page.error or not page.content:
        return None
    content = page.content.lower()
    for predicate, phrase in PAGE_CONTEXT_RULES:
        if predicate(content):
            return phrase
    return None


SYSTEM_PROMPT = """You are an expert UHCC portal support specialist. You're helping students recover their login credentials with warmth, patience, and expertise.

CORE BEHAVIOR PRINCIPLES:
- Be conversational and encouraging - talk like you're helping a friend
- Keep responses focused and brief (2-3 sentences max)
- Guide users step-by-step through the process without overwhelming them
- Always validate their progress and celebrate small wins
- Recognize frustration and offer alternative approaches
- Remember the ENTIRE conversation context to provide personalized help
- Use natural language with contractions and casual tone

THE 6-STEP UHCC PORTAL RESET PROCESS:
1. Email Validation: "I am a new user" section (RIGHT side) → validation error = GOOD (email exists)
2. Username Reset: "I am an existing user" section (LEFT side) → Forgot Username → email sent
3. Get Username: Check email/spam → find username from UHCC
4. Password Reset: Forgot Password page → enter username → reset email sent
5. Reset Password: Check email/spam → click reset link → create new password
6. Login Success: LEFT side with username + new password

CRITICAL UNDERSTANDING:
- Validation error in Step 1 = SUCCESS (email is in system)
- Contact form in Step 1 = FAILURE (email not in system, try different email)
- Users often use wrong email - always offer to try different emails
- Emails often go to spam - always remind to check spam folder
- Some users get stuck in loops - recognize patterns and suggest restart

INTELLIGENT RESPONSES BASED ON USER STATE:
Current user state: {state}
{page_context}{insights}
RESPONSE GUIDELINES:
- Only mention the step number they're currently on
- One clear action or question per response
- Acknowledge what they just told you before giving next step
- If stuck, always suggest trying a different email
- For technical issues beyond login, provide contact info immediately

PORTAL URL RULE:
- ONLY use: {portal_link}
- Never provide any other URLs or links

CONTACT INFO TRIGGERS:
Immediately provide contact info for:
- Course registration, billing, grades, schedules
- Technical issues beyond portal login
- Policy questions or academic issues
- Any non-login related queries

Contact:
{contact}

UHCC PORTAL KNOWLEDGE BASE:
{knowledge}

FULL CONVERSATION HISTORY:
{history}

Remember: You're an expert who cares about helping students succeed. Be warm, patient, and solution-focused."""


def _format_history(history: list[dict]) -> str:
    return "\n".join(
        f"{index}. {message.get('role')}: {message.get('content')}"
        for index, message in enumerate(history, start=1)
    )


def _format_insights(insights: Optional[ConversationInsights]) -> str:
    if insights is None:
        return ""
    lines = [f"Current step: {insights.step} of 6"]
    if insights.emails:
        lines.append(f"Email addresses mentioned so far: {', '.join(insights.emails)}")
    if insights.sentiment == "frustrated":
        lines.append("The user sounds frustrated - acknowledge it and consider suggesting a different email or contact info.")
    return "\n".join(lines) + "\n"


def build_system_prompt(
    state: ConversationState,
    history: list[dict],
    page_context: Optional[str] = None,
    insights: Optional[ConversationInsights] = None,
) -> str:
    """
    Render the system prompt for one chat turn.

    Args:
        state (ConversationState): Resolved conversation state.
        history (list[dict]): Prior messages (``role`` / ``content``).
        page_context (str, optional): Phrase from `describe_page`; the
            ``Page context:`` line is omitted when absent.
        insights (ConversationInsights, optional): Step, emails and sentiment.

    Returns:
        str: Prompt text embedding the knowledge base as JSON.
    """
    return SYSTEM_PROMPT.format(
        state=state.value,
        page_context=f"Page context: {page_context}\n" if page_context else "",
        insights=_format_insights(insights),
        portal_link=PORTAL_LINK,
        contact=CONTACT_INFO["formatted"],
        knowledge=json.dumps(PORTAL_KNOWLEDGE, indent=2, ensure_ascii=False),
        history=_format_history(history),
    )


def build_chat_messages(system_prompt: str, history: list[dict], user_query: str) -> list[dict]:
    """System prompt, then every prior turn, then the user's query."""
    messages = [{"role": "system", "content": system_prompt}]
    messages += [{"role": m.get("role"), "content": m.get("content", "")} for m in history]
    messages.append({"role": "user", "content": user_query})
    return messages


OPTIONS_PROMPT = """You are generating simple, natural response options for a user in a UHCC portal support conversation.

CURRENT CONTEXT:
- User State: {state}
- AI's Question/Action: "{focus}"
- Full AI Response: "{reply}"

CONVERSATION HISTORY (last 3 exchanges):
{history}

UHCC PORTAL KNOWLEDGE:
{knowledge}

RULES FOR GENERATING OPTIONS:
1. Generate 2-3 SHORT, NATURAL user responses (5-15 words max)
2. Write from the user's perspective only
3. Match the specific context of where the user is in the 6-step process
4. Include realistic outcomes based on the portal's actual behavior
5. Always include a "try different email" option when stuck on email-related steps

RESPONSE PATTERNS BY QUESTION TYPE:
- "What happens when...?" → What the user sees/experiences
- "Did you find...?" → "Found it!" / "Not yet" / "Nothing in spam"
- "Have you tried...?" → "Yes" / "Trying now" / "Didn't work"
- "What message appears?" → Actual messages user might see
- "How did that go?" → Success/failure outcomes

FORMAT AS JSON:
{{
  "options": [
    {{
      "id": "option1",
      "text": "Short natural response",
      "action": "Short natural response",
      "color": "appropriate-color-classes"
    }}
  ]
}}

COLORS:
- Green: Success/positive ("{green}")
- Yellow: Neutral/waiting ("{yellow}")
- Red: Error/problem ("{red}")
- Blue: Action/trying ("{blue}")

Generate ONLY the JSON, no explanations."""


def _reply_focus(reply: str) -> str:
    """The reply's question, or else its key instruction sentence."""
    sentences = [s.strip() for s in reply.replace("!", ".").split(".") if s.strip()]
    question = next((s for s in sentences if "?" in s), "")
    if question:
        return question.split("?")[0].strip() + "?"
    return next(
        (s for s in sentences if any(word in s.lower() for word in ("check", "what", "did", "have"))),
        "",
    )


def build_options_prompt(reply: str, state: ConversationState, history: list[dict]) -> list[dict]:
    """Messages asking the model for suggested replies to ``reply``."""
    prompt = OPTIONS_PROMPT.format(
        state=state.value,
        focus=_reply_focus(reply),
        reply=reply,
        history="\n".join(f"{m.get('role')}: {m.get('content')}" for m in history[-6:]),
        knowledge=json.dumps(PORTAL_KNOWLEDGE, indent=2, ensure_ascii=False),
        **OPTION_COLORS,
    )
    return [
        {"role": "system", "content": prompt},
        {"role": "user", "content": "Generate natural response options for this situation."},
    ]


ANALYTICS_SYSTEM_PROMPT = (
    "You are an analytics expert who provides clear, insightful summaries of support system data. "
    "Keep responses concise and focused on actionable insights. Remember that in a support context, "
    "users finding answers quickly and leaving (resulting in 'incomplete' sessions) can be a positive "
    "outcome. All dates and times mentioned are in Hawaii Standard Time (HST)."
)

ANALYTICS_PROMPT = """
You are an analytics expert for a university portal support system. Generate a concise, insightful one-paragraph summary of the following analytics data. Focus on key trends, notable patterns, and actionable insights. Keep the tone professional but accessible.

Analytics Data:
- Date Range: {start} to {end} (Hawaii Standard Time)
- Total Sessions: {total_sessions}
- Unique Sessions: {unique_sessions}
- Total Messages Exchanged: {total_messages}
- Average Messages per Session: {avg:.1f}
- Completed Sessions: {completed}
- Completion Rate: {rate:.1f}%

Quick Action Usage:
{quick_actions}

Event Distribution:
{event_types}

IMPORTANT CONTEXT: A low or zero completion rate doesn't necessarily indicate problems. Users may have found their answer early in the conversation and resolved their issue without needing to complete the full support flow. This is actually a positive sign of efficient problem-solving. Only interpret low completion as negative if paired with very high message counts per session (indicating struggle) or repeat sessions from the same users.

Generate a single paragraph summary (4-6 sentences) that highlights the most important insights and trends from this data. Focus on user engagement, support effectiveness, and any notable patterns. Consider that users leaving early might mean they got their answer quickly. Do not use bullet points or numbered lists."""


def format_date_hst(value: str) -> str:
    """``2025-09-12T10:00:00Z`` → ``Sep 12, 2025`` in HST; unparseable input is returned as is."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return value
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(HST)
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def build_analytics_messages(snapshot: AnalyticsSnapshot) -> list[dict]:
    """Messages asking for the one-paragraph analytics summary of ``snapshot``."""
    stats = snapshot.summary
    prompt = ANALYTICS_PROMPT.format(
        start=format_date_hst(snapshot.date_range.start),
        end=format_date_hst(snapshot.date_range.end),
        total_sessions=stats.total_sessions,
        unique_sessions=stats.unique_sessions,
        total_messages=stats.total_messages,
        avg=stats.avg_messages_per_session,
        completed=stats.completed_sessions,
        rate=stats.completion_rate,
        quick_actions="\n".join(f"- {action}: {count} clicks" for action, count in snapshot.quick_actions.items())
        or "No quick actions recorded",
        event_types="\n".join(f"- {kind}: {count} occurrences" for kind, count in snapshot.event_types.items())
        or "No events recorded",
    )
    return [
        {"role": "system", "content": ANALYTICS_SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]


_MESSAGE_TYPES = {"system": SystemMessage, "user": HumanMessage, "assistant": AIMessage}


def to_langchain_messages(messages: list[dict]) -> list[BaseMessage]:
    """Convert role dicts to LangChain messages; unknown roles are sent as user text."""
    return [
        _MESSAGE_TYPES.get(message.get("role"), HumanMessage)(content=message.get("content") or "")
        for message in messages
    ]
