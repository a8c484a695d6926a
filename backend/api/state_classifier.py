"""
Conversation state inference for the portal recovery flow.

The recovery procedure is linear (validate email → request username → read
username email → request password reset → reset password → log in). Which
step the user is on is inferred from the message history with keyword rules,
re-computed on every turn; nothing about the state is stored.

Two passes
----------
- ``classify``: an ordered cascade over the *user-visible history*
  (lower-cased, all messages joined, plus a window of the last
  ``RECENT_WINDOW`` messages). The first matching rule wins.
- ``assistant_step``: the step (0–6) the *last assistant message* instructed,
  read from its wording.

``analyze`` combines both: ``restart_needed`` always wins; otherwise the
assistant pass replaces the cascade result only when it reports a later
step. It also extracts mentioned email addresses and a frustration score.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Iterator


class ConversationState(str, Enum):
    INITIAL = "initial"
    HAS_LOGIN_ERROR = "has_login_error"
    CHECKING_EMAIL_VALIDATION = "checking_email_validation"
    EMAIL_VALIDATED_READY_FOR_USERNAME = "email_validated_ready_for_username"
    USERNAME_EMAIL_SENT = "username_email_sent"
    READY_FOR_PASSWORD_RESET = "ready_for_password_reset"
    PASSWORD_RESET_IN_PROGRESS = "password_reset_in_progress"
    PROCESS_COMPLETE = "process_complete"
    RESTART_NEEDED = "restart_needed"


RECENT_WINDOW = 3
"""Number of trailing messages that form the recent window."""
FRUSTRATION_THRESHOLD = 3

RESTART_PHRASES = (
    "start over",
    "try different email",
    "wrong email",
    "different email",
    "not working",
    "still not getting",
    "not receiving",
    "nothing in spam",
)
COMPLETION_CONTEXT = ("logged in", "reset password", "i'm in", "it worked")
PASSWORD_RESET_CONTEXT = ("email", "link", "got the reset")
USERNAME_ACQUIRED = (
    "got my username",
    "have username",
    "received username",
    "found my username",
    "username from email",
    "found it!",
)
USERNAME_SENT_CONTEXT = ("sent", "check your email", "email sent")
EMAIL_VALIDATED = (
    "existing student record",
    "validation error",
    "email exists",
    "email is in the system",
)
CHECKING_EMAIL = ("new user", "right side", "checking email")
LOGIN_ERROR = (
    "invalid email",
    "invalid password",
    "login error",
    "can't log in",
    "won't let me",
    "locked out",
)
FRUSTRATION_PHRASES = (
    "frustrat",
    "annoying",
    "ridiculous",
    "waste of time",
    "give up",
    "doesn't work",
    "not working",
    "still not",
    "useless",
    "!!!",
    "???",
)

EMAIL_PATTERN = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
STEP_MENTION = re.compile(r"\bstep\s*([1-6])\b")
STEP_DONE_AFTER = re.compile(r"\s*(?:is|was|'s)?\s*(?:done|complete|completed|finished)\b")
STEP_DONE_BEFORE = ("completed", "finished", "done with", "after", "past")

STATE_STEPS = {
    ConversationState.INITIAL: 0,
    ConversationState.RESTART_NEEDED: 0,
    ConversationState.HAS_LOGIN_ERROR: 1,
    ConversationState.CHECKING_EMAIL_VALIDATION: 1,
    ConversationState.EMAIL_VALIDATED_READY_FOR_USERNAME: 2,
    ConversationState.USERNAME_EMAIL_SENT: 3,
    ConversationState.READY_FOR_PASSWORD_RESET: 4,
    ConversationState.PASSWORD_RESET_IN_PROGRESS: 5,
    ConversationState.PROCESS_COMPLETE: 6,
}
"""Recovery step (0 = not started) each state belongs to."""

STEP_STATES = {
    0: ConversationState.INITIAL,
    1: ConversationState.CHECKING_EMAIL_VALIDATION,
    2: ConversationState.EMAIL_VALIDATED_READY_FOR_USERNAME,
    3: ConversationState.USERNAME_EMAIL_SENT,
    4: ConversationState.READY_FOR_PASSWORD_RESET,
    5: ConversationState.PASSWORD_RESET_IN_PROGRESS,
    6: ConversationState.PROCESS_COMPLETE,
}


def _role(message) -> str:
    if isinstance(message, dict):
        return message.get("role") or ""
    return getattr(message, "role", "") or ""


def _content(message, lower: bool = True) -> str:
    if isinstance(message, dict):
        text = message.get("content") or ""
    else:
        text = getattr(message, "content", "") or ""
    return text.lower() if lower else text


def _mentions(text: str, phrases: Iterable[str]) -> bool:
    return any(phrase in text for phrase in phrases)


@dataclass(frozen=True)
class HistoryView:
    """Lower-cased views of a history that the rules match against."""
    full: str
    recent: str

    @classmethod
    def from_messages(cls, messages) -> "HistoryView":
        messages = list(messages or [])
        window = messages[-RECENT_WINDOW:]
        return cls(
            full=" ".join(_content(m) for m in messages),
            recent=" ".join(_content(m) for m in window),
        )


Rule = tuple[Callable[[HistoryView], bool], ConversationState]

STATE_RULES: list[Rule] = [
    (lambda h: _mentions(h.recent, RESTART_PHRASES), ConversationState.RESTART_NEEDED),
    (lambda h: "successfully" in h.full and _mentions(h.full, COMPLETION_CONTEXT), ConversationState.PROCESS_COMPLETE),
    (lambda h: "password reset" in h.full and _mentions(h.full, PASSWORD_RESET_CONTEXT), ConversationState.PASSWORD_RESET_IN_PROGRESS),
    (lambda h: _mentions(h.full, USERNAME_ACQUIRED), ConversationState.READY_FOR_PASSWORD_RESET),
    (lambda h: "username" in h.full and _mentions(h.full, USERNAME_SENT_CONTEXT), ConversationState.USERNAME_EMAIL_SENT),
    (
        lambda h: _mentions(h.full, EMAIL_VALIDATED) or ("error" in h.full and "good" in h.full),
        ConversationState.EMAIL_VALIDATED_READY_FOR_USERNAME,
    ),
    (lambda h: _mentions(h.recent, CHECKING_EMAIL), ConversationState.CHECKING_EMAIL_VALIDATION),
    (lambda h: _mentions(h.full, LOGIN_ERROR), ConversationState.HAS_LOGIN_ERROR),
]
"""Ordered ``(predicate, state)`` cascade; the first match wins."""


def classify(messages) -> ConversationState:
    """
    Infer the recovery state from a message history.

    Parameters
    ----------
    messages : iterable
        Messages as dicts or objects with ``role`` and ``content``.

    Returns
    -------
    ConversationState
        State of the first matching rule in ``STATE_RULES``, or ``INITIAL``.
    """
    view = HistoryView.from_messages(messages)
    for predicate, state in STATE_RULES:
        if predicate(view):
            return state
    return ConversationState.INITIAL


ASSISTANT_STEP_RULES: list[tuple[int, Callable[[str], bool]]] = [
    (6, lambda t: "success" in t and _mentions(t, ("all set", "logged in", "log in anytime"))),
    (5, lambda t: _mentions(t, ("reset link", "password reset email"))),
    (4, lambda t: "forgot password" in t),
    (3, lambda t: _mentions(t, ("username email", "email with your username"))),
    (2, lambda t: "forgot username" in t),
    (1, lambda t: _mentions(t, ("i am a new user", "new user"))),
]


def _current_step_mentions(text: str) -> Iterator[int]:
    """Steps named as "Step N" in ``text``, skipping the ones reported as done."""
    for match in STEP_MENTION.finditer(text):
        before = text[max(0, match.start() - 20):match.start()].rstrip()
        if STEP_DONE_AFTER.match(text, match.end()) or before.endswith(STEP_DONE_BEFORE):
            continue
        yield int(match.group(1))


def assistant_step(messages) -> int:
    """
    Step (0–6) instructed by the most recent assistant message.

    An explicit "Step N" takes precedence: the first one mentioned that is
    not reported as already done ("Step 3 is done", "you've completed
    Step 3"), since replies often preview the following step. Otherwise
    keyword rules are checked from the last step down. 0 if there is no
    assistant message or nothing matches.
    """
    last = next((m for m in reversed(list(messages or [])) if _role(m) == "assistant"), None)
    if last is None:
        return 0
    text = _content(last)
    explicit = next(_current_step_mentions(text), None)
    if explicit is not None:
        return explicit
    for step, predicate in ASSISTANT_STEP_RULES:
        if predicate(text):
            return step
    return 0


def extract_emails(messages) -> list[str]:
    """Email addresses mentioned in any message, de-duplicated case-insensitively, in order of first mention."""
    seen = set()
    emails = []
    for message in messages or []:
        for email in EMAIL_PATTERN.findall(_content(message, lower=False)):
            if email.lower() not in seen:
                seen.add(email.lower())
                emails.append(email)
    return emails


def frustration_score(messages) -> int:
    """
    Number of frustration phrases found in the user's messages of the recent
    window. Assistant messages are not counted: the canned replies themselves
    acknowledge frustration ("that's frustrating!").
    """
    window = list(messages or [])[-RECENT_WINDOW:]
    return sum(
        1
        for message in window
        if _role(message) == "user"
        for phrase in FRUSTRATION_PHRASES
        if phrase in _content(message)
    )


@dataclass
class ConversationInsights:
    """Everything the classifier derives from one history."""
    state: ConversationState
    assistant_step: int
    resolved_state: ConversationState
    emails: list[str] = field(default_factory=list)
    frustration_score: int = 0

    @property
    def sentiment(self) -> str:
        return "frustrated" if self.frustration_score >= FRUSTRATION_THRESHOLD else "neutral"

    @property
    def step(self) -> int:
        return STATE_STEPS[self.resolved_state]


def resolve_state(user_state: ConversationState, step_from_assistant: int) -> ConversationState:
    """Combine both passes: restart wins, otherwise the later step wins."""
    if user_state is ConversationState.RESTART_NEEDED:
        return user_state
    if step_from_assistant > STATE_STEPS[user_state]:
        return STEP_STATES[step_from_assistant]
    return user_state


def analyze(messages) -> ConversationInsights:
    messages = list(messages or [])
    user_state = classify(messages)
    step = assistant_step(messages)
    return ConversationInsights(
        state=user_state,
        assistant_step=step,
        resolved_state=resolve_state(user_state, step),
        emails=extract_emails(messages),
        frustration_score=frustration_score(messages),
    )
