"""Unit tests for conversation state inference."""

import pytest

from backend.api.state_classifier import (
    STATE_RULES,
    ConversationState,
    analyze,
    assistant_step,
    classify,
    extract_emails,
    frustration_score,
    resolve_state,
)


def user(text):
    return {"role": "user", "content": text}


def assistant(text):
    return {"role": "assistant", "content": text}


class TestClassify:
    """Test suite for the ordered rule cascade."""

    def test_empty_history_is_initial(self):
        assert classify([]) is ConversationState.INITIAL
        assert classify(None) is ConversationState.INITIAL

    def test_unrelated_message_is_initial(self):
        assert classify([user("hello there")]) is ConversationState.INITIAL

    def test_login_error(self):
        history = [user("I can't log in, getting invalid email error")]
        assert classify(history) is ConversationState.HAS_LOGIN_ERROR

    def test_matching_is_case_insensitive(self):
        assert classify([user("I'M LOCKED OUT")]) is ConversationState.HAS_LOGIN_ERROR

    def test_checking_email_uses_recent_window_only(self):
        history = [user("I'm in the new user section")]
        assert classify(history) is ConversationState.CHECKING_EMAIL_VALIDATION

        pushed_out = history + [assistant("ok"), user("hmm"), assistant("so?")]
        assert classify(pushed_out) is ConversationState.INITIAL

    def test_email_validated(self):
        history = [user("It says there is an existing student record")]
        assert classify(history) is ConversationState.EMAIL_VALIDATED_READY_FOR_USERNAME

    def test_error_plus_good_counts_as_validated(self):
        history = [assistant("That error is good news"), user("ok")]
        assert classify(history) is ConversationState.EMAIL_VALIDATED_READY_FOR_USERNAME

    def test_username_email_sent(self):
        history = [user("it says the username was sent")]
        assert classify(history) is ConversationState.USERNAME_EMAIL_SENT

    def test_ready_for_password_reset(self):
        assert classify([user("Found it!")]) is ConversationState.READY_FOR_PASSWORD_RESET

    def test_password_reset_in_progress(self):
        history = [user("I requested a password reset and got a link")]
        assert classify(history) is ConversationState.PASSWORD_RESET_IN_PROGRESS

    def test_process_complete(self):
        history = [user("I successfully logged in, thanks")]
        assert classify(history) is ConversationState.PROCESS_COMPLETE

    def test_completion_beats_earlier_steps(self):
        history = [
            user("I can't log in"),
            assistant("Try the new user section"),
            user("existing student record shown"),
            user("successfully logged in!"),
        ]
        assert classify(history) is ConversationState.PROCESS_COMPLETE

    def test_recent_restart_beats_older_completion(self):
        history = [
            user("I successfully logged in yesterday"),
            assistant("Great!"),
            user("today it asks again"),
            assistant("Okay, what happens?"),
            user("I want to start over"),
        ]
        assert classify(history) is ConversationState.RESTART_NEEDED

    def test_old_restart_phrase_does_not_trigger(self):
        history = [
            user("wrong email, let me retry"),
            assistant("Sure"),
            user("ok"),
            assistant("Go on"),
            user("hello"),
        ]
        assert classify(history) is not ConversationState.RESTART_NEEDED

    def test_assistant_suggestion_in_recent_window_triggers_restart(self):
        history = [
            user("I can't log in"),
            assistant("Since that's not working, let's try different email addresses."),
            user("ok"),
        ]
        assert classify(history) is ConversationState.RESTART_NEEDED

    def test_assistant_restart_wording_outside_window_is_ignored(self):
        history = [
            user("I can't log in"),
            assistant("Let's start fresh with a different email address."),
            user("ok"),
            assistant("What happens?"),
            user("nothing yet"),
        ]
        assert classify(history) is ConversationState.HAS_LOGIN_ERROR

    def test_classification_is_idempotent(self):
        history = [user("I can't log in"), assistant("Try the new user section"), user("checking email now")]
        assert classify(history) is classify(history)

    def test_accepts_message_objects(self):
        class Message:
            def __init__(self, role, content):
                self.role = role
                self.content = content

        assert classify([Message("user", "locked out")]) is ConversationState.HAS_LOGIN_ERROR

    def test_rule_order(self):
        states = [state for _, state in STATE_RULES]
        assert states[0] is ConversationState.RESTART_NEEDED
        assert states[1] is ConversationState.PROCESS_COMPLETE
        assert states[-1] is ConversationState.HAS_LOGIN_ERROR


class TestAssistantStep:
    """Test suite for the step instructed by the last assistant message."""

    def test_no_assistant_message(self):
        assert assistant_step([user("hi")]) == 0

    def test_explicit_step_mention(self):
        history = [assistant("Now for Step 2: click Forgot Username"), user("ok")]
        assert assistant_step(history) == 2

    def test_first_explicit_step_wins(self):
        text = "Step 3 now: check your inbox. Then we'll move to Step 4 (password reset)."
        assert assistant_step([assistant(text)]) == 3

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Great, Step 3 is done! Now Step 4: go to Forgot Password and enter your username.", 4),
            ("Awesome, you've completed Step 2. Step 3: check your email for your username.", 3),
            ("Nice work, Step 5 complete. Step 6: log in on the LEFT side.", 6),
        ],
    )
    def test_steps_reported_as_done_are_skipped(self, text, expected):
        assert assistant_step([user("done"), assistant(text)]) == expected

    def test_only_finished_steps_fall_back_to_keywords(self):
        text = "Step 1 is done, so head to Forgot Username next."
        assert assistant_step([assistant(text)]) == 2

    def test_keyword_rules(self):
        assert assistant_step([assistant("Click Forgot Password and enter your username")]) == 4
        assert assistant_step([assistant("Use the I am a new user section")]) == 1

    def test_uses_only_the_last_assistant_message(self):
        history = [assistant("Go to forgot password"), user("hm"), assistant("Hello!")]
        assert assistant_step(history) == 0


class TestResolveState:
    """Test suite for combining both passes."""

    def test_restart_always_wins(self):
        assert resolve_state(ConversationState.RESTART_NEEDED, 5) is ConversationState.RESTART_NEEDED

    def test_later_assistant_step_overrides(self):
        resolved = resolve_state(ConversationState.HAS_LOGIN_ERROR, 2)
        assert resolved is ConversationState.EMAIL_VALIDATED_READY_FOR_USERNAME

    @pytest.mark.parametrize("step", [0, 1])
    def test_earlier_or_same_step_keeps_user_state(self, step):
        assert resolve_state(ConversationState.HAS_LOGIN_ERROR, step) is ConversationState.HAS_LOGIN_ERROR


class TestInsights:
    """Test suite for emails, frustration and the combined analysis."""

    def test_extract_emails_dedupes_case_insensitively(self):
        history = [
            user("I used Jane.Doe@Hawaii.edu"),
            assistant("Try jane.doe@hawaii.edu again"),
            user("also jane.doe@hawaii.edu and jd@gmail.com"),
        ]
        assert extract_emails(history) == ["Jane.Doe@Hawaii.edu", "jd@gmail.com"]

    def test_extract_emails_includes_assistant_messages(self):
        history = [user("hi"), assistant("Did you use jane@hawaii.edu?"), user("yes, and kai@gmail.com")]
        assert extract_emails(history) == ["jane@hawaii.edu", "kai@gmail.com"]

    def test_frustration_ignores_assistant_messages(self):
        history = [assistant("I see you're getting a login error - that's frustrating!"), user("yes")]
        assert frustration_score(history) == 0

    def test_frustration_score_counts_recent_user_phrases(self):
        history = [
            user("this is ridiculous"),
            assistant("sorry"),
            user("so annoying, still not working!!!"),
            assistant("let's try again"),
        ]
        # only the last three messages count
        assert frustration_score(history) == 4

    def test_analyze(self):
        history = [
            user("I can't log in"),
            assistant("Now for Step 2: go to Forgot Username"),
            user("ok, frustrating, annoying, useless"),
        ]
        insights = analyze(history)
        assert insights.state is ConversationState.HAS_LOGIN_ERROR
        assert insights.assistant_step == 2
        assert insights.resolved_state is ConversationState.EMAIL_VALIDATED_READY_FOR_USERNAME
        assert insights.step == 2
        assert insights.sentiment == "frustrated"
