"""Unit tests for the per-session analytics tracker."""

from unittest.mock import Mock

from backend.api.analytics_tracker import AnalyticsTracker


def event_types(sink):
    return [call.args[0].event_type for call in sink.call_args_list]


class TestAnalyticsTracker:
    """Test suite for AnalyticsTracker."""

    def test_init_session_emits_session_start(self):
        sink = Mock()
        tracker = AnalyticsTracker(sink)
        session_id = tracker.init_session("chat-42")

        assert session_id == "chat-42"
        event = sink.call_args.args[0]
        assert event.event_type == "session_start"
        assert event.session_id == "chat-42"
        assert "timestamp" in event.event_data

    def test_generated_session_id_is_a_timestamp(self):
        tracker = AnalyticsTracker(Mock())
        assert tracker.init_session().isdigit()

    def test_message_events_increment_count(self):
        sink = Mock()
        tracker = AnalyticsTracker(sink, session_id="s1", message_count=4)

        tracker.track_message_sent("hello")
        tracker.track_message_received("hi there", has_options=True)

        assert tracker.message_count == 6
        sent, received = [call.args[0] for call in sink.call_args_list]
        assert sent.message_count == 5
        assert sent.event_data["messageLength"] == 5
        assert received.message_count == 6
        assert received.event_data["hasOptions"] is True

    def test_first_event_without_session_starts_one(self):
        sink = Mock()
        tracker = AnalyticsTracker(sink)
        tracker.track_quick_action("I forgot my password")

        assert event_types(sink) == ["session_start", "quick_action_clicked"]
        click = sink.call_args.args[0]
        assert click.quick_action_type == "I forgot my password"
        assert click.session_id == tracker.session_id

    def test_option_click(self):
        sink = Mock()
        AnalyticsTracker(sink, session_id="s1").track_option_click("Found it!")
        assert sink.call_args.args[0].event_data["optionText"] == "Found it!"

    def test_session_completed_requires_session(self):
        sink = Mock()
        tracker = AnalyticsTracker(sink)
        assert tracker.track_session_completed() is False
        sink.assert_not_called()

        tracker.init_session("s2")
        assert tracker.track_session_completed() is True
        assert event_types(sink)[-1] == "session_completed"

    def test_sink_failure_is_swallowed(self):
        sink = Mock(side_effect=RuntimeError("database down"))
        tracker = AnalyticsTracker(sink, session_id="s1")
        assert tracker.track_message_sent("hello") is False
        assert tracker.message_count == 1

    def test_reset_forgets_session(self):
        sink = Mock()
        tracker = AnalyticsTracker(sink, session_id="s1", message_count=3)
        tracker.reset()
        assert tracker.session_id is None
        assert tracker.message_count == 0

        tracker.track_option_click("Yes")
        assert event_types(sink) == ["session_start", "option_clicked"]
