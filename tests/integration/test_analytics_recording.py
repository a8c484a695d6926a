"""Integration tests for analytics ingestion and reporting on SQLite."""

import random
from datetime import datetime, timedelta, timezone

import pytest

from backend.api.models import AnalyticsEventIn
from backend.database.core.funcs import (
    SEED_QUICK_ACTIONS,
    get_analytics_report,
    get_analytics_status,
    record_analytics_event,
    seed_test_data,
)

# 10:00 HST on Friday 2025-09-12
NOW = datetime(2025, 9, 12, 20, 0, tzinfo=timezone.utc)


def record(event_type, session_id="s1", now=NOW, **fields):
    event = AnalyticsEventIn(session_id=session_id, event_type=event_type, **fields)
    return record_analytics_event(event=event, now=now)


@pytest.mark.usefixtures("clean_db")
class TestRecordAnalyticsEvent:
    """Test suite for record_analytics_event and the daily aggregate."""

    def test_returns_stored_event(self):
        stored = record("message_sent", event_data={"messageLength": 12}, message_count=3)
        assert stored["sessionId"] == "s1"
        assert stored["eventType"] == "message_sent"
        assert stored["eventData"] == {"messageLength": 12}
        assert stored["messageCount"] == 3

    def test_two_sessions_same_day_share_one_row(self):
        record("session_start", session_id="a")
        record("session_start", session_id="b", now=NOW + timedelta(hours=2))

        report = get_analytics_report(filter="day", period="current", now=NOW)
        assert len(report["dailySummaries"]) == 1
        day = report["dailySummaries"][0]
        assert day["date"] == "2025-09-12"
        assert day["totalSessions"] == 2
        assert day["uniqueSessions"] == 2

    def test_events_bucket_by_hst_day(self):
        # 05:00 UTC on the 13th is still the 12th in Honolulu
        record("session_start", now=datetime(2025, 9, 13, 5, 0, tzinfo=timezone.utc))
        report = get_analytics_report(filter="day", period="current", now=NOW)
        assert report["summary"]["totalSessions"] == 1

    def test_quick_action_increments_only_its_key(self):
        record("session_start")
        record("quick_action_clicked", quick_action_type="I forgot my username")
        record("quick_action_clicked", quick_action_type="I forgot my password")
        record("quick_action_clicked", quick_action_type="I forgot my password")

        report = get_analytics_report(now=NOW)
        assert report["quickActions"] == {"I forgot my username": 1, "I forgot my password": 2}
        assert report["summary"]["totalSessions"] == 1

    def test_quick_action_without_title_only_logs(self):
        record("quick_action_clicked")
        report = get_analytics_report(now=NOW)
        assert report["quickActions"] == {}
        assert report["eventTypes"] == {"quick_action_clicked": 1}

    def test_average_tracks_counters(self):
        record("session_start", session_id="a")
        for _ in range(3):
            record("message_sent", session_id="a")
            record("message_received", session_id="a")
        record("session_start", session_id="b")

        day = get_analytics_report(now=NOW)["dailySummaries"][0]
        assert day["totalMessages"] == 6
        assert day["totalSessions"] == 2
        assert day["avgMessagesPerSession"] == pytest.approx(3.0)

    def test_messages_before_any_session_keep_average_zero(self):
        record("message_sent")
        day = get_analytics_report(now=NOW)["dailySummaries"][0]
        assert day["totalMessages"] == 1
        assert day["avgMessagesPerSession"] == 0

    def test_completion_and_option_clicks(self):
        record("session_start")
        record("option_clicked", event_data={"optionText": "Found it!"})
        record("session_completed")

        report = get_analytics_report(now=NOW)
        assert report["summary"]["completedSessions"] == 1
        assert report["summary"]["completionRate"] == 100.0
        assert report["eventTypes"]["option_clicked"] == 1


@pytest.mark.usefixtures("clean_db")
class TestAnalyticsReport:
    """Test suite for get_analytics_report."""

    def test_empty_window(self):
        report = get_analytics_report(filter="week", period="current", now=NOW)
        assert report["summary"] == {
            "totalSessions": 0,
            "uniqueSessions": 0,
            "totalMessages": 0,
            "avgMessagesPerSession": 0,
            "completedSessions": 0,
            "completionRate": 0,
        }
        assert report["rawDataCount"] == 0
        assert report["timezone"] == "Pacific/Honolulu"
        assert report["currentTimeHST"] == "2025-09-12 10:00:00 HST"

    def test_week_window_and_rounding(self):
        record("session_start", session_id="a", now=NOW - timedelta(days=5))  # Sunday the 7th
        record("session_start", session_id="b")
        record("session_start", session_id="c")
        for _ in range(4):
            record("message_sent", session_id="b")
        record("session_completed", session_id="b")
        record("session_start", session_id="old", now=NOW - timedelta(days=6))  # previous week

        report = get_analytics_report(filter="week", period="current", now=NOW)
        summary = report["summary"]
        assert summary["totalSessions"] == 3
        assert summary["uniqueSessions"] == 3
        assert summary["avgMessagesPerSession"] == 1.3
        assert summary["completionRate"] == 33.3
        assert [d["date"] for d in report["dailySummaries"]] == ["2025-09-07", "2025-09-12"]
        assert report["dateRange"]["start"] == "2025-09-07T10:00:00+00:00"

    def test_custom_range(self):
        record("session_start", now=NOW - timedelta(days=2))
        report = get_analytics_report(filter="custom", start_date="2025-09-10", end_date="2025-09-10", now=NOW)
        assert report["summary"]["totalSessions"] == 1

    def test_custom_reversed_raises(self):
        with pytest.raises(ValueError):
            get_analytics_report(filter="custom", start_date="2025-09-10", end_date="2025-09-01", now=NOW)


@pytest.mark.usefixtures("clean_db")
class TestStatusAndSeed:
    """Test suite for the data status and development seeding."""

    def test_status_empty(self):
        status = get_analytics_status()
        assert status["summaries"] == {"count": 0, "earliest": None, "latest": None}
        assert status["events"]["count"] == 0

    def test_seed_overwrites_recent_days(self):
        record("session_start", now=NOW)
        seeded = seed_test_data(days=3, now=NOW, rng=random.Random(7))

        assert [s["date"] for s in seeded] == ["2025-09-12", "2025-09-11", "2025-09-10"]
        for summary in seeded:
            assert 5 <= summary["totalSessions"] <= 24
            assert summary["uniqueSessions"] == summary["totalSessions"]
            assert summary["totalMessages"] % summary["totalSessions"] == 0
            assert set(summary["quickActionClicks"]) == set(SEED_QUICK_ACTIONS)

        status = get_analytics_status()
        assert status["summaries"] == {"count": 3, "earliest": "2025-09-10", "latest": "2025-09-12"}
        assert status["events"]["count"] == 1
