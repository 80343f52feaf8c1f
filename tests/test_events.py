"""Tests for taskflow.core.events and the key → topic mapping."""

import pytest

from taskflow.core.events import EventBus, Topic
from taskflow.data import keys


class TestEventBus:
    def test_publish_reaches_subscribers(self):
        bus = EventBus()
        seen = []
        bus.subscribe(Topic.GOALS, seen.append)
        bus.subscribe(Topic.GOALS, seen.append)

        assert bus.publish(Topic.GOALS, "payload") == 2
        assert seen == ["payload", "payload"]

    def test_other_topics_not_called(self):
        bus = EventBus()
        seen = []
        bus.subscribe(Topic.GOALS, seen.append)
        bus.publish(Topic.NOTES, "x")
        assert seen == []

    def test_unsubscribe(self):
        bus = EventBus()
        seen = []
        unsubscribe = bus.subscribe(Topic.CHAT, seen.append)
        unsubscribe()
        unsubscribe()
        assert bus.publish(Topic.CHAT, "x") == 0
        assert seen == []

    def test_failing_subscriber_is_skipped(self):
        bus = EventBus()
        seen = []

        def broken(_payload):
            raise RuntimeError("view crashed")

        bus.subscribe(Topic.TODOS, broken)
        bus.subscribe(Topic.TODOS, seen.append)

        assert bus.publish(Topic.TODOS, "k") == 1
        assert seen == ["k"]


class TestTopicForKey:
    @pytest.mark.parametrize("key, topic", [
        (keys.TASKS, Topic.TODOS),
        (keys.HOME_TODOS, Topic.TODOS),
        (keys.REMINDERS, Topic.REMINDERS),
        (keys.CALENDAR_REMINDERS, Topic.REMINDERS),
        (keys.HOME_REMINDERS, Topic.REMINDERS),
        (keys.WORK_SESSIONS, Topic.WORK),
        (keys.EXPENSES, Topic.WORK),
        (keys.NOTES, Topic.NOTES),
        (keys.GOALS, Topic.GOALS),
        (keys.HABITS, Topic.HABITS),
        (keys.USERS, Topic.USERS),
        (keys.SESSION, Topic.USERS),
        (keys.LAST_CRED, Topic.USERS),
        (keys.chat_key("alex"), Topic.CHAT),
        (keys.identity_key("alex", "notes"), Topic.NOTES),
        (keys.identity_key("alex", "todos"), Topic.TODOS),
        ("goals_v1", Topic.GOALS),
        ("something_else", Topic.STORAGE),
    ])
    def test_mapping(self, key, topic):
        assert keys.topic_for_key(key) is topic

    def test_identity_key_defaults_to_guest(self):
        assert keys.identity_key("", "todos") == "taskflow:guest:todos"
        assert keys.chat_key("") == "taskflow_chat_history_v1_guest"
