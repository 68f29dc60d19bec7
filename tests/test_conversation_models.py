"""Unit tests for conversation models."""
import dataclasses

import pytest

from models.conversation import ConversationHistory, Role, Turn


class TestTurn:

    def test_create_assigns_unique_ids(self):
        first = Turn.create(Role.USER, "Hello")
        second = Turn.create(Role.USER, "Hello")

        assert first.turn_id.startswith("turn_")
        assert first.turn_id != second.turn_id

    def test_turns_are_immutable(self):
        turn = Turn.create(Role.USER, "Hello")

        with pytest.raises(dataclasses.FrozenInstanceError):
            turn.text = "Edited"

    def test_role_accepts_plain_string(self):
        assert Turn.create("assistant", "Hi").role is Role.ASSISTANT


class TestConversationHistory:

    def test_append_preserves_order(self):
        history = ConversationHistory()
        history.append(Turn.create(Role.USER, "a"))
        history.append(Turn.create(Role.ASSISTANT, "b"))

        assert [t.text for t in history] == ["a", "b"]
        assert history.latest.text == "b"

    def test_prior_turns_excludes_latest(self):
        history = ConversationHistory([Turn.create(Role.USER, str(i)) for i in range(3)])

        prior = history.prior_turns()

        assert len(prior) == len(history) - 1
        assert [t.text for t in prior] == ["0", "1"]

    def test_prior_turns_of_empty_history(self):
        assert ConversationHistory().prior_turns() == ()

    def test_turns_snapshot_is_not_live(self):
        history = ConversationHistory()
        snapshot = history.turns
        history.append(Turn.create(Role.USER, "later"))

        assert snapshot == ()
        assert isinstance(history.turns, tuple)

    def test_reset_replaces_whole_log(self):
        history = ConversationHistory([Turn.create(Role.USER, "old")])

        history.reset()

        assert len(history) == 0
