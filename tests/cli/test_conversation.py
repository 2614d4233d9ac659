"""Tests for the terminal client's conversation state machine."""

import pytest

from cli.conversation import (
    NETWORK_ERROR_MESSAGE,
    Conversation,
    ConversationBusy,
    ConversationState,
)


class TestLifecycle:
    def test_starts_idle(self):
        conversation = Conversation()
        assert conversation.state is ConversationState.IDLE
        assert conversation.history == []

    def test_happy_path(self):
        conversation = Conversation()
        gen = conversation.begin("問題")
        assert conversation.state is ConversationState.SENDING

        conversation.accepted(gen)
        assert conversation.state is ConversationState.THINKING

        conversation.append(gen, "#### 要約\n")
        assert conversation.state is ConversationState.STREAMING
        conversation.append(gen, "$x=1$")
        assert conversation.pending == "#### 要約\n$x=1$"

        message = conversation.settle(gen)
        assert conversation.state is ConversationState.SETTLED
        assert message.content == "#### 要約\n$x=1$"
        assert [m.role for m in conversation.history] == ["user", "assistant"]
        assert conversation.pending == ""

    def test_blank_question_rejected(self):
        with pytest.raises(ValueError):
            Conversation().begin("  ")

    def test_one_request_at_a_time(self):
        conversation = Conversation()
        conversation.begin("a")
        with pytest.raises(ConversationBusy):
            conversation.begin("b")

    def test_next_request_after_settle(self):
        conversation = Conversation()
        gen = conversation.begin("a")
        conversation.settle(gen)
        assert conversation.begin("b") == gen + 1

    def test_empty_answer_adds_no_message(self):
        conversation = Conversation()
        gen = conversation.begin("a")
        assert conversation.settle(gen) is None
        assert len(conversation.history) == 1


class TestFailure:
    def test_fail_replaces_partial_answer(self):
        conversation = Conversation()
        gen = conversation.begin("問題")
        conversation.append(gen, "途中まで")

        conversation.fail(gen)

        assert conversation.state is ConversationState.ERRORED
        assert conversation.history[-1].content == NETWORK_ERROR_MESSAGE
        assert conversation.pending == ""

    def test_usable_after_error(self):
        conversation = Conversation()
        conversation.fail(conversation.begin("a"))
        assert not conversation.busy
        conversation.begin("b")
        assert conversation.state is ConversationState.SENDING


class TestClear:
    def test_clear_resets_everything(self):
        conversation = Conversation()
        gen = conversation.begin("a")
        conversation.append(gen, "x")

        conversation.clear()

        assert conversation.history == []
        assert conversation.pending == ""
        assert conversation.state is ConversationState.IDLE

    def test_frames_after_clear_are_dropped(self):
        conversation = Conversation()
        gen = conversation.begin("a")
        conversation.clear()

        assert conversation.append(gen, "late") is False
        assert conversation.settle(gen) is None
        assert conversation.fail(gen) is None
        assert conversation.history == []
        assert conversation.state is ConversationState.IDLE

    def test_stale_frames_do_not_leak_into_new_request(self):
        conversation = Conversation()
        old = conversation.begin("a")
        conversation.clear()
        new = conversation.begin("b")

        conversation.append(old, "stale")
        conversation.append(new, "fresh")

        assert conversation.pending == "fresh"
