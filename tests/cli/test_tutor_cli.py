"""Tests for the interactive loop of the terminal client."""

from __future__ import annotations

import io

import pytest

from cli.config import CLIConfig
from cli.conversation import NETWORK_ERROR_MESSAGE, ConversationState
from cli.tutor_cli import TutorCLI


class _ScriptedClient:
    """Replays canned event lists, one per question."""

    def __init__(self, *responses: list[dict]) -> None:
        self._responses = list(responses)
        self.questions: list[str] = []
        self.closed = False

    async def solve(self, question: str):
        self.questions.append(question)
        for event in self._responses.pop(0):
            yield event

    async def close(self) -> None:
        self.closed = True


ANSWER = [
    {"type": "accepted"},
    {"type": "content", "content": "#### 結論\n"},
    {"type": "content", "content": "$x=1$"},
    {"type": "done"},
]


def _cli(lines: str, *responses: list[dict]) -> tuple[TutorCLI, io.StringIO]:
    output = io.StringIO()
    cli = TutorCLI(
        CLIConfig(),
        input_stream=io.StringIO(lines),
        output_stream=output,
        client=_ScriptedClient(*responses),
    )
    return cli, output


class TestTutorCLI:
    @pytest.mark.asyncio
    async def test_question_answered_and_recorded(self):
        cli, output = _cli("x^2=1 を解け\n\nexit\n", ANSWER)

        await cli.run()

        assert cli.client.questions == ["x^2=1 を解け"]
        assert cli.client.closed
        assert [m.role for m in cli.conversation.history] == ["user", "assistant"]
        assert cli.conversation.history[1].content == "#### 結論\n$x=1$"
        assert "$x=1$" in output.getvalue()

    @pytest.mark.asyncio
    async def test_multiline_question(self):
        cli, _ = _cli("(1) 第一問\n(2) 第二問\n\nquit\n", ANSWER)
        await cli.run()
        assert cli.client.questions == ["(1) 第一問\n(2) 第二問"]

    @pytest.mark.asyncio
    async def test_error_event_records_japanese_message(self):
        error = [{"type": "error", "code": "RATE_LIMIT", "message": "slow down", "retry_after": 30}]
        cli, output = _cli("問題\n\n", error)

        await cli.run()

        assert cli.conversation.state is ConversationState.ERRORED
        assert cli.conversation.history[-1].content == NETWORK_ERROR_MESSAGE
        assert "30" in output.getvalue()
        assert NETWORK_ERROR_MESSAGE in output.getvalue()

    @pytest.mark.asyncio
    async def test_clear_command(self):
        cli, _ = _cli("問題\n\n/clear\n", ANSWER)
        await cli.run()
        assert cli.conversation.history == []

    @pytest.mark.asyncio
    async def test_export_command(self, tmp_path):
        target = tmp_path / "answer.html"
        cli, output = _cli(f"問題\n\n/export {target}\n", ANSWER)

        await cli.run()

        page = target.read_text(encoding="utf-8")
        assert page.startswith("<!DOCTYPE html>")
        assert "<math" in page
        assert "Exported 2 messages" in output.getvalue()

    @pytest.mark.asyncio
    async def test_export_needs_path(self):
        cli, output = _cli("/export\n")
        await cli.run()
        assert "Usage: /export <path>" in output.getvalue()

    @pytest.mark.asyncio
    async def test_eof_exits(self):
        cli, output = _cli("")
        await cli.run()
        assert "Goodbye!" in output.getvalue()
        assert cli.client.closed

    @pytest.mark.asyncio
    async def test_clear_is_read_after_the_answer(self):
        lines = io.StringIO("問題\n\n/clear\n次の問題\n\n")
        unread_during_answer: list[str] = []

        class _PeekingClient(_ScriptedClient):
            async def solve(self, question):
                position = lines.tell()
                unread_during_answer.append(lines.read())
                lines.seek(position)
                async for event in super().solve(question):
                    yield event

        output = io.StringIO()
        cli = TutorCLI(
            CLIConfig(),
            input_stream=lines,
            output_stream=output,
            client=_PeekingClient(ANSWER, ANSWER),
        )

        await cli.run()

        # /clear is still unread while the first answer streams
        assert unread_during_answer[0].startswith("/clear")
        assert [m.content for m in cli.conversation.history] == [
            "次の問題",
            "#### 結論\n$x=1$",
        ]
        assert cli.conversation.generation == 3
