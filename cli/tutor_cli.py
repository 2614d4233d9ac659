"""Main CLI loop for interactive problem solving."""

import logging
import sys
from pathlib import Path
from typing import TextIO

from mathtutor.render import render_document

from .client import TutorAPIClient
from .config import CLIConfig
from .conversation import Conversation
from .formatter import ResponseFormatter

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("exit", "quit")
CLEAR_COMMAND = "/clear"
EXPORT_COMMAND = "/export"


class TutorCLI:
    """Interactive terminal client for the solve API."""

    def __init__(
        self,
        config: CLIConfig,
        input_stream: TextIO = sys.stdin,
        output_stream: TextIO = sys.stdout,
        client: TutorAPIClient | None = None,
    ):
        """Initialize the CLI.

        Parameters
        ----------
        config
            CLI configuration.
        input_stream
            Input stream for user input (default: stdin).
        output_stream
            Output stream for responses (default: stdout).
        client
            API client; built from *config* when omitted.
        """
        self.config = config
        self.input_stream = input_stream
        self.output_stream = output_stream
        self.client = client or TutorAPIClient(config)
        self.conversation = Conversation()

    async def run(self) -> None:
        """Run the interactive CLI loop."""
        try:
            self._print_welcome()
            while True:
                try:
                    text = self._get_user_input()
                except KeyboardInterrupt:
                    self._print("\n\nInterrupted. Use 'exit' or 'quit' to exit.\n")
                    continue
                except EOFError:
                    self._print("\nGoodbye!\n")
                    break

                if not text.strip():
                    continue

                command = text.strip()
                if command.lower() in EXIT_COMMANDS:
                    self._print("Goodbye!\n")
                    break
                if command == CLEAR_COMMAND:
                    self.conversation.clear()
                    self._print("Conversation cleared.\n\n")
                    continue
                if command.startswith(EXPORT_COMMAND):
                    self._export(command[len(EXPORT_COMMAND) :].strip())
                    continue

                await self._process_question(text)
        finally:
            await self.client.close()

    async def _process_question(self, question: str) -> None:
        """Send one question and stream the answer into the conversation."""
        formatter = ResponseFormatter(self.output_stream)
        generation = self.conversation.begin(question)

        failed = False
        async for event in self.client.solve(question):
            event_type = event.get("type")
            if event_type == "accepted":
                self.conversation.accepted(generation)
            elif event_type == "content":
                if not self.conversation.append(generation, event["content"]):
                    continue
            elif event_type == "error":
                failed = True
                error = self.conversation.fail(generation)
                formatter.handle_event(event)
                if error is not None:
                    formatter.show_error_message(error.content)
                continue
            formatter.handle_event(event)

        if not failed:
            self.conversation.settle(generation)
        formatter.finish_response()

    def _export(self, target: str) -> None:
        if not target:
            self._print(f"Usage: {EXPORT_COMMAND} <path>\n\n")
            return
        path = Path(target).expanduser()
        try:
            path.write_text(
                render_document(self.conversation.history), encoding="utf-8"
            )
        except OSError as e:
            self._print(f"❌ Export failed: {e}\n\n")
            return
        self._print(f"Exported {len(self.conversation.history)} messages to {path}\n\n")

    def _get_user_input(self) -> str:
        """Read one question; it may span lines and ends at an empty line.

        Commands are recognised on the first line and end it immediately.
        """
        self._print("> ")
        lines: list[str] = []
        while True:
            line = self.input_stream.readline()
            if not line:
                if lines:
                    return "\n".join(lines)
                raise EOFError
            line = line.rstrip("\n\r")

            if not lines:
                first = line.strip()
                if first.lower() in EXIT_COMMANDS or first.startswith("/"):
                    return line
            if not line.strip():
                if lines:
                    return "\n".join(lines)
                continue
            lines.append(line)
            self._print(". ")

    def _print_welcome(self) -> None:
        self._print("mathtutor CLI\n")
        self._print(f"Connected to: {self.config.solve_url}\n")
        self._print(
            "Type a problem and finish it with an empty line.\n"
            f"Commands: {CLEAR_COMMAND}, {EXPORT_COMMAND} <path>, exit, quit\n\n"
        )

    def _print(self, text: str) -> None:
        self.output_stream.write(text)
        self.output_stream.flush()


async def main(config: CLIConfig | None = None, debug: bool = False) -> None:
    """Run the interactive loop against the server in *config*.

    Client logs go to stderr so they never interleave with the answer
    stream on stdout.
    """
    log_level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    cli = TutorCLI(config or CLIConfig())
    await cli.run()
