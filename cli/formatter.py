"""Terminal output for streamed answers."""

import logging
from typing import TextIO

logger = logging.getLogger(__name__)

THINKING_INDICATOR = "考え中..."


class ResponseFormatter:
    """Writes solve events to the terminal as they arrive."""

    def __init__(self, output: TextIO):
        self.output = output
        self.content_started = False
        self.thinking_shown = False

    def handle_event(self, event: dict) -> None:
        """Display a single client event.

        Parameters
        ----------
        event
            Event produced by ``TutorAPIClient.solve``.
        """
        event_type = event.get("type")

        if event_type == "accepted":
            self.thinking_shown = True
            self._print(THINKING_INDICATOR)

        elif event_type == "content":
            if not self.content_started:
                # Replace the indicator line with the answer
                self._print("\r\033[K" if self.thinking_shown else "\n")
                self.content_started = True
            self._print(event.get("content", ""))

        elif event_type == "error":
            message = event.get("message", "Unknown error")
            code = event.get("code", "UNKNOWN")
            self._print(f"\n❌ Error [{code}]: {message}\n")
            retry_after = event.get("retry_after")
            if retry_after:
                self._print(f"   Retry after {retry_after} seconds.\n")

        elif event_type == "done":
            pass

        else:
            logger.debug(f"Unknown event type: {event_type}, event: {event}")

    def show_error_message(self, message: str) -> None:
        self._print(f"{message}\n")

    def finish_response(self) -> None:
        """End the answer with a blank line."""
        self._print("\n\n" if self.content_started else "\n")
        self.content_started = False
        self.thinking_shown = False

    def _print(self, text: str) -> None:
        self.output.write(text)
        self.output.flush()
