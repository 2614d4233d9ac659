"""Conversation state for the terminal client.

One request is in flight at a time.  Every request gets a generation
number from ``begin``; ``clear`` bumps the counter, so frames that still
arrive for an earlier request are ignored instead of leaking into the
fresh conversation.
"""

import enum
import logging

from mathtutor.core.models import ROLE_ASSISTANT, ROLE_USER, ChatMessage

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "エラーが発生しました。もう一度お試しください。"


class ConversationState(str, enum.Enum):
    IDLE = "idle"
    SENDING = "sending"
    THINKING = "thinking"
    STREAMING = "streaming"
    SETTLED = "settled"
    ERRORED = "errored"


IN_FLIGHT_STATES = frozenset(
    {ConversationState.SENDING, ConversationState.THINKING, ConversationState.STREAMING}
)


class ConversationBusy(RuntimeError):
    """A request is already in flight."""


class Conversation:
    """History plus the assistant message being streamed.

    ``TutorCLI`` reads input and the answer stream in turn, so at the
    terminal ``/clear`` only ever runs between answers.  The generation
    check in ``accepted``/``append``/``settle``/``fail`` matters to callers
    that read a stream and call ``clear`` concurrently.
    """

    def __init__(self) -> None:
        self.history: list[ChatMessage] = []
        self.pending = ""
        self.state = ConversationState.IDLE
        self._generation = 0
        self._active: int | None = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def busy(self) -> bool:
        return self.state in IN_FLIGHT_STATES

    def begin(self, question: str) -> int:
        """Record the user message and open a new request generation."""
        if self.busy:
            raise ConversationBusy("A question is already being answered")
        if not question.strip():
            raise ValueError("question must not be blank")

        self.history.append(ChatMessage(role=ROLE_USER, content=question))
        self._generation += 1
        self._active = self._generation
        self.pending = ""
        self.state = ConversationState.SENDING
        return self._generation

    def _is_current(self, generation: int) -> bool:
        if generation != self._active:
            logger.debug("Dropping frame from stale generation %d", generation)
            return False
        return True

    def accepted(self, generation: int) -> bool:
        """The server accepted the request; wait for the first fragment."""
        if not self._is_current(generation):
            return False
        if self.state is ConversationState.SENDING:
            self.state = ConversationState.THINKING
        return True

    def append(self, generation: int, fragment: str) -> bool:
        if not self._is_current(generation):
            return False
        self.state = ConversationState.STREAMING
        self.pending += fragment
        return True

    def settle(self, generation: int) -> ChatMessage | None:
        """Move the streamed text into history."""
        if not self._is_current(generation):
            return None

        message = None
        if self.pending:
            message = ChatMessage(role=ROLE_ASSISTANT, content=self.pending)
            self.history.append(message)
        self.pending = ""
        self.state = ConversationState.SETTLED
        self._active = None
        return message

    def fail(
        self, generation: int, message: str = NETWORK_ERROR_MESSAGE
    ) -> ChatMessage | None:
        """Replace whatever was streamed with the error message."""
        if not self._is_current(generation):
            return None

        error = ChatMessage(role=ROLE_ASSISTANT, content=message)
        self.history.append(error)
        self.pending = ""
        self.state = ConversationState.ERRORED
        self._active = None
        return error

    def clear(self) -> None:
        self.history = []
        self.pending = ""
        self.state = ConversationState.IDLE
        self._generation += 1
        self._active = None
