"""Append-only conversation state exchanged between caller, agent and tools."""

import logging
from uuid import uuid4

from ..domain.enums import MessageRole, ThreadStatus
from ..domain.models import Message
from ..exceptions import InvalidTransition

logger = logging.getLogger(__name__)


class ConversationThread:
    """Ordered message log plus status.

    Status transitions:

    * an assistant message carrying tool call requests moves the thread to
      ``awaiting_tool`` until a result for every request has been appended;
    * while ``awaiting_tool`` only tool messages are accepted;
    * ``complete()`` and ``fail()`` are final, nothing can be appended after.

    A thread is owned by one tool invocation loop at a time and is never
    mutated concurrently.
    """

    def __init__(self, thread_id: str | None = None, messages: list[Message] | None = None):
        self.id = thread_id or f"thread_{uuid4().hex}"
        self._messages: list[Message] = []
        self._status = ThreadStatus.ACTIVE
        self._requested: set[str] = set()
        self._outstanding: set[str] = set()
        self.failure_reason: str | None = None
        for message in messages or []:
            self.append(message)

    @property
    def status(self) -> ThreadStatus:
        return self._status

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def outstanding_calls(self) -> frozenset[str]:
        """Tool call ids still waiting for a result."""
        return frozenset(self._outstanding)

    @property
    def last_assistant_message(self) -> Message | None:
        for message in reversed(self._messages):
            if message.role == MessageRole.ASSISTANT:
                return message
        return None

    def __len__(self) -> int:
        return len(self._messages)

    def append(self, message: Message) -> None:
        """Append a message, enforcing the status contract.

        Raises:
            InvalidTransition: If the message is not allowed in the current status
        """
        if self._status in (ThreadStatus.COMPLETED, ThreadStatus.FAILED):
            raise InvalidTransition(
                f"Cannot append to thread {self.id} in status '{self._status.value}'"
            )

        if message.role == MessageRole.TOOL:
            self._check_tool_results(message)
        elif self._status == ThreadStatus.AWAITING_TOOL:
            raise InvalidTransition(
                f"Thread {self.id} is awaiting results for {sorted(self._outstanding)}; "
                f"cannot append a {message.role.value} message"
            )

        new_requests = [call.call_id for call in message.tool_calls]
        if len(set(new_requests)) != len(new_requests) or self._requested.intersection(
            new_requests
        ):
            raise InvalidTransition(f"Duplicate tool call id in message {message.id}")

        self._messages.append(message)

        if new_requests:
            self._requested.update(new_requests)
            self._outstanding.update(new_requests)
            self._status = ThreadStatus.AWAITING_TOOL
        for result in message.tool_results:
            self._outstanding.discard(result.call_id)
        if self._status == ThreadStatus.AWAITING_TOOL and not self._outstanding:
            self._status = ThreadStatus.ACTIVE

    def _check_tool_results(self, message: Message) -> None:
        seen: set[str] = set()
        for result in message.tool_results:
            if result.call_id not in self._requested:
                raise InvalidTransition(
                    f"Tool result {result.call_id} does not reference a prior request"
                )
            if result.call_id not in self._outstanding or result.call_id in seen:
                raise InvalidTransition(f"Duplicate tool result for {result.call_id}")
            seen.add(result.call_id)

    def complete(self) -> None:
        """Mark the conversation as finished."""
        if self._status != ThreadStatus.ACTIVE:
            raise InvalidTransition(
                f"Cannot complete thread {self.id} in status '{self._status.value}'"
            )
        self._status = ThreadStatus.COMPLETED

    def fail(self, reason: str) -> None:
        """Mark the conversation as failed. Failing twice keeps the first reason."""
        if self._status == ThreadStatus.COMPLETED:
            raise InvalidTransition(f"Cannot fail completed thread {self.id}")
        if self._status != ThreadStatus.FAILED:
            self.failure_reason = reason
            self._status = ThreadStatus.FAILED
            logger.debug(f"Thread {self.id} failed: {reason}")

    def snapshot(self) -> tuple[Message, ...]:
        """Immutable copy of the message sequence for an in-flight backend call."""
        return tuple(self._messages)
