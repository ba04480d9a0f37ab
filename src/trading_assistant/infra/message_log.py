"""Message sinks receiving agent messages in emission order."""

from typing import Callable, List, Protocol

from trading_assistant.domain.messages import AgentMessage, MessageType


class MessageSink(Protocol):
    """Append-only receiver for agent messages. Must not block."""

    def append(self, message: AgentMessage) -> None:
        ...


class MessageLog:
    """
    In-memory append-only message log with optional listeners.

    Args:
        listeners: Callables notified after each append.
    """

    def __init__(self, listeners: List[Callable[[AgentMessage], None]] | None = None) -> None:
        self._messages: List[AgentMessage] = []
        self._listeners: List[Callable[[AgentMessage], None]] = list(listeners or [])

    def append(self, message: AgentMessage) -> None:
        self._messages.append(message)
        for listener in self._listeners:
            listener(message)

    def subscribe(self, listener: Callable[[AgentMessage], None]) -> None:
        self._listeners.append(listener)

    @property
    def messages(self) -> tuple[AgentMessage, ...]:
        return tuple(self._messages)

    def of_type(self, message_type: MessageType) -> List[AgentMessage]:
        return [message for message in self._messages if message.type == message_type]

    def clear(self) -> None:
        self._messages.clear()

    def __len__(self) -> int:
        return len(self._messages)
