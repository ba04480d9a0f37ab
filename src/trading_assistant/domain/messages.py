from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class MessageType(str, Enum):
    """Kinds of entries written to the message sink."""

    USER = "user"
    THOUGHT = "thought"
    ACTION = "action"
    OBSERVATION = "observation"
    ASSISTANT = "assistant"
    ERROR = "error"


class AgentMessage(BaseModel):
    """Immutable UI-facing log entry emitted by the agent."""

    type: MessageType = Field(description="Kind of the message.")
    content: str = Field(description="Rendered message text.")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="UTC creation time.",
    )
    id: str = Field(default_factory=lambda: str(uuid4()))
    action: Optional[str] = Field(
        default=None, description="Tool name for action messages."
    )
    args: Optional[Dict[str, Any]] = Field(
        default=None, description="Tool arguments for action messages."
    )
    execution_time_ms: Optional[int] = Field(
        default=None, ge=0, description="Tool timing for observation messages."
    )
    attachments: tuple[str, ...] = Field(
        default=(), description="Attached file names for user messages."
    )
    warning: bool = Field(
        default=False,
        description="Marks informational stop notices rendered as warnings.",
    )

    model_config = ConfigDict(frozen=True)
