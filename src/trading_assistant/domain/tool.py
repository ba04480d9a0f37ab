from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

ToolFunction = Callable[[Dict[str, Any]], Any]


def new_execution_id() -> str:
    """Returns a unique execution identifier."""

    return f"exec_{uuid4().hex[:12]}"


class RegisteredTool(BaseModel):
    """A named tool function held by the catalog."""

    name: str = Field(description="Unique tool name.")
    description: str = Field(description="One-line description shown to the model.")
    func: ToolFunction = Field(description="Sync or async callable taking the args.")
    registered_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)


class ToolExecutionResult(BaseModel):
    """Outcome of a single dispatch call."""

    success: bool = Field(description="Whether the tool returned normally.")
    result_text: str = Field(default="", description="Stringified tool result.")
    execution_time_ms: int = Field(ge=0, description="Elapsed wall-clock time.")
    error: Optional[str] = Field(default=None, description="Failure message.")
    execution_id: str = Field(default_factory=new_execution_id)

    model_config = ConfigDict(frozen=True)


class ExecutionRecord(BaseModel):
    """Execution-history entry kept for observability."""

    id: str = Field(description="Execution identifier.")
    tool_name: str
    args: Dict[str, Any] = Field(default_factory=dict)
    result: Optional[str] = None
    error: Optional[str] = None
    execution_time_ms: int = Field(ge=0)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    success: bool

    model_config = ConfigDict(frozen=True)
