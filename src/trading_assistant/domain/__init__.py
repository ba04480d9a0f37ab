from trading_assistant.domain.cancellation import CancellationToken
from trading_assistant.domain.conversation import (
    ConversationHistory,
    ConversationTurn,
    Role,
)
from trading_assistant.domain.intents import (
    ActionIntent,
    FinalAnswerIntent,
    ParsedIntent,
    ParseErrorIntent,
)
from trading_assistant.domain.messages import AgentMessage, MessageType
from trading_assistant.domain.tool import (
    ExecutionRecord,
    RegisteredTool,
    ToolExecutionResult,
)

__all__ = [
    "ActionIntent",
    "AgentMessage",
    "CancellationToken",
    "ConversationHistory",
    "ConversationTurn",
    "ExecutionRecord",
    "FinalAnswerIntent",
    "MessageType",
    "ParseErrorIntent",
    "ParsedIntent",
    "RegisteredTool",
    "Role",
    "ToolExecutionResult",
]
