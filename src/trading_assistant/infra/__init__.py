from trading_assistant.infra.message_log import MessageLog, MessageSink
from trading_assistant.infra.tool_catalog import ToolCatalog
from trading_assistant.infra.trading_tools import TradingTools, register_trading_tools

__all__ = [
    "MessageLog",
    "MessageSink",
    "ToolCatalog",
    "TradingTools",
    "register_trading_tools",
]
