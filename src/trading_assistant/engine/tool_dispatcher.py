"""Tool execution utilities for the agent loop."""

import asyncio
import inspect
import logging
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Mapping

from trading_assistant.domain.exceptions import ToolExecutionFailed, UnknownTool
from trading_assistant.domain.tool import ExecutionRecord, ToolExecutionResult
from trading_assistant.infra.tool_catalog import ToolCatalog

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 100


class ToolDispatcher:
    """
    Executes named tools from an injected catalog and records history.

    Args:
        catalog: The tool catalog used to resolve tool names.
        history_limit: Maximum number of retained execution records.
        clock: Monotonic clock returning seconds.
    """

    def __init__(
        self,
        catalog: ToolCatalog,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.catalog = catalog
        self._clock = clock
        # Most recent first.
        self._history: Deque[ExecutionRecord] = deque(maxlen=max(1, history_limit))

    def get_tools_description(self) -> str:
        return self.catalog.describe()

    async def execute_tool(
        self, tool_name: str, args: Mapping[str, Any] | None = None
    ) -> ToolExecutionResult:
        """
        Invokes a registered tool and times it.

        Args:
            tool_name: Name of the tool to run.
            args: Arguments passed to the tool function.

        Returns:
            The successful execution result.

        Raises:
            UnknownTool: The name is not in the catalog. No tool is invoked.
            ToolExecutionFailed: The tool raised while executing.
        """
        tool = self.catalog.get_tool(tool_name)
        if tool is None:
            raise UnknownTool(tool_name, self.catalog.names())

        call_args: Dict[str, Any] = dict(args or {})
        logger.info("Executing tool", extra={"tool": tool_name, "tool_args": call_args})
        started = self._clock()
        try:
            if inspect.iscoroutinefunction(tool.func):
                output = await tool.func(call_args)
            else:
                # Sync tools run in a worker thread.
                output = await asyncio.to_thread(tool.func, call_args)
                if inspect.isawaitable(output):
                    output = await output
        except Exception as exc:
            elapsed_ms = self._elapsed_ms(started)
            message = str(exc) or exc.__class__.__name__
            result = ToolExecutionResult(
                success=False, execution_time_ms=elapsed_ms, error=message
            )
            self._record(result, tool_name, call_args)
            logger.warning(
                "Tool execution failed",
                extra={"tool": tool_name, "error": message, "elapsed_ms": elapsed_ms},
            )
            raise ToolExecutionFailed(tool_name, message, result) from exc

        elapsed_ms = self._elapsed_ms(started)
        result = ToolExecutionResult(
            success=True, result_text=str(output), execution_time_ms=elapsed_ms
        )
        self._record(result, tool_name, call_args)
        logger.info(
            "Tool execution succeeded",
            extra={"tool": tool_name, "elapsed_ms": elapsed_ms},
        )
        return result

    def get_execution_history(self, limit: int = 20) -> List[ExecutionRecord]:
        """
        Returns the most recent execution records.

        Args:
            limit: Maximum number of records to return.

        Returns:
            Records ordered most recent first.
        """
        return list(self._history)[: max(0, limit)]

    def clear_execution_history(self) -> None:
        self._history.clear()

    def _elapsed_ms(self, started: float) -> int:
        return max(0, int(round((self._clock() - started) * 1000)))

    def _record(
        self, result: ToolExecutionResult, tool_name: str, args: Dict[str, Any]
    ) -> None:
        self._history.appendleft(
            ExecutionRecord(
                id=result.execution_id,
                tool_name=tool_name,
                args=args,
                result=result.result_text if result.success else None,
                error=result.error,
                execution_time_ms=result.execution_time_ms,
                success=result.success,
            )
        )
