"""Bounded ReAct loop: LLM call, parse, tool dispatch, observation."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol, assert_never

from trading_assistant.domain.cancellation import CancellationToken
from trading_assistant.domain.conversation import ConversationHistory
from trading_assistant.domain.exceptions import AssistantError, RunCancelled
from trading_assistant.domain.intents import (
    ActionIntent,
    FinalAnswerIntent,
    ParseErrorIntent,
)
from trading_assistant.domain.messages import AgentMessage, MessageType
from trading_assistant.domain.tool import ToolExecutionResult
from trading_assistant.engine.prompt_builder import PromptBuilder
from trading_assistant.engine.response_parser import parse_response
from trading_assistant.infra.message_log import MessageSink
from trading_assistant.llm.completion_provider import CompletionProvider

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 10


class ToolExecutor(Protocol):
    """The slice of the tool service the loop depends on."""

    def get_tools_description(self) -> str:
        ...

    async def execute_tool(
        self, tool_name: str, args: Dict[str, Any]
    ) -> ToolExecutionResult:
        ...


class RunOutcome(str, Enum):
    """How a submission ended."""

    ANSWERED = "answered"
    ERRORED = "errored"
    STEP_LIMIT = "step_limit"
    CANCELLED = "cancelled"
    IGNORED = "ignored"
    NO_IMAGES_RECOGNIZED = "no_images_recognized"


@dataclass
class RunResult:
    outcome: RunOutcome
    steps: int = 0


@dataclass
class LoopRun:
    """State owned by exactly one invocation of the loop."""

    history: ConversationHistory
    token: CancellationToken
    step_count: int = 0


class AgentLoop:
    """
    Drives one user input through the ReAct step sequence.

    Args:
        llm: The LLM collaborator.
        tools: The tool service used for the catalog text and dispatch.
        sink: Receiver of every emitted message, in step order.
        max_steps: Maximum number of LLM calls per run.
        prompt_builder: Builds the seeded system turn.
        on_step: Optional callback invoked with the step number before each LLM call.
    """

    def __init__(
        self,
        llm: CompletionProvider,
        tools: ToolExecutor,
        sink: MessageSink,
        max_steps: int = DEFAULT_MAX_STEPS,
        prompt_builder: Optional[PromptBuilder] = None,
        on_step: Optional[Callable[[int], None]] = None,
    ) -> None:
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1.")
        self.llm = llm
        self.tools = tools
        self.sink = sink
        self.max_steps = max_steps
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.on_step = on_step

    async def run(
        self, user_input: str, token: Optional[CancellationToken] = None
    ) -> RunResult:
        """
        Runs the loop until a final answer, an error, the step cap or cancellation.

        Args:
            user_input: Text of the seeded user turn.
            token: Cancellation token for this run.

        Returns:
            The outcome and number of LLM calls issued.
        """
        run = LoopRun(
            history=self.prompt_builder.build_history(
                self.tools.get_tools_description(), user_input
            ),
            token=token or CancellationToken(),
        )
        logger.info("Run started", extra={"max_steps": self.max_steps})
        try:
            outcome = await self._drive(run)
        except RunCancelled:
            outcome = RunOutcome.CANCELLED
        except AssistantError as exc:
            self._emit(MessageType.ERROR, f"An error occurred\n\n{exc}")
            outcome = RunOutcome.ERRORED
        except Exception as exc:
            logger.exception("Unexpected error during run")
            message = str(exc) or "Unknown error"
            self._emit(MessageType.ERROR, f"An error occurred\n\n{message}")
            outcome = RunOutcome.ERRORED
        logger.info(
            "Run finished", extra={"outcome": outcome.value, "steps": run.step_count}
        )
        return RunResult(outcome=outcome, steps=run.step_count)

    async def _drive(self, run: LoopRun) -> RunOutcome:
        while True:
            run.token.raise_if_cancelled()
            if run.step_count >= self.max_steps:
                self._emit(
                    MessageType.ERROR,
                    "Maximum step limit reached\n\n"
                    f"Stopped after {self.max_steps} steps to avoid an endless loop.",
                    warning=True,
                )
                return RunOutcome.STEP_LIMIT

            if self.on_step is not None:
                self.on_step(run.step_count + 1)
            completion = await run.token.guard(
                self.llm.get_chat_completion(run.history.as_payload())
            )
            run.step_count += 1

            intent = parse_response(completion.content)
            if isinstance(intent, ActionIntent):
                await self._act(run, intent, completion.content)
            elif isinstance(intent, FinalAnswerIntent):
                self._emit(MessageType.ASSISTANT, intent.content)
                return RunOutcome.ANSWERED
            elif isinstance(intent, ParseErrorIntent):
                self._emit(
                    MessageType.ERROR,
                    f"Parse error\n\n{intent.error}\n\n"
                    f"Raw response:\n```\n{intent.raw}\n```",
                )
                return RunOutcome.ERRORED
            else:
                assert_never(intent)

    async def _act(self, run: LoopRun, intent: ActionIntent, raw: str) -> None:
        self._emit(MessageType.THOUGHT, intent.thought)
        self._emit(
            MessageType.ACTION,
            f"Running tool: {intent.action}",
            action=intent.action,
            args=dict(intent.args),
        )
        result = await run.token.guard(
            self.tools.execute_tool(intent.action, dict(intent.args))
        )
        self._emit(
            MessageType.OBSERVATION,
            result.result_text,
            execution_time_ms=result.execution_time_ms,
        )
        run.history.append_completion(raw)
        run.history.append_observation(result.result_text)

    def _emit(self, message_type: MessageType, content: str, **fields: Any) -> None:
        self.sink.append(AgentMessage(type=message_type, content=content, **fields))
