"""Classifies raw LLM completions into typed intents."""

import json
import re

from trading_assistant.domain.intents import (
    JSON_ARGS_ERROR,
    ActionIntent,
    FinalAnswerIntent,
    ParsedIntent,
    ParseErrorIntent,
)

THOUGHT_PATTERN = re.compile(r"Thought: (.*?)(?=\n|\Z)")
ACTION_PATTERN = re.compile(r"Action: (.*?)(?=\n|\Z)")
# Single-line JSON object only; the line must end with the closing brace.
ARGS_PATTERN = re.compile(r"Args: (\{.*?\})(?=\n|\Z)")


def parse_response(raw_text: str) -> ParsedIntent:
    """
    Classifies one completion as a tool call, final answer or parse error.

    Only the first match of each marker is honored. Text missing any of the
    three markers is the agent's final answer.

    Args:
        raw_text: The completion text returned by the LLM.

    Returns:
        Exactly one ParsedIntent variant.
    """
    thought_match = THOUGHT_PATTERN.search(raw_text)
    action_match = ACTION_PATTERN.search(raw_text)
    args_match = ARGS_PATTERN.search(raw_text)

    if not (thought_match and action_match and args_match):
        return FinalAnswerIntent(content=raw_text)

    try:
        args = json.loads(args_match.group(1).strip())
    except json.JSONDecodeError:
        return ParseErrorIntent(error=JSON_ARGS_ERROR, raw=raw_text)
    if not isinstance(args, dict):
        return ParseErrorIntent(error=JSON_ARGS_ERROR, raw=raw_text)

    return ActionIntent(
        thought=thought_match.group(1).strip(),
        action=action_match.group(1).strip(),
        args=args,
    )
