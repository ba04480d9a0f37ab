"""Tests for system prompt and seed history construction."""

import pytest

from trading_assistant.domain.conversation import Role
from trading_assistant.engine.prompt_builder import REACT_PROMPT_TEMPLATE, PromptBuilder


def test_system_prompt_embeds_catalog_verbatim() -> None:
    """The tool catalog text replaces the placeholder unchanged."""
    catalog = "- get_portfolio_status: 查看投资组合\n- execute_trade: 执行交易"

    prompt = PromptBuilder().build_system_prompt(catalog)

    assert catalog in prompt
    assert "{tools}" not in prompt
    assert "Thought:" in prompt and "Action:" in prompt and "Args:" in prompt


def test_catalog_braces_are_not_formatted() -> None:
    """Braces inside tool descriptions survive prompt construction."""
    catalog = "- tool: takes {\"a\": 1}"

    prompt = PromptBuilder("Tools:\n{tools}").build_system_prompt(catalog)

    assert prompt == "Tools:\n- tool: takes {\"a\": 1}"


def test_build_history_seeds_system_and_user_turns() -> None:
    """A run starts with exactly the system turn and the user turn."""
    history = PromptBuilder().build_history("- a: b", "查看余额")

    assert [turn.role for turn in history] == [Role.SYSTEM, Role.USER]
    assert history.turns[1].content == "查看余额"
    assert history.turns[0].content == REACT_PROMPT_TEMPLATE.replace("{tools}", "- a: b")


def test_template_requires_placeholder() -> None:
    """Templates without a tools placeholder are rejected."""
    with pytest.raises(ValueError):
        PromptBuilder("no placeholder here")
