"""Tool catalog injected into the dispatcher and prompt builder."""

import logging
from typing import Dict, List, Optional

from trading_assistant.domain.exceptions import ToolRegistrationError
from trading_assistant.domain.tool import RegisteredTool, ToolFunction

logger = logging.getLogger(__name__)


class ToolCatalog:
    """
    Registry of named tool functions.

    Each assistant owns its own catalog; nothing is shared process-wide.
    """

    def __init__(self) -> None:
        self._registry: Dict[str, RegisteredTool] = {}

    def register(self, name: str, func: ToolFunction, description: str) -> RegisteredTool:
        """
        Registers a tool function under a name.

        Args:
            name: Unique tool name used in `Action:` lines.
            func: Sync or async callable receiving the args mapping.
            description: One-line description embedded in the system prompt.

        Returns:
            The registered tool entry.

        Raises:
            ToolRegistrationError: When name, function or description is missing.
        """
        if not name or not callable(func) or not description:
            raise ToolRegistrationError(
                "Tool name, function and description are all required."
            )
        tool = RegisteredTool(name=name, func=func, description=description)
        self._registry[name] = tool
        logger.debug("Registered tool", extra={"tool": name})
        return tool

    def get_tool(self, name: str) -> Optional[RegisteredTool]:
        """
        Retrieves a tool by name.

        Args:
            name: The tool name to fetch.

        Returns:
            The matching tool or None.
        """
        return self._registry.get(name)

    def has_tool(self, name: str) -> bool:
        return name in self._registry

    def names(self) -> List[str]:
        return list(self._registry)

    def list_tools(self) -> List[Dict[str, str]]:
        """Returns name, description and registration time per tool."""

        return [
            {
                "name": tool.name,
                "description": tool.description,
                "registered_at": tool.registered_at.isoformat(),
            }
            for tool in self._registry.values()
        ]

    def describe(self) -> str:
        """Builds the `- name: description` catalog text for prompts."""

        return "\n".join(
            f"- {tool.name}: {tool.description}" for tool in self._registry.values()
        )

    def __len__(self) -> int:
        return len(self._registry)
