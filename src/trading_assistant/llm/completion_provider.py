from typing import Dict, List, Protocol

from trading_assistant.llm.chat_completion import ChatCompletion


class CompletionProvider(Protocol):
    """Protocol for the LLM collaborator used by the agent loop."""

    async def get_chat_completion(
        self, messages: List[Dict[str, str]]
    ) -> ChatCompletion:
        """Send the conversation and return the completion.

        Args:
            messages: Role/content turns in order.

        Returns:
            The completion produced by the model.
        """

        ...
