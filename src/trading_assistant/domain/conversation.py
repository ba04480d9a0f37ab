"""Role-tagged conversation turns sent to the LLM collaborator."""

from enum import Enum
from typing import Dict, Iterator, List

from pydantic import BaseModel, ConfigDict, Field

OBSERVATION_PREFIX = "Observation: "


class Role(str, Enum):
    """Speaker role of a conversation turn."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ConversationTurn(BaseModel):
    """A single role-tagged turn."""

    role: Role = Field(description="Speaker role of the turn.")
    content: str = Field(description="Text content of the turn.")

    model_config = ConfigDict(frozen=True)

    def as_payload(self) -> Dict[str, str]:
        """Returns the wire form expected by the LLM endpoint."""

        return {"role": self.role.value, "content": self.content}


class ConversationHistory:
    """
    Append-only ordered log of turns for one loop run.

    Args:
        turns: Initial turns of the history.
    """

    def __init__(self, turns: List[ConversationTurn] | None = None) -> None:
        self._turns: List[ConversationTurn] = list(turns or [])

    @classmethod
    def seed(cls, system_prompt: str, user_input: str) -> "ConversationHistory":
        """
        Builds the initial history for a run.

        Args:
            system_prompt: System turn carrying the tool catalog and protocol.
            user_input: The submitted user text.

        Returns:
            A history holding the system turn followed by the user turn.
        """
        return cls(
            [
                ConversationTurn(role=Role.SYSTEM, content=system_prompt),
                ConversationTurn(role=Role.USER, content=user_input),
            ]
        )

    def append(self, role: Role, content: str) -> ConversationTurn:
        turn = ConversationTurn(role=role, content=content)
        self._turns.append(turn)
        return turn

    def append_completion(self, raw_completion: str) -> ConversationTurn:
        """Records the raw assistant completion that requested a tool."""

        return self.append(Role.ASSISTANT, raw_completion)

    def append_observation(self, result_text: str) -> ConversationTurn:
        """Records a tool result as a synthetic assistant observation turn."""

        return self.append(Role.ASSISTANT, f"{OBSERVATION_PREFIX}{result_text}")

    @property
    def turns(self) -> tuple[ConversationTurn, ...]:
        return tuple(self._turns)

    def as_payload(self) -> List[Dict[str, str]]:
        return [turn.as_payload() for turn in self._turns]

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[ConversationTurn]:
        return iter(tuple(self._turns))
