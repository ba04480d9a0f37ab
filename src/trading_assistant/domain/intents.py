"""Typed outcomes of parsing one raw LLM completion."""

from typing import Annotated, Any, Dict, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

JSON_ARGS_ERROR = "Failed to parse JSON args"


class ActionIntent(BaseModel):
    """The model asked for a tool call."""

    kind: Literal["action"] = "action"
    thought: str = Field(description="Trimmed reasoning text.")
    action: str = Field(description="Trimmed tool name.")
    args: Dict[str, Any] = Field(
        default_factory=dict, description="Parsed tool arguments."
    )

    model_config = ConfigDict(frozen=True)


class FinalAnswerIntent(BaseModel):
    """The model answered in natural language."""

    kind: Literal["final_answer"] = "final_answer"
    content: str = Field(description="The completion text, verbatim.")

    model_config = ConfigDict(frozen=True)


class ParseErrorIntent(BaseModel):
    """The completion carried the protocol markers but unusable args."""

    kind: Literal["parse_error"] = "parse_error"
    error: str = Field(description="Human-readable parse failure.")
    raw: str = Field(description="The completion text, verbatim.")

    model_config = ConfigDict(frozen=True)


ParsedIntent = Annotated[
    Union[ActionIntent, FinalAnswerIntent, ParseErrorIntent],
    Field(discriminator="kind"),
]
