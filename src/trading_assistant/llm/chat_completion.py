from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ChatCompletionRequest(BaseModel):
    """Wire payload for the LLM function endpoint."""

    messages: List[Dict[str, str]] = Field(description="Role/content turns.")
    model: str = Field(description="Model identifier for the request.")
    temperature: float = Field(description="Sampling temperature.")
    max_tokens: int = Field(description="Completion token cap.")
    stream: bool = Field(default=False, description="Streaming is not used.")


class ChatCompletion(BaseModel):
    """Completion returned by the LLM collaborator."""

    content: str = Field(description="Raw completion text.")
    usage: Optional[Dict[str, Any]] = Field(
        default=None, description="Provider usage metadata if available."
    )
    model: Optional[str] = Field(default=None, description="Model that answered.")


class HealthStatus(BaseModel):
    """Connectivity check result."""

    status: str = Field(description="Either healthy or unhealthy.")
    connected: bool
    error: Optional[str] = None
    message: Optional[str] = None
