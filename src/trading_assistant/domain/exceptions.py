from typing import Any, Dict, List, Optional, Sequence


class AssistantError(Exception):
    """Base exception for the trading assistant."""

    pass


class ServiceError(AssistantError):
    """Base exception for remote collaborator failures."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class NetworkFailure(ServiceError):
    """The service could not be reached (connection error or timeout)."""

    pass


class ApiFailure(ServiceError):
    """The service answered with a non-2xx status or an error envelope."""

    pass


class ServiceFailure(ServiceError):
    """The service call failed for an unclassified reason."""

    pass


class ImageValidationError(ServiceError):
    """An image was rejected before any request was sent."""

    pass


class ToolError(AssistantError):
    """Base exception for tool dispatch failures."""

    def __init__(self, message: str, tool_name: str) -> None:
        super().__init__(message)
        self.tool_name = tool_name


class UnknownTool(ToolError):
    """Dispatch was requested for a tool that is not registered."""

    def __init__(self, tool_name: str, available: Sequence[str]) -> None:
        self.available: List[str] = list(available)
        super().__init__(
            f"Tool '{tool_name}' does not exist. "
            f"Available tools: {', '.join(self.available)}",
            tool_name,
        )


class ToolExecutionFailed(ToolError):
    """A registered tool raised while executing."""

    def __init__(self, tool_name: str, message: str, result: Any = None) -> None:
        super().__init__(f"Tool execution failed: {message}", tool_name)
        self.reason = message
        self.result = result


class ToolRegistrationError(AssistantError):
    """A tool registration was missing its name, function or description."""

    pass


class RunCancelled(AssistantError):
    """The active run was cancelled by the user."""

    pass


class SessionBusy(AssistantError):
    """A submission arrived while another run was still active."""

    pass
