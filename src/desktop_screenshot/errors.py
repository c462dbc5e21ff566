"""Exceptions raised by desktop-screenshot."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .process import RunResult
    from .session import SessionKind


class CaptureError(Exception):
    """Raised when capture fails."""
    pass


class NoCompatibleToolError(CaptureError):
    """No screenshot tool usable for the detected session was found."""

    def __init__(self, session: "SessionKind", message: str):
        super().__init__(message)
        self.session = session


class ToolLaunchError(CaptureError):
    """An external tool could not be started at all."""

    def __init__(self, tool: str, reason: str = ""):
        message = f"{tool} did not launch"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.tool = tool


class ToolExecutionError(CaptureError):
    """An external tool started but exited with a nonzero status."""

    def __init__(self, result: "RunResult"):
        super().__init__(
            f"{result.tool} exited with status {result.returncode}: {result.stderr.strip()}"
        )
        self.result = result
