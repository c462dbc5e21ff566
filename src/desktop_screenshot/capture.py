"""Public screenshot API.

Every call detects the session, resolves which tool is installed and hands
off to the matching strategy. Nothing is cached between calls.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from .config import Config, get_config
from .emit import emit
from .hooks import notify_capture
from .process import ProcessRunner, RunResult
from .resolver import DesktopKind, resolve_tool
from .session import SessionKind, detect_session
from .strategies import ScreenshotKind, get_strategy

log = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass
class CaptureResult:
    """Outcome of one screenshot call."""

    mode: ScreenshotKind
    destination: Path
    session: SessionKind
    desktop: DesktopKind
    runs: list[RunResult] = field(default_factory=list)

    @property
    def failures(self) -> list[RunResult]:
        return [r for r in self.runs if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict:
        return {
            "mode": self.mode.value,
            "destination": str(self.destination),
            "session": self.session.value,
            "desktop": self.desktop.value,
            "ok": self.ok,
            "runs": [r.to_dict() for r in self.runs],
        }


def detect_desktop(
    config: Optional[Config] = None,
    runner: Optional[ProcessRunner] = None,
) -> tuple[SessionKind, DesktopKind]:
    """Detect the session and resolve its desktop profile.

    Raises:
        NoCompatibleToolError: If no usable tool is installed
    """
    session = detect_session()
    desktop = resolve_tool(session, runner=runner, config=config)
    emit("desktop.resolved", {"session": session.value, "desktop": desktop.value})
    return session, desktop


def screenshot(
    kind: Union[ScreenshotKind, str],
    destination: PathLike,
    freeze: bool = False,
    *,
    config: Optional[Config] = None,
    runner: Optional[ProcessRunner] = None,
) -> CaptureResult:
    """Take a screenshot with whatever tool the current desktop provides.

    Args:
        kind: Area, window or full screen
        destination: Output file; its directory must already exist
        freeze: Area mode on GNOME/X11 only: close the frozen backdrop
            once the selection is done
        config: Configuration object. If None, uses global config.
        runner: Process runner. If None, runs real processes.

    Returns:
        CaptureResult listing every external invocation

    Raises:
        NoCompatibleToolError: If no usable tool is installed
        ToolLaunchError: If the chosen tool could not be started
        ToolExecutionError: If a tool failed and fail_on_tool_error is set
        ValueError: If kind is not a ScreenshotKind value
    """
    kind = ScreenshotKind(kind)
    config = config or get_config()
    runner = runner or ProcessRunner()
    destination = Path(destination)

    session, desktop = detect_desktop(config=config, runner=runner)
    strategy = get_strategy(desktop, runner=runner, config=config)
    runs = strategy.capture(kind, destination, freeze=freeze)

    result = CaptureResult(kind, destination, session, desktop, runs)
    if result.ok:
        log.debug("Captured %s screenshot to %s", kind.value, destination)
        notify_capture(result, config)
    else:
        log.warning(
            "%s screenshot may be incomplete: %d tool(s) failed",
            kind.value, len(result.failures),
        )
    return result


def capture_area(
    destination: PathLike,
    freeze: bool = False,
    *,
    config: Optional[Config] = None,
    runner: Optional[ProcessRunner] = None,
) -> CaptureResult:
    """Let the user select a region and save it to destination."""
    return screenshot(ScreenshotKind.AREA, destination, freeze, config=config, runner=runner)


def capture_window(
    destination: PathLike,
    *,
    config: Optional[Config] = None,
    runner: Optional[ProcessRunner] = None,
) -> CaptureResult:
    """Save the active window to destination."""
    return screenshot(ScreenshotKind.WINDOW, destination, config=config, runner=runner)


def capture_full(
    destination: PathLike,
    *,
    config: Optional[Config] = None,
    runner: Optional[ProcessRunner] = None,
) -> CaptureResult:
    """Save the whole screen to destination."""
    return screenshot(ScreenshotKind.FULL, destination, config=config, runner=runner)
