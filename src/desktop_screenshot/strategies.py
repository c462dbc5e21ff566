"""Capture strategies, one per desktop profile.

Each strategy knows the argument conventions of its native tool for the
three screenshot modes. GNOME and the generic X11 fallback also implement
the freeze illusion: a full-screen shot of the desktop is shown with feh
while the user drags out the selection, so the screen looks paused.
"""

import logging
import tempfile
from enum import Enum
from pathlib import Path
from subprocess import Popen, TimeoutExpired
from typing import Optional

from .config import Config, get_config
from .emit import emit
from .errors import ToolExecutionError, ToolLaunchError
from .process import Outcome, ProcessRunner, RunResult
from .resolver import DesktopKind

log = logging.getLogger(__name__)

SELECTION_FILENAME = "selection.png"

# Viewers deliberately left running after a non-freeze area capture.
_left_open: list[Popen] = []


class ScreenshotKind(str, Enum):
    AREA = "area"
    WINDOW = "window"
    FULL = "full"


class CaptureStrategy:
    """Base strategy: one tool, fixed flags per mode, destination last."""

    desktop: DesktopKind
    tool: str
    flags: dict[ScreenshotKind, list[str]] = {}

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        config: Optional[Config] = None,
    ):
        self.runner = runner or ProcessRunner()
        self.config = config or get_config()

    def command(self, mode: ScreenshotKind, destination) -> list[str]:
        return [self.tool, *self.flags[mode], str(destination)]

    def capture(
        self,
        mode: ScreenshotKind,
        destination: Path,
        freeze: bool = False,
    ) -> list[RunResult]:
        """Take a screenshot in the given mode.

        Returns:
            The results of every external invocation made, in order

        Raises:
            ToolLaunchError: If a tool could not be started
            ToolExecutionError: If a tool exited nonzero and
                fail_on_tool_error is set
            ValueError: If mode is not a ScreenshotKind value
        """
        mode = ScreenshotKind(mode)
        results: list[RunResult] = []
        if mode is ScreenshotKind.AREA:
            self.area(destination, freeze, results)
        elif mode is ScreenshotKind.WINDOW:
            self.window(destination, results)
        else:
            self.full(destination, results)
        return results

    def area(self, destination: Path, freeze: bool, results: list[RunResult]) -> None:
        self._run(self.command(ScreenshotKind.AREA, destination), results)

    def window(self, destination: Path, results: list[RunResult]) -> None:
        self._run(self.command(ScreenshotKind.WINDOW, destination), results)

    def full(self, destination: Path, results: list[RunResult]) -> None:
        self._run(self.command(ScreenshotKind.FULL, destination), results)

    def _run(self, args: list[str], results: list[RunResult]) -> RunResult:
        result = self.runner.run(args)
        results.append(result)

        if result.outcome is Outcome.SPAWN_FAILED:
            raise ToolLaunchError(result.tool, result.stderr)

        if result.outcome is Outcome.EXITED_NONZERO:
            log.warning(
                "%s exited with status %s: %s",
                result.tool, result.returncode, result.stderr.strip(),
            )
            emit("tool.failed", result.to_dict())
            if self.config.fail_on_tool_error:
                raise ToolExecutionError(result)

        return result


class Backdrop:
    """Frozen copy of the screen shown fullscreen during area selection."""

    def __init__(self, runner: ProcessRunner, config: Config):
        self.runner = runner
        self.config = config
        self.directory: Optional[Path] = None
        self.viewer: Optional[Popen] = None

    @property
    def path(self) -> Optional[Path]:
        if self.directory is None:
            return None
        return self.directory / SELECTION_FILENAME

    def viewer_available(self) -> bool:
        return self.runner.probe(
            self.config.viewer,
            flag=self.config.probe_flag,
            strict=self.config.strict_probe,
            timeout=self.config.probe_timeout,
        )

    def allocate(self) -> Path:
        """Reserve a unique staging path for this call."""
        self.directory = Path(tempfile.mkdtemp(
            prefix=self.config.selection_prefix,
            dir=str(self.config.temp_dir),
        ))
        return self.path

    def show(self) -> None:
        _left_open[:] = [p for p in _left_open if p.poll() is None]
        self.viewer = self.runner.spawn([self.config.viewer, str(self.path), "-F"])

    def close(self, missing_ok: bool = False) -> None:
        """Remove the staged image and stop the viewer; failures only warn."""
        if self.directory is not None:
            try:
                self.path.unlink(missing_ok=missing_ok)
            except OSError as e:
                log.warning("Unable to remove temporary selection file: %s", e)
            try:
                self.directory.rmdir()
            except OSError as e:
                log.warning("Unable to remove temporary selection directory: %s", e)
            self.directory = None

        if self.viewer is not None:
            try:
                self.viewer.kill()
                self.viewer.wait(timeout=1)
            except (OSError, TimeoutExpired) as e:
                log.warning("Unable to kill %s, must have already been closed: %s", self.config.viewer, e)
            self.viewer = None


class FreezingStrategy(CaptureStrategy):
    """Strategy whose area mode runs behind a frozen backdrop."""

    def area(self, destination: Path, freeze: bool, results: list[RunResult]) -> None:
        backdrop = Backdrop(self.runner, self.config)
        try:
            if backdrop.viewer_available():
                staging = backdrop.allocate()
                if self._run(self.command(ScreenshotKind.FULL, staging), results).ok:
                    backdrop.show()
                else:
                    log.warning("Could not stage a frozen screen, selecting without it")
                    backdrop.close(missing_ok=True)
            else:
                log.warning("%s does not exist, selecting without a frozen screen", self.config.viewer)
            self._run(self.command(ScreenshotKind.AREA, destination), results)
        except BaseException:
            backdrop.close()
            raise

        if freeze:
            backdrop.close()
        elif backdrop.viewer is not None:
            # Left for the user to keep looking at; not cleaned up.
            log.debug("Leaving %s open on %s", self.config.viewer, backdrop.path)
            _left_open.append(backdrop.viewer)


class GnomeStrategy(FreezingStrategy):
    desktop = DesktopKind.GNOME
    tool = "gnome-screenshot"
    flags = {
        ScreenshotKind.AREA: ["-a", "-f"],
        ScreenshotKind.WINDOW: ["-w", "-e", "shadow", "-f"],
        ScreenshotKind.FULL: ["-f"],
    }


class KdeStrategy(CaptureStrategy):
    desktop = DesktopKind.KDE
    tool = "spectacle"
    flags = {
        ScreenshotKind.AREA: ["-rbno"],
        ScreenshotKind.WINDOW: ["-abno"],
        ScreenshotKind.FULL: ["-fbno"],
    }


class SwayStrategy(CaptureStrategy):
    """grim + slurp. There is no active-window source, so window == area."""

    desktop = DesktopKind.SWAY
    tool = "grim"
    selector = "slurp"
    flags = {ScreenshotKind.FULL: []}

    def area(self, destination: Path, freeze: bool, results: list[RunResult]) -> None:
        selection = self._run([self.selector], results)
        if not selection.ok:
            return
        geometry = selection.stdout.strip()
        if not geometry:
            log.warning("%s returned no selection, nothing captured", self.selector)
            return
        self._run([self.tool, "-g", geometry, str(destination)], results)

    def window(self, destination: Path, results: list[RunResult]) -> None:
        self.area(destination, False, results)


class GenericStrategy(FreezingStrategy):
    desktop = DesktopKind.GENERIC
    tool = "scrot"
    flags = {
        ScreenshotKind.AREA: ["--select"],
        ScreenshotKind.WINDOW: ["--border", "--focused"],
        ScreenshotKind.FULL: [],
    }


class MacosStrategy(CaptureStrategy):
    desktop = DesktopKind.MACOS
    tool = "screencapture"
    flags = {
        ScreenshotKind.AREA: ["-s"],
        ScreenshotKind.WINDOW: ["-w"],
        ScreenshotKind.FULL: ["-S"],
    }


STRATEGIES = {
    strategy.desktop: strategy
    for strategy in (GnomeStrategy, KdeStrategy, SwayStrategy, GenericStrategy, MacosStrategy)
}


def get_strategy(
    desktop: DesktopKind,
    runner: Optional[ProcessRunner] = None,
    config: Optional[Config] = None,
) -> CaptureStrategy:
    return STRATEGIES[desktop](runner=runner, config=config)
