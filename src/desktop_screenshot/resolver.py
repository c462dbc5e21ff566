"""Screenshot tool resolution.

Maps a session to the desktop profile whose tool is installed, probing
candidates in a fixed priority order. Nothing is cached: tools may be
installed or removed while the host application runs.
"""

import logging
from enum import Enum
from typing import Optional

from .config import Config, get_config
from .errors import NoCompatibleToolError
from .process import ProcessRunner
from .session import SessionKind

log = logging.getLogger(__name__)


class DesktopKind(str, Enum):
    GNOME = "gnome"
    KDE = "kde"
    SWAY = "sway"
    GENERIC = "generic"
    MACOS = "macos"


# Probe order per session; the first tool present wins.
CANDIDATES = {
    SessionKind.WAYLAND: [
        ("grim", DesktopKind.SWAY),
        ("spectacle", DesktopKind.KDE),
        ("gnome-screenshot", DesktopKind.GNOME),
    ],
    SessionKind.X11: [
        ("spectacle", DesktopKind.KDE),
        ("gnome-screenshot", DesktopKind.GNOME),
        ("scrot", DesktopKind.GENERIC),
    ],
}

NO_TOOL_MESSAGES = {
    SessionKind.WAYLAND: "Incompatible Wayland desktop",
    SessionKind.X11: "Incompatible X11 desktop (install scrot)",
}


def resolve_tool(
    session: SessionKind,
    runner: Optional[ProcessRunner] = None,
    config: Optional[Config] = None,
) -> DesktopKind:
    """Resolve the desktop profile to use for a session.

    Raises:
        NoCompatibleToolError: If no candidate tool for the session is present
    """
    if session is SessionKind.MACOS:
        return DesktopKind.MACOS

    config = config or get_config()
    runner = runner or ProcessRunner()

    for tool, desktop in CANDIDATES[session]:
        if runner.probe(
            tool,
            flag=config.probe_flag,
            strict=config.strict_probe,
            timeout=config.probe_timeout,
        ):
            log.debug("Resolved %s session to %s via %s", session.value, desktop.value, tool)
            return desktop

    raise NoCompatibleToolError(session, NO_TOOL_MESSAGES[session])
