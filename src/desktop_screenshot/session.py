"""Graphical session detection."""

import os
import sys
from enum import Enum
from typing import Mapping, Optional


class SessionKind(str, Enum):
    WAYLAND = "wayland"
    X11 = "x11"
    MACOS = "macos"


def detect_session(
    environ: Optional[Mapping[str, str]] = None,
    platform: Optional[str] = None,
) -> SessionKind:
    """Classify the running graphical session from XDG_SESSION_TYPE.

    Any value other than "wayland" (case-insensitive) counts as X11. When the
    variable is unset, macOS hosts report MACOS and everything else X11.
    """
    environ = os.environ if environ is None else environ
    platform = sys.platform if platform is None else platform

    session_type = environ.get("XDG_SESSION_TYPE")
    if session_type is not None:
        if session_type.lower() == "wayland":
            return SessionKind.WAYLAND
        return SessionKind.X11

    if platform == "darwin":
        return SessionKind.MACOS
    return SessionKind.X11
