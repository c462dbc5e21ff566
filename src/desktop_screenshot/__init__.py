"""Desktop-agnostic screenshots.

Detects the running session (Wayland, X11 or macOS) and delegates to the
native tool:
- GNOME: gnome-screenshot
- KDE/Plasma: spectacle
- Sway/wlroots: grim + slurp
- Other X11: scrot
- macOS: screencapture
"""

__version__ = "1.0.0"

from .capture import (
    CaptureResult,
    capture_area,
    capture_full,
    capture_window,
    detect_desktop,
    screenshot,
)
from .errors import CaptureError, NoCompatibleToolError, ToolExecutionError, ToolLaunchError
from .resolver import DesktopKind
from .session import SessionKind
from .strategies import ScreenshotKind

__all__ = [
    "CaptureError",
    "CaptureResult",
    "DesktopKind",
    "NoCompatibleToolError",
    "ScreenshotKind",
    "SessionKind",
    "ToolExecutionError",
    "ToolLaunchError",
    "capture_area",
    "capture_full",
    "capture_window",
    "detect_desktop",
    "screenshot",
]
