"""Hook system for post-capture events.

Hooks are user-configurable scripts in a directory that ALL run after a
successful capture.

Directory structure (hooks_dir resolved by platformdirs):
    <hooks_dir>/
    └── on_capture.d/
        ├── 10-upload.sh
        └── 20-notify.sh

Scripts run in sorted order. Each receives: destination mode desktop

Hook scripts should:
- Be executable (chmod +x)
- Handle their own errors gracefully
- Not block for long periods (they are started without waiting)
"""

import logging
import subprocess
from pathlib import Path
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .capture import CaptureResult
    from .config import Config

log = logging.getLogger(__name__)


def run_hooks(hooks_dir: Optional[Path], event: str, *args) -> list[Path]:
    """Run all hook scripts for an event.

    Args:
        hooks_dir: Base hooks directory
        event: Event name (e.g., "on_capture") - looks for {event}.d/ subdirectory
        *args: Arguments to pass to each script

    Returns:
        The scripts that were started
    """
    if not hooks_dir:
        return []

    event_dir = hooks_dir / f"{event}.d"
    if not event_dir.is_dir():
        return []

    scripts = sorted(
        f for f in event_dir.iterdir()
        if f.is_file() and not f.name.startswith('.')
    )

    started = []
    for script in scripts:
        if not script.stat().st_mode & 0o111:
            log.debug("Skipping non-executable: %s", script)
            continue
        try:
            subprocess.Popen(
                [str(script)] + [str(a) for a in args],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            log.warning("Hook %s failed: %s", script.name, e)
            continue
        log.debug("Hook executed: %s", script.name)
        started.append(script)

    return started


def notify_capture(result: "CaptureResult", config: "Config") -> list[Path]:
    """Notify all on_capture hooks of a finished screenshot."""
    return run_hooks(
        config.hooks_dir,
        "on_capture",
        result.destination,
        result.mode.value,
        result.desktop.value,
    )
