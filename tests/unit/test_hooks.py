import tempfile
import unittest
from pathlib import Path
from unittest import mock

from desktop_screenshot.capture import CaptureResult
from desktop_screenshot.config import Config
from desktop_screenshot.hooks import notify_capture, run_hooks
from desktop_screenshot.resolver import DesktopKind
from desktop_screenshot.session import SessionKind
from desktop_screenshot.strategies import ScreenshotKind


class HooksTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.hooks_dir = Path(self._tmp.name)
        self.event_dir = self.hooks_dir / "on_capture.d"
        self.event_dir.mkdir()

    def script(self, name, executable=True):
        path = self.event_dir / name
        path.write_text("#!/bin/sh\n")
        path.chmod(0o755 if executable else 0o644)
        return path

    @mock.patch("desktop_screenshot.hooks.subprocess.Popen")
    def test_runs_executables_in_order(self, mock_popen):
        second = self.script("20-notify.sh")
        first = self.script("10-upload.sh")
        self.script("30-readme.txt", executable=False)
        self.script(".hidden.sh")

        started = run_hooks(self.hooks_dir, "on_capture", "/tmp/out.png", "full", "kde")

        self.assertEqual(started, [first, second])
        self.assertEqual(
            [c[0][0] for c in mock_popen.call_args_list],
            [
                [str(first), "/tmp/out.png", "full", "kde"],
                [str(second), "/tmp/out.png", "full", "kde"],
            ],
        )

    @mock.patch("desktop_screenshot.hooks.subprocess.Popen", side_effect=OSError("exec format error"))
    def test_failing_hook_only_warns(self, mock_popen):
        self.script("10-broken.sh")
        with self.assertLogs("desktop_screenshot.hooks", level="WARNING"):
            self.assertEqual(run_hooks(self.hooks_dir, "on_capture"), [])

    def test_missing_directories(self):
        self.assertEqual(run_hooks(None, "on_capture"), [])
        self.assertEqual(run_hooks(self.hooks_dir, "on_other"), [])

    @mock.patch("desktop_screenshot.hooks.subprocess.Popen")
    def test_notify_capture_arguments(self, mock_popen):
        hook = self.script("10-log.sh")
        result = CaptureResult(
            ScreenshotKind.AREA, Path("/tmp/a.png"), SessionKind.WAYLAND, DesktopKind.SWAY
        )
        notify_capture(result, Config(hooks_dir=self.hooks_dir))
        mock_popen.assert_called_once()
        self.assertEqual(mock_popen.call_args[0][0], [str(hook), "/tmp/a.png", "area", "sway"])
