import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from desktop_screenshot import (
    DesktopKind,
    NoCompatibleToolError,
    ScreenshotKind,
    SessionKind,
    capture_area,
    capture_full,
    capture_window,
    detect_desktop,
    emit,
    screenshot,
)
from desktop_screenshot.config import Config
from desktop_screenshot.process import Outcome
from tests.unit.fakes import FakeRunner


class CaptureTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.temp_dir = Path(self._tmp.name)
        self.config = Config(temp_dir=self.temp_dir, hooks_dir=None)
        self.events = []
        emit.add_handler(self.events.append)
        self.addCleanup(emit.remove_handler, self.events.append)

    def session(self, value):
        patcher = mock.patch.dict(os.environ, {"XDG_SESSION_TYPE": value})
        patcher.start()
        self.addCleanup(patcher.stop)


class EndToEndTests(CaptureTestCase):
    def test_x11_scrot_only_full(self):
        self.session("x11")
        runner = FakeRunner(present={"scrot", "feh"})
        result = capture_full("/tmp/out.png", config=self.config, runner=runner)

        self.assertEqual(result.session, SessionKind.X11)
        self.assertEqual(result.desktop, DesktopKind.GENERIC)
        self.assertEqual(runner.calls, [["scrot", "/tmp/out.png"]])
        self.assertEqual(runner.spawned, [])
        self.assertNotIn("feh", runner.probes)
        self.assertTrue(result.ok)

    def test_wayland_gnome_only_window(self):
        self.session("wayland")
        runner = FakeRunner(present={"gnome-screenshot"})
        result = capture_window("/tmp/w.png", config=self.config, runner=runner)

        self.assertEqual(result.desktop, DesktopKind.GNOME)
        self.assertEqual(result.mode, ScreenshotKind.WINDOW)
        self.assertEqual(
            runner.calls, [["gnome-screenshot", "-w", "-e", "shadow", "-f", "/tmp/w.png"]]
        )

    def test_sway_area_pipes_geometry(self):
        self.session("Wayland")
        runner = FakeRunner(present={"grim"}, stdout={"slurp": "0,0 640x480\n"})
        result = capture_area("/tmp/a.png", config=self.config, runner=runner)

        self.assertEqual(result.desktop, DesktopKind.SWAY)
        self.assertEqual(runner.calls, [["slurp"], ["grim", "-g", "0,0 640x480", "/tmp/a.png"]])

    def test_area_freeze_on_gnome_x11(self):
        self.session("x11")
        runner = FakeRunner(present={"gnome-screenshot", "feh"})
        for _ in range(2):
            capture_area("/tmp/a.png", freeze=True, config=self.config, runner=runner)
        self.assertEqual(list(self.temp_dir.iterdir()), [])
        self.assertTrue(all(h.killed for h in runner.spawned))

    def test_detection_runs_on_every_call(self):
        self.session("x11")
        runner = FakeRunner(present={"scrot"})
        capture_full("/tmp/1.png", config=self.config, runner=runner)
        runner.present = {"spectacle"}
        result = capture_full("/tmp/2.png", config=self.config, runner=runner)
        self.assertEqual(result.desktop, DesktopKind.KDE)
        self.assertEqual(runner.calls[-1], ["spectacle", "-fbno", "/tmp/2.png"])

    def test_no_tool_propagates(self):
        self.session("wayland")
        with self.assertRaises(NoCompatibleToolError) as ctx:
            capture_full("/tmp/out.png", config=self.config, runner=FakeRunner())
        self.assertEqual(str(ctx.exception), "Incompatible Wayland desktop")

    @mock.patch("desktop_screenshot.session.sys.platform", "darwin")
    def test_macos_without_session_variable(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            runner = FakeRunner()
            result = capture_area("/tmp/m.png", config=self.config, runner=runner)
        self.assertEqual(result.desktop, DesktopKind.MACOS)
        self.assertEqual(runner.calls, [["screencapture", "-s", "/tmp/m.png"]])
        self.assertEqual(runner.probes, [])


class ResultTests(CaptureTestCase):
    def test_tool_failure_is_surfaced(self):
        self.session("x11")
        runner = FakeRunner(present={"spectacle"}, outcomes={"spectacle": Outcome.EXITED_NONZERO})
        with self.assertLogs("desktop_screenshot", level="WARNING"):
            result = capture_window("/tmp/w.png", config=self.config, runner=runner)
        self.assertFalse(result.ok)
        self.assertEqual(len(result.failures), 1)
        self.assertEqual(result.to_dict()["runs"][0]["outcome"], "exited_nonzero")

    def test_to_dict(self):
        self.session("x11")
        result = capture_full("/tmp/f.png", config=self.config, runner=FakeRunner(present={"scrot"}))
        self.assertEqual(result.to_dict(), {
            "mode": "full",
            "destination": "/tmp/f.png",
            "session": "x11",
            "desktop": "generic",
            "ok": True,
            "runs": [{"args": ["scrot", "/tmp/f.png"], "outcome": "succeeded", "returncode": 0, "stderr": ""}],
        })

    def test_desktop_resolved_event(self):
        self.session("wayland")
        session, desktop = detect_desktop(config=self.config, runner=FakeRunner(present={"spectacle"}))
        self.assertEqual((session, desktop), (SessionKind.WAYLAND, DesktopKind.KDE))
        self.assertEqual(self.events[-1]["event_type"], "desktop.resolved")
        self.assertEqual(self.events[-1]["data"], {"session": "wayland", "desktop": "kde"})


class HookDispatchTests(CaptureTestCase):
    @mock.patch("desktop_screenshot.capture.notify_capture")
    def test_hooks_run_after_success(self, mock_notify):
        self.session("x11")
        result = capture_full("/tmp/f.png", config=self.config, runner=FakeRunner(present={"scrot"}))
        mock_notify.assert_called_once_with(result, self.config)

    @mock.patch("desktop_screenshot.capture.notify_capture")
    def test_hooks_skipped_after_failure(self, mock_notify):
        self.session("x11")
        runner = FakeRunner(present={"scrot"}, outcomes={"scrot": Outcome.EXITED_NONZERO})
        with self.assertLogs("desktop_screenshot", level="WARNING"):
            capture_full("/tmp/f.png", config=self.config, runner=runner)
        mock_notify.assert_not_called()


class ModeArgumentTests(CaptureTestCase):
    def test_string_mode_selects_area(self):
        self.session("x11")
        runner = FakeRunner(present={"scrot"})
        result = screenshot("area", "/tmp/a.png", config=self.config, runner=runner)
        self.assertEqual(runner.calls, [["scrot", "--select", "/tmp/a.png"]])
        self.assertIs(result.mode, ScreenshotKind.AREA)
        self.assertEqual(result.to_dict()["mode"], "area")

    def test_unknown_mode_raises_before_probing(self):
        self.session("x11")
        runner = FakeRunner(present={"scrot"})
        with self.assertRaises(ValueError):
            screenshot("everything", "/tmp/a.png", config=self.config, runner=runner)
        self.assertEqual(runner.probes, [])
        self.assertEqual(runner.calls, [])
