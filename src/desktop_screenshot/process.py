"""External process invocation.

Every call to an external tool goes through a ProcessRunner so the outcome
is explicit (spawn failed / exited nonzero / succeeded) and so tests can
inject a runner that records argument lists instead of starting anything.
"""

import logging
import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from .errors import ToolLaunchError

log = logging.getLogger(__name__)


class Outcome(str, Enum):
    SPAWN_FAILED = "spawn_failed"
    EXITED_NONZERO = "exited_nonzero"
    SUCCEEDED = "succeeded"


@dataclass
class RunResult:
    """Result of one blocking external invocation."""

    args: list[str]
    outcome: Outcome
    returncode: Optional[int] = None
    stdout: str = ""
    stderr: str = ""

    @property
    def tool(self) -> str:
        return self.args[0] if self.args else ""

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCEEDED

    def to_dict(self) -> dict:
        return {
            "args": list(self.args),
            "outcome": self.outcome.value,
            "returncode": self.returncode,
            "stderr": self.stderr,
        }


class ProcessRunner:
    """Runs external programs with subprocess."""

    def run(self, args: Sequence[str]) -> RunResult:
        """Run a program to completion, capturing its output.

        No timeout: interactive selection tools wait on the user.
        """
        argv = [str(a) for a in args]
        log.debug("Running: %s", " ".join(argv))
        try:
            proc = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                errors="replace",
            )
        except OSError as e:
            log.debug("%s could not be started: %s", argv[0], e)
            return RunResult(argv, Outcome.SPAWN_FAILED, stderr=str(e))

        outcome = Outcome.SUCCEEDED if proc.returncode == 0 else Outcome.EXITED_NONZERO
        return RunResult(argv, outcome, proc.returncode, proc.stdout or "", proc.stderr or "")

    def spawn(self, args: Sequence[str]) -> subprocess.Popen:
        """Start a program without waiting for it.

        The child gets its own session so it outlives the caller.

        Raises:
            ToolLaunchError: If the program could not be started
        """
        argv = [str(a) for a in args]
        log.debug("Spawning: %s", " ".join(argv))
        try:
            return subprocess.Popen(
                argv,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            raise ToolLaunchError(argv[0], str(e)) from e

    def probe(
        self,
        tool: str,
        flag: str = "--version",
        strict: bool = False,
        timeout: float = 2.0,
    ) -> bool:
        """Check whether a tool is present.

        By default a tool is present if it can be started at all; its exit
        status is ignored. With strict=True it must also exit 0 within
        timeout seconds.
        """
        try:
            proc = subprocess.Popen(
                [tool, flag],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            log.debug("Probe %s: not available (%s)", tool, e)
            return False

        try:
            returncode = proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
            log.debug("Probe %s: timed out after %.1fs", tool, timeout)
            return not strict

        if strict and returncode != 0:
            log.debug("Probe %s: exited with status %d", tool, returncode)
            return False
        return True

