"""Bazel command wrapper.

Usage:
    bazel = Bazel("/usr/bin/bazel")
    workspace = bazel.workspace()                 # "/home/user/ws"
    report = bazel.coverage(["//foo/..."])       # "/.../_coverage_report.dat"

Bazel doesn't hand back the location of the combined coverage report; it only
logs it.  ``coverage`` therefore tees Bazel's stderr and scans it for the log
line, insisting on exactly one so that a stray second report is never picked
up silently.
"""

import os
import re
import subprocess
from typing import Iterable

import click

#: Fixed ``bazel coverage`` invocation; targets follow after ``--``
COVERAGE_ARGS: tuple[str, ...] = (
    "coverage",
    "--color=no",
    "--curses=no",
    "--test_output=summary",
    "--test_summary=terse",
    "--noshow_progress",
    "--noshow_loading_progress",
    "--noprogress_in_terminal_title",
    "--combined_report=lcov",
)

_REPORT_LOG_RE = re.compile(
    rb"^INFO: LCOV coverage report is located at (/.+\.dat)$", re.MULTILINE
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class BazelError(Exception):
    """Base exception for all Bazel invocation errors."""


class BazelCommandError(BazelError):
    """Raised when Bazel can't be started or exits with a non-zero status."""


class EmptyOutputError(BazelError):
    """Raised when ``bazel info workspace`` prints nothing."""


class ReportLogError(BazelError):
    """Raised when the coverage log doesn't name exactly one report."""

    def __init__(self, message: str, count: int) -> None:
        super().__init__(message)
        self.count = count


# ---------------------------------------------------------------------------
# Log scanning
# ---------------------------------------------------------------------------

def find_report_path(log: bytes, prog: str = "bazel") -> str:
    """Return the report path from the single matching line in *log*.

    Raises:
        ReportLogError: if *log* holds zero or several report lines.
    """
    matches = _REPORT_LOG_RE.findall(log)
    if len(matches) != 1:
        raise ReportLogError(
            f"found {len(matches)} coverage report logs in {prog} output instead of one",
            count=len(matches),
        )
    return os.fsdecode(matches[0])


# ---------------------------------------------------------------------------
# Wrapper
# ---------------------------------------------------------------------------

class Bazel:
    """Thin wrapper around the Bazel executable."""

    def __init__(self, prog: str) -> None:
        self.prog = prog

    def coverage_command(self, targets: Iterable[str]) -> list[str]:
        return [self.prog, *COVERAGE_ARGS, "--", *targets]

    def workspace(self) -> str:
        """Return the workspace root reported by ``bazel info workspace``.

        Bazel's stderr is passed through untouched.

        Raises:
            BazelCommandError: Bazel couldn't run or failed
            EmptyOutputError:  Bazel printed nothing
        """
        try:
            result = subprocess.run(
                [self.prog, "info", "workspace"], stdout=subprocess.PIPE, check=True
            )
        except (OSError, subprocess.CalledProcessError) as exc:
            raise BazelCommandError(f"can't determine Bazel workspace: {exc}") from exc

        out = result.stdout
        if not out:
            raise EmptyOutputError("can't determine Bazel workspace: empty output")
        if out.endswith(b"\n"):
            out = out[:-1]
        return os.fsdecode(out)

    def coverage(self, targets: Iterable[str]) -> str:
        """Run ``bazel coverage`` on *targets* and return the LCOV report path.

        stdout is inherited.  stderr is echoed line by line and captured at
        the same time for the report log scan.

        Raises:
            BazelCommandError: Bazel couldn't run or failed
            ReportLogError:    Bazel didn't log exactly one report location
        """
        cmd = self.coverage_command(targets)
        log = bytearray()
        try:
            with subprocess.Popen(cmd, stderr=subprocess.PIPE) as proc:
                for line in proc.stderr:
                    click.echo(line, err=True, nl=False)
                    log += line
        except OSError as exc:
            raise BazelCommandError(f"error running {self.prog} coverage: {exc}") from exc

        if proc.returncode != 0:
            exc = subprocess.CalledProcessError(proc.returncode, cmd)
            raise BazelCommandError(f"error running {self.prog} coverage: {exc}") from exc

        return find_report_path(bytes(log), self.prog)
