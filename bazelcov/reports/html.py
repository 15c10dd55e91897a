"""HTML report generation with genhtml.

Functions:
    genhtml_command(genhtml, output, info_file)               -> list[str]
    generate_html(genhtml, report, output, workspace)         -> None

genhtml reads the report from a temporary ``coverage-*.info`` file that is
removed again whether or not genhtml succeeds.
"""

import contextlib
import os
import subprocess
import tempfile

from bazelcov.reports import ReportError

#: Fixed genhtml flags; the output directory comes first, the input file last
GENHTML_FLAGS: tuple[str, ...] = (
    "--branch-coverage",
    "--demangle-cpp",
    "--rc=genhtml_demangle_cpp_params=--no-strip-underscore",
)


class ReportWriteError(ReportError):
    """Raised when the munged report can't be written to a temporary file."""


class GenHtmlError(ReportError):
    """Raised when genhtml can't be started or exits with a non-zero status."""


def genhtml_command(genhtml: str, output: str, info_file: str) -> list[str]:
    return [genhtml, f"--output-directory={output}", *GENHTML_FLAGS, "--", info_file]


def generate_html(genhtml: str, report: bytes, output: str, workspace: str) -> None:
    """Write *report* into a temporary file and run genhtml on it.

    genhtml runs inside *workspace* and writes into *output*; its stdout and
    stderr are inherited.

    Raises:
        ReportWriteError: creating, writing or closing the temporary file failed
        GenHtmlError:     genhtml couldn't run or failed
    """
    try:
        temp = tempfile.NamedTemporaryFile(prefix="coverage-", suffix=".info", delete=False)
    except OSError as exc:
        raise ReportWriteError(f"can't write report: {exc}") from exc

    try:
        try:
            with temp:
                temp.write(report)
        except OSError as exc:
            raise ReportWriteError(f"can't write report: {exc}") from exc

        cmd = genhtml_command(genhtml, output, temp.name)
        try:
            subprocess.run(cmd, cwd=workspace, check=True)
        except (OSError, subprocess.CalledProcessError) as exc:
            raise GenHtmlError(f"error running {genhtml}: {exc}") from exc
    finally:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(temp.name)
